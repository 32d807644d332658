"""Shared-secret authentication for the import trigger endpoints."""

import secrets

from fastapi import Header, HTTPException

from ishimport.config import get_settings


def require_import_key(x_import_key: str | None = Header(default=None)) -> None:
    """Reject the request unless ``X-Import-Key`` matches the configured key.

    With no key configured every request is rejected.
    """
    expected = get_settings().import_api_key
    if not expected or not x_import_key:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not secrets.compare_digest(x_import_key.encode(), expected.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
