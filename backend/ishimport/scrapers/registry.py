"""Fetcher registry: maps source names to fetcher classes."""

import logging
from typing import Type

from ishimport.scrapers.base import BaseSourceFetcher

logger = logging.getLogger(__name__)

# Source name -> fetcher class mapping
_REGISTRY: dict[str, Type[BaseSourceFetcher]] = {}


def register_source(source: str):
    """Decorator to register a fetcher class for a source site."""
    def decorator(cls: Type[BaseSourceFetcher]):
        _REGISTRY[source] = cls
        cls.source_name = source
        logger.debug(f"Registered fetcher for source: {source}")
        return cls
    return decorator


def get_source_class(source: str) -> Type[BaseSourceFetcher] | None:
    """Look up the fetcher class for a given source."""
    return _REGISTRY.get(source)


def list_sources() -> list[str]:
    """List all registered sources."""
    return list(_REGISTRY.keys())
