"""JSON body parsing as a dependency.

Endpoints behind ``require_import_key`` take their body through ``json_body``
so the key is checked before the body is read. A declared body parameter
would be parsed by FastAPI ahead of every dependency.
"""

from typing import Type, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def json_body(model: Type[ModelT], allow_empty: bool = False):
    """Return a dependency that validates the request body as ``model``.

    With ``allow_empty`` a missing body yields ``model()`` with its defaults.
    """

    async def parse(request: Request) -> ModelT:
        raw = await request.body()
        if not raw.strip():
            if allow_empty:
                return model()
            raise RequestValidationError([{"loc": ("body",), "msg": "Field required", "type": "missing"}])
        try:
            payload = await request.json()
        except ValueError:
            raise RequestValidationError([{"loc": ("body",), "msg": "Body is not valid JSON", "type": "json_invalid"}])
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise RequestValidationError([
                {"loc": ("body", *err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ])

    return parse
