from __future__ import annotations

import json
from typing import Any, Dict, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.requests import Request

from app.utils.error_handler import RequestValidationFailed

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_schema(data: Dict[str, Any], model: Type[BaseModel]) -> Tuple[bool, Any]:
    try:
        obj = model.model_validate(data)
        return True, obj
    except ValidationError as e:
        return False, e.errors(include_url=False, include_context=False, include_input=False)


def parse_body(data: Any, model: Type[ModelT]) -> ModelT:
    """Validate ``data`` or raise ``RequestValidationFailed`` (400)."""
    if not isinstance(data, dict):
        raise RequestValidationFailed(
            [{"loc": ["body"], "msg": "Expected a JSON object", "type": "type_error"}]
        )
    ok, result = validate_schema(data, model)
    if not ok:
        raise RequestValidationFailed(result)
    return result


async def parse_request_body(request: Request, model: Type[ModelT]) -> ModelT:
    """Read the JSON body of ``request`` and validate it against ``model``."""
    try:
        data = json.loads(await request.body() or b"null")
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestValidationFailed(
            [{"loc": ["body"], "msg": "Invalid JSON", "type": "json_invalid"}],
            message="Invalid request format",
        )
    return parse_body(data, model)
