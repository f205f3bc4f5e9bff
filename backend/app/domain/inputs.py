"""
Boundary validation for domain services.

Services accept either a schema instance or a raw mapping coming from the
presentation layer and validate it once, here, raising the domain's
InputValidationError instead of pydantic's own exception.
"""

from typing import Any, Type, TypeVar
from pydantic import BaseModel, ValidationError

from backend.app.core.exceptions import InputValidationError

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def parse_input(schema: Type[SchemaT], data: Any) -> SchemaT:
    if isinstance(data, schema):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(data or {})
    except ValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        fields = [".".join(str(part) for part in error["loc"]) for error in errors]
        raise InputValidationError(
            f"Invalid {schema.__name__} input: {', '.join(fields) or 'payload'}",
            details={"errors": errors},
        ) from exc
