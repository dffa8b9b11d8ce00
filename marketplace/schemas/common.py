from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")

# Locations FastAPI prefixes to request validation errors
_REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


class CamelModel(BaseModel):
    """Base schema exposing camelCase keys on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(BaseModel, Generic[T]):
    """Response envelope shared by every endpoint."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


def field_errors(errors: Iterable[Dict[str, Any]]) -> Dict[str, str]:
    """
    Collapse pydantic error dicts into a ``{field: message}`` mapping.

    The first message reported for a field wins.
    """
    result: Dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if str(part) not in _REQUEST_LOCATIONS]
        field = loc[0] if loc else "request"
        result.setdefault(field, error.get("msg", "Invalid value"))
    return result
