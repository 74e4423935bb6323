"""
Error taxonomy of the recipe catalog.

Every error is terminal for the request that triggered it. The HTTP layer maps
them to status codes through `CatalogError.status_code` (see main.py).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional


@dataclass(frozen=True)
class FieldError:
    """A single failed rule on a single input field."""
    field: str
    rule: str
    message: str


class CatalogError(Exception):
    """Base class for errors raised by the catalog core."""

    status_code = 400
    message = "Request failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)

    # PUBLIC_INTERFACE
    def to_dict(self) -> Dict[str, Any]:
        """Serializable body for error responses."""
        return {"detail": self.message}


class ValidationError(CatalogError):
    """Malformed or missing input, with field-level detail."""

    status_code = 422
    message = "The given data was invalid."

    def __init__(self, errors: Iterable[FieldError], message: Optional[str] = None) -> None:
        self.errors: List[FieldError] = list(errors)
        super().__init__(message)

    @classmethod
    def single(cls, field: str, rule: str, message: str) -> "ValidationError":
        return cls([FieldError(field=field, rule=rule, message=message)])

    @classmethod
    def from_pydantic(cls, exc: Any) -> "ValidationError":
        """Convert a pydantic ValidationError into field errors."""
        errors = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "body"
            errors.append(FieldError(field=field, rule=err.get("type", "invalid"), message=err.get("msg", "")))
        return cls(errors)

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "errors": [asdict(e) for e in self.errors]}


class NotFoundError(CatalogError):
    """A referenced recipe or category does not exist."""

    status_code = 404

    def __init__(self, resource: str, identifier: Any) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found")


class ForbiddenError(CatalogError):
    """The requester is authenticated but does not own the resource."""

    status_code = 403
    message = "Unauthorized"


class UnauthenticatedError(CatalogError):
    """The operation needs a viewer identity and none was supplied."""

    status_code = 401
    message = "Not authenticated"
