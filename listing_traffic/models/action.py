"""Result returned by every write action."""

from typing import Any, Optional
from pydantic import BaseModel


class ActionResult(BaseModel):
    """Either success (optionally with the written row) or a human-readable error."""
    success: bool
    error: Optional[str] = None
    data: Optional[Any] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)
