from dataclasses import dataclass
from typing import Optional


@dataclass
class ActionResult:
    """Outcome of a write against the store. Failures carry a human-readable error."""
    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "ActionResult":
        return cls(success=True)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)
