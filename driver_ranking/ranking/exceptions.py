"""
Errors raised by the ranking engine.
"""

from typing import Any, Dict, Optional


class ValidationError(ValueError):
    """
    Structurally invalid engine input.

    Raised at the boundary of an engine call; the whole batch fails and no
    partial result is returned.
    """

    def __init__(
        self,
        message: str,
        criterion_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.criterion_id = criterion_id
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "criterion_id": self.criterion_id,
            "details": self.details,
        }


class NotFoundError(ValidationError):
    """A criterion id that is not part of the hierarchy."""
