"""Root of the event-reporter exception hierarchy."""

from typing import Dict, Optional


class EventReporterError(Exception):
    """Base exception for all event-reporter errors.

    ``details`` is shown after the message as ``(k=v, ...)``. Errors about a
    single stored record pass its ``key``: the raw bytes stay on
    ``self.key`` and the hex form is added to ``details``.
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, str]] = None,
        key: Optional[bytes] = None,
    ):
        super().__init__(message)
        self.message = message
        self.key = key
        self.details = dict(details or {})
        if key is not None:
            self.details["key"] = key.hex() or "<empty>"

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({context})"
