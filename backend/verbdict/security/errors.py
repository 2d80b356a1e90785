from __future__ import annotations

from typing import Any, Dict, Optional


class GateError(Exception):
    """Base class for denials raised by the verification gate."""

    status_code = 400

    def body(self) -> Dict[str, Any]:
        return {"error": str(self)}

    def headers(self) -> Optional[Dict[str, str]]:
        return None


class RateLimited(GateError):
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after

    def headers(self) -> Optional[Dict[str, str]]:
        if self.retry_after is None:
            return None
        return {"Retry-After": str(self.retry_after)}


class BadRequest(GateError):
    """Required fields were missing. Never counted as an attempt."""

    status_code = 400

    def __init__(self, message: str = "missing_fields") -> None:
        super().__init__(message)


class WrongAnswer(GateError):
    status_code = 403

    def __init__(self) -> None:
        super().__init__("wrong_answer")


class WrongCredential(GateError):
    status_code = 401

    def __init__(self) -> None:
        super().__init__("wrong_credential")

    def body(self) -> Dict[str, Any]:
        return {"success": False}


__all__ = ["GateError", "RateLimited", "BadRequest", "WrongAnswer", "WrongCredential"]
