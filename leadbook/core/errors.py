# core/errors.py
from typing import Any, Dict, List, Optional

from fastapi import HTTPException


class LeadbookError(Exception):
    """Base class for failures that map onto a stable HTTP error shape."""

    status_code = 500
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.detail())


class ValidationFailed(LeadbookError):
    status_code = 400
    code = "validation_failed"

    def __init__(self, errors: List[Dict[str, Optional[str]]], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors

    def detail(self) -> Dict[str, Any]:
        return {**super().detail(), "errors": self.errors}


class NotFound(LeadbookError):
    status_code = 404
    code = "not_found"


class Forbidden(LeadbookError):
    status_code = 403
    code = "forbidden"


class Conflict(LeadbookError):
    status_code = 409
    code = "conflict"


class RateLimited(LeadbookError):
    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after

    def to_http(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail=self.detail(),
            headers={"Retry-After": str(self.retry_after)},
        )


class TransactionFailed(LeadbookError):
    """Bulk insert rolled back; carries the per-row report with inserted=0."""

    status_code = 500
    code = "transaction_failed"

    def __init__(self, message: str, report: Dict[str, Any]):
        super().__init__(message)
        self.report = report

    def detail(self) -> Dict[str, Any]:
        return {**super().detail(), **self.report}


def field_error(field: Optional[str], message: str) -> Dict[str, Optional[str]]:
    return {"field": field, "message": message}


INTERNAL_ERROR = {"code": "internal_error", "message": "Internal Server Error"}
