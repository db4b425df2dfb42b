"""Standardized error responses."""
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.core.geo import InvalidInputError
from sources.reports_client import ReportSubmissionError

LOGGER = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""
    code: str
    message: str
    details: Optional[Any] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "upstream_error",
                "message": "Failed to submit report",
                "details": {"status_code": 503},
            }
        }
    }


def _error(status_code: int, code: str, message: str, details: Any = None) -> JSONResponse:
    body = ErrorResponse(code=code, message=message, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _invalid_request(request: Request, exc: InvalidInputError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, "invalid_request", str(exc))


async def _report_submission_failed(request: Request, exc: ReportSubmissionError) -> JSONResponse:
    LOGGER.warning("Report submission failed: %s", exc)
    details = {"status_code": exc.status_code} if exc.status_code is not None else None
    return _error(status.HTTP_502_BAD_GATEWAY, "upstream_error", exc.message, details)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidInputError, _invalid_request)
    app.add_exception_handler(ReportSubmissionError, _report_submission_failed)
