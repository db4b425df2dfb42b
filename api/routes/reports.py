"""User crime report submission."""

import httpx
from fastapi import APIRouter, Depends, status

from api.deps import get_http_client
from sources.reports_client import CrimeReport, submit_report

reports_router = APIRouter(prefix="/reports", tags=["reports"])


@reports_router.post("", status_code=status.HTTP_201_CREATED)
async def create_report(
    report: CrimeReport,
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict:
    """Forward a report to the report backend; upstream failures become 502."""
    await submit_report(client, report)
    return {"status": "submitted", "crime_type": report.crime_type}
