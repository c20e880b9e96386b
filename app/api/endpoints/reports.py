from fastapi import APIRouter
from pydantic import BaseModel, Field

from app.services.reports import report_service

router = APIRouter(prefix="/api", tags=["reports"])


class ReportRequest(BaseModel):
    characterId: str = Field(min_length=1, description="Id of the character being reported")


@router.post("/report")
async def report_character(payload: ReportRequest) -> dict[str, str]:
    """Count a report; the character is deleted once it has been reported too often."""
    _, message = await report_service.report(payload.characterId)
    return {"message": message}
