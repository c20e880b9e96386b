from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field, StringConstraints

from app.core.constants import MSG_CHARACTER_NOT_FOUND, Bloodline, Gender, Race
from app.core.exceptions import ProfileNotFound
from app.models.character import Character
from app.services.character_store import character_store
from app.services.importer import profile_importer
from app.services.pairing import pairing_selector
from app.services.stats import stats_service
from app.services.voting import vote_recorder

router = APIRouter(prefix="/api/characters", tags=["characters"])


class VoteRequest(BaseModel):
    winner: str | None = Field(default=None, description="Id of the character that won the vote")
    loser: str | None = Field(default=None, description="Id of the character that lost the vote")


class ImportRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        description="Character name as registered in New Eden"
    )
    gender: Gender


class MessageResponse(BaseModel):
    message: str


@router.get("", response_model=list[Character])
async def get_pair() -> list[Character]:
    """Two characters to vote on, or an empty list after the voted flags were reset."""
    return await pairing_selector.next_pair()


@router.put("", response_model=MessageResponse)
async def vote(payload: VoteRequest) -> MessageResponse:
    outcome = await vote_recorder.record(payload.winner, payload.loser)
    return MessageResponse(message=f"Vote {outcome.value}.")


@router.post("", response_model=MessageResponse)
async def import_character(payload: ImportRequest) -> MessageResponse:
    _, message = await profile_importer.import_character(payload.name, payload.gender)
    return MessageResponse(message=message)


@router.get("/count")
async def count() -> dict[str, int]:
    return {"count": await character_store.count()}


@router.get("/search", response_model=Character)
async def search(name: str = Query(min_length=1)) -> Character:
    character = await character_store.search(name)
    if character is None:
        raise ProfileNotFound(MSG_CHARACTER_NOT_FOUND)
    return character


@router.get("/top", response_model=list[Character])
async def top(
    race: Race | None = None,
    bloodline: Bloodline | None = None,
    gender: Gender | None = None,
) -> list[Character]:
    """Highest winning percentages among the characters with the most wins."""
    return await stats_service.top(
        race=race.value if race else None,
        bloodline=bloodline.value if bloodline else None,
        gender=gender.value if gender else None,
    )


@router.get("/shame", response_model=list[Character])
async def shame() -> list[Character]:
    return await stats_service.shame()


@router.get("/{character_id}", response_model=Character)
async def get_character(character_id: str) -> Character:
    character = await character_store.get(character_id)
    if character is None:
        raise ProfileNotFound(MSG_CHARACTER_NOT_FOUND)
    return character
