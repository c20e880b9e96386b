import random

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import Bloodline, Gender, Race


def new_random_key() -> float:
    """Fresh randomization key used to place a character in the unvoted index."""
    return random.random()


class Character(BaseModel):
    """A character profile with its vote tallies."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    character_id: str = Field(alias="characterId")
    name: str
    race: Race
    bloodline: Bloodline
    gender: Gender
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    reports: int = Field(default=0, ge=0)
    voted: bool = False
    random: float = Field(default_factory=new_random_key, ge=0, lt=1)

    @property
    def winning_percentage(self) -> float:
        total = self.wins + self.losses
        if total == 0:
            return 0.0
        return self.wins / total

    def to_redis(self) -> dict[str, str | int | float]:
        """Flatten into a Redis hash mapping (Redis has no boolean type)."""
        data = self.model_dump()
        data["voted"] = int(self.voted)
        return data

    @classmethod
    def from_redis(cls, data: dict[str, str]) -> "Character":
        return cls.model_validate(data)


class LeadingRace(BaseModel):
    race: str
    count: int


class LeadingBloodline(BaseModel):
    bloodline: str
    count: int


class Stats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_count: int = Field(alias="totalCount")
    amarr_count: int = Field(alias="amarrCount")
    caldari_count: int = Field(alias="caldariCount")
    gallente_count: int = Field(alias="gallenteCount")
    minmatar_count: int = Field(alias="minmatarCount")
    male_count: int = Field(alias="maleCount")
    female_count: int = Field(alias="femaleCount")
    total_votes: int = Field(alias="totalVotes")
    leading_race: LeadingRace | None = Field(default=None, alias="leadingRace")
    leading_bloodline: LeadingBloodline | None = Field(default=None, alias="leadingBloodline")
