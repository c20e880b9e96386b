from collections import Counter

from app.core.config import settings
from app.core.constants import Gender, Race
from app.models.character import Character, LeadingBloodline, LeadingRace, Stats
from app.services.character_store import CharacterStore, character_store


class StatsService:
    """Read-only projections over the character store."""

    def __init__(self, store: CharacterStore = character_store):
        self.store = store

    async def top(
        self,
        race: str | None = None,
        bloodline: str | None = None,
        gender: str | None = None,
        limit: int | None = None,
    ) -> list[Character]:
        """Characters with the most wins matching the filters, ranked by winning percentage."""
        limit = limit or settings.LEADERBOARD_LIMIT
        filters = {"race": race, "bloodline": bloodline, "gender": gender}
        filters = {field: value for field, value in filters.items() if value}

        selected: list[Character] = []
        async for character in self.store.iter_by_wins():
            if all(getattr(character, field) == value for field, value in filters.items()):
                selected.append(character)
                if len(selected) >= limit:
                    break

        # sorted() is stable, so ties keep the wins ordering
        return sorted(selected, key=lambda c: c.winning_percentage, reverse=True)

    async def shame(self, limit: int | None = None) -> list[Character]:
        return await self.store.most_losses(limit or settings.LEADERBOARD_LIMIT)

    async def summary(self) -> Stats:
        races: Counter[str] = Counter()
        genders: Counter[str] = Counter()
        race_wins: Counter[str] = Counter()
        bloodline_wins: Counter[str] = Counter()
        total = 0
        total_votes = 0

        async for character in self.store.iter_all():
            total += 1
            total_votes += character.wins
            races[character.race] += 1
            genders[character.gender] += 1
            race_wins[character.race] += character.wins
            bloodline_wins[character.bloodline] += character.wins

        leading_race = None
        if race_wins:
            name, count = race_wins.most_common(1)[0]
            leading_race = LeadingRace(race=name, count=count)
        leading_bloodline = None
        if bloodline_wins:
            name, count = bloodline_wins.most_common(1)[0]
            leading_bloodline = LeadingBloodline(bloodline=name, count=count)

        return Stats(
            total_count=total,
            amarr_count=races[Race.AMARR.value],
            caldari_count=races[Race.CALDARI.value],
            gallente_count=races[Race.GALLENTE.value],
            minmatar_count=races[Race.MINMATAR.value],
            male_count=genders[Gender.MALE.value],
            female_count=genders[Gender.FEMALE.value],
            total_votes=total_votes,
            leading_race=leading_race,
            leading_bloodline=leading_bloodline,
        )


stats_service = StatsService()
