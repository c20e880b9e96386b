import random

from loguru import logger

from app.core.constants import PAIR_SIZE, Gender
from app.models.character import Character
from app.services.character_store import CharacterStore, character_store


class PairingSelector:
    """Chooses the next two characters to put in front of a voter."""

    def __init__(self, store: CharacterStore = character_store) -> None:
        self.store = store

    @staticmethod
    def gender_order() -> list[str]:
        """A randomly chosen gender followed by the remaining ones."""
        genders = [g.value for g in Gender]
        first = random.choice(genders)
        return [first] + [g for g in genders if g != first]

    async def next_pair(self) -> list[Character]:
        """Return two unvoted characters of the same gender, or an empty list.

        An empty list means every gender ran out of unvoted characters; the
        voted flags have been cleared and the caller should ask again.
        """
        for gender in self.gender_order():
            ids = await self.store.sample_unvoted(gender, PAIR_SIZE)
            if len(ids) < PAIR_SIZE:
                logger.debug(f"Only {len(ids)} unvoted {gender} characters left")
                continue
            pair = await self.store.get_many(ids)
            if len(pair) == PAIR_SIZE:
                return pair
            logger.warning(f"Unvoted {gender} index references missing characters: {ids}")

        await self.store.reset_voted(PAIR_SIZE)
        return []


pairing_selector = PairingSelector()
