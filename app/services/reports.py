from loguru import logger
from redis.exceptions import WatchError

from app.core.config import settings
from app.core.constants import MSG_CHARACTER_NOT_FOUND, MSG_DELETED, MSG_REPORTED
from app.core.exceptions import ProfileNotFound
from app.models.character import Character
from app.services.character_store import CharacterStore, character_store


class ReportService:
    """Counts user reports and removes characters reported too often."""

    def __init__(self, store: CharacterStore = character_store, threshold: int | None = None):
        self.store = store
        self.threshold = settings.REPORT_THRESHOLD if threshold is None else threshold

    async def report(self, character_id: str) -> tuple[bool, str]:
        """Add one report to a character.

        Returns:
            (deleted, message) where deleted tells whether the character was removed
        """
        store = self.store
        key = store.character_key(character_id)
        client = await store.client()
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    data = await pipe.hgetall(key)
                    if not data:
                        raise ProfileNotFound(MSG_CHARACTER_NOT_FOUND)
                    character = Character.from_redis(data)
                    reports = character.reports + 1

                    pipe.multi()
                    if reports > self.threshold:
                        store.queue_delete(pipe, character)
                    else:
                        pipe.hset(key, "reports", reports)
                    await pipe.execute()
                    break
                except WatchError:
                    continue

        if reports > self.threshold:
            logger.info(f"Deleted {character.name} ({character_id}) after {reports} reports")
            return True, MSG_DELETED.format(name=character.name)
        return False, MSG_REPORTED.format(name=character.name)


report_service = ReportService()
