from collections.abc import AsyncIterator, Iterable

import redis.asyncio as redis
from loguru import logger
from redis.asyncio.client import Pipeline
from redis.exceptions import WatchError

from app.core.constants import (
    CHARACTER_KEY,
    GENDER_KEY,
    LOSSES_LEADERBOARD_KEY,
    NAMES_KEY,
    PAIR_SIZE,
    UNVOTED_KEY,
    WINS_LEADERBOARD_KEY,
    Gender,
)
from app.models.character import Character, new_random_key
from app.services.redis_service import RedisService, redis_service


def _escape_glob(value: str) -> str:
    """Escape Redis glob metacharacters so user input matches literally."""
    return "".join(f"\\{ch}" if ch in "*?[]\\" else ch for ch in value)


class CharacterStore:
    """Redis-backed store for character profiles and their indexes.

    Each character is a hash. Alongside it the store maintains a set of ids
    per gender, a sorted set of unvoted ids per gender scored by the random
    key, win/loss leaderboards and a lower-cased name lookup.
    """

    def __init__(self, service: RedisService = redis_service) -> None:
        self.redis = service

    async def client(self) -> redis.Redis:
        return await self.redis.get_client()

    def character_key(self, character_id: str) -> str:
        return self.redis.key(CHARACTER_KEY, character_id=character_id)

    def gender_key(self, gender: str) -> str:
        return self.redis.key(GENDER_KEY, gender=gender)

    def unvoted_key(self, gender: str) -> str:
        return self.redis.key(UNVOTED_KEY, gender=gender)

    @property
    def wins_key(self) -> str:
        return self.redis.key(WINS_LEADERBOARD_KEY)

    @property
    def losses_key(self) -> str:
        return self.redis.key(LOSSES_LEADERBOARD_KEY)

    @property
    def names_key(self) -> str:
        return self.redis.key(NAMES_KEY)

    # Reads

    async def get(self, character_id: str) -> Character | None:
        client = await self.client()
        data = await client.hgetall(self.character_key(character_id))
        if not data:
            return None
        return Character.from_redis(data)

    async def get_many(self, character_ids: Iterable[str]) -> list[Character]:
        """Fetch several characters in one round trip, skipping missing ones, keeping order."""
        ids = list(character_ids)
        if not ids:
            return []
        client = await self.client()
        async with client.pipeline(transaction=False) as pipe:
            for character_id in ids:
                pipe.hgetall(self.character_key(character_id))
            rows = await pipe.execute()
        return [Character.from_redis(row) for row in rows if row]

    async def count(self, gender: str | None = None) -> int:
        client = await self.client()
        genders = [gender] if gender else [g.value for g in Gender]
        async with client.pipeline(transaction=False) as pipe:
            for g in genders:
                pipe.scard(self.gender_key(g))
            counts = await pipe.execute()
        return sum(counts)

    async def search(self, name: str) -> Character | None:
        """Case-insensitive lookup: exact name first, then first partial match."""
        query = name.strip().lower()
        if not query:
            return None
        client = await self.client()
        character_id = await client.hget(self.names_key, query)
        if character_id is None:
            pattern = f"*{_escape_glob(query)}*"
            async for _, found_id in client.hscan_iter(self.names_key, match=pattern, count=500):
                character_id = found_id
                break
        if character_id is None:
            return None
        return await self.get(character_id)

    async def iter_all(self, batch_size: int = 500) -> AsyncIterator[Character]:
        client = await self.client()
        for gender in Gender:
            batch: list[str] = []
            async for character_id in client.sscan_iter(self.gender_key(gender.value), count=batch_size):
                batch.append(character_id)
                if len(batch) >= batch_size:
                    for character in await self.get_many(batch):
                        yield character
                    batch = []
            if batch:
                for character in await self.get_many(batch):
                    yield character

    async def iter_by_wins(self, batch_size: int = 200) -> AsyncIterator[Character]:
        """Yield characters ordered by wins, most first."""
        client = await self.client()
        start = 0
        while True:
            ids = await client.zrevrange(self.wins_key, start, start + batch_size - 1)
            if not ids:
                return
            for character in await self.get_many(ids):
                yield character
            start += batch_size

    async def most_losses(self, limit: int) -> list[Character]:
        client = await self.client()
        ids = await client.zrevrange(self.losses_key, 0, limit - 1)
        return await self.get_many(ids)

    # Unvoted index

    async def unvoted_count(self, gender: str) -> int:
        client = await self.client()
        return await client.zcard(self.unvoted_key(gender))

    async def sample_unvoted(self, gender: str, count: int = PAIR_SIZE) -> list[str]:
        """Pick up to ``count`` distinct unvoted ids of a gender.

        A random pivot is drawn and the ids whose random key follows it are
        taken, wrapping around to the lowest keys when the tail runs short.
        """
        client = await self.client()
        key = self.unvoted_key(gender)
        pivot = new_random_key()
        ids = await client.zrangebyscore(key, pivot, "+inf", start=0, num=count)
        if len(ids) < count:
            head = await client.zrangebyscore(key, "-inf", f"({pivot}", start=0, num=count - len(ids))
            ids.extend(i for i in head if i not in ids)
        return ids

    async def reset_voted(self, threshold: int = PAIR_SIZE) -> bool:
        """Clear every voted flag once no gender has ``threshold`` unvoted characters left.

        The check and the rewrite run in one WATCHed transaction, so concurrent
        callers (or other server instances) reset at most once per exhaustion.

        Returns:
            True if this call performed the reset, False if it was not needed
        """
        client = await self.client()
        unvoted_keys = [self.unvoted_key(g.value) for g in Gender]
        gender_keys = [self.gender_key(g.value) for g in Gender]
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(*unvoted_keys, *gender_keys)
                    for key in unvoted_keys:
                        if await pipe.zcard(key) >= threshold:
                            await pipe.unwatch()
                            return False
                    members = {g.value: await pipe.smembers(self.gender_key(g.value)) for g in Gender}

                    pipe.multi()
                    total = 0
                    for gender, ids in members.items():
                        scores = {character_id: new_random_key() for character_id in ids}
                        for character_id, score in scores.items():
                            pipe.hset(self.character_key(character_id), mapping={"voted": 0, "random": score})
                        if scores:
                            pipe.zadd(self.unvoted_key(gender), scores)
                        total += len(scores)
                    await pipe.execute()
                    logger.info(f"Reset voted flag on {total} characters")
                    return True
                except WatchError:
                    logger.debug("Unvoted index changed during reset, re-checking")
                    continue

    # Writes

    def queue_insert(self, pipe: Pipeline, character: Character) -> None:
        """Buffer every write needed to add ``character`` to ``pipe``'s transaction."""
        character_id = character.character_id
        pipe.hset(self.character_key(character_id), mapping=character.to_redis())
        pipe.sadd(self.gender_key(character.gender), character_id)
        if not character.voted:
            pipe.zadd(self.unvoted_key(character.gender), {character_id: character.random})
        pipe.zadd(self.wins_key, {character_id: character.wins})
        pipe.zadd(self.losses_key, {character_id: character.losses})
        pipe.hset(self.names_key, character.name.lower(), character_id)

    def queue_delete(self, pipe: Pipeline, character: Character) -> None:
        """Buffer every write needed to remove ``character`` and its index entries."""
        character_id = character.character_id
        pipe.delete(self.character_key(character_id))
        pipe.srem(self.gender_key(character.gender), character_id)
        pipe.zrem(self.unvoted_key(character.gender), character_id)
        pipe.zrem(self.wins_key, character_id)
        pipe.zrem(self.losses_key, character_id)
        pipe.hdel(self.names_key, character.name.lower())

    async def create(self, character: Character) -> bool:
        """Insert a new character.

        Returns:
            True if stored, False if a character with the same id already exists
        """
        client = await self.client()
        key = self.character_key(character.character_id)
        async with client.pipeline(transaction=True) as pipe:
            while True:
                try:
                    await pipe.watch(key)
                    if await pipe.exists(key):
                        await pipe.unwatch()
                        return False
                    pipe.multi()
                    self.queue_insert(pipe, character)
                    await pipe.execute()
                    return True
                except WatchError:
                    continue


character_store = CharacterStore()
