from enum import Enum

from loguru import logger
from redis.exceptions import WatchError

from app.core.config import settings
from app.core.constants import MSG_VOTE_MISSING, MSG_VOTE_REQUIRES_TWO, MSG_VOTE_SAME_CHARACTER
from app.core.exceptions import InvalidVotePair, ProfileNotFound, VoteConflict
from app.models.character import Character, new_random_key
from app.services.character_store import CharacterStore, character_store


class VoteOutcome(str, Enum):
    RECORDED = "recorded"
    # One of the pair was already voted on; first recorded vote wins
    DROPPED = "dropped"


def validate_pair(winner_id: str | None, loser_id: str | None) -> tuple[str, str]:
    winner_id = (winner_id or "").strip()
    loser_id = (loser_id or "").strip()
    if not winner_id or not loser_id:
        raise InvalidVotePair(MSG_VOTE_REQUIRES_TWO)
    if winner_id == loser_id:
        raise InvalidVotePair(MSG_VOTE_SAME_CHARACTER)
    return winner_id, loser_id


class VoteRecorder:
    """Applies a vote to both characters in one Redis transaction."""

    def __init__(self, store: CharacterStore = character_store, max_attempts: int | None = None) -> None:
        self.store = store
        self.max_attempts = settings.VOTE_MAX_ATTEMPTS if max_attempts is None else max_attempts

    async def record(self, winner_id: str | None, loser_id: str | None) -> VoteOutcome:
        """Record a win for ``winner_id`` and a loss for ``loser_id``.

        Both character hashes are WATCHed while their voted flags are checked,
        so a concurrent vote on the same pair either lands first (and this one
        is dropped) or aborts this transaction, which is then re-evaluated.

        Raises:
            InvalidVotePair: an id is missing or both ids are equal
            ProfileNotFound: either character does not exist
            VoteConflict: the transaction kept being interrupted
        """
        winner_id, loser_id = validate_pair(winner_id, loser_id)
        store = self.store
        winner_key = store.character_key(winner_id)
        loser_key = store.character_key(loser_id)

        client = await store.client()
        async with client.pipeline(transaction=True) as pipe:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    await pipe.watch(winner_key, loser_key)
                    winner_data = await pipe.hgetall(winner_key)
                    loser_data = await pipe.hgetall(loser_key)
                    if not winner_data or not loser_data:
                        raise ProfileNotFound(MSG_VOTE_MISSING)

                    winner = Character.from_redis(winner_data)
                    loser = Character.from_redis(loser_data)
                    if winner.voted or loser.voted:
                        await pipe.unwatch()
                        logger.info(f"Dropping vote {winner_id} > {loser_id}: pair already voted on")
                        return VoteOutcome.DROPPED

                    pipe.multi()
                    self._queue_result(pipe, winner, won=True)
                    self._queue_result(pipe, loser, won=False)
                    await pipe.execute()
                    logger.debug(f"Recorded vote {winner_id} > {loser_id}")
                    return VoteOutcome.RECORDED
                except WatchError:
                    logger.warning(
                        f"Vote {winner_id} > {loser_id} interrupted by a concurrent write "
                        f"(Attempt {attempt}/{self.max_attempts})"
                    )

        raise VoteConflict(f"Vote could not be recorded after {self.max_attempts} attempts.")

    def _queue_result(self, pipe, character: Character, won: bool) -> None:
        store = self.store
        character_id = character.character_id
        key = store.character_key(character_id)
        if won:
            pipe.hincrby(key, "wins", 1)
            pipe.zincrby(store.wins_key, 1, character_id)
        else:
            pipe.hincrby(key, "losses", 1)
            pipe.zincrby(store.losses_key, 1, character_id)
        pipe.hset(key, mapping={"voted": 1, "random": new_random_key()})
        pipe.zrem(store.unvoted_key(character.gender), character_id)


vote_recorder = VoteRecorder()
