from async_lru import alru_cache
from loguru import logger
from pydantic import BaseModel, ValidationError

from app.core.constants import UNKNOWN_CHARACTER_ID, Bloodline, Race
from app.core.exceptions import RegistryUnavailable
from app.services.registry.client import RegistryClient


class CharacterInfo(BaseModel):
    character_id: str
    name: str
    race: Race
    bloodline: Bloodline


class RegistryService:
    """
    Resolves character names and attributes against the EVE registry.
    """

    def __init__(self, client: RegistryClient | None = None):
        self.client = client or RegistryClient()

    async def close(self):
        """Close the underlying HTTP client."""
        await self.client.close()

    async def lookup_character_id(self, name: str) -> tuple[str, str] | None:
        """Resolve a character name to ``(character_id, registered_name)``.

        Returns None when the registry does not know the name.
        """
        result = await self.client.fetch_result("/eve/CharacterID.xml.aspx", {"names": name})
        row = result.find("rowset/row")
        if row is None:
            return None
        character_id = row.get("characterID") or UNKNOWN_CHARACTER_ID
        if character_id == UNKNOWN_CHARACTER_ID:
            return None
        return character_id, row.get("name") or name

    @alru_cache(maxsize=2000)
    async def get_character_info(self, character_id: str) -> CharacterInfo:
        """Get public details (race, bloodline) of a character."""
        result = await self.client.fetch_result("/eve/CharacterInfo.xml.aspx", {"characterID": character_id})
        try:
            return CharacterInfo(
                character_id=character_id,
                name=(result.findtext("characterName") or "").strip(),
                race=(result.findtext("race") or "").strip(),
                bloodline=(result.findtext("bloodline") or "").strip(),
            )
        except ValidationError as exc:
            logger.warning(f"Unexpected character info for {character_id}: {exc}")
            raise RegistryUnavailable(f"Registry returned unexpected details for character {character_id}.") from exc


registry_service = RegistryService()
