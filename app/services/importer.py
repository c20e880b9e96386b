from loguru import logger

from app.core.constants import MSG_ALREADY_IMPORTED, MSG_IMPORTED, MSG_NOT_REGISTERED, Gender
from app.core.exceptions import AlreadyImported, NotRegistered
from app.models.character import Character
from app.services.character_store import CharacterStore, character_store
from app.services.registry.service import RegistryService, registry_service


class ProfileImporter:
    """Creates character profiles from the registry, one name at a time."""

    def __init__(self, store: CharacterStore = character_store, registry: RegistryService = registry_service):
        self.store = store
        self.registry = registry

    async def import_character(self, name: str, gender: Gender | str) -> tuple[Character, str]:
        """Look the name up in the registry and store a fresh profile for it.

        Returns the stored character and the confirmation message.

        Raises:
            NotRegistered: the registry has no character by that name
            AlreadyImported: the character is already stored
            RegistryUnavailable: the registry could not be queried
        """
        name = name.strip()
        gender = Gender(gender).value

        # 1. Resolve the registry id
        found = await self.registry.lookup_character_id(name)
        if found is None:
            raise NotRegistered(MSG_NOT_REGISTERED.format(name=name))
        character_id, registered_name = found

        existing = await self.store.get(character_id)
        if existing is not None:
            raise AlreadyImported(MSG_ALREADY_IMPORTED.format(name=existing.name))

        # 2. Fetch the descriptive attributes
        info = await self.registry.get_character_info(character_id)
        character = Character(
            character_id=character_id,
            name=info.name or registered_name,
            race=info.race,
            bloodline=info.bloodline,
            gender=gender,
        )

        # 3. Insert unless a concurrent import got there first
        if not await self.store.create(character):
            raise AlreadyImported(MSG_ALREADY_IMPORTED.format(name=character.name))

        logger.info(f"Imported {character.name} ({character_id})")
        return character, MSG_IMPORTED.format(name=character.name)


profile_importer = ProfileImporter()
