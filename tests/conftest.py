"""
Shared fixtures: an in-memory Redis (fakeredis) wired into the app's
RedisService, and a registry backed by httpx.MockTransport.
"""

import httpx
import pytest
from fakeredis import FakeAsyncRedis, FakeServer

from app.models.character import Character
from app.services.character_store import CharacterStore
from app.services.redis_service import redis_service
from app.services.registry.client import RegistryClient
from app.services.registry.service import RegistryService

CHARACTER_ID_XML = """<?xml version='1.0' encoding='UTF-8'?>
<eveapi version="2">
  <currentTime>2016-01-01 00:00:00</currentTime>
  <result>
    <rowset name="characters" key="characterID" columns="name,characterID">
      <row name="{name}" characterID="{character_id}" />
    </rowset>
  </result>
  <cachedUntil>2016-02-01 00:00:00</cachedUntil>
</eveapi>
"""

CHARACTER_INFO_XML = """<?xml version='1.0' encoding='UTF-8'?>
<eveapi version="2">
  <currentTime>2016-01-01 00:00:00</currentTime>
  <result>
    <characterID>{character_id}</characterID>
    <characterName>{name}</characterName>
    <race>{race}</race>
    <bloodline>{bloodline}</bloodline>
    <corporation>Center for Advanced Studies</corporation>
  </result>
  <cachedUntil>2016-02-01 00:00:00</cachedUntil>
</eveapi>
"""

# name -> (character_id, race, bloodline)
KNOWN_CITIZENS = {
    "Aura": ("90000001", "Caldari", "Achura"),
    "Tibus Heth": ("90000002", "Caldari", "Civire"),
    "Jamyl Sarum": ("90000003", "Amarr", "Amarr"),
    "Maleatu Shakor": ("90000004", "Minmatar", "Brutor"),
    "Souro Foiritan": ("90000005", "Gallente", "Intaki"),
}


def registry_handler(request: httpx.Request) -> httpx.Response:
    """Answers the two EVE API calls from KNOWN_CITIZENS."""
    if request.url.path == "/eve/CharacterID.xml.aspx":
        name = request.url.params["names"]
        character_id = KNOWN_CITIZENS.get(name, ("0",))[0]
        return httpx.Response(200, text=CHARACTER_ID_XML.format(name=name, character_id=character_id))

    if request.url.path == "/eve/CharacterInfo.xml.aspx":
        character_id = request.url.params["characterID"]
        for name, (known_id, race, bloodline) in KNOWN_CITIZENS.items():
            if known_id == character_id:
                return httpx.Response(
                    200,
                    text=CHARACTER_INFO_XML.format(
                        character_id=character_id, name=name, race=race, bloodline=bloodline
                    ),
                )
        return httpx.Response(
            200, text='<eveapi version="2"><error code="105">Invalid characterID.</error></eveapi>'
        )

    return httpx.Response(404)


def make_registry(handler=registry_handler) -> RegistryService:
    client = RegistryClient(
        base_url="https://registry.test", max_retries=1, transport=httpx.MockTransport(handler)
    )
    return RegistryService(client)


@pytest.fixture
def fake_redis():
    """Fresh in-memory Redis for each test, installed as the app's client."""
    client = FakeAsyncRedis(server=FakeServer(), decode_responses=True)
    redis_service.use_client(client)
    yield client
    redis_service.use_client(None)


@pytest.fixture
def store(fake_redis) -> CharacterStore:
    return CharacterStore()


@pytest.fixture
def registry() -> RegistryService:
    return make_registry()


_next_id = iter(range(1000, 100000))


def make_character(**overrides) -> Character:
    character_id = overrides.pop("character_id", str(next(_next_id)))
    fields = {
        "character_id": character_id,
        "name": f"Pilot {character_id}",
        "race": "Caldari",
        "bloodline": "Deteis",
        "gender": "female",
    }
    fields.update(overrides)
    return Character(**fields)


@pytest.fixture
def add_characters(store):
    """Store characters built by make_character and return them."""

    async def _add(count: int = 1, **overrides) -> list[Character]:
        added = []
        for _ in range(count):
            character = make_character(**overrides)
            assert await store.create(character)
            added.append(character)
        return added

    return _add
