"""
Core constants used across the application. Keep these simple and documented.
"""

from enum import Enum


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class Race(str, Enum):
    AMARR = "Amarr"
    CALDARI = "Caldari"
    GALLENTE = "Gallente"
    MINMATAR = "Minmatar"


class Bloodline(str, Enum):
    AMARR = "Amarr"
    NI_KUNNI = "Ni-Kunni"
    KHANID = "Khanid"
    DETEIS = "Deteis"
    CIVIRE = "Civire"
    ACHURA = "Achura"
    GALLENTE = "Gallente"
    INTAKI = "Intaki"
    JIN_MEI = "Jin-Mei"
    SEBIESTOR = "Sebiestor"
    BRUTOR = "Brutor"
    VHEROKIOR = "Vherokior"


# Redis keys, relative to settings.REDIS_KEY_PREFIX
CHARACTER_KEY = "character:{character_id}"
GENDER_KEY = "gender:{gender}"
UNVOTED_KEY = "unvoted:{gender}"
WINS_LEADERBOARD_KEY = "leaderboard:wins"
LOSSES_LEADERBOARD_KEY = "leaderboard:losses"
NAMES_KEY = "names"

# A pair needs this many unvoted characters of one gender
PAIR_SIZE: int = 2

# Registry returns this id for names it does not know
UNKNOWN_CHARACTER_ID = "0"

# User facing messages
MSG_NOT_REGISTERED = "{name} is not a registered citizen of New Eden."
MSG_ALREADY_IMPORTED = "{name} is already in the database."
MSG_IMPORTED = "{name} has been added successfully!"
MSG_REPORTED = "{name} has been reported."
MSG_DELETED = "{name} has been deleted."
MSG_VOTE_REQUIRES_TWO = "Voting requires two characters."
MSG_VOTE_SAME_CHARACTER = "Cannot vote for and against the same character."
MSG_VOTE_MISSING = "One of the characters no longer exists."
MSG_CHARACTER_NOT_FOUND = "Character not found."
MSG_STORE_UNAVAILABLE = "Store unavailable."
