import logging
import secrets
import zlib

__all__ = (
    "NON_STEAM_APPID_MIN", "NON_STEAM_APPID_MAX", "APPID_MAX_ATTEMPTS",
    "AppIDAllocationExhausted", "generate_appid", "allocate_appid",
    "is_non_steam_appid", "get_appid_from_shortcut"
)

# Steam reserves this range for non-Steam shortcuts so that they never
# collide with app IDs of titles in the Steam catalog
NON_STEAM_APPID_MIN = 0xff000000
NON_STEAM_APPID_MAX = 0xffffffff

APPID_MAX_ATTEMPTS = 1000

logger = logging.getLogger("steamshortcuts")


class AppIDAllocationExhausted(RuntimeError):
    """
    Raised when no free app ID could be generated within the retry budget
    """
    def __init__(self, attempts):
        super().__init__(
            f"Could not find an unused non-Steam app ID after {attempts} "
            "attempts"
        )
        self.attempts = attempts


def is_non_steam_appid(appid):
    """
    Return True if the app ID lies in the range reserved for non-Steam
    shortcuts
    """
    return NON_STEAM_APPID_MIN <= appid <= NON_STEAM_APPID_MAX


def generate_appid():
    """
    Generate a random app ID in the non-Steam shortcut range
    """
    range_size = NON_STEAM_APPID_MAX - NON_STEAM_APPID_MIN + 1
    return NON_STEAM_APPID_MIN + secrets.randbelow(range_size)


def allocate_appid(taken, max_attempts=APPID_MAX_ATTEMPTS):
    """
    Generate a non-Steam app ID that isn't contained in `taken`

    :param taken: Collection of app IDs already in use
    :param int max_attempts: How many candidates to try before giving up
    :raises AppIDAllocationExhausted: If every candidate was already taken
    """
    taken = set(taken)

    for _ in range(max_attempts):
        appid = generate_appid()
        if appid not in taken:
            return appid

        logger.debug("Generated app ID %d is already in use, retrying", appid)

    raise AppIDAllocationExhausted(max_attempts)


def get_appid_from_shortcut(target, name):
    """
    Get the identifier used for the Proton prefix from a shortcut's
    target and name.

    Steam falls back to this value for shortcuts that don't have an app ID
    stored in shortcuts.vdf.
    """
    # First, calculate the screenshot ID Steam uses for shortcuts
    data = b"".join([
        target.encode("utf-8"),
        name.encode("utf-8")
    ])
    result = zlib.crc32(data) & 0xffffffff
    result = result | 0x80000000
    result = (result << 32) | 0x02000000

    # Derive the prefix ID from the screenshot ID
    return result >> 32
