import logging
import os
from pathlib import Path

import vdf

from .util import lower_dict, to_steamid3

__all__ = (
    "COMMON_STEAM_DIRS", "SteamUser", "find_steam_path", "get_steam_users",
    "get_steam_user"
)

COMMON_STEAM_DIRS = [
    ".steam/steam",
    ".local/share/Steam",
    ".steam/debian-installation",
]

logger = logging.getLogger("steamshortcuts")


class SteamUser(object):
    """
    SteamUser represents a Steam account that has logged in on this machine
    and has its own configuration directory under 'userdata'
    """
    __slots__ = ("steamid3", "config_path", "account_name", "persona_name")

    def __init__(
            self, steamid3, config_path, account_name=None,
            persona_name=None):
        """
        :steamid3: The account's SteamID3, which is also the name of its
                   directory under 'userdata'
        :config_path: Absolute path to the user's 'config' directory
        :account_name: Login name, if known
        :persona_name: Public display name, if known
        """
        self.steamid3 = int(steamid3)
        self.config_path = Path(config_path)
        self.account_name = account_name
        self.persona_name = persona_name

    @property
    def shortcuts_path(self):
        return self.config_path / "shortcuts.vdf"

    @property
    def localconfig_path(self):
        return self.config_path / "localconfig.vdf"

    @property
    def has_shortcuts(self):
        """
        Return True if the user has a shortcuts.vdf file
        """
        return self.shortcuts_path.is_file()

    @property
    def display_name(self):
        """
        Return a human-readable name for the user
        """
        if self.persona_name:
            return f"{self.persona_name} ({self.account_name})"
        if self.account_name:
            return self.account_name

        return f"User {self.steamid3}"

    def __repr__(self):
        return f"SteamUser(steamid3={self.steamid3}, {self.display_name!r})"


def find_steam_path():
    """
    Find the Steam installation directory containing the 'userdata'
    directory, or None if one can't be found.

    STEAM_DIR environment variable takes priority over the common locations.
    """
    candidates = []

    if os.environ.get("STEAM_DIR"):
        candidates.append(Path(os.environ["STEAM_DIR"]))

    candidates += [Path.home() / path for path in COMMON_STEAM_DIRS]

    for path in candidates:
        has_steam_dirs = (
            (path / "userdata").is_dir() or (path / "steamapps").is_dir()
        )
        if has_steam_dirs:
            logger.info("Found Steam directory at %s", path)
            return path.resolve()

        logger.debug("%s is not a Steam directory, skipping", path)

    return None


def _get_login_users(steam_path):
    """
    Read 'config/loginusers.vdf' and return a {steamid3: user data} dict
    containing the account and persona names
    """
    loginusers_path = steam_path / "config" / "loginusers.vdf"
    try:
        content = loginusers_path.read_text(encoding="utf-8")
        vdf_data = lower_dict(vdf.loads(content))
    except OSError:
        logger.info(
            "Couldn't read %s. Steam account names won't be shown.",
            loginusers_path
        )
        return {}
    except SyntaxError:
        logger.warning(
            "%s is corrupted. Steam account names won't be shown.",
            loginusers_path
        )
        return {}

    users = {}
    for steamid64, user_data in vdf_data.get("users", {}).items():
        if not isinstance(user_data, dict) or not steamid64.isdigit():
            continue

        users[to_steamid3(steamid64)] = {
            "account_name": user_data.get("accountname"),
            "persona_name": user_data.get("personaname")
        }

    logger.debug("Found Steam user entries: %s", users)

    return users


def get_steam_users(steam_path):
    """
    Return a list of SteamUser objects for every user with a configuration
    directory under 'userdata'
    """
    steam_path = Path(steam_path)
    userdata_path = steam_path / "userdata"

    try:
        user_dirs = list(userdata_path.iterdir())
    except FileNotFoundError:
        logger.warning("%s does not exist", userdata_path)
        return []

    login_users = _get_login_users(steam_path)

    users = []
    for user_dir in user_dirs:
        # User ID 0 is not a real account
        if not user_dir.name.isdigit() or user_dir.name == "0":
            continue

        config_path = user_dir / "config"
        if not config_path.is_dir():
            logger.debug(
                "Skipping user directory %s without 'config' directory",
                user_dir
            )
            continue

        steamid3 = int(user_dir.name)
        login_user = login_users.get(steamid3, {})

        users.append(
            SteamUser(
                steamid3=steamid3,
                config_path=config_path,
                account_name=login_user.get("account_name"),
                persona_name=login_user.get("persona_name")
            )
        )

    users.sort(key=lambda user: user.steamid3)

    logger.info("Found %d Steam users", len(users))

    return users


def get_steam_user(steam_path, steamid3):
    """
    Return the SteamUser with the given SteamID3, or None if it doesn't exist
    """
    return next(
        (
            user for user in get_steam_users(steam_path)
            if user.steamid3 == int(steamid3)
        ),
        None
    )
