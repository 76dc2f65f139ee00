import configparser
import logging
import os
from pathlib import Path

logger = logging.getLogger("steamshortcuts")


class Config:
    """
    User configuration stored in an INI file, eg.

    [General]
    steam_dir = /home/user/.local/share/Steam
    last_steam_user = 12345678
    """
    def __init__(self):
        self._parser = configparser.ConfigParser()
        self._path = Path(
            os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
        ) / "steamshortcuts" / "config.ini"

        try:
            content = self._path.read_text(encoding="utf-8")
            self._parser.read_string(content)
        except FileNotFoundError:
            pass

    def get(self, section, option, default=None):
        """
        Get the configuration value in the given section and its field
        """
        self._parser.setdefault(section, {})
        return self._parser[section].get(option, default)

    def set(self, section, option, value):
        """
        Set the configuration value in the given section and its field, and
        save the configuration file
        """
        logger.debug(
            "Setting configuration field [%s][%s] = %s",
            section, option, value
        )
        self._parser.setdefault(section, {})
        self._parser[section][option] = str(value)

        # Ensure parent directories exist
        self._path.parent.mkdir(parents=True, exist_ok=True)

        with self._path.open("wt", encoding="utf-8") as file_:
            self._parser.write(file_)

    @property
    def steam_dir(self):
        """
        Steam directory configured by the user, or None to detect it
        automatically
        """
        steam_dir = self.get("General", "steam_dir")
        return Path(steam_dir) if steam_dir else None

    @property
    def last_steam_user(self):
        """
        SteamID3 of the user whose shortcuts were modified last, if any
        """
        steamid3 = self.get("General", "last_steam_user")
        if steamid3 and steamid3.isdigit():
            return int(steamid3)

        return None

    @last_steam_user.setter
    def last_steam_user(self, steamid3):
        self.set("General", "last_steam_user", steamid3)


def get_config():
    """
    Retrieve the steamshortcuts configuration file
    """
    return Config()
