import logging
from pathlib import Path

from .appid import allocate_appid, get_appid_from_shortcut
from .binvdf import (VDFObject, VDFString, VDFUInt32, binary_dump,
                     binary_load)

__all__ = (
    "SHORTCUT_FIELDS", "ShortcutNotFound", "Shortcut", "new_shortcut",
    "read_shortcuts", "write_shortcuts", "add_shortcut", "update_shortcut",
    "find_shortcut_by_name", "remove_shortcut"
)

# (attribute name, key in shortcuts.vdf, node type)
# The key casing is what Steam itself writes and has to be kept as-is.
SHORTCUT_FIELDS = (
    ("appid", "appid", VDFUInt32),
    ("app_name", "AppName", VDFString),
    ("exe", "Exe", VDFString),
    ("start_dir", "StartDir", VDFString),
    ("icon", "icon", VDFString),
    ("shortcut_path", "ShortcutPath", VDFString),
    ("launch_options", "LaunchOptions", VDFString),
    ("is_hidden", "IsHidden", VDFUInt32),
    ("allow_desktop_config", "AllowDesktopConfig", VDFUInt32),
    ("allow_overlay", "AllowOverlay", VDFUInt32),
    ("open_vr", "OpenVR", VDFUInt32),
    ("devkit", "Devkit", VDFUInt32),
    ("devkit_game_id", "DevkitGameID", VDFString),
    ("devkit_override_appid", "DevkitOverrideAppID", VDFUInt32),
    ("last_play_time", "LastPlayTime", VDFUInt32),
    ("flatpak_appid", "FlatpakAppID", VDFString),
)
TAGS_KEY = "tags"
SHORTCUTS_KEY = "shortcuts"

logger = logging.getLogger("steamshortcuts")


class ShortcutNotFound(LookupError):
    """
    Raised when a shortcut with the given app ID doesn't exist
    """
    def __init__(self, appid):
        super().__init__(f"Shortcut with app ID {appid} not found")
        self.appid = appid


class Shortcut(object):
    """
    Shortcut represents a single non-Steam game entry in a user's
    shortcuts.vdf
    """
    __slots__ = tuple(attr for attr, _, _ in SHORTCUT_FIELDS) + ("tags",)

    def __init__(self, tags=None, **kwargs):
        """
        Create a shortcut. Any field not provided is set to its empty value,
        which means an app ID of 0 is treated as "not assigned yet".

        :tags: Mapping of slot index strings ("0", "1"...) to tag names
        """
        for attr, _, node_type in SHORTCUT_FIELDS:
            default = "" if node_type is VDFString else 0
            setattr(self, attr, kwargs.pop(attr, default))

        if kwargs:
            raise TypeError(
                f"Unknown shortcut fields: {', '.join(sorted(kwargs))}"
            )

        self.tags = dict(tags) if tags else {}

    @classmethod
    def from_vdf(cls, node):
        """
        Create a Shortcut from a single entry in shortcuts.vdf.

        Fields that have an unexpected value type are skipped and keep their
        default value instead of failing the entire file.
        """
        shortcut = cls()
        skipped_keys = []

        for attr, key, node_type in SHORTCUT_FIELDS:
            if key not in node:
                continue

            value = node[key]
            if isinstance(value, node_type):
                setattr(shortcut, attr, value.value)
            else:
                skipped_keys.append(key)

        tags = node.get(TAGS_KEY)
        if isinstance(tags, VDFObject):
            for index, tag in tags.items():
                if isinstance(tag, VDFString):
                    shortcut.tags[index] = tag.value
                else:
                    skipped_keys.append(f"{TAGS_KEY}/{index}")
        elif tags is not None:
            skipped_keys.append(TAGS_KEY)

        if skipped_keys:
            logger.info(
                "Ignoring fields with unexpected value types in shortcut "
                "'%s': %s",
                shortcut.app_name, ", ".join(skipped_keys)
            )

        return shortcut

    def to_vdf(self):
        """
        Convert the shortcut into a VDF object in the format Steam expects
        """
        node = VDFObject()
        for attr, key, node_type in SHORTCUT_FIELDS:
            node[key] = node_type(getattr(self, attr))

        node[TAGS_KEY] = VDFObject.from_dict(self.tags)

        return node

    @property
    def compat_appid(self):
        """
        App ID used for the shortcut's Proton prefix under
        'steamapps/compatdata'.

        Shortcuts created by older Steam releases don't have an app ID stored,
        in which case it is derived from the executable and name.
        """
        if self.appid:
            return self.appid

        return get_appid_from_shortcut(target=self.exe, name=self.app_name)

    def __eq__(self, other):
        if not isinstance(other, Shortcut):
            return NotImplemented

        return all(
            getattr(self, attr) == getattr(other, attr)
            for attr in self.__slots__
        )

    def __repr__(self):
        return (
            f"Shortcut(appid={self.appid}, app_name={self.app_name!r}, "
            f"exe={self.exe!r})"
        )


def new_shortcut(app_name, exe_path):
    """
    Create a shortcut for the given executable with the same defaults Steam
    uses when adding a non-Steam game

    :param str app_name: Name displayed in the Steam library
    :param exe_path: Absolute path to the executable
    """
    exe_path = Path(exe_path)

    # Steam expects both paths to be quoted
    return Shortcut(
        app_name=app_name,
        exe=f'"{exe_path}"',
        start_dir=f'"{exe_path.parent}"',
        allow_desktop_config=1,
        allow_overlay=1
    )


def read_shortcuts(path):
    """
    Read the shortcuts from a shortcuts.vdf file.

    A missing or empty file is treated as having no shortcuts.

    :raises ParseError: If the file is not valid binary VDF
    """
    path = Path(path)

    try:
        # Tolerate VDF files that have extra data after the binary VDF section.
        # Steam itself can supposedly create such files in some situations.
        vdf_data = binary_load(path, raise_on_remaining=False)
    except FileNotFoundError:
        logger.info(
            "Couldn't find %s. Maybe no shortcuts have been created yet?",
            path
        )
        return []

    shortcuts_data = vdf_data.get_object(SHORTCUTS_KEY)
    if shortcuts_data is None:
        return []

    shortcuts = []
    for index, entry in shortcuts_data.items():
        if not isinstance(entry, VDFObject):
            logger.info(
                "Skipping shortcut entry '%s' that isn't an object", index
            )
            continue

        shortcuts.append(Shortcut.from_vdf(entry))

    logger.debug("Read %d shortcuts from %s", len(shortcuts), path)

    return shortcuts


def write_shortcuts(path, shortcuts):
    """
    Write the shortcuts into a shortcuts.vdf file, replacing any existing
    content.

    The file is overwritten in place. If writing fails midway, the file may
    be left truncated.
    """
    shortcuts_data = VDFObject()
    for i, shortcut in enumerate(shortcuts):
        shortcuts_data[str(i)] = shortcut.to_vdf()

    vdf_data = VDFObject({SHORTCUTS_KEY: shortcuts_data})

    binary_dump(vdf_data, Path(path))

    logger.debug("Wrote %d shortcuts to %s", len(shortcuts), path)


def add_shortcut(user, shortcut):
    """
    Add a shortcut to the user's shortcuts.vdf.

    If a shortcut with the same name already exists, nothing is written and
    the existing shortcut's app ID is returned instead. A shortcut without an
    app ID is assigned a new unused one.

    :param user: SteamUser whose shortcuts are modified
    :param Shortcut shortcut: Shortcut to add
    :returns: (app ID, True if the shortcut was added) tuple
    :raises AppIDAllocationExhausted: If no unused app ID could be found
    """
    shortcuts = read_shortcuts(user.shortcuts_path)

    existing = next(
        (s for s in shortcuts if s.app_name == shortcut.app_name), None
    )
    if existing is not None:
        logger.info(
            "Shortcut '%s' already exists with app ID %d",
            existing.app_name, existing.appid
        )
        return existing.appid, False

    if shortcut.appid == 0:
        shortcut.appid = allocate_appid(s.appid for s in shortcuts)

    shortcuts.append(shortcut)
    write_shortcuts(user.shortcuts_path, shortcuts)

    logger.info(
        "Added shortcut '%s' with app ID %d", shortcut.app_name, shortcut.appid
    )

    return shortcut.appid, True


def update_shortcut(user, shortcut):
    """
    Replace the existing shortcut that has the same app ID

    :raises ShortcutNotFound: If no shortcut has the same app ID
    """
    shortcuts = read_shortcuts(user.shortcuts_path)

    try:
        index = next(
            i for i, s in enumerate(shortcuts) if s.appid == shortcut.appid
        )
    except StopIteration as exc:
        raise ShortcutNotFound(shortcut.appid) from exc

    shortcuts[index] = shortcut
    write_shortcuts(user.shortcuts_path, shortcuts)

    logger.info(
        "Updated shortcut '%s' with app ID %d",
        shortcut.app_name, shortcut.appid
    )


def find_shortcut_by_name(user, name):
    """
    Find the first shortcut with the given name, or None if there isn't one
    """
    shortcuts = read_shortcuts(user.shortcuts_path)

    return next((s for s in shortcuts if s.app_name == name), None)


def remove_shortcut(user, appid):
    """
    Remove all shortcuts with the given app ID.

    Removing an app ID that doesn't exist does nothing.
    """
    shortcuts = read_shortcuts(user.shortcuts_path)
    remaining = [s for s in shortcuts if s.appid != appid]

    if len(remaining) == len(shortcuts):
        logger.info("No shortcut with app ID %d to remove", appid)
        return

    write_shortcuts(user.shortcuts_path, remaining)

    logger.info(
        "Removed %d shortcut(s) with app ID %d",
        len(shortcuts) - len(remaining), appid
    )
