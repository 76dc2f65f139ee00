#  ___ _                     ___ _            _            _
# / __| |_ ___ __ _ _ __    / __| |_  ___ _ _| |_ __ _  _| |_ ___
# \__ \  _/ -_) _` | '  \   \__ \ ' \/ _ \ '_|  _/ _| || |  _(_-<
# |___/\__\___\__,_|_|_|_|  |___/_||_\___/_|  \__\__|\_,_|\__/__/
# A small tool for managing non-Steam game shortcuts in Steam's
# shortcuts.vdf
#
# Script licensed under the GPLv3!

import argparse
import logging
import sys
from pathlib import Path

from .. import __version__
from ..appid import AppIDAllocationExhausted
from ..binvdf import ParseError
from ..config import get_config
from ..shortcuts import (ShortcutNotFound, add_shortcut, find_shortcut_by_name,
                         new_shortcut, read_shortcuts, remove_shortcut,
                         update_shortcut)
from ..users import find_steam_path, get_steam_users
from .util import (CustomArgumentParser, enable_logging, exit_with_error,
                   parse_appid)

logger = logging.getLogger("steamshortcuts")

APPID_HELP = (
    "App ID in decimal or hexadecimal ('0x' prefix) notation. Legacy "
    "shortcuts stored without an app ID can't be selected."
)


def cli(args=None):
    main(args)


def _select_user(users, steamid3, config):
    """
    Select the Steam user to operate on.

    An explicitly requested user takes priority, followed by the only
    available user and finally the user selected during the previous run.
    """
    if steamid3 is not None:
        return next((u for u in users if u.steamid3 == steamid3), None)

    if len(users) == 1:
        return users[0]

    last_steam_user = config.last_steam_user
    if last_steam_user is not None:
        user = next(
            (u for u in users if u.steamid3 == last_steam_user), None
        )
        if user:
            logger.info("Using previous Steam user %s", user.display_name)
        return user

    return None


def _print_shortcut(shortcut):
    print(f"{shortcut.app_name} ({shortcut.appid})")
    print(f"  Executable: {shortcut.exe}")
    print(f"  Start directory: {shortcut.start_dir}")
    if shortcut.launch_options:
        print(f"  Launch options: {shortcut.launch_options}")
    if shortcut.icon:
        print(f"  Icon: {shortcut.icon}")
    if shortcut.tags:
        print(f"  Tags: {', '.join(shortcut.tags.values())}")


def main(args=None):
    """
    'steam-shortcuts' script entrypoint
    """
    if args is None:
        args = sys.argv[1:]

    parser = CustomArgumentParser(
        description=(
            "Manage non-Steam game shortcuts in a Steam user's "
            "shortcuts.vdf.\n"
            "\n"
            "Usage:\n"
            "\n"
            "List all shortcuts\n"
            "$ steam-shortcuts list\n"
            "\n"
            "Add a Windows game as a non-Steam game\n"
            "$ steam-shortcuts add \"Game name\" /path/to/game.exe\n"
            "\n"
            "Remove a shortcut using its app ID\n"
            "$ steam-shortcuts remove APPID\n"
            "\n"
            "Steam should be closed when shortcuts are modified, as Steam "
            "overwrites shortcuts.vdf on exit.\n"
            "\n"
            "Environment variables:\n"
            "\n"
            "STEAM_DIR: path to custom Steam installation"
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument(
        "--verbose", "-v", action="count", default=0,
        help=(
            "Increase log verbosity. Can be supplied twice for "
            "maximum verbosity."
        )
    )
    parser.add_argument(
        "--steam-dir", type=str, dest="steam_dir", default=None,
        help="Path to the Steam installation directory"
    )
    parser.add_argument(
        "--user", type=int, dest="steamid3", default=None,
        help="SteamID3 of the Steam user whose shortcuts are managed"
    )
    parser.add_argument(
        "-V", "--version", action="version",
        version=f"%(prog)s ({__version__})"
    )

    subparsers = parser.add_subparsers(dest="action")
    subparsers.add_parser("users", help="List Steam users")
    subparsers.add_parser("list", help="List all shortcuts")

    find_parser = subparsers.add_parser(
        "find", help="Show the shortcut with the given name"
    )
    find_parser.add_argument("name", type=str)

    add_parser = subparsers.add_parser(
        "add", help="Add a shortcut unless one with the same name exists"
    )
    add_parser.add_argument("name", type=str)
    add_parser.add_argument("exe", type=str)
    add_parser.add_argument(
        "--launch-options", type=str, dest="launch_options", default=None,
        help="Launch options for the shortcut, eg. '%%command%% -windowed'"
    )
    add_parser.add_argument(
        "--icon", type=str, default=None, help="Path to the shortcut icon"
    )

    update_parser = subparsers.add_parser(
        "update", help="Modify the shortcut with the given app ID"
    )
    update_parser.add_argument("appid", type=parse_appid, help=APPID_HELP)
    update_parser.add_argument("--name", type=str, default=None)
    update_parser.add_argument(
        "--launch-options", type=str, dest="launch_options", default=None
    )
    update_parser.add_argument("--icon", type=str, default=None)

    remove_parser = subparsers.add_parser(
        "remove", help="Remove the shortcut with the given app ID"
    )
    remove_parser.add_argument("appid", type=parse_appid, help=APPID_HELP)

    args = parser.parse_args(args)

    if not args.action:
        parser.print_help()
        return

    enable_logging(args.verbose)

    # Shorthand function for aborting with error message
    def exit_(error):
        exit_with_error(error)

    config = get_config()

    # 1. Find Steam path
    if args.steam_dir:
        steam_path = Path(args.steam_dir)
    else:
        steam_path = config.steam_dir or find_steam_path()

    if not steam_path:
        exit_("Steam installation directory could not be found.")

    # 2. Find Steam users
    users = get_steam_users(steam_path)
    if not users:
        exit_(f"No Steam users found in {steam_path}")

    if args.action == "users":
        print("Found the following Steam users:")
        for user in users:
            print(f"{user.display_name} ({user.steamid3})")
        return

    user = _select_user(users, args.steamid3, config)
    if not user:
        if args.steamid3 is not None:
            exit_(f"Steam user {args.steamid3} could not be found.")

        exit_(
            "Multiple Steam users found. Select one using --user. "
            "Use 'steam-shortcuts users' to list them."
        )

    if config.last_steam_user != user.steamid3:
        config.last_steam_user = user.steamid3

    logger.info(
        "Using shortcuts of Steam user %s at %s",
        user.display_name, user.shortcuts_path
    )

    # 3. Perform the action
    try:
        if args.action == "list":
            shortcuts = read_shortcuts(user.shortcuts_path)
            if not shortcuts:
                print("No shortcuts found.")
                return

            print("Found the following shortcuts:")
            for shortcut in shortcuts:
                print(f"{shortcut.app_name} ({shortcut.appid})")
        elif args.action == "find":
            shortcut = find_shortcut_by_name(user, args.name)
            if not shortcut:
                exit_(f"Shortcut '{args.name}' could not be found.")

            _print_shortcut(shortcut)
        elif args.action == "add":
            shortcut = new_shortcut(
                app_name=args.name, exe_path=Path(args.exe).absolute()
            )
            if args.launch_options:
                shortcut.launch_options = args.launch_options
            if args.icon:
                shortcut.icon = args.icon

            appid, is_new = add_shortcut(user, shortcut)
            if is_new:
                print(f"Added shortcut '{args.name}' with app ID {appid}")
            else:
                print(
                    f"Shortcut '{args.name}' already exists with app ID "
                    f"{appid}"
                )
        elif args.action == "update":
            shortcut = next(
                (
                    s for s in read_shortcuts(user.shortcuts_path)
                    if s.appid == args.appid
                ),
                None
            )
            if not shortcut:
                raise ShortcutNotFound(args.appid)

            if args.name is not None:
                shortcut.app_name = args.name
            if args.launch_options is not None:
                shortcut.launch_options = args.launch_options
            if args.icon is not None:
                shortcut.icon = args.icon

            update_shortcut(user, shortcut)
            print(f"Updated shortcut with app ID {args.appid}")
        elif args.action == "remove":
            remove_shortcut(user, args.appid)
            print(f"Removed shortcut with app ID {args.appid}")
    except ParseError as exc:
        exit_(f"{user.shortcuts_path} is corrupted: {exc}")
    except (ShortcutNotFound, AppIDAllocationExhausted) as exc:
        exit_(str(exc))
    except OSError as exc:
        exit_(f"{user.shortcuts_path} could not be accessed: {exc}")


if __name__ == "__main__":
    main()
