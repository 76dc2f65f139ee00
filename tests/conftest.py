import logging
import random
from pathlib import Path

import pytest
import vdf

from steamshortcuts.cli.main import cli as main_cli_entrypoint
from steamshortcuts.users import SteamUser

STEAMID64_BASE = 76561197960265728


@pytest.fixture(scope="function", autouse=True)
def env_vars(monkeypatch):
    """
    Set default environment variables to prevent user's env vars from
    intefering with tests
    """
    monkeypatch.delenv("STEAM_DIR", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)


@pytest.fixture(scope="function", autouse=True)
def cleanup():
    """
    Miscellaneous cleanup tasks that need to be done before each test
    """
    # Clear log handlers
    logging.getLogger("steamshortcuts").handlers.clear()


@pytest.fixture(scope="function", autouse=True)
def default_caplog(caplog):
    caplog.set_level(logging.INFO)


@pytest.fixture(scope="function", autouse=True)
def home_dir(monkeypatch, tmp_path):
    """
    Fake home directory
    """
    home_dir_ = Path(str(tmp_path)) / "home" / "fakeuser"
    home_dir_.mkdir(parents=True)

    monkeypatch.setenv("HOME", str(home_dir_))

    yield home_dir_


@pytest.fixture(scope="function")
def steam_dir_factory():
    """
    Factory for creating a fake Steam directory
    """
    def func(path):
        (path / "config").mkdir(parents=True)
        (path / "steamapps").mkdir(parents=True)
        (path / "userdata").mkdir(parents=True)

        return path

    return func


@pytest.fixture(scope="function")
def steam_dir(steam_dir_factory, home_dir):
    """
    Fake Steam directory
    """
    return steam_dir_factory(home_dir / ".steam" / "steam")


@pytest.fixture(scope="function")
def steam_user_factory(steam_dir):
    """
    Factory function for creating fake Steam users
    """
    steam_users = []

    def func(name, steamid3=None, persona_name=None):
        if not steamid3:
            steamid3 = random.randint(1, (2**31) - 1)

        steam_users.append({
            "name": name,
            "persona_name": persona_name,
            "steamid64": STEAMID64_BASE + steamid3
        })

        loginusers_path = steam_dir / "config" / "loginusers.vdf"
        data = {"users": {}}
        for i, user in enumerate(steam_users):
            user_data = {
                "AccountName": user["name"],
                "Timestamp": str(i)
            }
            if user["persona_name"]:
                user_data["PersonaName"] = user["persona_name"]

            data["users"][str(user["steamid64"])] = user_data

        loginusers_path.write_text(vdf.dumps(data))

        config_path = steam_dir / "userdata" / str(steamid3) / "config"
        config_path.mkdir(parents=True)

        return SteamUser(
            steamid3=steamid3, config_path=config_path, account_name=name,
            persona_name=persona_name
        )

    return func


@pytest.fixture(scope="function")
def steam_user(steam_user_factory):
    return steam_user_factory(name="TestUser", steamid3=42)


@pytest.fixture(scope="function")
def shortcuts_path(tmp_path):
    """
    Path to a shortcuts.vdf file that doesn't exist yet
    """
    return tmp_path / "userdata" / "12345" / "config" / "shortcuts.vdf"


@pytest.fixture(scope="function")
def vdf_shortcut_factory(steam_user):
    """
    Factory function for writing shortcuts into the fake user's
    shortcuts.vdf using the 'vdf' library, the same way other tools write
    the file
    """
    entries = []

    def func(name, exe, appid=None, **extra):
        entry = {
            "AppName": name,
            "Exe": f'"{exe}"',
            "StartDir": f'"{Path(exe).parent}"',
        }
        if appid is not None:
            # 'vdf' packs integers as signed 32-bit values
            entry["appid"] = appid - 2**32 if appid > 0x7fffffff else appid
        entry.update(extra)

        entries.append(entry)

        data = {
            "shortcuts": {
                str(i): entry_ for i, entry_ in enumerate(entries)
            }
        }
        steam_user.shortcuts_path.write_bytes(vdf.binary_dumps(data))

        return entry

    return func


def _run_cli(monkeypatch, capsys, cli_func):
    """
    Run steam-shortcuts with the given arguments and environment variables
    and return the output
    """
    def func(args, env=None, include_stderr=False, expect_returncode=0):
        if not env:
            env = {}

        with monkeypatch.context() as monkeypatch_ctx:
            # Monkeypatch environments values for the duration
            # of the CLI call
            for name, val in env.items():
                monkeypatch_ctx.setenv(name, val)

            try:
                cli_func(args)
            except SystemExit as exc:
                assert exc.code == expect_returncode

        stdout, stderr = capsys.readouterr()
        if include_stderr:
            return stdout, stderr
        else:
            return stdout

    return func


@pytest.fixture(scope="function")
def cli(monkeypatch, capsys):
    """
    Run `steam-shortcuts` with the given arguments and environment variables,
    and return the output
    """
    return _run_cli(monkeypatch, capsys, main_cli_entrypoint)
