import argparse
import logging
import sys


def enable_logging(level=0):
    """
    Enables logging.

    :param int level: Level of logging. 0 = WARNING, 1 = INFO, 2 = DEBUG.
    """
    if level >= 2:
        level = logging.DEBUG
    elif level >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logger = logging.getLogger("steamshortcuts")

    stream_handler_added = any(
        filter(
            lambda hndl: hndl.name == "steamshortcuts-stream", logger.handlers
        )
    )

    if stream_handler_added:
        return

    # Logs printed to stderr will follow the log level
    stream_handler = logging.StreamHandler()
    stream_handler.name = "steamshortcuts-stream"
    stream_handler.setLevel(level)
    stream_handler.setFormatter(
        logging.Formatter("%(name)s (%(levelname)s): %(message)s")
    )

    logger.setLevel(logging.DEBUG)
    logger.addHandler(stream_handler)

    logger.debug("Stream log handler added")


def exit_with_error(error):
    """
    Exit with an error by printing the error and returning a non-zero
    exit code
    """
    print(error)
    sys.exit(1)


def parse_appid(value):
    """
    Parse an app ID given in either decimal or hexadecimal ('0x' prefix)
    notation
    """
    try:
        appid = int(value, 0)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"'{value}' is not a valid app ID"
        ) from exc

    if appid == 0:
        # Legacy shortcuts share app ID 0 and can't be told apart by it
        raise argparse.ArgumentTypeError(
            "App ID 0 is reserved for legacy shortcuts stored without an "
            "app ID, which can't be selected"
        )

    if not 0 < appid <= 0xffffffff:
        raise argparse.ArgumentTypeError(
            f"'{value}' is outside the valid app ID range"
        )

    return appid


class CustomArgumentParser(argparse.ArgumentParser):
    """
    Custom argument parser that prints the full help message
    when incorrect parameters are provided
    """
    def error(self, message):
        self.print_help(sys.stderr)
        args = {'prog': self.prog, 'message': message}
        self.exit(2, '%(prog)s: error: %(message)s\n' % args)
