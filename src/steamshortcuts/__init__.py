from importlib.metadata import PackageNotFoundError, version

from .appid import *
from .binvdf import *
from .shortcuts import *
from .users import *
from .util import *

try:
    __version__ = version("steamshortcuts")
except PackageNotFoundError:
    # Package not installed
    __version__ = "unknown"
