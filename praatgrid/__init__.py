"""Read, repair and write Praat TextGrid annotation files."""

from .annotation import *  # noqa: F401,F403
from .annotation import __all__

__version__ = "0.1.0"
