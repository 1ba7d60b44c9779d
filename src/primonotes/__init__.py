# PrimoNotes study core
from .consts import VERSION

__version__ = VERSION
