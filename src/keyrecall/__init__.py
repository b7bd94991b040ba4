"""keyrecall: spaced-repetition scheduling for keyboard shortcuts."""

from keyrecall.consts import VERSION

__version__ = VERSION
