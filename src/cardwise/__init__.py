"""cardwise: spaced-repetition scheduling and study-queue engine."""

from cardwise.consts import VERSION

__version__ = VERSION
