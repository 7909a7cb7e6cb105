"""Base exception shared by every kbox package."""


class KboxError(Exception):
    """Base class for kbox errors."""

    pass
