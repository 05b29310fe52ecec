from __future__ import annotations

from typing import List, Optional


class HelioWatchError(Exception):
    pass


class ConfigurationError(HelioWatchError, ValueError):
    """
    Startup configuration is missing or malformed. `errors` lists every
    problem found, not just the first one.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors: List[str] = list(errors or [])


class GeometryError(HelioWatchError, ValueError):
    pass


class EvaluatorUnavailable(HelioWatchError, LookupError):
    pass


class PersistenceFormatError(HelioWatchError, ValueError):
    pass
