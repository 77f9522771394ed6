# strart/errors.py


class StrArtError(Exception):
    """Base class for everything the chord sequencer raises."""


class MissingSourceError(StrArtError):
    """No source image / target field was supplied, so a run cannot start."""


class InvalidConfigurationError(StrArtError, ValueError):
    """Rejected parameter set (raised before any canvas mutation)."""
