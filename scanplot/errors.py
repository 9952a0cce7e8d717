"""
Exceptions raised by the scanpath plotting pipeline.
"""


class ScanplotError(Exception):
    """Base class for all scanplot errors."""


class ConfigurationError(ScanplotError, ValueError):
    """Invalid invocation parameters (geometry, output template, ...)."""


class MissingFieldError(ConfigurationError):
    """A required column is absent from the fixation table."""

    def __init__(self, fields, context: str = "fixation data"):
        if isinstance(fields, str):
            fields = [fields]
        self.fields = list(fields)
        names = ", ".join(f"'{f}'" for f in self.fields)
        super().__init__(f"The {context} must include column(s) {names}")


class StimulusImageError(ScanplotError, OSError):
    """The stimulus image could not be found or decoded."""


class ExportError(ScanplotError, OSError):
    """A rendered scene could not be written to its output path."""
