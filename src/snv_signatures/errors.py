class SignatureError(Exception):
    """Base class for errors raised by snv_signatures."""


class ReferenceLoadError(SignatureError):
    """The reference source is empty, unreadable or structurally invalid."""


class VariantParseError(SignatureError):
    """A single variant record could not be parsed."""

    def __init__(self, message, line_number=None):
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


class CountOverflowError(SignatureError):
    """A count no longer fits the matrix integer type."""


class AccumulatorFinalizedError(SignatureError):
    """Counts were recorded after the matrix had been finalized."""
