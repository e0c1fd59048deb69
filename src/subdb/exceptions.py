"""Exception hierarchy for the SubDB client."""


class SubDBError(Exception):
    """Base class for SubDB client errors."""

    pass


class SubDBValidationError(SubDBError, ValueError):
    """Raised when an argument is rejected before any request is made."""

    def __init__(self, message: str, *, argument: str | None = None) -> None:
        super().__init__(message)

        self.argument = argument


class InvalidHashError(SubDBValidationError):
    """Raised when a hash is missing, empty or whitespace-only."""

    def __init__(self, argument: str = "hash") -> None:
        super().__init__("You must search using a valid hash", argument=argument)


class InvalidLanguagesError(SubDBValidationError):
    """Raised when no usable language code is provided."""

    def __init__(self, argument: str = "languages") -> None:
        super().__init__("At least one language must be provided", argument=argument)


class MissingSourceError(SubDBValidationError):
    """Raised when a byte source is None."""

    def __init__(self, argument: str) -> None:
        super().__init__(f"{argument} must be provided", argument=argument)


class SourceTooSmallError(SubDBValidationError):
    """Raised when a source is shorter than the fingerprint sample size."""

    def __init__(self, *, argument: str, length: int, minimum: int) -> None:
        super().__init__(
            f"File size must be at least {minimum} bytes, got {length}",
            argument=argument,
        )

        self.length = length
        self.minimum = minimum


class UnsupportedStreamError(SubDBValidationError):
    """Raised when a stream cannot be read from or seeked."""

    def __init__(self, argument: str, *, needs_seek: bool = True) -> None:
        requirement = "readable and seekable" if needs_seek else "readable"

        super().__init__(f"{argument} must be {requirement}", argument=argument)


class SettingsError(SubDBError):
    """Raised when settings fail validation."""

    pass
