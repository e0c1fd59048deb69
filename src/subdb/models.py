"""SubDB domain models"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SubDBAction(Enum):
    """Server-side actions. The value is the lowercase wire name."""

    LANGUAGES = "languages"
    SEARCH = "search"
    DOWNLOAD = "download"
    UPLOAD = "upload"


class UploadOutcome(Enum):
    """
    Result of an upload.

    Uploaded: 201 Created
    Duplicated: 403 Forbidden, the subtitle already exists
    Invalid: 415 Unsupported Media Type, the subtitle was rejected
    Error: any other status
    """

    UPLOADED = "Uploaded"
    DUPLICATED = "Duplicated"
    INVALID = "Invalid"
    ERROR = "Error"


class LookupStatus(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"


class LanguageLookup(BaseModel):
    """Tagged outcome of a language listing or search."""

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    languages: list[str] = Field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.OK

    def unwrap(self) -> list[str] | None:
        """Collapse to the public shape: the list, [] when not found, None on error."""

        if self.status is LookupStatus.SERVER_ERROR:
            return None

        if self.status is LookupStatus.NOT_FOUND:
            return []

        return list(self.languages)


class SubtitleResult(BaseModel):
    """Downloaded subtitle, or a not-found marker."""

    model_config = ConfigDict(frozen=True)

    content: str | None = None
    language: str | None = None
    not_found: bool = False
