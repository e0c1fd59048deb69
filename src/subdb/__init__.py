"""SubDB client module."""

from subdb.client import SubDBClient  # noqa: F401
from subdb.exceptions import (  # noqa: F401
    InvalidHashError,
    InvalidLanguagesError,
    MissingSourceError,
    SettingsError,
    SourceTooSmallError,
    SubDBError,
    SubDBValidationError,
    UnsupportedStreamError,
)
from subdb.hashing import (  # noqa: F401
    CHUNK_SIZE,
    HASH_SIZE,
    fingerprint_bytes,
    fingerprint_file,
    fingerprint_stream,
)
from subdb.models import (  # noqa: F401
    LanguageLookup,
    LookupStatus,
    SubDBAction,
    SubtitleResult,
    UploadOutcome,
)
from subdb.protocol import parse_language_versions  # noqa: F401
from subdb.settings import SubDBSettings, load_settings  # noqa: F401
from subdb.transport import (  # noqa: F401
    AsyncTransport,
    HttpxTransport,
    Transport,
    TransportRequest,
    TransportResponse,
)
from subdb.utils.logging import configure_logging, setup_logger  # noqa: F401
