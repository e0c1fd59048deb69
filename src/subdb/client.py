"""SubDB API client"""

import asyncio
from collections.abc import Callable, Sequence
from typing import BinaryIO, TypeAlias

from loguru import logger

from subdb import protocol
from subdb.exceptions import (
    InvalidHashError,
    InvalidLanguagesError,
    MissingSourceError,
    UnsupportedStreamError,
)
from subdb.hashing import fingerprint_bytes, fingerprint_stream, is_binary_stream
from subdb.models import LanguageLookup, LookupStatus, SubtitleResult, UploadOutcome
from subdb.settings import SubDBSettings, load_settings
from subdb.transport import (
    HttpxTransport,
    Transport,
    TransportRequest,
    TransportResponse,
)
from subdb.utils.logging import register_custom_levels

Languages: TypeAlias = str | Sequence[str]
SubtitlePayload: TypeAlias = bytes | BinaryIO


def _require_hash(hash: str | None) -> str:
    if not isinstance(hash, str) or not hash.strip():
        raise InvalidHashError()

    return hash


def _join_languages(languages: Languages | None) -> str:
    """Accept `"en,pt"` as-is or join `["en", "pt"]` in priority order."""

    if isinstance(languages, str):
        if not languages.strip():
            raise InvalidLanguagesError()

        return languages

    if languages is None:
        raise InvalidLanguagesError()

    codes = list(languages)

    if not codes or any(not isinstance(code, str) or not code.strip() for code in codes):
        raise InvalidLanguagesError()

    return ",".join(code.strip() for code in codes)


def _read_subtitle(subtitle: SubtitlePayload | None) -> bytes:
    """Subtitle payloads have no minimum size; streams are read from their current position."""

    if subtitle is None:
        raise MissingSourceError("subtitle")

    if isinstance(subtitle, (bytes, bytearray, memoryview)):
        return bytes(subtitle)

    if not is_binary_stream(subtitle, needs_seek=False):
        raise UnsupportedStreamError("subtitle", needs_seek=False)

    content = subtitle.read()

    if not isinstance(content, (bytes, bytearray)):
        raise UnsupportedStreamError("subtitle", needs_seek=False)

    return bytes(content)


class SubDBClient:
    """
    Client for the SubDB subtitle database.

    Every operation exists in three input shapes (hash, bytes, stream) that
    all resolve to a fingerprint before a single request is built, plus an
    `*_async` twin that awaits the transport's async entry point.

    Results:
        list_languages / search: list of codes, [] when not found (search
            only), None on any unexpected status.
        download: SubtitleResult, or None on any unexpected status.
        upload: UploadOutcome, never None.
    """

    def __init__(
        self,
        settings: SubDBSettings | None = None,
        transport: Transport | None = None,
    ):
        """
        Args:
            settings (SubDBSettings): Used to build the default HttpxTransport.
                Loaded from the environment when neither argument is given.
            transport (Transport): Pre-configured transport. Never closed by
                this client.
        """

        register_custom_levels()
        self._owns_transport = transport is None

        if transport is None:
            settings = settings or load_settings()
            transport = HttpxTransport(settings)

        self.settings = settings
        self.transport = transport

    # --- languages ---
    def list_languages(self) -> list[str] | None:
        """List the language codes the server has subtitles for."""

        request = protocol.build_languages_request()

        return self._handle_lookup(
            request, self._dispatch(request), protocol.interpret_languages
        )

    async def list_languages_async(self) -> list[str] | None:
        request = protocol.build_languages_request()

        return self._handle_lookup(
            request, await self._dispatch_async(request), protocol.interpret_languages
        )

    # --- search ---
    def search(self, hash: str, versions: bool = False) -> list[str] | None:
        """
        Search for the languages available for a fingerprint.

        Args:
            hash: SubDB fingerprint of the video.
            versions: Ask for `LANG:COUNT` items, see `parse_language_versions`.
        """

        request = protocol.build_search_request(_require_hash(hash), versions)

        return self._handle_lookup(
            request, self._dispatch(request), protocol.interpret_search
        )

    def search_bytes(self, data: bytes, versions: bool = False) -> list[str] | None:
        return self.search(fingerprint_bytes(data, "data"), versions)

    def search_stream(self, stream: BinaryIO, versions: bool = False) -> list[str] | None:
        return self.search(fingerprint_stream(stream, "stream"), versions)

    async def search_async(self, hash: str, versions: bool = False) -> list[str] | None:
        request = protocol.build_search_request(_require_hash(hash), versions)

        return self._handle_lookup(
            request, await self._dispatch_async(request), protocol.interpret_search
        )

    async def search_bytes_async(
        self, data: bytes, versions: bool = False
    ) -> list[str] | None:
        return await self.search_async(fingerprint_bytes(data, "data"), versions)

    async def search_stream_async(
        self, stream: BinaryIO, versions: bool = False
    ) -> list[str] | None:
        return await self.search_async(fingerprint_stream(stream, "stream"), versions)

    # --- download ---
    def download(self, hash: str, languages: Languages) -> SubtitleResult | None:
        """
        Download the first subtitle found for the given languages.

        Args:
            hash: SubDB fingerprint of the video.
            languages: A single code (`"en"`), a comma separated priority list
                (`"en,pt"`) or a sequence of codes.
        """

        request = protocol.build_download_request(
            _require_hash(hash), _join_languages(languages)
        )

        return self._handle_download(request, self._dispatch(request))

    def download_bytes(self, data: bytes, languages: Languages) -> SubtitleResult | None:
        return self.download(fingerprint_bytes(data, "data"), languages)

    def download_stream(
        self, stream: BinaryIO, languages: Languages
    ) -> SubtitleResult | None:
        return self.download(fingerprint_stream(stream, "stream"), languages)

    async def download_async(
        self, hash: str, languages: Languages
    ) -> SubtitleResult | None:
        request = protocol.build_download_request(
            _require_hash(hash), _join_languages(languages)
        )

        return self._handle_download(request, await self._dispatch_async(request))

    async def download_bytes_async(
        self, data: bytes, languages: Languages
    ) -> SubtitleResult | None:
        return await self.download_async(fingerprint_bytes(data, "data"), languages)

    async def download_stream_async(
        self, stream: BinaryIO, languages: Languages
    ) -> SubtitleResult | None:
        return await self.download_async(fingerprint_stream(stream, "stream"), languages)

    # --- upload ---
    def upload(self, hash: str, subtitle: SubtitlePayload) -> UploadOutcome:
        """Upload a subtitle for a fingerprint."""

        request = protocol.build_upload_request(
            _require_hash(hash), _read_subtitle(subtitle)
        )

        return self._handle_upload(request, self._dispatch(request))

    def upload_bytes(self, data: bytes, subtitle: SubtitlePayload) -> UploadOutcome:
        return self.upload(fingerprint_bytes(data, "data"), subtitle)

    def upload_stream(self, stream: BinaryIO, subtitle: SubtitlePayload) -> UploadOutcome:
        return self.upload(fingerprint_stream(stream, "stream"), subtitle)

    async def upload_async(self, hash: str, subtitle: SubtitlePayload) -> UploadOutcome:
        request = protocol.build_upload_request(
            _require_hash(hash), _read_subtitle(subtitle)
        )

        return self._handle_upload(request, await self._dispatch_async(request))

    async def upload_bytes_async(
        self, data: bytes, subtitle: SubtitlePayload
    ) -> UploadOutcome:
        return await self.upload_async(fingerprint_bytes(data, "data"), subtitle)

    async def upload_stream_async(
        self, stream: BinaryIO, subtitle: SubtitlePayload
    ) -> UploadOutcome:
        return await self.upload_async(fingerprint_stream(stream, "stream"), subtitle)

    # --- lifecycle ---
    def close(self) -> None:
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            self.transport.close()

    async def aclose(self) -> None:
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            await self.transport.aclose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    # --- helpers ---
    def _dispatch(self, request: TransportRequest) -> TransportResponse:
        logger.debug(f"SubDB {request.method} action={request.query_params['action']}")

        return self.transport.execute(request)

    async def _dispatch_async(self, request: TransportRequest) -> TransportResponse:
        logger.debug(f"SubDB {request.method} action={request.query_params['action']} (async)")

        execute_async = getattr(self.transport, "execute_async", None)

        if execute_async is None:
            return await asyncio.to_thread(self.transport.execute, request)

        return await execute_async(request)

    def _handle_lookup(
        self,
        request: TransportRequest,
        response: TransportResponse,
        interpret: Callable[[TransportResponse], LanguageLookup],
    ) -> list[str] | None:
        lookup = interpret(response)

        if lookup.status is LookupStatus.SERVER_ERROR:
            self._log_unexpected(request, response)
        elif lookup.found:
            action = request.query_params["action"]
            logger.log("SUBDB", f"SubDB {action} found {len(lookup.languages)} language(s)")

        return lookup.unwrap()

    def _handle_download(
        self, request: TransportRequest, response: TransportResponse
    ) -> SubtitleResult | None:
        result = protocol.interpret_download(response)

        if result is None:
            self._log_unexpected(request, response)
        elif not result.not_found:
            logger.log(
                "SUBDB", f"Downloaded {result.language or 'unknown'} subtitle from SubDB"
            )

        return result

    def _handle_upload(
        self, request: TransportRequest, response: TransportResponse
    ) -> UploadOutcome:
        outcome = protocol.interpret_upload(response)

        if outcome is UploadOutcome.ERROR:
            self._log_unexpected(request, response)
        elif outcome is UploadOutcome.UPLOADED:
            logger.log("SUBDB", "Uploaded subtitle to SubDB")

        return outcome

    @staticmethod
    def _log_unexpected(request: TransportRequest, response: TransportResponse) -> None:
        action = request.query_params.get("action")

        if response.error:
            logger.warning(f"SubDB {action} got no response: {response.error}")
        else:
            logger.warning(f"SubDB {action} returned status {response.status_code}")
