"""
SubDB wire protocol.

Pure request builders and response interpreters. Nothing here performs I/O,
so the sync and async client paths share every rule about what is sent and
how a status code is read.
"""

from collections.abc import Iterable
from http import HTTPStatus

from subdb.exceptions import SubDBValidationError
from subdb.models import (
    LanguageLookup,
    LookupStatus,
    SubDBAction,
    SubtitleResult,
    UploadOutcome,
)
from subdb.transport import FilePart, TransportRequest, TransportResponse

PROTOCOL_NAME = "SubDB"
PROTOCOL_VERSION = "1.0"

SUBTITLE_FILENAME = "subtitle.srt"
SUBTITLE_CONTENT_TYPE = "application/octet-stream"


def build_user_agent(client_name: str, client_version: str, client_url: str) -> str:
    """SubDB requires `SubDB/1.0 (<name>/<version>; <url>)` on every request."""

    return (
        f"{PROTOCOL_NAME}/{PROTOCOL_VERSION} "
        f"({client_name}/{client_version}; {client_url})"
    )


def _setup_request(
    action: SubDBAction,
    hash: str | None = None,
    method: str = "GET",
) -> TransportRequest:
    request = TransportRequest(method=method)
    request.query_params["action"] = action.value

    if hash:
        request.query_params["hash"] = hash

    return request


def build_languages_request() -> TransportRequest:
    return _setup_request(SubDBAction.LANGUAGES)


def build_search_request(hash: str, versions: bool = False) -> TransportRequest:
    request = _setup_request(SubDBAction.SEARCH, hash)

    if versions:
        # Flag parameter, the server only checks for its presence
        request.query_params["versions"] = ""

    return request


def build_download_request(hash: str, languages: str) -> TransportRequest:
    request = _setup_request(SubDBAction.DOWNLOAD, hash)
    request.query_params["language"] = languages

    return request


def build_upload_request(hash: str, subtitle: bytes) -> TransportRequest:
    request = _setup_request(SubDBAction.UPLOAD, method="POST")
    request.body_params["hash"] = hash
    request.file_part = FilePart(
        field="file",
        filename=SUBTITLE_FILENAME,
        content=subtitle,
        content_type=SUBTITLE_CONTENT_TYPE,
    )

    return request


def _split_languages(content: str) -> list[str]:
    # An empty body intentionally yields [""]
    return content.split(",")


def interpret_languages(response: TransportResponse) -> LanguageLookup:
    if response.status_code == HTTPStatus.OK:
        return LanguageLookup(
            status=LookupStatus.OK,
            languages=_split_languages(response.content_text),
        )

    return LanguageLookup(status=LookupStatus.SERVER_ERROR)


def interpret_search(response: TransportResponse) -> LanguageLookup:
    if response.status_code == HTTPStatus.NOT_FOUND:
        return LanguageLookup(status=LookupStatus.NOT_FOUND)

    return interpret_languages(response)


def interpret_download(response: TransportResponse) -> SubtitleResult | None:
    """
    Read a download response.

    Returns:
        SubtitleResult: With content on 200, `not_found` set on 404.
        None: On any other status.
    """

    if response.status_code == HTTPStatus.OK:
        language = response.header("Content-Language")

        return SubtitleResult(
            content=response.content_text,
            language=language or None,
            not_found=False,
        )

    if response.status_code == HTTPStatus.NOT_FOUND:
        return SubtitleResult(not_found=True)

    return None


_UPLOAD_OUTCOMES = {
    HTTPStatus.CREATED: UploadOutcome.UPLOADED,
    HTTPStatus.FORBIDDEN: UploadOutcome.DUPLICATED,
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: UploadOutcome.INVALID,
}


def interpret_upload(response: TransportResponse) -> UploadOutcome:
    return _UPLOAD_OUTCOMES.get(response.status_code, UploadOutcome.ERROR)


def parse_language_versions(items: Iterable[str]) -> dict[str, int]:
    """
    Parse a `versions` search answer into language -> version count.

    The server answers `en:1,pt:2`. Items without a count map to 0.

    Example:
        >>> parse_language_versions(["en:1", "pt:2"])
        {'en': 1, 'pt': 2}
    """

    versions: dict[str, int] = {}

    for item in items:
        language, _, count = item.partition(":")
        language = language.strip()

        if not language:
            continue

        try:
            versions[language] = int(count) if count.strip() else 0
        except ValueError as e:
            raise SubDBValidationError(
                f"Invalid version count {count!r} for language {language!r}",
                argument="items",
            ) from e

    return versions
