"""Importación de muestras desde archivo local o API remota."""

from __future__ import annotations

import logging
import mimetypes
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Protocol

from datavis_tool.errors import IngestionError, SourceReadError, UnsupportedFormatError
from datavis_tool.series import SeriesStore
from datavis_tool.sources.base import SampleDecoder
from datavis_tool.sources.csv_source import CsvSampleDecoder
from datavis_tool.sources.http_source import HttpFetcher, validate_url
from datavis_tool.sources.json_source import JsonSampleDecoder

logger = logging.getLogger(__name__)


class ContentKind(str, Enum):
    """Declared kind of a local import source."""

    JSON = "json"
    CSV = "csv"


_KIND_ALIASES: dict[str, ContentKind] = {
    "json": ContentKind.JSON,
    ".json": ContentKind.JSON,
    "application/json": ContentKind.JSON,
    "text/json": ContentKind.JSON,
    "csv": ContentKind.CSV,
    ".csv": ContentKind.CSV,
    "text/csv": ContentKind.CSV,
    "text/comma-separated-values": ContentKind.CSV,
    "application/csv": ContentKind.CSV,
}

_DECODERS: dict[ContentKind, SampleDecoder] = {
    ContentKind.JSON: JsonSampleDecoder(),
    ContentKind.CSV: CsvSampleDecoder(),
}


class Fetcher(Protocol):
    def fetch(self, url: str) -> bytes: ...


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a successful import."""

    source: str
    kind: ContentKind
    count: int


def content_kind(kind: ContentKind | str | None) -> ContentKind:
    """Map a declared kind (enum, MIME type, name or suffix) to ContentKind.

    Raises:
        UnsupportedFormatError: If the kind is not JSON or CSV.
    """
    if isinstance(kind, ContentKind):
        return kind
    key = (kind or "").strip().lower().split(";")[0].strip()
    try:
        return _KIND_ALIASES[key]
    except KeyError:
        raise UnsupportedFormatError(f"Unsupported file type: {kind!r}") from None


def kind_for_path(path: Path | str) -> str:
    """Declared kind of a file, from its suffix or else its MIME type.

    Known suffixes win over the platform MIME registry, which may map
    ``.csv`` to something like ``application/vnd.ms-excel``.
    """
    suffix = Path(path).suffix.lower()
    if suffix in _KIND_ALIASES:
        return suffix
    mime, _ = mimetypes.guess_type(str(path))
    return mime or suffix


class IngestionGateway:
    """Reads, decodes and commits imports into a SeriesStore.

    On any failure the store is left untouched and the error is raised to
    the caller, which decides whether to show or only log it.
    """

    def __init__(
        self,
        store: SeriesStore,
        *,
        fetcher: Fetcher | None = None,
        executor: Executor | None = None,
        request_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._http: HttpFetcher | None = None
        if fetcher is None:
            fetcher = self._http = HttpFetcher(timeout=request_timeout)
        self._fetcher: Fetcher = fetcher
        self._executor = executor
        self._owns_executor = executor is None

    def import_local(
        self, source: Path | str | BinaryIO, kind: ContentKind | str | None
    ) -> ImportResult:
        """Import a local JSON or CSV source, replacing the whole series.

        Args:
            source: File path or binary file object.
            kind: Declared content kind of the source.

        Returns:
            Import summary (an empty result still replaces the series).

        Raises:
            UnsupportedFormatError: If ``kind`` is not JSON or CSV.
            SourceReadError: If the source cannot be read.
            DecodeError: If the payload cannot be decoded.
        """
        label = _source_label(source)
        try:
            resolved = content_kind(kind)
            data = _read_bytes(source)
            samples = _DECODERS[resolved].decode(data)
        except IngestionError as exc:
            logger.warning("Error importing %s: %s", label, exc)
            raise

        self._store.replace(samples)
        logger.info("Imported %d samples from %s", len(samples), label)
        return ImportResult(source=label, kind=resolved, count=len(samples))

    def import_remote(self, url: str) -> Future[ImportResult]:
        """Fetch ``url`` in the background and replace the series with it.

        The URL is validated before anything is scheduled. The replacement
        is handed to the store's dispatcher. Completion order wins when
        several fetches overlap.

        Raises:
            InvalidURLError: If ``url`` is malformed.
        """
        try:
            target = validate_url(url)
        except IngestionError as exc:
            logger.warning("%s", exc)
            raise
        return self._get_executor().submit(self._fetch_and_commit, target)

    def import_remote_sync(self, url: str) -> ImportResult:
        """Blocking variant of :meth:`import_remote`."""
        return self.import_remote(url).result()

    def shutdown(self) -> None:
        """Release the executor and HTTP session this gateway created."""
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        if self._http is not None:
            self._http.close()

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=2, thread_name_prefix="datavis-fetch"
            )
        return self._executor

    def _fetch_and_commit(self, url: str) -> ImportResult:
        try:
            body = self._fetcher.fetch(url)
            samples = _DECODERS[ContentKind.JSON].decode(body)
        except IngestionError as exc:
            logger.warning("Error importing API data from %s: %s", url, exc)
            raise

        self._store.dispatch(lambda: self._store.replace(samples))
        logger.info("Fetched %d samples from %s", len(samples), url)
        return ImportResult(source=url, kind=ContentKind.JSON, count=len(samples))


def _read_bytes(source: Path | str | BinaryIO) -> bytes:
    try:
        if isinstance(source, str | Path):
            return Path(source).expanduser().read_bytes()
        return source.read()
    except OSError as exc:
        raise SourceReadError(f"Could not read {_source_label(source)}: {exc}") from exc


def _source_label(source: Path | str | BinaryIO) -> str:
    if isinstance(source, str | Path):
        return str(source)
    return str(getattr(source, "name", "<stream>"))
