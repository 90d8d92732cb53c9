"""Streaming download and extraction of the template archive.

GitHub serves repository snapshots as ``.tar.gz`` files whose members all live
under a single wrapper directory (``<repo>-<ref>/``).  The archive is never
written to disk or held in memory: response chunks are fed straight into
``tarfile`` in stream mode and the wrapper directory is stripped from every
member as it is extracted.
"""

from __future__ import annotations

import asyncio
import io
import tarfile
import threading
import zlib
from collections.abc import Callable, Iterator
from pathlib import Path, PurePosixPath

import httpx

from create_astro.config import TemplateSource
from create_astro.errors import DownloadError, ExtractionError, ScaffoldError, UserCancelledError
from create_astro.template.resolver import USER_AGENT
from create_astro.utils import print_failure, print_success, spinner

DEFAULT_CHUNK_SIZE = 64 * 1024


class ChunkStream(io.RawIOBase):
    """Read-only file object over an iterator of byte chunks.

    Only one chunk is held at a time, so memory use is bounded by the chunk
    size no matter how large the archive is.  When *stop* is set, the next
    read raises ``UserCancelledError`` so the consumer unwinds promptly.
    """

    def __init__(self, chunks: Iterator[bytes], stop: threading.Event | None = None) -> None:
        super().__init__()
        self._chunks = chunks
        self._stop = stop
        self._pending = memoryview(b"")
        self.bytes_read = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[override]
        raise_if_stopped(self._stop)
        while not self._pending:
            try:
                self._pending = memoryview(next(self._chunks))
            except StopIteration:
                return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        self.bytes_read += size
        return size


def raise_if_stopped(stop: threading.Event | None) -> None:
    if stop is not None and stop.is_set():
        raise UserCancelledError("Download cancelled")


async def run_stoppable(func: Callable[..., Path], *args) -> Path:
    """Run ``func(*args, stop)`` in a worker thread.

    If the awaiting task is cancelled, *stop* is set and the worker is awaited
    until it has actually returned before the cancellation propagates.  The
    caller can then roll back files without racing a thread that is still
    writing them.
    """
    stop = threading.Event()
    worker = asyncio.ensure_future(asyncio.to_thread(func, *args, stop))
    try:
        return await asyncio.shield(worker)
    except asyncio.CancelledError:
        stop.set()
        try:
            await worker
        except ScaffoldError:
            # the worker unwinding on the stop flag; the cancellation wins
            pass
        raise


def strip_wrapper(members: Iterator[tarfile.TarInfo]) -> Iterator[tarfile.TarInfo]:
    """Yield archive members with their first path component removed.

    The wrapper directory itself, and any stray top-level file next to it,
    are dropped.
    """
    for member in members:
        parts = PurePosixPath(member.name).parts
        if len(parts) <= 1:
            continue
        member.name = str(PurePosixPath(*parts[1:]))
        if member.islnk():
            link_parts = PurePosixPath(member.linkname).parts
            member.linkname = str(PurePosixPath(*link_parts[1:])) if len(link_parts) > 1 else ""
        yield member


class ArchiveFetcher:
    """Download a template snapshot and unpack it into a directory.

    Args:
        source: Template repository coordinates.
        timeout: Per-request (and per-chunk read) timeout in seconds.
        transport: Optional httpx transport, mainly for tests.
        chunk_size: Bytes requested from the network per read.
    """

    def __init__(
        self,
        source: TemplateSource,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self.source = source
        self.timeout = timeout
        self.transport = transport
        self.chunk_size = chunk_size

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=self.transport,
        )

    # ------------------------------------------------------------------
    # Blocking implementation
    # ------------------------------------------------------------------

    def download_and_extract(
        self, ref: str, destination: Path, stop: threading.Event | None = None
    ) -> Path:
        """Stream the archive for *ref* into *destination*.

        The destination (and any missing parents) is created before the first
        byte is extracted.  Setting *stop* from another thread aborts the
        transfer at the next read.

        Raises:
            DownloadError: Non-success status, empty body or a transport error.
            ExtractionError: The stream is not a valid gzip tarball, or a
                member would be written outside *destination*.
            UserCancelledError: *stop* was set before the archive was complete.
        """
        url = self.source.archive_url(ref)
        try:
            with self._client() as client, client.stream("GET", url) as response:
                if not response.is_success:
                    raise DownloadError(
                        f"Failed to download template: HTTP {response.status_code} "
                        f"{response.reason_phrase} ({url})"
                    )
                chunks = response.iter_bytes(chunk_size=self.chunk_size)
                first = next((chunk for chunk in chunks if chunk), None)
                if first is None:
                    raise DownloadError(f"No response body received from {url}")

                raise_if_stopped(stop)
                destination.mkdir(parents=True, exist_ok=True)
                self._extract(_prepend(first, chunks), destination, stop)
        except httpx.HTTPError as exc:
            raise DownloadError(f"Failed to download template: {exc}") from exc
        return destination

    @staticmethod
    def _extract(
        chunks: Iterator[bytes], destination: Path, stop: threading.Event | None = None
    ) -> None:
        stream = ChunkStream(chunks, stop)
        try:
            with tarfile.open(fileobj=stream, mode="r|gz") as archive:
                members = _until_stopped(strip_wrapper(iter(archive)), stop)
                archive.extractall(destination, members=members, filter="data")
        except tarfile.FilterError as exc:
            raise ExtractionError(f"Unsafe archive member: {exc}") from exc
        except (tarfile.TarError, zlib.error, EOFError) as exc:
            raise ExtractionError(f"Failed to extract template archive: {exc}") from exc

    # ------------------------------------------------------------------
    # Async entry point
    # ------------------------------------------------------------------

    async def fetch(self, ref: str, destination: Path) -> Path:
        """Download and extract without blocking the event loop."""
        with spinner(f"Downloading template from [cyan]{ref}[/cyan]..."):
            try:
                await run_stoppable(self.download_and_extract, ref, destination)
            except (DownloadError, ExtractionError):
                print_failure("Failed to download template")
                raise
        print_success(f"Template downloaded to [green]{destination}[/green]")
        return destination


def _prepend(first: bytes, rest: Iterator[bytes]) -> Iterator[bytes]:
    yield first
    yield from rest


def _until_stopped(
    members: Iterator[tarfile.TarInfo], stop: threading.Event | None
) -> Iterator[tarfile.TarInfo]:
    for member in members:
        raise_if_stopped(stop)
        yield member
