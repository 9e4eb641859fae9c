"""
Network access for library downloads.

This module provides:
- URL classification (fetchable URI vs. local filesystem path)
- Proxy and TLS aware streaming HTTP GET
- A file-like reader over a streaming response, so archives can be
  decompressed while they arrive
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests
from requests.exceptions import RequestException
from urllib3.exceptions import HTTPError as TransportError

from platformkit.core.exceptions import LibraryDownloadError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
CHUNK_SIZE = 8192


def is_fetchable_url(url: str) -> bool:
    """
    Check whether a library URL must be fetched over the network.

    A single-letter scheme is a Windows drive letter ("C:\\sdk"), and
    file:// URLs point at the local filesystem; both are local paths.

    Example:
        >>> is_fetchable_url("https://example.com/android.tgz")
        True
        >>> is_fetchable_url("/local/ios-src")
        False
        >>> is_fetchable_url("C:\\\\sdk\\\\ios")
        False
    """
    scheme = urlparse(url).scheme
    return len(scheme) > 1 and scheme.lower() != "file"


def local_path_from_url(url: str) -> Path:
    """Convert a non-fetchable library URL into a filesystem path."""
    parsed = urlparse(url)
    if parsed.scheme.lower() == "file":
        return Path(url2pathname(parsed.path))
    return Path(url)


class ResponseReader:
    """
    Read-only file-like view over a streaming requests response.

    Bytes are read from the raw connection exactly as sent. A Content-Encoding
    header is not undone, since the body is decompressed by the archive reader.

    Transport failures while reading surface as LibraryDownloadError rather
    than OSError, so they are not mistaken for archive corruption.
    """

    def __init__(self, response: requests.Response, chunk_size: int = CHUNK_SIZE):
        self._chunks = response.raw.stream(chunk_size, decode_content=False)
        self._buffer = bytearray()
        self._exhausted = False
        self.bytes_received = 0

    def _fill(self, size: int) -> None:
        while not self._exhausted and (size < 0 or len(self._buffer) < size):
            try:
                chunk = next(self._chunks)
            except StopIteration:
                self._exhausted = True
                break
            except (RequestException, TransportError) as e:
                raise LibraryDownloadError(f"Connection lost during download: {e}") from e
            if chunk:
                self.bytes_received += len(chunk)
                self._buffer.extend(chunk)

    def read(self, size: int = -1) -> bytes:
        self._fill(size)
        if size < 0 or size >= len(self._buffer):
            data = bytes(self._buffer)
            self._buffer.clear()
        else:
            data = bytes(self._buffer[:size])
            del self._buffer[:size]
        return data


def open_stream(
    url: str,
    proxy: Optional[str] = None,
    strict_ssl: Optional[bool] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Response:
    """
    Issue a streaming HTTP GET for a library archive.

    Args:
        url: URL to download from
        proxy: Proxy URL applied to the URL's scheme, if set
        strict_ssl: TLS certificate verification flag, applied only if set
        timeout: Request timeout in seconds

    Returns:
        The open streaming response; the caller checks the status code and
        must close it.

    Raises:
        LibraryDownloadError: If the server cannot be reached
    """
    options = {"stream": True, "timeout": timeout, "allow_redirects": True}
    if proxy:
        options["proxies"] = {urlparse(url).scheme: proxy}
    if isinstance(strict_ssl, bool):
        options["verify"] = strict_ssl

    shown = {k: v for k, v in options.items() if k in ("proxies", "verify")}
    logger.debug(f"Requesting {url} {shown}...")

    try:
        return requests.get(url, **options)
    except RequestException as e:
        raise LibraryDownloadError(f"Failed to reach {url}: {e}") from e


__all__ = [
    "DEFAULT_TIMEOUT",
    "is_fetchable_url",
    "local_path_from_url",
    "ResponseReader",
    "open_stream",
]
