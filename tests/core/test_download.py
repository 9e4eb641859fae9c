"""
Unit tests for download module.

Tests URL classification and streaming HTTP access with mocked requests.
"""

import gzip
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
import responses
from urllib3.exceptions import ProtocolError

from platformkit.core.download import (
    ResponseReader,
    is_fetchable_url,
    local_path_from_url,
    open_stream,
)
from platformkit.core.exceptions import LibraryDownloadError


class TestIsFetchableUrl:
    """Test is_fetchable_url function."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/android.tgz",
            "http://example.com/android.tgz",
            "https://git.example.org/repos/asf?p=cordova-ios.git;a=snapshot;h=3.5.0;sf=tgz",
        ],
    )
    def test_remote_urls(self, url):
        """Test http(s) URLs are fetchable."""
        assert is_fetchable_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "/local/ios-src",
            "relative/path",
            "C:\\sdk\\ios",
            "c:/sdk/ios",
            "file:///local/ios-src",
        ],
    )
    def test_local_paths(self, url):
        """Test paths, drive letters and file URLs are local."""
        assert is_fetchable_url(url) is False


class TestLocalPathFromUrl:
    """Test local_path_from_url function."""

    def test_plain_path(self):
        """Test plain paths are returned unchanged."""
        assert local_path_from_url("/local/ios-src") == Path("/local/ios-src")

    def test_file_url(self):
        """Test file URLs are converted to paths."""
        assert local_path_from_url("file:///local/ios-src") == Path("/local/ios-src")


class TestResponseReader:
    """Test ResponseReader class."""

    def _response(self, chunks):
        response = MagicMock()
        response.raw.stream.return_value = iter(chunks)
        return response

    def test_read_sized(self):
        """Test sized reads return exactly the requested bytes."""
        reader = ResponseReader(self._response([b"abc", b"defg", b"h"]))

        assert reader.read(2) == b"ab"
        assert reader.read(4) == b"cdef"
        assert reader.read(10) == b"gh"
        assert reader.read(10) == b""
        assert reader.bytes_received == 8

    def test_read_all(self):
        """Test unsized read drains the response."""
        reader = ResponseReader(self._response([b"abc", b"", b"def"]))
        assert reader.read() == b"abcdef"

    def test_transport_error_while_reading(self):
        """Test transport errors surface as LibraryDownloadError."""

        def chunks():
            yield b"abc"
            raise requests.exceptions.ChunkedEncodingError("connection reset")

        response = MagicMock()
        response.raw.stream.return_value = chunks()
        reader = ResponseReader(response)

        with pytest.raises(LibraryDownloadError, match="Connection lost"):
            reader.read(100)

    def test_connection_error_while_reading(self):
        """Test connection errors from the raw stream surface as LibraryDownloadError."""

        def chunks():
            yield b"abc"
            raise ProtocolError("Connection broken: IncompleteRead")

        response = MagicMock()
        response.raw.stream.return_value = chunks()
        reader = ResponseReader(response)

        with pytest.raises(LibraryDownloadError, match="Connection lost"):
            reader.read()

    def test_reads_without_content_decoding(self):
        """Test the raw stream is read with content decoding disabled."""
        response = self._response([b"\x1f\x8b"])

        assert ResponseReader(response, chunk_size=1024).read() == b"\x1f\x8b"
        response.raw.stream.assert_called_once_with(1024, decode_content=False)


class TestOpenStream:
    """Test open_stream function."""

    @responses.activate
    def test_returns_streaming_response(self):
        """Test response body can be streamed."""
        url = "https://example.com/lib.tgz"
        responses.add(responses.GET, url, body=b"payload", status=200)

        response = open_stream(url)

        assert response.status_code == 200
        assert ResponseReader(response).read() == b"payload"

    @responses.activate
    def test_non_200_is_returned(self):
        """Test error statuses are left for the caller to check."""
        url = "https://example.com/missing.tgz"
        responses.add(responses.GET, url, status=404)

        response = open_stream(url)

        assert response.status_code == 404

    @responses.activate
    def test_content_encoding_is_not_undone(self):
        """Test a gzip Content-Encoding header leaves the body bytes untouched."""
        url = "https://example.com/lib.tgz"
        payload = gzip.compress(b"archive")
        responses.add(
            responses.GET,
            url,
            body=payload,
            status=200,
            headers={"Content-Encoding": "gzip"},
        )

        response = open_stream(url)

        assert ResponseReader(response).read() == payload

    @responses.activate
    def test_connection_error(self):
        """Test unreachable server raises LibraryDownloadError."""
        url = "https://example.com/lib.tgz"
        responses.add(
            responses.GET, url, body=requests.exceptions.ConnectionError("refused")
        )

        with pytest.raises(LibraryDownloadError, match="Failed to reach") as exc_info:
            open_stream(url)

        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectionError)

    def test_proxy_and_strict_ssl_passed(self):
        """Test proxy is keyed by URL scheme and strict_ssl becomes verify."""
        with patch("platformkit.core.download.requests.get") as mock_get:
            open_stream(
                "https://example.com/lib.tgz",
                proxy="http://proxy:8080",
                strict_ssl=False,
                timeout=12,
            )

        _, kwargs = mock_get.call_args
        assert kwargs["proxies"] == {"https": "http://proxy:8080"}
        assert kwargs["verify"] is False
        assert kwargs["timeout"] == 12
        assert kwargs["stream"] is True

    def test_unset_options_not_passed(self):
        """Test proxy and verify are omitted when unset."""
        with patch("platformkit.core.download.requests.get") as mock_get:
            open_stream("http://example.com/lib.tgz")

        _, kwargs = mock_get.call_args
        assert "proxies" not in kwargs
        assert "verify" not in kwargs
