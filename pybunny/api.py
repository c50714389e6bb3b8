"""API client for Bunny edge storage."""

from __future__ import annotations

import logging
import posixpath
import random
import threading
import time
from typing import Any, cast
from urllib.parse import quote

import httpx

from .config import BunnyRegion
from .exceptions import (
    BunnyAuthenticationError,
    BunnyChecksumMismatchError,
    BunnyConfigError,
    BunnyError,
    BunnyInvalidArgumentError,
    BunnyInvalidResponseError,
    BunnyNetworkError,
    BunnyNotFoundError,
    BunnyRateLimitError,
    BunnyTransportError,
    BunnyTypeMismatchError,
)
from .models import (
    DirectoryEntry,
    Entry,
    FileEntry,
    entry_from_api_response,
    listing_from_api_response,
)
from .utils import bytes_to_hex, compute_checksum

logger = logging.getLogger(__name__)


class BunnyStorage:
    """Client for one Bunny storage zone."""

    def __init__(
        self,
        api_key: str,
        storage_zone: str,
        region: BunnyRegion | None = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
    ):
        """Initialize the storage client.

        Args:
            api_key: Storage zone password, sent as the ``AccessKey`` header
            storage_zone: Name of the storage zone
            region: Storage region (default: Falkenstein)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
        """
        if not api_key:
            raise BunnyConfigError("API key not configured")
        if not storage_zone or "/" in storage_zone:
            raise BunnyConfigError(f"Invalid storage zone '{storage_zone}'")

        self.api_key = api_key
        self.storage_zone = storage_zone
        self.region = region or BunnyRegion.FALKENSTEIN
        self.base_url = f"https://{self.region.host}/{storage_zone}"
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client, shared by all worker threads."""
        with self._client_lock:
            if self._client is None or self._client.is_closed:
                self._client = httpx.Client(
                    headers={"AccessKey": self.api_key},
                    timeout=httpx.Timeout(self.timeout),
                    follow_redirects=True,
                )
            return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        with self._client_lock:
            if self._client is not None and not self._client.is_closed:
                self._client.close()
            self._client = None

    def __enter__(self) -> BunnyStorage:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # =========================
    # Request handling
    # =========================

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{quote(path.lstrip('/'), safe='/')}"

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        # Network errors and rate limits are transient
        if isinstance(exception, (BunnyNetworkError, BunnyRateLimitError)):
            return True

        if isinstance(exception, BunnyTransportError) and exception.status_code:
            return 500 <= exception.status_code < 600

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _error_for_status(self, e: httpx.HTTPStatusError, path: str) -> BunnyError:
        """Map an HTTP error status to a pybunny exception."""
        status_code = e.response.status_code

        if status_code == 401:
            return BunnyAuthenticationError(
                "Invalid access key or unauthorized access", status_code
            )
        elif status_code == 404:
            return BunnyNotFoundError(f"Path '{path}' not found")
        elif status_code == 429:
            return BunnyRateLimitError(
                "Rate limit exceeded - please try again later", status_code
            )

        error_msg = f"Request for path '{path}' failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict) and error_data.get("Message"):
                    error_msg = f"{error_msg}: {error_data['Message']}"
        except ValueError:
            # Body is not JSON; keep the status-based message
            pass
        return BunnyTransportError(error_msg, status_code)

    def _request(
        self,
        method: str,
        path: str,
        allow_not_found: bool = False,
        **kwargs: Any,
    ) -> httpx.Response | None:
        """Send a request with retry logic.

        Args:
            method: HTTP method (including Bunny's ``DESCRIBE``)
            path: Path inside the storage zone
            allow_not_found: Return None on 404 instead of raising
            **kwargs: Additional arguments passed to httpx

        Returns:
            The successful response, or None for an allowed 404

        Raises:
            BunnyTransportError: If the request fails after all retries
            BunnyNotFoundError: On 404 unless ``allow_not_found`` is set
        """
        url = self._url(path)
        last_exception: BunnyError | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                logger.debug(f"{method} {url} (attempt {attempt + 1})")
                response = client.request(method, url, **kwargs)
                if allow_not_found and response.status_code == 404:
                    return None
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                error = self._error_for_status(e, path)
                last_exception = error
                if self._should_retry(error, attempt):
                    retry_after = e.response.headers.get("Retry-After")
                    if isinstance(error, BunnyRateLimitError) and (
                        retry_after and retry_after.isdigit()
                    ):
                        delay = float(retry_after)
                    else:
                        delay = self._calculate_retry_delay(attempt)
                    logger.debug(f"Retrying {method} {path} in {delay:.2f}s: {error}")
                    time.sleep(delay)
                    continue
                raise error from e
            except httpx.RequestError as e:
                error = BunnyNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug(f"Retrying {method} {path} in {delay:.2f}s: {error}")
                    time.sleep(delay)
                    continue
                raise error from e

        # If we get here, we've exhausted all retries
        if last_exception:
            raise last_exception
        raise BunnyTransportError("Request failed after all retry attempts")

    def _json(self, response: httpx.Response) -> Any:
        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            raise BunnyInvalidResponseError(
                f"Unexpected response type: {content_type or 'none'}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise BunnyInvalidResponseError("Invalid JSON response from server") from e

    # =========================
    # Storage operations
    # =========================

    def cd(self, path: str = "/") -> DirectoryEntry:
        """Return a directory entry for ``path`` without contacting the server."""
        normalized = "/" + path.strip("/")
        if normalized == "/":
            return DirectoryEntry(storage=self, parent_path="/", name="")

        parent, name = posixpath.split(normalized)
        if not parent.endswith("/"):
            parent += "/"
        return DirectoryEntry(storage=self, parent_path=parent, name=name)

    def list(self, path: str = "/") -> list[Entry]:
        """List the direct children of a remote directory.

        Raises:
            BunnyTypeMismatchError: If the path is a file
        """
        if not path.endswith("/"):
            path += "/"

        response = cast(httpx.Response, self._request("GET", path))
        if "ETag" in response.headers:
            raise BunnyTypeMismatchError(
                f"Expected a directory, but '{path}' is a file"
            )

        entries = listing_from_api_response(self, self._json(response))
        logger.debug(f"Listed {len(entries)} entries in {path}")
        return entries

    def maybe_describe(self, path: str) -> Entry | None:
        """Describe a remote object, returning None if it does not exist.

        Raises:
            BunnyInvalidArgumentError: If the path ends with '/'
        """
        if path.endswith("/"):
            raise BunnyInvalidArgumentError(f"File expected, '{path}' received")

        response = self._request("DESCRIBE", path, allow_not_found=True)
        if response is None:
            logger.debug(f"{path} does not exist")
            return None
        return entry_from_api_response(self, self._json(response))

    def describe(self, path: str) -> Entry:
        """Describe a remote object.

        Raises:
            BunnyNotFoundError: If the path does not exist
        """
        entry = self.maybe_describe(path)
        if entry is None:
            raise BunnyNotFoundError(f"File {path} not found")
        return entry

    def download(self, path: str, expected_checksum: bytes | None = None) -> bytes:
        """Download the content of a remote file.

        Args:
            path: Remote file path
            expected_checksum: If given, the SHA-256 the content must match

        Raises:
            BunnyInvalidArgumentError: If the path ends with '/'
            BunnyTypeMismatchError: If the path is a directory
            BunnyChecksumMismatchError: If the content does not match
        """
        if path.endswith("/"):
            raise BunnyInvalidArgumentError(
                f"Cannot download directory '{path}'; file expected"
            )

        response = cast(httpx.Response, self._request("GET", path))
        if "ETag" not in response.headers:
            raise BunnyTypeMismatchError(
                f"Expected a file, but '{path}' is a directory"
            )

        body = response.content
        if expected_checksum is not None:
            checksum = compute_checksum(body)
            if checksum != expected_checksum:
                raise BunnyChecksumMismatchError(
                    bytes_to_hex(expected_checksum), bytes_to_hex(checksum), path
                )

        logger.debug(f"Downloaded {len(body)} bytes from {path}")
        return body

    def upload(
        self, path: str, body: bytes, checksum: bytes | None = None
    ) -> FileEntry:
        """Upload content to a remote file and verify what the server stored.

        Args:
            path: Remote file path
            body: File content
            checksum: SHA-256 of ``body`` (computed if not given)

        Returns:
            The entry describing the uploaded file

        Raises:
            BunnyInvalidArgumentError: If the path ends with '/'
            BunnyChecksumMismatchError: If the stored checksum differs
        """
        if path.endswith("/"):
            raise BunnyInvalidArgumentError(
                f"Cannot upload directory '{path}'; file expected"
            )

        if checksum is None:
            checksum = compute_checksum(body)

        self._request(
            "PUT",
            path,
            content=body,
            headers={
                "Checksum": bytes_to_hex(checksum).upper(),
                "Content-Type": "application/octet-stream",
            },
        )

        described = self.describe(path)
        if not isinstance(described, FileEntry):
            raise BunnyTypeMismatchError(
                f"Expected a file after upload, but '{path}' is a directory"
            )
        if described.checksum != checksum:
            raise BunnyChecksumMismatchError(
                bytes_to_hex(checksum), described.checksum_hex, path
            )

        logger.debug(f"Uploaded {len(body)} bytes to {path}")
        return described

    def delete(self, path: str) -> None:
        """Delete a remote file, or a directory with everything below it."""
        self._request("DELETE", path)
        logger.debug(f"Deleted {path}")
