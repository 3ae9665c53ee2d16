"""HTML fetching with SSRF protection and bounded retries."""
from __future__ import annotations

import logging
import socket
import time
from collections.abc import Callable
from ipaddress import ip_address
from urllib.parse import urljoin, urlparse

import requests

from aio_checker.config.settings import settings

logger = logging.getLogger(__name__)

# Security limits
MAX_RESPONSE_SIZE = settings.fetcher.max_response_size


class FetchError(RuntimeError):
    """Raised when a page cannot be retrieved."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


def _is_url(source: str) -> bool:
    parsed = urlparse(source)
    return parsed.scheme in {"http", "https"}


def _validate_ip(ip_str: str) -> tuple[bool, str]:
    """Check if an IP address is safe (not private/internal)."""
    try:
        ip = ip_address(ip_str)
        if ip.is_private or ip.is_loopback or ip.is_reserved or ip.is_link_local:
            return False, f"Access to private/internal IP addresses is forbidden: {ip_str}"
        return True, ""
    except ValueError:
        return False, f"Invalid IP address: {ip_str}"


def _resolve_and_validate_url(url: str) -> str:
    """Resolve the URL hostname and validate the IP is public.

    Returns:
        An error message, or an empty string when the URL is safe.
    """
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"}:
        return "Only http and https schemes are allowed"

    hostname = parsed.hostname
    if not hostname:
        return "Invalid URL: hostname not found"

    try:
        resolved_ip = socket.gethostbyname(hostname)
    except socket.gaierror:
        return f"Could not resolve hostname: {hostname}"

    _, error_msg = _validate_ip(resolved_ip)
    return error_msg


def _backoff_delays(attempts: int) -> list[float]:
    """Sleep before each retry: initial, doubled each time, capped."""
    fetcher = settings.fetcher
    delays = []
    delay = fetcher.backoff_initial
    for _ in range(max(0, attempts - 1)):
        delays.append(min(delay, fetcher.backoff_max))
        delay *= fetcher.backoff_multiplier
    return delays


def _check_size(response: requests.Response) -> None:
    content_length = response.headers.get("Content-Length")
    if content_length and int(content_length) > MAX_RESPONSE_SIZE:
        response.close()
        raise ValueError(f"Response too large: {int(content_length)} bytes (max {MAX_RESPONSE_SIZE})")


def _get(url: str) -> requests.Response:
    return requests.get(
        url,
        timeout=settings.fetcher.request_timeout,
        allow_redirects=False,  # each redirect target is validated
        stream=True,  # size check before reading
        headers={"User-Agent": settings.fetcher.user_agent},
    )


def _fetch_once(source: str) -> str:
    response = _get(source)
    _check_size(response)

    redirect_count = 0
    while response.is_redirect and redirect_count < settings.fetcher.max_redirects:
        redirect_count += 1
        redirect_url = response.headers.get("Location", "")
        if not redirect_url:
            break

        redirect_url = urljoin(source, redirect_url)
        redirect_error = _resolve_and_validate_url(redirect_url)
        if redirect_error:
            raise ValueError(f"SSRF protection: Redirect blocked - {redirect_error}")

        response = _get(redirect_url)
        source = redirect_url
        _check_size(response)

    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        raise FetchError(source, f"HTTP {response.status_code} from {source}") from exc

    # Read content with size limit (for cases without Content-Length header)
    chunks = []
    total_size = 0
    for chunk in response.iter_content(chunk_size=8192, decode_unicode=False):
        total_size += len(chunk)
        if total_size > MAX_RESPONSE_SIZE:
            response.close()
            raise ValueError(f"Response too large: exceeded {MAX_RESPONSE_SIZE} bytes")
        chunks.append(chunk)

    content_bytes = b"".join(chunks)
    encoding = response.encoding or "utf-8"
    try:
        return content_bytes.decode(encoding)
    except (UnicodeDecodeError, LookupError):
        return content_bytes.decode("utf-8", errors="replace")


def fetch_html(source: str, sleep: Callable[[float], None] = time.sleep) -> str:
    """
    Fetch raw HTML from a URL.

    Security measures:
    - Only accepts http/https URLs (no local file paths)
    - Validates resolved IP is not private/internal (SSRF protection)
    - Disables automatic redirects to validate each redirect target
    - Limits response size to prevent memory exhaustion

    Connection errors and timeouts are retried with exponential backoff;
    HTTP error statuses fail immediately.

    Raises:
        ValueError: The URL is rejected (scheme, SSRF, size).
        FetchError: The page could not be retrieved.
    """
    if not _is_url(source):
        raise ValueError("Only http and https URLs are allowed")

    error_msg = _resolve_and_validate_url(source)
    if error_msg:
        raise ValueError(f"SSRF protection: {error_msg}")

    attempts = max(1, settings.fetcher.retry_attempts)
    delays = _backoff_delays(attempts)
    for attempt in range(1, attempts + 1):
        try:
            return _fetch_once(source)
        except (requests.ConnectionError, requests.Timeout) as exc:
            if attempt == attempts:
                raise FetchError(source, f"Failed to fetch {source} after {attempts} attempts: {exc}") from exc
            delay = delays[attempt - 1]
            logger.warning("Fetch attempt %d/%d for %s failed (%s); retrying in %.1fs",
                           attempt, attempts, source, exc, delay)
            sleep(delay)

    raise FetchError(source, f"Failed to fetch {source}")
