"""
HTTP helpers used when remote media is downloaded during an import.

A generic retry wrapper handles transient network errors and server-side
rate limiting responses (429 or 5xx).  :func:`fetch_media` performs a single
bounded download: it validates the URL scheme, applies a timeout and a size
limit to every attempt, and converts every failure into
:class:`MediaFetchError` so the caller can isolate it to the one media item.
"""

from __future__ import annotations

import time
from typing import Callable, Iterator, Optional, Tuple
from urllib.parse import urlparse

import requests

from .errors import MediaFetchError

CHUNK_SIZE = 64 * 1024
MAX_MEDIA_BYTES = 20 * 1024 * 1024


def with_retries(
    fn: Callable[[], requests.Response],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.7,
    sleep_fn: Callable[[float], None] = time.sleep,
) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    (too many requests) and 5xx server errors.  Backoff is exponential.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param base_delay: Base delay in seconds for exponential backoff.
    :return: The successful ``requests.Response``.
    :raises requests.RequestException: if all attempts fail.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else 0
            if status not in (429, 500, 502, 503, 504) or attempt >= max_attempts - 1:
                raise
            # Use Retry-After header if provided, otherwise exponential backoff
            retry_after = e.response.headers.get("Retry-After")
            try:
                wait = float(retry_after) if retry_after else base_delay * (2 ** attempt)
            except ValueError:
                wait = base_delay * (2 ** attempt)
            sleep_fn(wait)
            attempt += 1
        except requests.RequestException:
            if attempt >= max_attempts - 1:
                raise
            sleep_fn(base_delay * (2 ** attempt))
            attempt += 1


def fetch_media(
    url: Optional[str],
    *,
    session: Optional[requests.Session] = None,
    timeout: float = 15.0,
    max_attempts: int = 3,
    max_bytes: int = MAX_MEDIA_BYTES,
    clock: Callable[[], float] = time.monotonic,
) -> Tuple[bytes, Optional[str]]:
    """
    Download ``url`` and return its bytes together with the response
    ``Content-Type``.

    ``timeout`` bounds each attempt as a whole: requests only applies it to
    the connect and to every single read, so the body is also read against a
    deadline.  Bodies larger than ``max_bytes`` are rejected.

    :raises MediaFetchError: when the scheme is not http/https, the request
        fails, times out, returns an error status or is too large.
    """
    scheme = urlparse(url or "").scheme.lower()
    if scheme not in ("http", "https"):
        raise MediaFetchError(f"Invalid protocol on URI: {url}")

    http = session or requests.Session()
    deadline = [0.0]

    def do_request() -> requests.Response:
        deadline[0] = clock() + timeout
        return http.get(url, timeout=timeout, stream=True)

    try:
        resp = with_retries(do_request, max_attempts=max_attempts)
    except requests.RequestException as e:
        raise MediaFetchError(f"Failed to fetch {url}: {e}") from e
    try:
        data = b"".join(_iter_chunks(resp, url, deadline[0], max_bytes, clock))
    except requests.RequestException as e:
        raise MediaFetchError(f"Failed to read {url}: {e}") from e
    finally:
        resp.close()
    return data, resp.headers.get("Content-Type")


def _iter_chunks(
    resp: requests.Response, url: str, deadline: float, max_bytes: int, clock: Callable[[], float]
) -> Iterator[bytes]:
    received = 0
    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
        if clock() > deadline:
            raise MediaFetchError(f"Timed out reading {url}")
        if not chunk:
            continue
        received += len(chunk)
        if received > max_bytes:
            raise MediaFetchError(f"{url} is larger than {max_bytes} bytes")
        yield chunk
