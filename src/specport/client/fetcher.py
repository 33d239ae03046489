"""Asynchronous document fetcher built on :class:`httpx.AsyncClient`.

:class:`DocumentFetcher` performs the one genuinely asynchronous step of an
import: downloading the remote document.  It never raises for transport
problems.  Every outcome -- success, non-2xx status, timeout, network error,
or caller cancellation -- comes back as a :class:`~specport.models.FetchResult`
whose ``error_message`` explains what went wrong, together with the timing
and content metadata the URL accessibility check reports.

Cancellation follows two routes:

* cancelling the awaiting task propagates :class:`asyncio.CancelledError`
  as usual;
* passing a ``cancel_event`` lets a caller (e.g. a dialog's *Cancel* button)
  abandon the request without cancelling its own task.  The result then has
  ``cancelled=True``.

:meth:`DocumentFetcher.fetch_text` is the raising variant used when a caller
only wants the document text; every failure becomes a
:class:`~specport.exceptions.DocumentFetchError`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Optional

import httpx

from specport.exceptions import DocumentFetchError
from specport.models import FetchResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class DocumentFetcher:
    """Fetch documents over HTTP(S).

    Args:
        timeout: Total request timeout in seconds.
        verify_ssl: Verify TLS certificates.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        fetcher = DocumentFetcher(timeout=30)
        result = await fetcher.fetch("https://petstore3.swagger.io/api/v3/openapi.json")
        if result.is_success:
            print(len(result.content or ""))
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport

    @property
    def timeout(self) -> float:
        """The configured timeout in seconds."""
        return self._timeout

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            verify=self._verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )

    async def fetch(
        self,
        url: str,
        headers: Optional[dict[str, str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> FetchResult:
        """GET *url* and describe the outcome.

        Args:
            url: Absolute http(s) URL.
            headers: Extra request headers.
            cancel_event: When set before the response arrives, the request
                is abandoned and the result is marked ``cancelled``.

        Returns:
            A :class:`~specport.models.FetchResult`.
        """
        result = FetchResult(url=url, method="GET", requested_at=datetime.now())
        started = time.monotonic()
        logger.debug("Fetching %s (timeout %ss)", url, self._timeout)

        try:
            async with self._make_client() as client:
                response = await self._send(client, url, headers, cancel_event)
        except _Cancelled:
            result.cancelled = True
            result.error_message = "Request was cancelled"
        except httpx.TimeoutException:
            elapsed = _elapsed_ms(started)
            result.timed_out = True
            result.error_message = (
                f"Request timed out after {elapsed}ms (timeout {self._timeout}s)"
            )
            logger.debug("Timed out fetching %s after %dms", url, elapsed)
        except httpx.RequestError as exc:
            result.error_message = str(exc) or type(exc).__name__
        except httpx.InvalidURL as exc:
            result.error_message = f"Invalid URL: {exc}"
        else:
            result.status_code = response.status_code
            result.is_success = response.is_success
            result.content = response.text
            result.headers = dict(response.headers)
            result.content_type = response.headers.get("content-type")
            result.content_length = _content_length(response)
            if not response.is_success:
                result.error_message = (
                    f"HTTP {response.status_code}: {response.reason_phrase or ''}".rstrip()
                )

        result.response_time_ms = _elapsed_ms(started)
        result.responded_at = datetime.now()
        return result

    async def fetch_text(
        self,
        url: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> str:
        """Return the body of *url*, raising when it could not be retrieved.

        Raises:
            DocumentFetchError: On a non-2xx status, timeout, network error,
                cancellation or a blank body.
        """
        fetched = await self.fetch(url, cancel_event=cancel_event)
        if not fetched.is_success:
            raise DocumentFetchError(
                f"Could not retrieve document from {url}: {fetched.error_message}",
                status_code=fetched.status_code,
                timed_out=fetched.timed_out,
                cancelled=fetched.cancelled,
            )
        if not fetched.content or not fetched.content.strip():
            raise DocumentFetchError(
                f"Could not retrieve document from {url}: response body is empty",
                status_code=fetched.status_code,
            )
        return fetched.content

    async def _send(
        self,
        client: httpx.AsyncClient,
        url: str,
        headers: Optional[dict[str, str]],
        cancel_event: Optional[asyncio.Event],
    ) -> httpx.Response:
        """Send the request, racing it against *cancel_event* when given."""
        if cancel_event is None:
            return await client.get(url, headers=headers)
        if cancel_event.is_set():
            raise _Cancelled()

        request_task = asyncio.ensure_future(client.get(url, headers=headers))
        cancel_task = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            request_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if request_task in done:
            return request_task.result()

        request_task.cancel()
        try:
            await request_task
        except (asyncio.CancelledError, httpx.HTTPError):
            pass
        raise _Cancelled()


class _Cancelled(Exception):
    """Internal signal: the caller's cancel event fired."""


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def _content_length(response: httpx.Response) -> int:
    header = response.headers.get("content-length")
    if header is not None:
        try:
            return int(header)
        except ValueError:
            pass
    return len(response.content)
