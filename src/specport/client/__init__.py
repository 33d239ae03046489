"""HTTP access for specport.

:class:`DocumentFetcher` downloads remote documents with :mod:`httpx`,
reporting timing, timeouts and cancellation in a
:class:`~specport.models.FetchResult` instead of raising.
"""

from specport.client.fetcher import DocumentFetcher

__all__ = ["DocumentFetcher"]
