"""Shared utilities for HTTP-backed adapters."""

from requests import Session
from requests.adapters import HTTPAdapter, Retry

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)


def create_session_with_pooling(
    pool_connections: int = 10,
    pool_maxsize: int = 20,
    max_retries: int = 3,
    backoff_factor: float = 0.5,
) -> Session:
    """Create a requests Session with connection pooling and bounded retries.

    Retries cover connection errors and the transient statuses in
    ``RETRY_STATUS_CODES`` for POST as well as idempotent methods.

    Args:
        pool_connections: Number of connection pools to cache.
        pool_maxsize: Maximum number of connections to save per pool.
        max_retries: Maximum number of retries per request.
        backoff_factor: Exponential backoff base, in seconds.

    Returns:
        Configured requests Session.
    """
    retry = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=None,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=retry,
    )
    session = Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
