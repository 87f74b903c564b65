"""Shared httpx client settings."""

import httpx

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


def create_sync_client(base_url: str, *, timeout: httpx.Timeout | None = None) -> httpx.Client:
    """Create a synchronous client for ``base_url`` with the default timeouts."""

    return httpx.Client(base_url=base_url, timeout=timeout or DEFAULT_TIMEOUT)
