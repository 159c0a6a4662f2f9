"""Health probe for the supervised backend."""

from __future__ import annotations

from typing import TYPE_CHECKING, final

import httpx

from ._models import HealthResult

if TYPE_CHECKING:
    from backendctl.config import BackendConfig


@final
class HealthProbe:
    """Answers whether the backend is ready to serve requests.

    Issues a GET against the backend health endpoint with a short timeout.
    Every failure mode, including a malformed URL, collapses to "unhealthy"; `check()` keeps the
    status code or transport error for callers that want it.
    """

    __slots__ = ("_client", "_timeout", "_url")

    def __init__(self, config: BackendConfig, client: httpx.AsyncClient) -> None:
        """Initialize the probe.

        Args:
            config: Backend configuration providing host, port, path and timeout.
            client: HTTP client used for probe requests. Not closed by the probe.
        """
        self._client = client
        self._url = f"{config.base_url}{config.health_path}"
        self._timeout = config.health_timeout

    @property
    def url(self) -> str:
        """Return the URL that is probed."""
        return self._url

    async def check(self) -> HealthResult:
        """Probe the backend once and describe the outcome."""
        try:
            response = await self._client.get(self._url, timeout=self._timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            return HealthResult(healthy=False, error=f"{type(e).__name__}: {e}")

        return HealthResult(
            healthy=response.is_success,
            status_code=response.status_code,
        )

    async def is_healthy(self) -> bool:
        """Return True if the backend answered with a success status."""
        result = await self.check()
        return result.healthy
