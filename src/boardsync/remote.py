"""Remote issue store: the contract the engine depends on, plus two backends.

``InMemoryRemote`` is the reference policy: every call takes
``API_DELAY_MS`` and updates succeed with probability ``API_SUCCESS_RATE``.
``HttpRemote`` talks to the same store over HTTP (see ``remote_server``).

Both raise ``RemoteError`` subclasses on failure; the engine and the
scheduler are the only places these are caught.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import random
from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, Any, Protocol

from boardsync.core import API_DELAY_MS, API_SUCCESS_RATE, Issue
from boardsync.seed_data import SEED_ISSUES
from boardsync.types.core import IssuePatch

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """A remote call failed. Always transient and recoverable."""


class FetchFailedError(RemoteError):
    def __init__(self, message: str = "Failed to fetch issues") -> None:
        super().__init__(message)


class UpdateFailedError(RemoteError):
    def __init__(self, message: str = "Failed to update issue") -> None:
        super().__init__(message)


class RemoteSource(Protocol):
    async def fetch_all(self) -> list[Issue]: ...

    async def update(self, issue_id: str, patch: IssuePatch) -> dict[str, Any]: ...


# ---------------------------------------------------------------------------
# In-memory reference store
# ---------------------------------------------------------------------------


class InMemoryRemote:
    """Session-scoped store that persists successful updates in memory."""

    def __init__(
        self,
        issues: Iterable[dict[str, Any]] | None = None,
        *,
        delay_ms: int = API_DELAY_MS,
        success_rate: float = API_SUCCESS_RATE,
        fetch_failure_rate: float = 0.0,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not (0.0 <= success_rate <= 1.0):
            msg = f"success_rate must be between 0 and 1, got {success_rate}"
            raise ValueError(msg)
        self._seed = [copy.deepcopy(d) for d in (SEED_ISSUES if issues is None else issues)]
        self._cache: list[dict[str, Any]] | None = None
        self.delay_ms = delay_ms
        self.success_rate = success_rate
        self.fetch_failure_rate = fetch_failure_rate
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def _delay(self) -> None:
        if self.delay_ms > 0:
            await self._sleep(self.delay_ms / 1000)

    def _records(self) -> list[dict[str, Any]]:
        # Lazily initialized so reset() restores the seed on the next call.
        if self._cache is None:
            self._cache = copy.deepcopy(self._seed)
        return self._cache

    async def fetch_all(self) -> list[Issue]:
        await self._delay()
        if self.fetch_failure_rate and self._rng.random() < self.fetch_failure_rate:
            raise FetchFailedError
        try:
            return [Issue.from_dict(copy.deepcopy(record)) for record in self._records()]
        except (ValueError, TypeError) as exc:
            raise FetchFailedError(f"Failed to fetch issues: {exc}") from exc

    async def update(self, issue_id: str, patch: IssuePatch) -> dict[str, Any]:
        await self._delay()
        if self._rng.random() >= self.success_rate:
            logger.info("Injected update failure for %s", issue_id, extra={"issue_id": issue_id})
            raise UpdateFailedError
        for record in self._records():
            if record["id"] == issue_id:
                record.update(copy.deepcopy(dict(patch)))
                break
        return {"id": issue_id, **patch}

    def reset(self) -> None:
        self._cache = None


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


class HttpRemote:
    """Remote store reached over HTTP via ``httpx.AsyncClient``."""

    def __init__(self, base_url: str, *, client: httpx.AsyncClient | None = None, timeout: float = 5.0) -> None:
        import httpx

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def fetch_all(self) -> list[Issue]:
        import httpx

        try:
            resp = await self._client.get("/api/issues")
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Fetch failed: %s", exc, extra={"error": str(exc)})
            raise FetchFailedError from exc
        if not isinstance(payload, list):
            raise FetchFailedError("Failed to fetch issues: expected a JSON array")
        try:
            return [Issue.from_dict(item) for item in payload]
        except (ValueError, TypeError) as exc:
            raise FetchFailedError(f"Failed to fetch issues: {exc}") from exc

    async def update(self, issue_id: str, patch: IssuePatch) -> dict[str, Any]:
        import httpx

        try:
            resp = await self._client.patch(f"/api/issues/{issue_id}", json=dict(patch))
            resp.raise_for_status()
            echo: dict[str, Any] = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Update of %s failed: %s", issue_id, exc, extra={"issue_id": issue_id, "error": str(exc)})
            raise UpdateFailedError from exc
        return echo

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
