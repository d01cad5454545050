"""HTTP transport so a console on another machine shares the server's store."""

from __future__ import annotations

import logging
from typing import Any, Sequence, Tuple

import httpx

from pyauction.store.transport import (
    PathParts,
    StoreWriteError,
    Transport,
    _Subscription,
    join_path,
    split_path,
)


logger = logging.getLogger(__name__)

PASSPHRASE_HEADER = "X-Admin-Passphrase"


class HttpTransport(Transport):
    """Talks to the ``/store`` routes of a running API.

    Local subscribers are notified after this client's own writes. Writes from
    other clients only arrive through :meth:`poll`, which re-reads every
    subscribed path and redelivers the ones whose value changed.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        passphrase: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        super().__init__()
        if client is None:
            if not base_url:
                raise ValueError("base_url is required when no client is supplied")
            client = httpx.Client(base_url=base_url, timeout=timeout)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client
        self._headers = {PASSPHRASE_HEADER: passphrase} if passphrase else {}

    def _url(self, path: str) -> str:
        parts = split_path(path)
        return f"/store/{join_path(parts)}" if parts else "/store"

    def get(self, path: str) -> Any:
        resp = self._client.get(self._url(path))
        resp.raise_for_status()
        return resp.json() if resp.content else None

    def _write(self, changes: Sequence[Tuple[PathParts, Any]]) -> None:
        payload = {join_path(parts): value for parts, value in changes}
        try:
            resp = self._client.patch("/store", json=payload, headers=self._headers)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Remote write of %s failed: %s", sorted(payload), exc)
            raise StoreWriteError(f"Store write failed: {exc}") from exc

    def _refresh(self, subscription: _Subscription) -> None:
        # writes have already landed by now; a failed read is left for the next poll()
        path = join_path(subscription.parts)
        with self._lock:
            try:
                value = self.get(path)
            except httpx.HTTPError as exc:
                logger.warning("Reading back %s failed: %s", path or "/", exc)
                return
            self._deliver(subscription, value)

    def poll(self) -> int:
        """Redeliver subscriptions whose remote value changed; returns how many fired."""

        fired = 0
        for subscription in self._active_subscriptions():
            path = join_path(subscription.parts)
            with self._lock:
                try:
                    value = self.get(path)
                except httpx.HTTPError as exc:
                    logger.warning("Polling %s failed: %s", path or "/", exc)
                    continue
                if value != subscription.last_value:
                    self._deliver(subscription, value)
                    fired += 1
        return fired

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
