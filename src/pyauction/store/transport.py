"""Keyed hierarchical store transports with subscribe-and-replace propagation.

Every write is last-write-wins at the granularity of the path written; there is
no locking across paths and no transaction spanning separate ``put`` calls. A
subscriber always receives the *entire current value* at its path, never a
diff, so consumers replace their local copy on every notification.
"""

from __future__ import annotations

import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple


logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]
PathParts = Tuple[str, ...]


class StoreWriteError(RuntimeError):
    """Raised when a write could not be acknowledged by the backing store."""


def split_path(path: str) -> PathParts:
    return tuple(part for part in str(path).strip("/").split("/") if part)


def join_path(parts: Sequence[str]) -> str:
    return "/".join(parts)


def _related(left: PathParts, right: PathParts) -> bool:
    size = min(len(left), len(right))
    return left[:size] == right[:size]


def _is_empty(value: Any) -> bool:
    return value is None or value == {}


def tree_get(tree: Mapping[str, Any], parts: PathParts) -> Any:
    node: Any = tree
    for part in parts:
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return copy.deepcopy(node)


def tree_set(tree: Dict[str, Any], parts: PathParts, value: Any) -> None:
    """Write ``value`` at ``parts``; ``None`` or ``{}`` removes the node and prunes empty parents."""

    if not parts:
        raise ValueError("cannot write the store root")
    node = tree
    trail: List[Tuple[Dict[str, Any], str]] = []
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            if _is_empty(value):
                return
            child = {}
            node[part] = child
        trail.append((node, part))
        node = child
    if _is_empty(value):
        node.pop(parts[-1], None)
        for parent, key in reversed(trail):
            if parent[key]:
                break
            del parent[key]
    else:
        node[parts[-1]] = value


@dataclass
class _Subscription:
    parts: PathParts
    callback: Callback
    last_value: Any = None


class Transport(ABC):
    """Narrow store interface: ``get``/``put``/``update``/``remove``/``subscribe``."""

    def __init__(self) -> None:
        self._subscriptions: Dict[int, _Subscription] = {}
        self._next_token = 0
        self._lock = threading.RLock()

    @abstractmethod
    def get(self, path: str) -> Any:
        """Return a copy of the value at ``path`` or None when absent."""

    @abstractmethod
    def _write(self, changes: Sequence[Tuple[PathParts, Any]]) -> None:
        """Apply every change or raise StoreWriteError."""

    def put(self, path: str, value: Any) -> None:
        self.update({path: value})

    def remove(self, path: str) -> None:
        self.put(path, None)

    def update(self, values: Mapping[str, Any]) -> None:
        changes = [(split_path(path), copy.deepcopy(value)) for path, value in values.items()]
        if not changes:
            return
        for parts, _ in changes:
            if not parts:
                raise ValueError("cannot write the store root")
        self._write(changes)
        self._notify([parts for parts, _ in changes])

    def subscribe(self, path: str, callback: Callback) -> Callable[[], None]:
        """Deliver the current value now and after every related write; returns an unsubscribe hook."""

        with self._lock:
            token = self._next_token
            self._next_token += 1
            subscription = _Subscription(parts=split_path(path), callback=callback)
            self._subscriptions[token] = subscription
            self._refresh(subscription)

        def unsubscribe() -> None:
            with self._lock:
                self._subscriptions.pop(token, None)

        return unsubscribe

    def _active_subscriptions(self) -> List[_Subscription]:
        with self._lock:
            return list(self._subscriptions.values())

    def _notify(self, changed: Sequence[PathParts]) -> None:
        for subscription in self._active_subscriptions():
            if any(_related(subscription.parts, parts) for parts in changed):
                self._refresh(subscription)

    def _refresh(self, subscription: _Subscription) -> None:
        # read and deliver under one lock so an older snapshot never lands after a newer one
        with self._lock:
            self._deliver(subscription, self.get(join_path(subscription.parts)))

    def _deliver(self, subscription: _Subscription, value: Any) -> None:
        subscription.last_value = copy.deepcopy(value)
        try:
            subscription.callback(value)
        except Exception:
            logger.exception("Subscriber for %r failed", join_path(subscription.parts) or "/")


class MemoryTransport(Transport):
    """In-process nested-dict store; every client in the process shares one tree."""

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._tree: Dict[str, Any] = copy.deepcopy(dict(initial or {}))

    def get(self, path: str) -> Any:
        with self._lock:
            return tree_get(self._tree, split_path(path))

    def _write(self, changes: Sequence[Tuple[PathParts, Any]]) -> None:
        with self._lock:
            for parts, value in changes:
                tree_set(self._tree, parts, value)
