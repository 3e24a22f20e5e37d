"""
Shared document store: the only channel between two multiplayer clients.

The controllers depend on four operations: create, merge (partial update that
leaves other fields alone), read, and subscribe. A subscription receives the
whole current document once on subscribe and again after every write to its key.

InMemoryDocumentStore is a process-local implementation used by tests and any
embedding that keeps both clients in one process.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional, Set, Tuple

from .errors import StoreUnavailable

Document = Dict[str, Any]
Callback = Callable[[str, Document], None]
Unsubscribe = Callable[[], None]


class DocumentStore:
    def create(self, key: str, document: Document) -> None:
        """Create or overwrite the document at `key`."""
        raise NotImplementedError

    def merge(self, key: str, fields: Document) -> None:
        """Update only the given fields, creating the document when absent."""
        raise NotImplementedError

    def read(self, key: str) -> Optional[Document]:
        raise NotImplementedError

    def subscribe(self, key: str, callback: Callback) -> Unsubscribe:
        raise NotImplementedError


class InMemoryDocumentStore(DocumentStore):
    """Thread-safe process-local store.

    Callbacks run with no store lock held. Each key has at most one delivering
    thread at a time, so a key's notifications arrive in write order; a write
    made while that key is being delivered is handed to the delivering thread.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._docs: Dict[str, Document] = {}
        self._subs: Dict[str, Dict[int, Callback]] = {}
        self._next_token = 0
        self._outbox: Dict[str, Deque[Tuple[int, Document]]] = {}
        self._dispatching: Set[str] = set()
        self._held = False
        self.available = True
        self.writes = 0

    def create(self, key: str, document: Document) -> None:
        self._check()
        with self._lock:
            self._docs[key] = dict(document)
            self.writes += 1
            self._enqueue(key)
        self._deliver(key)

    def merge(self, key: str, fields: Document) -> None:
        self._check()
        with self._lock:
            self._docs.setdefault(key, {}).update(fields)
            self.writes += 1
            self._enqueue(key)
        self._deliver(key)

    def read(self, key: str) -> Optional[Document]:
        self._check()
        with self._lock:
            doc = self._docs.get(key)
            return dict(doc) if doc is not None else None

    def subscribe(self, key: str, callback: Callback) -> Unsubscribe:
        self._check()
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subs.setdefault(key, {})[token] = callback
            if key in self._docs:
                self._outbox.setdefault(key, deque()).append((token, dict(self._docs[key])))
        self._deliver(key)

        def unsubscribe() -> None:
            with self._lock:
                self._subs.get(key, {}).pop(token, None)

        return unsubscribe

    def subscriber_count(self, key: str) -> int:
        with self._lock:
            return len(self._subs.get(key, {}))

    def hold(self) -> None:
        """Queue notifications instead of delivering them, until flush()."""
        with self._lock:
            self._held = True

    def flush(self) -> None:
        with self._lock:
            self._held = False
            keys = [k for k, q in self._outbox.items() if q]
        for key in keys:
            self._deliver(key)

    def _check(self) -> None:
        if not self.available:
            raise StoreUnavailable("Document store unavailable")

    def _enqueue(self, key: str) -> None:
        snapshot = self._docs[key]
        pending = self._outbox.setdefault(key, deque())
        for token in self._subs.get(key, {}):
            pending.append((token, dict(snapshot)))

    def _deliver(self, key: str) -> None:
        with self._lock:
            if self._held or key in self._dispatching:
                return
            self._dispatching.add(key)
        try:
            while True:
                with self._lock:
                    pending = self._outbox.get(key)
                    if self._held or not pending:
                        self._dispatching.discard(key)
                        return
                    token, snapshot = pending.popleft()
                    callback = self._subs.get(key, {}).get(token)
                if callback is None:
                    logging.debug("dropping notification for %s: subscriber %d left", key, token)
                    continue
                callback(key, snapshot)
        except BaseException:
            with self._lock:
                self._dispatching.discard(key)
            raise
