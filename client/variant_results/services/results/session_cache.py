"""
Session Cache - bounded in-memory LRU of inactive sessions' results.

Recency is tracked with an explicit doubly-linked list (head = least recently
used, tail = most recently used) plus a dict from session id to list node, so
promotion and eviction are O(1) and never depend on dict iteration order.

All methods are synchronous: on a single event loop an eviction and the
insertion that caused it run as one uninterrupted step.
"""

import logging
from typing import Dict, List, Optional

from .models import SessionCacheEntry

logger = logging.getLogger(__name__)

MAX_CACHED_SESSIONS = 3


class _Node:
    __slots__ = ("key", "entry", "prev", "next")

    def __init__(self, key: str, entry: SessionCacheEntry):
        self.key = key
        self.entry = entry
        self.prev: Optional["_Node"] = None
        self.next: Optional["_Node"] = None


class SessionCache:
    """LRU cache of SessionCacheEntry keyed by session id."""

    def __init__(self, max_sessions: int = MAX_CACHED_SESSIONS):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._nodes: Dict[str, _Node] = {}
        self._head: Optional[_Node] = None
        self._tail: Optional[_Node] = None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._nodes

    # ===== Linked list primitives =====

    def _unlink(self, node: _Node):
        if node.prev is not None:
            node.prev.next = node.next
        else:
            self._head = node.next
        if node.next is not None:
            node.next.prev = node.prev
        else:
            self._tail = node.prev
        node.prev = node.next = None

    def _append(self, node: _Node):
        node.prev = self._tail
        node.next = None
        if self._tail is not None:
            self._tail.next = node
        else:
            self._head = node
        self._tail = node

    # ===== Public API =====

    def save(self, session_id: str, entry: SessionCacheEntry) -> bool:
        """
        Store an entry as most recently used.
        Empty entries are refused. Returns True if the entry was stored.
        """
        if entry.is_empty:
            return False

        node = self._nodes.get(session_id)
        if node is not None:
            node.entry = entry
            self._unlink(node)
            self._append(node)
            return True

        if len(self._nodes) >= self.max_sessions:
            self._evict_oldest()

        node = _Node(session_id, entry)
        self._nodes[session_id] = node
        self._append(node)
        logger.info("Session cached", extra={"session_id": session_id, "genes": len(entry.genes)})
        return True

    def get(self, session_id: str) -> Optional[SessionCacheEntry]:
        """Return the entry and promote it to most recently used, or None on a miss."""
        node = self._nodes.get(session_id)
        if node is None:
            return None
        self._unlink(node)
        self._append(node)
        return node.entry

    def peek(self, session_id: str) -> Optional[SessionCacheEntry]:
        """Return the entry without touching recency."""
        node = self._nodes.get(session_id)
        return node.entry if node is not None else None

    def discard(self, session_id: str) -> Optional[SessionCacheEntry]:
        node = self._nodes.pop(session_id, None)
        if node is None:
            return None
        self._unlink(node)
        return node.entry

    def keys(self) -> List[str]:
        """Session ids ordered from least to most recently used."""
        out = []
        node = self._head
        while node is not None:
            out.append(node.key)
            node = node.next
        return out

    def clear(self):
        self._nodes.clear()
        self._head = self._tail = None

    def _evict_oldest(self):
        oldest = self._head
        if oldest is None:
            return
        self._unlink(oldest)
        del self._nodes[oldest.key]
        logger.info("Evicted least recently used session", extra={"session_id": oldest.key})
