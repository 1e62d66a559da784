"""
In-memory registry of open form sessions.

Each open create/update form lives here under its ``form_id`` until the
browser closes it, a create succeeds, or it sits idle past the TTL.

Design decisions:
- **Sliding TTL**: every successful lookup refreshes the session, so only
  forms nobody touched for ``ttl`` seconds expire.
- **Max-size eviction**: when ``max_size`` sessions are open, the least
  recently used one is dropped to bound memory.
- **Process-local**: drafts are never persisted; a restart loses open forms.

Thread safety:
    All access happens on the single asyncio event loop, and no method awaits,
    so dict operations never interleave.
"""

import logging
import time
from typing import TYPE_CHECKING, Dict, Optional

from investor_forms.core.config import settings

if TYPE_CHECKING:
    from investor_forms.services.forms import InvestorForm

logger = logging.getLogger(__name__)


class SessionEntry:
    """A stored form with its last-access timestamp."""

    __slots__ = ("form", "touched_at")

    def __init__(self, form: "InvestorForm"):
        self.form = form
        self.touched_at = time.monotonic()

    def is_expired(self, ttl: float) -> bool:
        """Return True if this session has been idle longer than ``ttl`` seconds."""
        return (time.monotonic() - self.touched_at) > ttl


class FormSessionStore:
    """
    Holds open forms keyed by id, with idle expiry and LRU eviction.

    Parameters
    ----------
    ttl : float
        Idle time in seconds after which a session is discarded.
    max_size : int
        Maximum number of open sessions.
    """

    def __init__(self, ttl: float = 3600.0, max_size: int = 1000):
        self._sessions: Dict[str, SessionEntry] = {}
        self._ttl = ttl
        self._max_size = max_size
        self._opened = 0
        self._expired = 0
        self._evicted = 0

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, form_id: str) -> bool:
        return self.get(form_id) is not None

    def add(self, form: "InvestorForm") -> "InvestorForm":
        """Register ``form`` under its id, evicting the stalest session if full."""
        if len(self._sessions) >= self._max_size and form.id not in self._sessions:
            oldest_id = next(iter(self._sessions))
            del self._sessions[oldest_id]
            self._evicted += 1
            logger.warning("Form session evicted (max_size=%d): %s", self._max_size, oldest_id)

        self._sessions[form.id] = SessionEntry(form)
        self._opened += 1
        logger.debug("Form session opened: %s", form.id, extra={"form_id": form.id})
        return form

    def get(self, form_id: str) -> Optional["InvestorForm"]:
        """
        Return the open form with ``form_id`` and refresh its TTL.

        Returns ``None`` if unknown or expired.
        """
        entry = self._sessions.pop(form_id, None)
        if entry is None:
            return None

        if entry.is_expired(self._ttl):
            self._expired += 1
            logger.info("Form session expired: %s", form_id, extra={"form_id": form_id})
            return None

        # Re-insert at the end so iteration order stays least-recently-used first.
        entry.touched_at = time.monotonic()
        self._sessions[form_id] = entry
        return entry.form

    def discard(self, form_id: str) -> bool:
        """Close a session. Returns False if it was not open."""
        entry = self._sessions.pop(form_id, None)
        if entry is not None:
            logger.debug("Form session closed: %s", form_id, extra={"form_id": form_id})
        return entry is not None

    def purge_expired(self) -> int:
        """Drop every expired session. Returns how many were removed."""
        stale = [fid for fid, entry in self._sessions.items() if entry.is_expired(self._ttl)]
        for fid in stale:
            del self._sessions[fid]
        self._expired += len(stale)
        if stale:
            logger.info("Purged %d expired form sessions", len(stale))
        return len(stale)

    def clear(self) -> None:
        """Close all sessions."""
        self._sessions.clear()

    def get_stats(self) -> dict:
        """Return session statistics for the health endpoint."""
        return {
            "open": len(self._sessions),
            "max_size": self._max_size,
            "ttl_seconds": self._ttl,
            "opened": self._opened,
            "expired": self._expired,
            "evicted": self._evicted,
        }


# ── Global session store ──
form_sessions = FormSessionStore(
    ttl=settings.FORM_SESSION_TTL,
    max_size=settings.FORM_SESSION_MAX,
)
