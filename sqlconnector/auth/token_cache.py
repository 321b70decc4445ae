# auth/token_cache.py
# ─────────────────────────────────────────────────────────────────────────────
# TokenCache: holds at most one AccessToken and hands out a valid one.
#
# A token is good while now < expires_at - refresh_buffer.  When it is absent
# or past that point it is replaced wholesale by one call to `acquire`.  The
# check and the replacement happen under a single lock, so concurrent callers
# never see a half-written token; they queue behind whoever is refreshing.
# ─────────────────────────────────────────────────────────────────────────────

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from ..models import AccessToken, utc_now

log = logging.getLogger(__name__)


class TokenCache:
    def __init__(
        self,
        acquire: Callable[[], AccessToken],
        clock: Callable[[], datetime] = utc_now,
        refresh_buffer: timedelta = timedelta(0),
    ):
        """
        :param acquire:        Zero-arg callable -> AccessToken (raises AuthError).
        :param clock:          Returns the current time, tz-aware UTC.
        :param refresh_buffer: Treat tokens as stale this long before expiry.
        """
        self._acquire = acquire
        self._clock = clock
        self._refresh_buffer = refresh_buffer
        self._lock = threading.Lock()
        self._token: AccessToken | None = None

    @property
    def token(self) -> AccessToken | None:
        with self._lock:
            return self._token

    def _needs_refresh(self, now: datetime) -> bool:
        if self._token is None:
            return True
        return self._token.is_expired(now + self._refresh_buffer)

    def get_valid_token(self) -> AccessToken:
        with self._lock:
            now = self._clock()
            if not self._needs_refresh(now):
                log.debug("Using cached access token (expires %s)", self._token.expires_at.isoformat())
                return self._token

            reason = "no cached token" if self._token is None else "token expired"
            log.info("Acquiring access token (%s)", reason)
            token = self._acquire()
            self._token = token
            log.info("Access token refreshed, expires %s", token.expires_at.isoformat())
            return token

    def invalidate(self) -> None:
        """Drop the cached token so the next caller acquires a new one."""
        with self._lock:
            self._token = None
