from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable

import redis

from country_directory.utils.logging import get_logger


logger = get_logger(component="theme_store")


class PreferenceSource(str, Enum):
    EXPLICIT = "explicit"
    SYSTEM = "system"


@dataclass(frozen=True)
class DisplayPreference:
    dark_mode: bool
    source: PreferenceSource


def create_redis_client_from_env(*, redis_url_env: str = "REDIS_URL") -> redis.Redis:
    """
    Create a Redis client using REDIS_URL from environment.
    Default: redis://localhost:6379/0
    """
    url = os.getenv(redis_url_env, "redis://localhost:6379/0")
    return redis.Redis.from_url(url, decode_responses=True)


class ThemeStore:
    """
    Redis-backed light/dark preference.

    - Key: `theme` (configurable), value "dark" | "light"
    - No TTL: the flag persists across sessions.
    - An explicit stored choice always wins; system changes apply only while
      nothing is stored.
    - Fail-open: if Redis is unavailable the system preference is used and
      toggles still update the in-memory value.
    """

    def __init__(self, redis_client: redis.Redis, *, key: str = "theme", system_dark: bool = False) -> None:
        self.redis = redis_client
        self.key = key
        self._system_dark = bool(system_dark)
        self._pref: DisplayPreference | None = None
        self._listeners: list[Callable[[bool], None]] = []

    def _stored_choice(self) -> bool | None:
        try:
            raw = self.redis.get(self.key)
        except redis.exceptions.RedisError:
            logger.warning("redis_get_failed", key=self.key)
            return None

        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        if raw == "dark":
            return True
        if raw == "light":
            return False
        logger.warning("theme_value_invalid", key=self.key, value=raw)
        return None

    def _persist(self, dark: bool) -> None:
        try:
            self.redis.set(self.key, "dark" if dark else "light")
        except redis.exceptions.RedisError:
            logger.warning("redis_set_failed", key=self.key)

    def _load(self) -> DisplayPreference:
        stored = self._stored_choice()
        if stored is None:
            self._pref = DisplayPreference(dark_mode=self._system_dark, source=PreferenceSource.SYSTEM)
        else:
            self._pref = DisplayPreference(dark_mode=stored, source=PreferenceSource.EXPLICIT)
        return self._pref

    def get_initial(self) -> bool:
        return self._load().dark_mode

    @property
    def current(self) -> DisplayPreference:
        return self._pref or self._load()

    def toggle(self) -> bool:
        dark = not self.current.dark_mode
        self._persist(dark)
        self._pref = DisplayPreference(dark_mode=dark, source=PreferenceSource.EXPLICIT)
        logger.info("theme_toggled", dark_mode=dark)
        return dark

    def on_system_preference_change(self, callback: Callable[[bool], None]) -> Callable[[], None]:
        """Register `callback(dark_mode)`; returns an unsubscribe function."""
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def system_preference_changed(self, dark: bool) -> bool:
        """
        Report a new OS-level preference. Returns True when it took effect,
        False when an explicit stored choice overrides it.
        """
        self._system_dark = bool(dark)
        explicit = self._pref is not None and self._pref.source == PreferenceSource.EXPLICIT
        if explicit or self._stored_choice() is not None:
            logger.debug("system_theme_ignored", dark_mode=dark)
            return False

        self._pref = DisplayPreference(dark_mode=self._system_dark, source=PreferenceSource.SYSTEM)
        for cb in list(self._listeners):
            cb(self._system_dark)
        return True
