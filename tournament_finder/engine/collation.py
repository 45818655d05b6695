"""Locale-aware string collation used for shop names and facet ordering."""

from __future__ import annotations

import locale
import logging
import threading

logger = logging.getLogger(__name__)

_lock = threading.Lock()


def configure_collation(locale_name: str | None) -> str:
    """Switch ``LC_COLLATE`` to ``locale_name`` and return the active locale.

    Unknown locales fall back to the environment default and finally to the
    ``C`` locale (plain code point order), so collation is always defined.
    """

    candidates = [name for name in (locale_name, "") if name is not None]
    candidates.append("C")
    with _lock:
        for candidate in candidates:
            try:
                active = locale.setlocale(locale.LC_COLLATE, candidate)
            except locale.Error:
                logger.warning("Collation locale %r unavailable; trying fallback", candidate)
                continue
            logger.debug("Collation locale set to %s", active)
            return active
    # "C" is always available on POSIX systems.
    return locale.setlocale(locale.LC_COLLATE)


def compare_text(left: str, right: str) -> int:
    """Three-way comparison of two strings under the active collation."""

    return locale.strcoll(left, right)


def collation_key(value: str) -> str:
    """Sort key equivalent to :func:`compare_text`."""

    return locale.strxfrm(value)


__all__ = ["collation_key", "compare_text", "configure_collation"]
