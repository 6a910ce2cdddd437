"""Atom feed prober."""

from __future__ import annotations

from .prober import AtomFeedProber, feed_has_entries

__all__ = ["AtomFeedProber", "feed_has_entries"]
