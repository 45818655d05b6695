"""Derived facet values computed from the loaded record set."""

from __future__ import annotations

from collections.abc import Iterable

from tournament_finder.engine.collation import collation_key
from tournament_finder.schemas.tournament import TournamentRecord


def extract_reward_categories(records: Iterable[TournamentRecord]) -> list[str]:
    """Return the distinct reward category labels present in ``records``.

    Labels from JSON arrays are flattened; a non-JSON field counts as one
    label.  Empty labels are dropped and the result is collation-sorted.
    """

    labels: set[str] = set()
    for record in records:
        labels.update(record.categories.facet_labels())
    labels.discard("")
    return sorted(labels, key=lambda label: (collation_key(label), label))


__all__ = ["extract_reward_categories"]
