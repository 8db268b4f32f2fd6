"""
bubble store - the authoritative in-memory graph.

every write goes through merge(), which decides field by field which
side wins. an unchanged merge hands back the stored object itself so
consumers can compare by identity.
"""

from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, Optional, Tuple

from ..core.models import Bubble


def merge(previous: Optional[Bubble], incoming: Bubble) -> Bubble:
    """
    merge an incoming bubble into the stored one.

    update rule:
    - newer `updated` wins, except that placeholder content never
      replaces content and unknown backlinks never replace known ones
    - otherwise the stored bubble wins, but real content replaces a
      placeholder, computed backlinks fill unknown ones, and exact
      backlinks replace inferred ones

    returns previous itself when nothing changed.
    """
    if previous is None:
        return incoming

    if incoming.updated > previous.updated:
        changes: Dict[str, Any] = {}
        if incoming.content.is_synthesized:
            changes["content"] = previous.content
        if not incoming.backlinks.known and previous.backlinks.known:
            changes["backlinks"] = previous.backlinks
            changes["backlinks_exact"] = previous.backlinks_exact
        if not incoming.project_backlinks.known and previous.project_backlinks.known:
            changes["project_backlinks"] = previous.project_backlinks
        return replace(incoming, **changes) if changes else incoming

    # same or older version: only content and backlinks can improve
    changes = {}
    if previous.content.is_synthesized and not incoming.content.is_synthesized:
        changes["content"] = incoming.content

    if incoming.backlinks.known:
        if not previous.backlinks.known:
            changes["backlinks"] = incoming.backlinks
            changes["backlinks_exact"] = incoming.backlinks_exact
        elif incoming.backlinks_exact:
            if incoming.backlinks != previous.backlinks or not previous.backlinks_exact:
                changes["backlinks"] = incoming.backlinks
                changes["backlinks_exact"] = True
        elif (not previous.backlinks_exact
              and incoming.backlinks.count > previous.backlinks.count):
            changes["backlinks"] = incoming.backlinks

    if incoming.project_backlinks.known:
        if not previous.project_backlinks.known:
            changes["project_backlinks"] = incoming.project_backlinks
        elif incoming.backlinks_exact and incoming.project_backlinks != previous.project_backlinks:
            changes["project_backlinks"] = incoming.project_backlinks

    return replace(previous, **changes) if changes else previous


def has_changed(previous: Optional[Bubble], candidate: Bubble) -> bool:
    """
    cheap stand-in for a structural diff.
    existing pages change with `updated`, empty ones with their backlink count.
    real content over a placeholder, and exact backlinks that differ from
    the stored ones, count as changes whatever the timestamps say.
    """
    if previous is None:
        return True
    if previous.exists != candidate.exists:
        return True
    if previous.content.is_synthesized and not candidate.content.is_synthesized:
        return True
    if candidate.backlinks_exact and (
        not previous.backlinks_exact
        or candidate.backlinks != previous.backlinks
        or candidate.project_backlinks != previous.project_backlinks
    ):
        return True
    if candidate.exists:
        return candidate.updated > previous.updated
    return candidate.backlink_count != previous.backlink_count


def is_empty_link(bubbles: Iterable[Optional[Bubble]]) -> bool:
    """
    true when a link leads nowhere: no bubble exists and
    fewer than two pages link to it in total.
    """
    linked = 0
    for bubble in bubbles:
        if bubble is None:
            continue
        if bubble.exists:
            return False
        linked += bubble.backlink_count
        if linked > 1:
            return False
    return True


class BubbleStore:
    """
    session-scoped map from bubble id to bubble.
    records are never deleted except by clear().
    """

    def __init__(self):
        self._bubbles: Dict[str, Bubble] = {}

    def get(self, bubble_id: str) -> Optional[Bubble]:
        return self._bubbles.get(bubble_id)

    @staticmethod
    def merge(previous: Optional[Bubble], incoming: Bubble) -> Bubble:
        return merge(previous, incoming)

    def update(self, bubble_id: str, incoming: Bubble) -> Tuple[Bubble, bool]:
        """merge incoming into the stored bubble; returns (bubble, changed)."""
        previous = self._bubbles.get(bubble_id)
        merged = merge(previous, incoming)
        if merged is previous:
            return previous, False
        self._bubbles[bubble_id] = merged
        return merged, True

    def ids(self) -> Iterator[str]:
        return iter(self._bubbles)

    def clear(self):
        self._bubbles.clear()

    def __contains__(self, bubble_id: str) -> bool:
        return bubble_id in self._bubbles

    def __len__(self) -> int:
        return len(self._bubbles)
