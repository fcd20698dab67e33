"""
Metrics Reader — per-category ranking signals for every qualifying creator.

The social_media column is untyped JSON written by the profile screens. It is
parsed here, at the data-access boundary, into SocialMediaEntry values, and a
named follower rule turns those into a single follower_count:

    first_entry  (default) followers of the first listed platform only
    sum_all      followers summed across every listed platform

first_entry understates reach for multi-platform creators, but it is the
rule the stored leaderboards were built with, so switching is a config
change (FOLLOWER_RULE), not a silent fix.
"""
import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Sequence

from leaderboard.ranking.base import (
    CreatorMetrics, SocialMediaEntry, MAX_REVIEW_SCORE,
)
from leaderboard.services.db import fetch_creator_metric_rows

logger = logging.getLogger('ranking.metrics')


# ── Social media parsing ─────────────────────────────────────────────────────

def _coerce_followers(value) -> int:
    """Follower field → non-negative int. Anything non-numeric counts as 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return 0
    try:
        number = Decimal(value.strip() if isinstance(value, str) else value)
    except InvalidOperation:
        return 0
    if not number.is_finite() or number < 0:
        return 0
    return int(number)


def parse_social_media(raw) -> List[SocialMediaEntry]:
    """
    Raw social_media value → list of SocialMediaEntry, positions preserved.

    Accepts the decoded JSON list, a JSON string (some drivers hand back
    text), or None. Entries that are not objects keep their slot with 0
    followers so "first entry" still means the first thing the creator listed.
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []

    entries = []
    for item in raw:
        if isinstance(item, dict):
            entries.append(SocialMediaEntry(
                platform=str(item.get('platform') or ''),
                followers=_coerce_followers(item.get('followers')),
            ))
        else:
            entries.append(SocialMediaEntry())
    return entries


# ── Follower rules ───────────────────────────────────────────────────────────

def first_entry_followers(entries: Sequence[SocialMediaEntry]) -> int:
    return entries[0].followers if entries else 0


def sum_all_followers(entries: Sequence[SocialMediaEntry]) -> int:
    return sum(e.followers for e in entries)


FOLLOWER_RULES: Dict[str, Callable[[Sequence[SocialMediaEntry]], int]] = {
    'first_entry': first_entry_followers,
    'sum_all': sum_all_followers,
}


def get_follower_rule(name: str) -> Callable[[Sequence[SocialMediaEntry]], int]:
    rule = FOLLOWER_RULES.get(name)
    if rule is None:
        raise ValueError(f"Unknown follower rule '{name}'. Available: {sorted(FOLLOWER_RULES)}")
    return rule


# ── Reader ───────────────────────────────────────────────────────────────────

def _normalize_avg_review(value) -> Decimal:
    """SQL AVG result (float on SQLite, Decimal on Postgres, None) → Decimal in [0, 5].

    Full precision is kept for scoring; the writer rounds to the stored 2 places.
    """
    if value is None:
        return Decimal('0')
    avg = Decimal(str(value))
    return min(max(avg, Decimal('0')), MAX_REVIEW_SCORE)


class MetricsReader:
    """
    Reads CreatorMetrics for one category. Side-effect free.

    Usage:
        reader = MetricsReader(follower_rule='first_entry')
        metrics = reader.read(session, category_id)
    """

    def __init__(self, follower_rule: str = 'first_entry'):
        self.follower_rule_name = follower_rule
        self._follower_rule = get_follower_rule(follower_rule)

    def read(self, session, category_id) -> List[CreatorMetrics]:
        rows = fetch_creator_metric_rows(session, category_id)
        metrics = [
            CreatorMetrics(
                creator_id=row.creator_id,
                follower_count=self._follower_rule(parse_social_media(row.social_media)),
                avg_review_score=_normalize_avg_review(row.avg_rating),
                collab_count=int(row.collab_count or 0),
            )
            for row in rows
        ]
        logger.debug("Read metrics for %d creators in category %s", len(metrics), category_id)
        return metrics
