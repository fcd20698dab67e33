"""
Scorer — normalized weighted composite score + rank assignment.

    score = w_followers * followers / max_followers
          + w_reviews   * avg_review / 5
          + w_collabs   * collabs / max_collabs

Maxima are taken over the creators of one category, so scores are relative
within a category. Arithmetic is Decimal throughout and the final score is
quantized to 4 places (ROUND_HALF_UP), which is what gets stored.
"""
import logging
import os
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Sequence

import yaml

from leaderboard.ranking.base import (
    CreatorMetrics, RankedCreator, SCORE_QUANTUM, MAX_REVIEW_SCORE,
)

logger = logging.getLogger('ranking.scoring')

_ZERO = Decimal('0')
_ONE = Decimal('1')


# ── Weights (packaged YAML with hardcoded fallback) ──────────────────────────

def _default_weights() -> Dict[str, Decimal]:
    """Hardcoded fallback if the YAML is missing."""
    return {
        'followers': Decimal('0.5'),
        'reviews': Decimal('0.3'),
        'collaborations': Decimal('0.2'),
    }


def load_ranking_weights(path: str = None) -> Dict[str, Decimal]:
    """
    Load score weights from ranking_weights.yaml next to this module.

    Values are converted through str() so 0.3 becomes Decimal('0.3'), not the
    binary float expansion. Raises ValueError if keys are missing or the
    weights do not sum to exactly 1.
    """
    config_path = path or os.path.join(os.path.dirname(__file__), 'ranking_weights.yaml')
    try:
        with open(config_path, 'r') as f:
            raw = (yaml.safe_load(f) or {}).get('weights', {})
        weights = {k: Decimal(str(v)) for k, v in raw.items()}
        logger.info("Ranking weights loaded from %s", config_path)
    except OSError as e:
        logger.warning("Ranking weights file not found (%s), using defaults", e)
        weights = _default_weights()

    missing = {'followers', 'reviews', 'collaborations'} - set(weights)
    if missing:
        raise ValueError(f"Ranking weights missing keys: {sorted(missing)}")
    total = sum(weights.values(), _ZERO)
    if total != _ONE:
        raise ValueError(f"Ranking weights must sum to 1, got {total}")
    return weights


WEIGHTS = load_ranking_weights()


# ── Scoring ──────────────────────────────────────────────────────────────────

def _ratio(value, maximum) -> Decimal:
    if maximum <= 0:
        return _ZERO
    return Decimal(value) / Decimal(maximum)


def compute_score(metrics: CreatorMetrics, max_followers: int, max_collabs: int) -> Decimal:
    """Composite score for one creator, quantized to 4 decimal places."""
    norm_followers = _ratio(metrics.follower_count, max_followers)
    norm_reviews = Decimal(metrics.avg_review_score) / MAX_REVIEW_SCORE
    norm_collabs = _ratio(metrics.collab_count, max_collabs)

    raw = (
        WEIGHTS['followers'] * norm_followers
        + WEIGHTS['reviews'] * norm_reviews
        + WEIGHTS['collaborations'] * norm_collabs
    )
    return raw.quantize(SCORE_QUANTUM, rounding=ROUND_HALF_UP)


def rank_creators(metrics: Sequence[CreatorMetrics], limit: int) -> List[RankedCreator]:
    """
    Score every creator and return the top `limit`, best first.

    Ties keep the input order (sorted() is stable), and the reader returns
    creators ordered by creator_id, so equal scores rank by creator_id.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    if not metrics:
        return []

    max_followers = max(m.follower_count for m in metrics)
    max_collabs = max(m.collab_count for m in metrics)

    scored = [(compute_score(m, max_followers, max_collabs), m) for m in metrics]
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)[:limit]

    return [
        RankedCreator(
            creator_id=m.creator_id,
            follower_count=m.follower_count,
            avg_review_score=m.avg_review_score,
            collab_count=m.collab_count,
            score=score,
            rank_position=idx,
        )
        for idx, (score, m) in enumerate(scored, 1)
    ]
