"""
Ranking pipeline contracts.

Typed values that flow Metrics Reader → Scorer → Leaderboard Writer, the run
summary returned by the orchestrator, and the pipeline's exception types.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Any, Optional

SCORE_QUANTUM = Decimal('0.0001')
REVIEW_QUANTUM = Decimal('0.01')
MAX_REVIEW_SCORE = Decimal('5')


@dataclass(frozen=True)
class SocialMediaEntry:
    """One platform entry from a creator's social_media list."""
    platform: str = ''
    followers: int = 0


@dataclass(frozen=True)
class CreatorMetrics:
    """Raw ranking signals for one creator within one category."""
    creator_id: str
    follower_count: int = 0
    avg_review_score: Decimal = Decimal('0')  # unrounded mean, clamped to [0, 5]
    collab_count: int = 0


@dataclass(frozen=True)
class RankedCreator:
    """CreatorMetrics plus its composite score and 1-based rank."""
    creator_id: str
    follower_count: int
    avg_review_score: Decimal
    collab_count: int
    score: Decimal
    rank_position: int


@dataclass
class RunResult:
    """Summary of one calculate_top_creators() run."""
    success: bool = True
    message: str = ''
    total_processed: int = 0
    total_errors: int = 0
    categories_count: int = 0
    cancelled: int = 0
    duration_seconds: Optional[float] = None
    errors: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'message': self.message,
            'stats': {
                'totalProcessed': self.total_processed,
                'totalErrors': self.total_errors,
                'categoriesCount': self.categories_count,
                'cancelled': self.cancelled,
            },
            'durationSeconds': self.duration_seconds,
        }


# ── Errors ───────────────────────────────────────────────────────────────────

class RankingError(Exception):
    """Base class for ranking pipeline errors."""


class CategoryProcessingError(RankingError):
    """One category failed to read, score or write. Siblings are unaffected."""
    def __init__(self, category_id, cause):
        self.category_id = category_id
        self.cause = cause
        super().__init__(f"Failed to process category {category_id}: {cause}")


class RunInProgressError(RankingError):
    """Another ranking run holds the run lock."""
    def __init__(self, job_name):
        self.job_name = job_name
        super().__init__(f"Ranking run '{job_name}' is already in progress")


class JobNotFoundError(RankingError):
    """No scheduled job registered under that name."""
    def __init__(self, job_name):
        self.job_name = job_name
        super().__init__(f"Job {job_name} not found")
