"""
Centralized configuration — env vars and ranking constants.
"""
import os


# ── Logging ──────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'text')

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

# ── PostgreSQL ────────────────────────────────────────────────────────────────
DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///local.db')

# ── Auth ─────────────────────────────────────────────────────────────────────
# Unset = admin endpoints open (local dev)
ADMIN_API_TOKEN = os.getenv('ADMIN_API_TOKEN')

# ── Scheduler ────────────────────────────────────────────────────────────────
SCHEDULER_ENABLED = os.getenv('SCHEDULER_ENABLED', '1').lower() not in ('0', 'false', 'no')
RANKING_CRON_HOUR = int(os.getenv('RANKING_CRON_HOUR', '2'))
RANKING_CRON_MINUTE = int(os.getenv('RANKING_CRON_MINUTE', '0'))
TOP_CREATORS_JOB = 'top_creators'

# ── Ranking ──────────────────────────────────────────────────────────────────
RANKING_DEFAULT_LIMIT = int(os.getenv('RANKING_DEFAULT_LIMIT', '5'))
RANKING_MAX_WORKERS = max(1, int(os.getenv('RANKING_MAX_WORKERS', '1')))
RANKING_STALE_HOURS = int(os.getenv('RANKING_STALE_HOURS', '24'))
RANKING_LOCK_TIMEOUT = int(os.getenv('RANKING_LOCK_TIMEOUT', '3600'))
FOLLOWER_RULE = os.getenv('FOLLOWER_RULE', 'first_entry')

# ── API limits ───────────────────────────────────────────────────────────────
API_MIN_LIMIT = 1
API_MAX_LIMIT = 20

# ── Contract status counted as a completed collaboration ─────────────────────
COMPLETED_CONTRACT_STATUS = 'Completed'
