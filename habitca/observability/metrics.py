"""
Prometheus metrics definitions for habitca.

This module defines the metrics collected by the progression engine:
- Ledger metrics: completions and revocations
- Gamification metrics: XP movement, levels, achievement unlocks
- Statistics metrics: activity series requests

Recording helpers are no-ops when ENABLE_METRICS is false.
"""

import logging
import os
import sys

from prometheus_client import Counter, Gauge, Info

from habitca.config import ENABLE_METRICS

logger = logging.getLogger(__name__)

# =============================================================================
# Ledger Metrics
# =============================================================================

habit_completions_total = Counter(
    "habitca_habit_completions_total",
    "Total completion ledger mutations",
    ["action"],  # action: complete/uncomplete
)

# =============================================================================
# Gamification Metrics
# =============================================================================

gamification_xp_awarded_total = Counter(
    "habitca_xp_awarded_total",
    "Total XP awarded",
    ["source"],  # source: completion/achievement
)

gamification_xp_revoked_total = Counter(
    "habitca_xp_revoked_total",
    "Total XP revoked",
    ["source"],
)

gamification_achievements_unlocked_total = Counter(
    "habitca_achievements_unlocked_total",
    "Total achievements unlocked",
    ["tier"],
)

gamification_user_level = Gauge(
    "habitca_user_level",
    "Current user level",
)

# =============================================================================
# Statistics Metrics
# =============================================================================

activity_series_requests_total = Counter(
    "habitca_activity_series_requests_total",
    "Activity series computed",
    ["granularity"],
)

# =============================================================================
# Application Info
# =============================================================================

app_info = Info(
    "habitca_app",
    "Application information",
)


def record_completion(action: str) -> None:
    if ENABLE_METRICS:
        habit_completions_total.labels(action=action).inc()


def record_xp_change(delta: int, source: str, level: int) -> None:
    """Track an applied XP delta and the resulting level"""
    if not ENABLE_METRICS:
        return
    if delta > 0:
        gamification_xp_awarded_total.labels(source=source).inc(delta)
    elif delta < 0:
        gamification_xp_revoked_total.labels(source=source).inc(-delta)
    gamification_user_level.set(level)


def record_achievement_unlock(tier: str) -> None:
    if ENABLE_METRICS:
        gamification_achievements_unlocked_total.labels(tier=tier).inc()


def record_activity_request(granularity: str) -> None:
    if ENABLE_METRICS:
        activity_series_requests_total.labels(granularity=granularity).inc()


def init_metrics() -> None:
    """
    Initialize metrics with application information.

    This should be called once at application startup.
    """
    if not ENABLE_METRICS:
        logger.info("Prometheus metrics disabled")
        return

    app_info.info(
        {
            "version": os.getenv("GIT_COMMIT_SHA", "dev")[:7],
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}",
        }
    )

    logger.info("Prometheus metrics initialized")
