"""
Service Layer Package

Business logic services sitting between callers (UI, CLI, API) and the
storage collaborator:
- CompletionService: completion ledger, XP, achievements after completions
- HabitService: habit management, sample habits, social share
- SessionService: time-tracking sessions
- ActivityService: activity series and time analytics
"""

from habitca.services.container import ServiceContainer
from habitca.services.completion_service import CompletionService
from habitca.services.habit_service import HabitService
from habitca.services.session_service import SessionService
from habitca.services.activity_service import ActivityService

__all__ = [
    "ServiceContainer",
    "CompletionService",
    "HabitService",
    "SessionService",
    "ActivityService",
]
