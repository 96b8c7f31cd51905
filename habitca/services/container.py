"""
Service Container - Dependency Injection Container

Holds the storage collaborator and the event bus, and builds each service
lazily on first access so they all share them.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from habitca.db.store import HabitStore
from habitca.events import DataChangeBus

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    """

    # Infrastructure dependencies (injected)
    store: HabitStore
    bus: DataChangeBus = field(default_factory=DataChangeBus)
    db: Optional[object] = None  # Database instance when the postgres backend is used

    # Services (lazy-loaded via properties)
    _completion_service: Optional[object] = field(default=None, init=False, repr=False)
    _habit_service: Optional[object] = field(default=None, init=False, repr=False)
    _session_service: Optional[object] = field(default=None, init=False, repr=False)
    _activity_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def completion_service(self):
        """Get CompletionService instance (lazy-loaded)"""
        if self._completion_service is None:
            from habitca.services.completion_service import CompletionService
            self._completion_service = CompletionService(self.store, self.bus)
            logger.debug("CompletionService instantiated")
        return self._completion_service

    @property
    def habit_service(self):
        """Get HabitService instance (lazy-loaded)"""
        if self._habit_service is None:
            from habitca.services.habit_service import HabitService
            self._habit_service = HabitService(self.store, self.bus)
            logger.debug("HabitService instantiated")
        return self._habit_service

    @property
    def session_service(self):
        """Get SessionService instance (lazy-loaded); shares the completion ledger"""
        if self._session_service is None:
            from habitca.services.session_service import SessionService
            self._session_service = SessionService(self.store, self.completion_service, self.bus)
            logger.debug("SessionService instantiated")
        return self._session_service

    @property
    def activity_service(self):
        """Get ActivityService instance (lazy-loaded)"""
        if self._activity_service is None:
            from habitca.services.activity_service import ActivityService
            self._activity_service = ActivityService(self.store)
            logger.debug("ActivityService instantiated")
        return self._activity_service
