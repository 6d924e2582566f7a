"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from habitquest.utils.datetime_helpers import TimeZoneLike

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    """

    # Infrastructure dependencies (injected)
    db: object  # Database instance
    tz: TimeZoneLike = None  # Day-boundary zone shared by every service

    # Services (lazy-loaded via properties)
    _habit_service: Optional[object] = field(default=None, init=False, repr=False)
    _challenge_service: Optional[object] = field(default=None, init=False, repr=False)
    _progress_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def habit_service(self):
        """Get HabitService instance (lazy-loaded)"""
        if self._habit_service is None:
            from habitquest.services.habit_service import HabitService
            self._habit_service = HabitService(self.db, tz=self.tz)
            logger.debug("HabitService instantiated")
        return self._habit_service

    @property
    def challenge_service(self):
        """Get ChallengeService instance (lazy-loaded)"""
        if self._challenge_service is None:
            from habitquest.services.challenge_service import ChallengeService
            self._challenge_service = ChallengeService(self.db, tz=self.tz)
            logger.debug("ChallengeService instantiated")
        return self._challenge_service

    @property
    def progress_service(self):
        """Get ProgressService instance (lazy-loaded)"""
        if self._progress_service is None:
            from habitquest.services.progress_service import ProgressService
            self._progress_service = ProgressService(self.db, tz=self.tz)
            logger.debug("ProgressService instantiated")
        return self._progress_service


# Global container instance (initialized at startup)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: init_container() has not been called
    """
    if _container is None:
        raise RuntimeError("Service container not initialized. Call init_container() first.")
    return _container


def init_container(db, tz: TimeZoneLike = None) -> ServiceContainer:
    """Create the global service container"""
    global _container
    _container = ServiceContainer(db=db, tz=tz)
    logger.info("Service container initialized")
    return _container
