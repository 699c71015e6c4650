"""
Wires repositories and services around one open Database.

Commands receive the container and look components up by class, so nothing
below the command layer builds its own dependencies.
"""

import logging
from typing import TypeVar, cast

from equity_tracker.config import AppConfig
from equity_tracker.db import Database
from equity_tracker.repositories.alert_repository import AlertRepository
from equity_tracker.repositories.lot_repository import LotRepository
from equity_tracker.repositories.market_repository import MarketRepository
from equity_tracker.services.alert_service import AlertService
from equity_tracker.services.portfolio_service import PortfolioService
from equity_tracker.services.screen_service import ScreenService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceContainer:
    """Holds one instance of each repository and service for the current run."""

    def __init__(self, config: AppConfig, db: Database):
        self.config = config
        self.db = db

        lot_repo = LotRepository(db)
        alert_repo = AlertRepository(db)
        market_repo = MarketRepository(db)
        self._repositories: dict[type, object] = {
            LotRepository: lot_repo,
            AlertRepository: alert_repo,
            MarketRepository: market_repo,
        }
        self._services: dict[type, object] = {
            PortfolioService: PortfolioService(
                lot_repo, market_repo, ratio_weighting=config.ratio_weighting
            ),
            AlertService: AlertService(alert_repo),
            ScreenService: ScreenService(),
        }
        logger.debug(
            f"Container ready: {len(self._repositories)} repositories, {len(self._services)} services"
        )

    @staticmethod
    def _lookup(registry: dict[type, object], wanted: type[T], kind: str) -> T:
        try:
            return cast(T, registry[wanted])
        except KeyError:
            raise KeyError(f"{kind} {wanted.__name__} not registered") from None

    def get_repository(self, repo_type: type[T]) -> T:
        """Raises KeyError for an unregistered repository class."""
        return self._lookup(self._repositories, repo_type, "Repository")

    def get_service(self, service_type: type[T]) -> T:
        """Raises KeyError for an unregistered service class."""
        return self._lookup(self._services, service_type, "Service")
