from collections.abc import Callable, Iterator
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pytest
import yaml

from equity_tracker.config import AppConfig, ConfigLoader
from equity_tracker.container import ServiceContainer
from equity_tracker.db import Database
from equity_tracker.models import PurchaseLot
from equity_tracker.repositories.alert_repository import AlertRepository
from equity_tracker.repositories.lot_repository import LotRepository
from equity_tracker.repositories.market_repository import MarketRepository
from equity_tracker.services.alert_service import AlertService
from equity_tracker.services.portfolio_service import PortfolioService

REPO_CONFIG_DIR: Path = Path(__file__).parent.parent / "config"


@pytest.fixture
def app_config() -> AppConfig:
    """Load AppConfig through ConfigLoader using the real config files and the test env."""
    return ConfigLoader.load_app_config(env="test", config_dir=REPO_CONFIG_DIR)


@pytest.fixture
def test_db(app_config: AppConfig) -> Iterator[Database]:
    """In-memory store (config.test.yaml sets db_path to :memory:)."""
    with Database(app_config.db_path) as db:
        db.create_tables_if_not_exists()
        yield db


@pytest.fixture
def lot_repo(test_db: Database) -> LotRepository:
    return LotRepository(test_db)


@pytest.fixture
def alert_repo(test_db: Database) -> AlertRepository:
    return AlertRepository(test_db)


@pytest.fixture
def market_repo(test_db: Database) -> MarketRepository:
    return MarketRepository(test_db)


@pytest.fixture
def portfolio_service(lot_repo: LotRepository, market_repo: MarketRepository) -> PortfolioService:
    return PortfolioService(lot_repo, market_repo)


@pytest.fixture
def alert_service(alert_repo: AlertRepository) -> AlertService:
    return AlertService(alert_repo)


@pytest.fixture
def container(app_config: AppConfig, test_db: Database) -> ServiceContainer:
    return ServiceContainer(app_config, test_db)


@pytest.fixture
def now() -> datetime:
    """Fixed valuation time so XIRR results are reproducible."""
    return datetime(2024, 1, 1)


@pytest.fixture
def make_lot() -> Callable[..., PurchaseLot]:
    """Factory for purchase lots with sensible defaults."""
    counter: list[int] = [0]

    def _make_lot(**kwargs: Any) -> PurchaseLot:
        counter[0] += 1
        values: dict[str, Any] = {
            "id": f"lot-{counter[0]}",
            "ticker": "ABC",
            "purchase_date": date(2023, 1, 1),
            "price": 100.0,
            "quantity": 10.0,
        }
        values.update(kwargs)
        return PurchaseLot(**values)

    return _make_lot


@pytest.fixture
def isolated_config_dir(tmp_path: Path) -> Path:
    """Copy of the real config files in a temp directory, safe to modify per test."""
    config_dir: Path = tmp_path / "config"
    config_dir.mkdir()
    for config_file in REPO_CONFIG_DIR.glob("config*.yaml"):
        with open(config_file, "r") as src_file:
            content: dict[str, Any] = yaml.safe_load(src_file) or {}
        if "import_path" in content:
            content["import_path"] = str(tmp_path / "holdings.csv")
        with open(config_dir / config_file.name, "w") as dest_file:
            yaml.dump(content, dest_file)
    return config_dir
