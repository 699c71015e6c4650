import logging
from typing import Any

from equity_tracker.db import Database
from equity_tracker.models import PurchaseLot
from equity_tracker.utils.model_utils import ModelFactory

logger: logging.Logger = logging.getLogger(__name__)


class LotRepository:
    KEY: str = "purchases"

    def __init__(self, db: Database) -> None:
        self.db: Database = db

    def get_all(self) -> list[PurchaseLot]:
        records: list[dict[str, Any]] | None = self.db.load(self.KEY)
        return ModelFactory.create_list_from_records(PurchaseLot, records)

    def get_by_id(self, lot_id: str) -> PurchaseLot | None:
        return next((lot for lot in self.get_all() if lot.id == lot_id), None)

    def get_for_ticker(self, ticker: str) -> list[PurchaseLot]:
        wanted: str = ticker.strip().upper()
        return [lot for lot in self.get_all() if lot.ticker.strip().upper() == wanted]

    def save_all(self, lots: list[PurchaseLot]) -> None:
        self.db.save(self.KEY, [ModelFactory.to_record(lot) for lot in lots])

    def insert(self, lot: PurchaseLot) -> str:
        self.insert_many([lot])
        return lot.id

    def insert_many(self, new_lots: list[PurchaseLot]) -> int:
        lots: list[PurchaseLot] = self.get_all()
        existing_ids: set[str] = {lot.id for lot in lots}
        for lot in new_lots:
            if lot.id in existing_ids:
                raise ValueError(f"Purchase lot id {lot.id} already exists")
            existing_ids.add(lot.id)
        self.save_all(lots + list(new_lots))
        logger.debug(f"Inserted {len(new_lots)} purchase lots")
        return len(new_lots)

    def update(self, lot: PurchaseLot) -> None:
        lots: list[PurchaseLot] = self.get_all()
        for i, existing in enumerate(lots):
            if existing.id == lot.id:
                lots[i] = lot
                self.save_all(lots)
                return
        raise KeyError(f"Purchase lot {lot.id} not found")

    def delete(self, lot_id: str) -> None:
        lots: list[PurchaseLot] = self.get_all()
        remaining: list[PurchaseLot] = [lot for lot in lots if lot.id != lot_id]
        if len(remaining) == len(lots):
            raise KeyError(f"Purchase lot {lot_id} not found")
        self.save_all(remaining)
