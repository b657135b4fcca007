from __future__ import annotations

import logging

from fieldops.config import SETTINGS
from fieldops.domain.entities import SparePartEntity
from fieldops.infra.repository import InventoryRepository

logger = logging.getLogger(__name__)

PART_FIELDS = ("name", "maker", "detail")


class InventoryService:
    def __init__(self, repo: InventoryRepository, low_stock_threshold: int | None = None) -> None:
        self._repo = repo
        if low_stock_threshold is None:
            low_stock_threshold = SETTINGS.low_stock_threshold
        self.low_stock_threshold = low_stock_threshold

    def list_parts(self, search: str | None = None) -> list[SparePartEntity]:
        search = (search or "").strip()
        return self._repo.list_parts(search or None)

    def get_part(self, part_id: int) -> SparePartEntity | None:
        return self._repo.get_part(part_id)

    def create_part(self, data: dict) -> SparePartEntity:
        normalized = {key: (data.get(key) or "").strip() for key in PART_FIELDS}
        if not normalized["name"]:
            raise ValueError("Spare part name is required")
        quantity = data.get("quantity", 0)
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0:
            raise ValueError("Spare part quantity must be a whole number, zero or more")
        normalized["quantity"] = quantity
        part = self._repo.create_part(normalized)
        logger.info("Added spare part %s (%s pcs)", part.id, part.quantity)
        return part

    def restock(self, part_id: int, delta: int) -> SparePartEntity | None:
        """Change the stock level by ``delta``; a negative value writes parts off."""
        if not isinstance(delta, int) or isinstance(delta, bool) or delta == 0:
            raise ValueError("Stock change must be a non-zero whole number")
        part = self._repo.adjust_quantity(part_id, delta)
        if part is None:
            logger.warning("Spare part %s not found for restock", part_id)
            return None
        logger.info("Stock of spare part %s changed by %+d to %s", part.id, delta, part.quantity)
        return part

    def is_low_stock(self, part: SparePartEntity) -> bool:
        return part.quantity < self.low_stock_threshold
