import logging
from typing import Iterable, List, Optional

from sqlalchemy import BigInteger, cast, delete, exists, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from common.exceptions import DuplicateKeyError
from services.inventory_service.models import MAX_QUANTITY, StockRow

logger = logging.getLogger(__name__)


class StockRepository:
    """
    Stock row persistence. Every method runs inside the caller's transaction;
    the repository never commits or rolls back.
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def find_by_sku(self, sku: str, for_update: bool = False) -> Optional[StockRow]:
        """Get stock row by SKU. With for_update the row stays locked until commit."""
        stmt = select(StockRow).where(StockRow.sku == sku).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.scalars(stmt).first()

    def find_all_by_sku(self, skus: Iterable[str]) -> List[StockRow]:
        """Batched read of all rows whose SKU is in skus."""
        skus = list(skus)
        if not skus:
            return []
        return list(self.db.scalars(select(StockRow).where(StockRow.sku.in_(skus))))

    def exists_by_sku(self, sku: str) -> bool:
        return bool(self.db.scalar(select(exists().where(StockRow.sku == sku))))

    def insert(self, sku: str, quantity: int = 0) -> StockRow:
        """
        Insert a new row with version 0.

        Uniqueness is enforced by the unique index on sku_code; a duplicate
        raises DuplicateKeyError and leaves the transaction unusable.
        """
        row = StockRow(sku=sku, quantity=quantity, version=0)
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as e:
            raise DuplicateKeyError(sku) from e
        logger.info(f"Inserted stock row for SKU {sku}", extra={"sku": sku})
        return row

    def update_with_version(self, row_id: int, quantity: int, expected_version: int) -> bool:
        """
        Set quantity and bump version iff the row still has expected_version.

        Returns False on a version conflict (zero rows matched).
        """
        result = self.db.execute(
            update(StockRow)
            .where(StockRow.id == row_id, StockRow.version == expected_version)
            .values(quantity=quantity, version=StockRow.version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def apply_delta(self, sku: str, delta: int) -> int:
        """
        Add delta to quantity in one conditional statement.

        Returns rows affected. 0 means the row is missing or the result would
        leave 0..MAX_QUANTITY; callers disambiguate with exists_by_sku.
        """
        # Widened so the bound check itself cannot overflow the column type
        new_quantity = cast(StockRow.quantity, BigInteger) + delta
        result = self.db.execute(
            update(StockRow)
            .where(StockRow.sku == sku, new_quantity >= 0, new_quantity <= MAX_QUANTITY)
            .values(quantity=StockRow.quantity + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_by_sku(self, sku: str) -> int:
        result = self.db.execute(
            delete(StockRow).where(StockRow.sku == sku).execution_options(synchronize_session=False)
        )
        return result.rowcount
