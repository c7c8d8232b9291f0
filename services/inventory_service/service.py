"""
Stock engine: the only component allowed to mutate stock rows.

Concurrency model:
    No in-process locks. Every mutation runs in one database transaction and
    relies on the database for mutual exclusion:
    - deltas (adjust / reserve) are a single conditional UPDATE, serialized by
      the row lock the UPDATE takes; no prior read
    - set-balance locks the row (SELECT ... FOR UPDATE), then commits through a
      version-conditional UPDATE; a stale client version is a Conflict
    - init is a plain INSERT guarded by the unique index on sku_code; losing
      the race is success, not an error

Row state machine:
    (absent)  --init-->            (present, q=0, v=0)
    (present) --adjust(+/-d)-->    (present, q+d, v)      version unchanged
    (present) --set_balance(q',v)-> (present, q', v+1)
    (present) --delete-->          (absent)
"""

import logging
from typing import Iterable, List, Sequence

from sqlalchemy.orm import sessionmaker

from common.database import transaction
from common.exceptions import (
    ConflictError,
    DuplicateKeyError,
    InsufficientStockError,
    InvalidRequestError,
    InventoryNotFoundError,
)
from services.inventory_service.models import MAX_QUANTITY, StockRow
from services.inventory_service.repository import StockRepository
from services.inventory_service.schemas import StockRequestItem, StockView

logger = logging.getLogger(__name__)


def to_view(row: StockRow) -> StockView:
    return StockView(sku=row.sku, in_stock=row.quantity > 0, quantity=row.quantity, version=row.version)


class InventoryService:
    """Stock invariants: quantity >= 0 at every commit; version moves only on set_balance."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    # --- Reads ---

    def get_stock_status(self, sku: str) -> StockView:
        """Stock view for sku; a synthetic out-of-stock view when no row exists."""
        with transaction(self.session_factory, read_only=True) as db:
            row = StockRepository(db).find_by_sku(sku)
            if row is None:
                return StockView(sku=sku, in_stock=False, quantity=0, version=0)
            return to_view(row)

    def get_stock_statuses(self, skus: Iterable[str]) -> List[StockView]:
        """Views for the rows that exist; unknown SKUs are left out. Order not guaranteed."""
        with transaction(self.session_factory, read_only=True) as db:
            return [to_view(row) for row in StockRepository(db).find_all_by_sku(set(skus))]

    def get_details(self, sku: str) -> StockView:
        with transaction(self.session_factory, read_only=True) as db:
            row = StockRepository(db).find_by_sku(sku)
            if row is None:
                raise InventoryNotFoundError(sku)
            return to_view(row)

    def check_availability(self, items: Sequence[StockRequestItem]) -> None:
        """
        Advisory pre-order check; reserves nothing.

        Duplicate SKUs in items collapse to one for the existence check and are
        then checked line by line, not summed. A later reserve_stock can still
        fail if stock moves in between.
        """
        self._require_non_negative(items)
        requested = {item.sku for item in items}
        with transaction(self.session_factory, read_only=True) as db:
            rows = StockRepository(db).find_all_by_sku(requested)

        if len(requested) > len(rows):
            missing = sorted(requested - {row.sku for row in rows})
            raise InventoryNotFoundError(", ".join(missing))

        by_sku = {row.sku: row for row in rows}
        for item in items:
            row = by_sku[item.sku]
            if row.quantity < item.quantity:
                raise InsufficientStockError(item.sku, requested=item.quantity, available=row.quantity)

    # --- Writes ---

    def init_stock(self, sku: str) -> bool:
        """
        Create the (sku, 0, 0) row if absent. Idempotent.

        Returns True when this call created the row.
        """
        try:
            with transaction(self.session_factory) as db:
                StockRepository(db).insert(sku, 0)
        except DuplicateKeyError:
            logger.warning(f"Stock for SKU {sku} already exists", extra={"sku": sku})
            return False
        logger.info(f"Initialized stock for SKU {sku}", extra={"sku": sku})
        return True

    def adjust_stock(self, sku: str, delta: int) -> StockView:
        """
        Apply a signed delta.

        NotFound when the row is missing, InsufficientStock on underflow and
        InvalidRequest when the result would exceed MAX_QUANTITY.
        """
        with transaction(self.session_factory) as db:
            repo = StockRepository(db)
            self._apply_delta(repo, sku, delta)
            view = to_view(repo.find_by_sku(sku))
        logger.info(f"Adjusted stock for SKU {sku} by {delta}, now {view.quantity}", extra={"sku": sku})
        return view

    def reserve_stock(self, items: Sequence[StockRequestItem]) -> None:
        """Decrement every line in one transaction; any failing line rolls back the whole batch."""
        self._require_non_negative(items)
        with transaction(self.session_factory) as db:
            repo = StockRepository(db)
            for item in items:
                self._apply_delta(repo, item.sku, -item.quantity)
        logger.info(f"Reserved stock for {len(items)} line(s): {[(i.sku, i.quantity) for i in items]}")

    def set_balance(self, sku: str, quantity: int, client_version: int) -> StockView:
        """Authoritative overwrite guarded by the client's last seen version."""
        if client_version is None:
            raise InvalidRequestError("Version is required", {"version": "Version is required"})
        if quantity < 0:
            raise InvalidRequestError("Quantity cannot be negative", {"quantity": "Quantity cannot be negative"})
        if quantity > MAX_QUANTITY:
            raise InvalidRequestError(
                f"Quantity cannot exceed {MAX_QUANTITY}", {"quantity": f"Quantity cannot exceed {MAX_QUANTITY}"}
            )

        with transaction(self.session_factory) as db:
            repo = StockRepository(db)
            row = repo.find_by_sku(sku, for_update=True)
            if row is None:
                raise InventoryNotFoundError(sku)
            if not repo.update_with_version(row.id, quantity, client_version):
                logger.warning(
                    f"Version conflict on SKU {sku}: client {client_version}, stored {row.version}",
                    extra={"sku": sku},
                )
                raise ConflictError()

        logger.info(f"Set balance for SKU {sku} to {quantity} (version {client_version + 1})", extra={"sku": sku})
        return StockView(sku=sku, in_stock=quantity > 0, quantity=quantity, version=client_version + 1)

    def delete_inventory(self, sku: str) -> None:
        with transaction(self.session_factory) as db:
            if StockRepository(db).delete_by_sku(sku) == 0:
                raise InventoryNotFoundError(sku)
        logger.info(f"Deleted stock for SKU {sku}", extra={"sku": sku})

    # --- Helpers ---

    @staticmethod
    def _apply_delta(repo: StockRepository, sku: str, delta: int) -> None:
        # Fast path is one statement; the diagnostic read only runs on failure
        if repo.apply_delta(sku, delta) > 0:
            return
        if not repo.exists_by_sku(sku):
            raise InventoryNotFoundError(sku)
        if delta > 0:
            raise InvalidRequestError(
                f"Quantity for SKU {sku} would exceed {MAX_QUANTITY}",
                {"quantity": f"Quantity cannot exceed {MAX_QUANTITY}"},
            )
        raise InsufficientStockError(sku)

    @staticmethod
    def _require_non_negative(items: Sequence[StockRequestItem]) -> None:
        for item in items:
            if item.quantity < 0:
                raise InvalidRequestError(
                    "Quantity cannot be negative", {"quantity": f"Quantity cannot be negative for SKU {item.sku}"}
                )
