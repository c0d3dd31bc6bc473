"""Inventory Guard — validates and atomically reserves or restores stock.

Every change to a product's stock goes through
``ProductRepository.compare_and_set_stock``: the guard reads the current
value, checks it, and writes the new value only if nobody changed it in the
meantime. A lost race is retried a bounded number of times.

A reservation over several lines is all-or-nothing. When line *k* cannot be
reserved, lines 1..k-1 are restored before the error reaches the caller.
"""

from collections import OrderedDict
from dataclasses import dataclass

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.errors import ConcurrencyConflictError, InsufficientStockError, NotFoundError, StockRestoreError
from storefront.inventory.catalog import ProductCatalog
from storefront.inventory.product import Product

logger = structlog.get_logger(__name__)

MAX_STOCK_ATTEMPTS = 5


@dataclass(frozen=True)
class StockLine:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class Reservation:
    lines: tuple[StockLine, ...]

    @property
    def total_units(self) -> int:
        return sum(line.quantity for line in self.lines)


def merge_lines(lines) -> list[StockLine]:
    """Collapse repeated products into one line, keeping first-seen order."""
    merged: OrderedDict[str, int] = OrderedDict()
    for line in lines:
        product_id = str(line.product_id)
        merged[product_id] = merged.get(product_id, 0) + int(line.quantity)
    return [StockLine(product_id=pid, quantity=qty) for pid, qty in merged.items()]


class InventoryGuard:
    def __init__(self, catalog: ProductCatalog | None = None, max_attempts: int = MAX_STOCK_ATTEMPTS) -> None:
        self.catalog = catalog or ProductCatalog()
        self.max_attempts = max_attempts

    @property
    def _repo(self):
        return current_domain.repository_for(Product)

    # -------------------------------------------------------------------
    # Reservation
    # -------------------------------------------------------------------
    def validate_and_reserve(self, lines) -> Reservation:
        """Check and decrement stock for every line, or for none of them."""
        reserved: list[StockLine] = []
        try:
            for line in merge_lines(lines):
                if line.quantity < 1:
                    raise ValidationError({"quantity": ["Quantity must be at least 1"]})
                self._decrement(line)
                reserved.append(line)
        except Exception:
            if reserved:
                logger.warning(
                    "Reservation failed, rolling back reserved lines",
                    rolled_back=[line.product_id for line in reserved],
                )
                try:
                    self.restore(reserved)
                except StockRestoreError as exc:
                    # The reservation failure is what the caller sees
                    logger.error("Rollback left stock unrestored", failed=exc.failed)
            raise

        logger.info(
            "Stock reserved",
            products=[line.product_id for line in reserved],
            units=sum(line.quantity for line in reserved),
        )
        return Reservation(lines=tuple(reserved))

    def _decrement(self, line: StockLine) -> None:
        for _ in range(self.max_attempts):
            # Always re-validated against the live catalogue, never the cart snapshot
            product = self.catalog.get_active_product(line.product_id)
            if product.stock < line.quantity:
                raise InsufficientStockError(
                    line.product_id,
                    available=product.stock,
                    requested=line.quantity,
                    product_name=product.name,
                )
            if self._repo.compare_and_set_stock(line.product_id, product.stock, product.stock - line.quantity):
                return

        logger.warning("Stock decrement lost every race", product_id=line.product_id)
        raise ConcurrencyConflictError(product_id=line.product_id)

    # -------------------------------------------------------------------
    # Restoration
    # -------------------------------------------------------------------
    def restore(self, lines) -> list[str]:
        """Give reserved units back to stock and return the restored product ids.

        Every line is attempted even when an earlier one fails; the failures
        are then reported together in a ``StockRestoreError``. Products that
        no longer exist are skipped. Inactive products still get their units
        back so stock stays truthful if they are reactivated.
        """
        restored: list[str] = []
        failed: list[str] = []
        for line in merge_lines(lines):
            try:
                self._increment(line)
            except NotFoundError:
                logger.warning("Cannot restore stock for missing product", product_id=line.product_id)
                restored.append(line.product_id)
            except ConcurrencyConflictError:
                failed.append(line.product_id)
            else:
                restored.append(line.product_id)

        if failed:
            logger.error("Stock partially restored", restored=restored, failed=failed)
            raise StockRestoreError(restored=restored, failed=failed)

        logger.info("Stock restored", products=restored)
        return restored

    def _increment(self, line: StockLine) -> None:
        for _ in range(self.max_attempts):
            product = self.catalog.get_product(line.product_id)
            if self._repo.compare_and_set_stock(line.product_id, product.stock, product.stock + line.quantity):
                return

        logger.error("Stock restore lost every race", product_id=line.product_id, quantity=line.quantity)
        raise ConcurrencyConflictError(product_id=line.product_id)
