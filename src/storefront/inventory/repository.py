"""Repository for the Product aggregate with an atomic stock update."""

import threading

from protean.exceptions import ExpectedVersionError, ObjectNotFoundError

from storefront.domain import storefront
from storefront.inventory.product import Product

# Striped: products sharing a stripe serialise, memory stays fixed
STOCK_LOCK_STRIPES = 64
_stock_locks = tuple(threading.Lock() for _ in range(STOCK_LOCK_STRIPES))


def _stock_lock(product_id: str) -> threading.Lock:
    return _stock_locks[hash(str(product_id)) % STOCK_LOCK_STRIPES]


@storefront.repository(part_of=Product)
class ProductRepository:
    def compare_and_set_stock(self, product_id: str, expected: int, new: int) -> bool:
        """Set ``stock`` to ``new`` only if it still equals ``expected``.

        The per-product lock serialises writers inside this process; the
        aggregate version check rejects a write that raced a writer in
        another process. Either way the caller sees ``False`` and re-reads.
        """
        if new < 0:
            return False

        with _stock_lock(product_id):
            try:
                product = self.get(product_id)
            except ObjectNotFoundError:
                return False
            if product.stock != expected:
                return False

            product.stock = new
            try:
                self.add(product)
            except ExpectedVersionError:
                return False
            return True

    def active(self) -> list[Product]:
        return self._dao.query.filter(is_active=True).order_by("name").all().items
