"""Repository for the Cart aggregate."""

from storefront.cart.cart import Cart
from storefront.domain import storefront


@storefront.repository(part_of=Cart)
class CartRepository:
    def for_user(self, user_id: str) -> Cart | None:
        """Return the user's cart, or None if they never had one."""
        record = self._dao.query.filter(user_id=str(user_id)).all().first
        if record is None:
            return None
        return self.get(record.id)
