"""Repository for the Order aggregate."""

from dataclasses import dataclass

from storefront.domain import storefront
from storefront.order.order import Order


@dataclass(frozen=True)
class OrderPage:
    orders: list
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@storefront.repository(part_of=Order)
class OrderRepository:
    def find_by_gateway_token(self, token: str) -> Order | None:
        record = self._dao.query.filter(gateway_token=token).all().first
        if record is None:
            return None
        return self.get(record.id)

    def find_by_order_number(self, order_number: str) -> Order | None:
        record = self._dao.query.filter(order_number=order_number).all().first
        if record is None:
            return None
        return self.get(record.id)

    def page(self, page: int = 1, limit: int = 10, **filters) -> OrderPage:
        """Newest-first page of orders matching the given field filters."""
        criteria = {key: value for key, value in filters.items() if value is not None}
        query = self._dao.query
        if criteria:
            query = query.filter(**criteria)
        results = query.order_by("-created_at").offset((page - 1) * limit).limit(limit).all()
        return OrderPage(orders=results.items, total=results.total, page=page, limit=limit)

    def placed_since(self, since) -> list[Order]:
        return self._dao.query.filter(created_at__gte=since).limit(None).all().items
