"""Order cancellation — commands and handler."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.order.order import Order


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(max_length=50, default="customer")


@storefront.command(part_of="Order")
class ClaimStockRelease:
    order_id = Identifier(required=True)


@storefront.command(part_of="Order")
class ReleaseStockClaim:
    order_id = Identifier(required=True)
    restored_product_ids = Text()  # JSON list of product ids


@storefront.command_handler(part_of=Order)
class OrderCancellationHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.cancel(reason=command.reason, cancelled_by=command.cancelled_by or "customer")
        repo.add(order)

    @handle(ClaimStockRelease)
    def claim_stock_release(self, command):
        """Returns the lines owed to inventory; only the claim holder gets any."""
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        lines = order.claim_stock_release()
        if not lines:
            return []
        repo.add(order)
        return lines

    @handle(ReleaseStockClaim)
    def release_stock_claim(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.release_stock_claim(json.loads(command.restored_product_ids or "[]"))
        repo.add(order)
