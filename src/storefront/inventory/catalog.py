"""Read-only view of the product catalogue used by cart and checkout."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.errors import NotFoundError, UnavailableError
from storefront.inventory.product import Product


class ProductCatalog:
    def get_product(self, product_id: str) -> Product:
        try:
            return current_domain.repository_for(Product).get(str(product_id))
        except ObjectNotFoundError:
            raise NotFoundError("Product not found", product_id=str(product_id)) from None

    def get_active_product(self, product_id: str) -> Product:
        product = self.get_product(product_id)
        if not product.is_active:
            raise UnavailableError(f"Product {product.name} is not available", product_id=str(product_id))
        return product
