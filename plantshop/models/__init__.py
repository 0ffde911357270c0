from . import models
from plantshop.utils.logging import get_logger
from typing import Dict, Iterable

log = get_logger(__name__)


def get_product_images(product_ids: Iterable[int]) -> Dict[int, str | None]:
    """First image of each product, for order item previews."""
    images: Dict[int, str | None] = {}
    for product_id in set(product_ids):
        product = models.Product.get_one(id=product_id)
        images[product_id] = product.images[0] if product and product.images else None
    return images
