from . import cart, exports, inventory, orders, promo, receipts, uploads
from .uploads import save_image, save_images
