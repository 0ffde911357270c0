"""
PDF receipts rendered with Pillow: text is drawn onto A4-sized pages and
saved with Pillow's PDF writer.
"""
import random
import time
from decimal import Decimal
from pathlib import Path
from typing import List, Tuple

from flask import current_app
from PIL import Image as PilImage, ImageDraw, ImageFont

from plantshop.models.models import Order
from plantshop.utils import site_config
from plantshop.utils.helpers import utcnow
from plantshop.utils.logging import get_logger

from .orders import get_order

log = get_logger(__name__)

DPI = 150
PAGE_SIZE = (1240, 1754)    # A4 @ 150 dpi
MARGIN = 100
LINE_SPACING = 1.5

Line = Tuple[str, int]      # text, font size


def receipt_number() -> str:
    return f"CHK-{int(time.time() * 1000)}-{random.randint(0, 999)}"


def _font(size: int) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    font_path = current_app.config.get("RECEIPT_FONT")
    if font_path:
        try:
            return ImageFont.truetype(font_path, size)
        except OSError:
            log.warning("Receipt font %s not loadable, using default", font_path)
    return ImageFont.load_default(size=size)


def _amount(value, currency: str) -> str:
    return f"{Decimal(str(value or 0)):.2f} {currency}"


def receipt_lines(order: Order, number: str, issued_at: str, store_name: str, currency: str) -> List[Line]:
    lines: List[Line] = [
        (store_name, 48),
        ("Order receipt", 32),
        ("", 20),
        (f"Receipt: {number}", 22),
        (f"Date: {issued_at} UTC", 22),
        (f"Order: #{order.id}", 22),
        ("", 20),
        (f"Customer: {order.full_name or ''}", 22),
        (f"Phone: {order.phone or ''}", 22),
        (f"Address: {order.address or ''}", 22),
        ("", 20),
        ("Items", 26),
    ]
    for index, item in enumerate(order.items, start=1):
        lines.append((
            f"{index}. {item.name}  {item.quantity} x {_amount(item.price, currency)}"
            f" = {_amount(item.total, currency)}",
            22,
        ))
    lines += [
        ("", 20),
        (f"Subtotal: {_amount(order.items_total, currency)}", 22),
    ]
    if order.promo_code_discount:
        lines.append((f"Discount ({order.promo_code}): -{_amount(order.promo_code_discount, currency)}", 22))
    lines += [
        (f"Delivery: {_amount(order.delivery_amount, currency)}", 22),
        (f"Total: {_amount(order.total_amount, currency)}", 30),
        ("", 20),
        (f"Payment method: {order.payment_method or ''}", 22),
        (f"Delivery type: {order.delivery_type or ''}", 22),
        ("", 20),
        ("Thank you for your purchase!", 24),
    ]
    return lines


def render_pdf(lines: List[Line], path: Path) -> None:
    pages: List[PilImage.Image] = []

    def new_page():
        page = PilImage.new("RGB", PAGE_SIZE, "white")
        pages.append(page)
        return ImageDraw.Draw(page), MARGIN

    draw, y = new_page()
    for text, size in lines:
        step = int(size * LINE_SPACING)
        if y + step > PAGE_SIZE[1] - MARGIN:
            draw, y = new_page()
        if text:
            draw.text((MARGIN, y), text, fill="black", font=_font(size))
        y += step

    path.parent.mkdir(parents=True, exist_ok=True)
    pages[0].save(str(path), "PDF", resolution=DPI, save_all=True, append_images=pages[1:])


def generate_receipt(order_id: int) -> dict:
    order = get_order(order_id)
    number = receipt_number()
    issued_at = utcnow()
    settings = site_config.get_settings()
    lines = receipt_lines(
        order,
        number,
        issued_at,
        settings.get("site_name") or current_app.config.get("STORE_NAME", ""),
        settings.get("currency") or "",
    )

    file_name = f"{number}.pdf"
    render_pdf(lines, Path(current_app.config["RECEIPT_FOLDER"]) / file_name)

    order.receipt_number = number
    order.receipt_url = f"/receipts/{file_name}"
    order.receipt_generated_at = issued_at
    order.update("receipt_number", "receipt_url", "receipt_generated_at")
    log.info("Receipt %s generated for order %s", number, order.id)
    return {
        "receiptNumber": number,
        "receiptUrl": order.receipt_url,
        "receiptGeneratedAt": issued_at,
    }
