"""
CSV exports for spreadsheets: UTF-8 with BOM, ';' separated, decimal comma.
"""
import csv
import io
from decimal import Decimal
from typing import Iterable, List, Sequence

from plantshop.models.models import Order, OrderStatus, Product, User

BOM = "\ufeff"


def _amount(value) -> str:
    return f"{Decimal(str(value or 0)):.2f}".replace(".", ",")


def _yes_no(value) -> str:
    return "Yes" if value else "No"


def _date(value) -> str:
    return str(value or "")[:10]


def to_csv(headers: Sequence[str], rows: Iterable[Sequence]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", quotechar='"', quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return BOM + buffer.getvalue()


def users_csv(users: List[User]) -> str:
    headers = ["ID", "Email", "Username", "Full name", "Phone", "Address", "Role", "Balance", "Registered"]
    rows = (
        [
            user.id,
            user.email,
            user.username or "",
            user.full_name or "",
            user.phone or "",
            user.address or "",
            "Administrator" if user.is_admin else "Customer",
            _amount(user.balance),
            _date(user.created_at),
        ]
        for user in users
    )
    return to_csv(headers, rows)


def products_csv(products: List[Product]) -> str:
    headers = [
        "ID", "Name", "Description", "Price", "Original price", "Quantity", "Category",
        "Available", "Preorder", "Rare", "Easy care", "Created",
    ]
    rows = (
        [
            product.id,
            product.name,
            product.description or "",
            _amount(product.price),
            _amount(product.original_price) if product.original_price else "",
            product.quantity or 0,
            product.category or "",
            _yes_no(product.is_available),
            _yes_no(product.is_preorder),
            _yes_no(product.is_rare),
            _yes_no(product.is_easy_to_care),
            _date(product.created_at),
        ]
        for product in products
    )
    return to_csv(headers, rows)


def orders_csv(orders: List[Order]) -> str:
    headers = [
        "ID", "Customer", "Phone", "Address", "Total", "Delivery", "Delivery type",
        "Payment method", "Payment status", "Order status", "Promo code", "Created",
    ]
    rows = (
        [
            order.id,
            order.full_name or "",
            order.phone or "",
            order.address or "",
            _amount(order.total_amount),
            _amount(order.delivery_amount),
            order.delivery_type or "",
            order.payment_method or "",
            order.payment_status or "",
            order.order_status or "",
            order.promo_code or "",
            _date(order.created_at),
        ]
        for order in orders
    )
    return to_csv(headers, rows)


def statistics_csv(users: List[User], products: List[Product], orders: List[Order]) -> str:
    cancelled = [order for order in orders if order.order_status == OrderStatus.CANCELLED]
    total_amount = sum((Decimal(str(order.total_amount or 0)) for order in orders), Decimal("0"))
    rows = [
        ["Total users", len(users)],
        ["Total products", len(products)],
        ["Total orders", len(orders)],
        ["Active orders", len(orders) - len(cancelled)],
        ["Cancelled orders", len(cancelled)],
        ["Total order amount", _amount(total_amount)],
    ]
    return to_csv(["Metric", "Value"], rows)
