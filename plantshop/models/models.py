from contextlib import contextmanager
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
import json

import bcrypt
from flask import current_app
from flask_login import UserMixin

from plantshop.database import db, schema
from plantshop.utils import encryption
from plantshop.utils.helpers import money, utcnow
from plantshop.utils.logging import get_logger

from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple

log = get_logger(__name__)

TABLE_COLUMNS: Dict[str, set] = {
    table["table_name"]: {col for col in table["table_columns"] if col.upper() not in ("FOREIGN KEY", "UNIQUE")}
    for table in schema
}


@contextmanager
def _cursor(cur: Any = None) -> Iterator[Any]:
    """Reuse the caller's cursor (inside a transaction) or open a short-lived one."""
    if cur is not None:
        yield cur
        return
    with db.connection() as (conn, new_cur):
        yield new_cur


def set_defaults(default_list: List[Dict[str, Any]]) -> bool:
    classes = {
        "USER": User,
        "SETTING": Setting,
        "PAYMENT_DETAILS": PaymentDetails,
    }
    try:
        for entry in default_list:
            cls_ = classes[entry["object_name"]]
            if entry["type"] == "SINGLE_ROW":
                if cls_.get():
                    continue
                log.info(f"Seeding default {entry['object_name']}")
                cls_.new(**entry["data"])
                continue
            if entry["type"] in ["NOT NULL", "NOT_NULL"]:
                if cls_.get_one(**{entry["key"]: entry["value"]}):
                    continue
                log.info(f"Seeding default {entry['object_name']} {entry['key']}={entry['value']}")
                object_data = entry["data"].copy()
                object_data[entry["key"]] = entry["value"]
                cls_.new(**object_data)
    except (KeyError, db.IntegrityError) as e:
        log.error(f"Failed loading defaults, {e}")
        raise ValueError(f"Failed loading defaults, {e}") from e
    return True


class BaseClass:
    """
    One row of ``table_name``. Column values become attributes; JSON and
    boolean columns are decoded on load and encoded again on write.
    Every query method takes an optional ``cur`` so it can join a transaction.
    """
    table_name: ClassVar[Optional[str]] = None
    non_update: ClassVar[List[str]] = ["id", "created_at"]
    json_columns: ClassVar[Tuple[str, ...]] = ()
    bool_columns: ClassVar[Tuple[str, ...]] = ()

    def __init__(self, **kwargs: Any) -> None:
        if self.table_name is None:
            raise ValueError("table_name must be set in subclass")
        for key, value in kwargs.items():
            setattr(self, key, self._decode(key, value))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}>"

    @classmethod
    def _decode(cls, key: str, value: Any) -> Any:
        if key in cls.json_columns and isinstance(value, str):
            try:
                return json.loads(value) if value else []
            except json.JSONDecodeError:
                log.warning(f"Unreadable JSON in {cls.table_name}.{key}")
                return []
        if key in cls.bool_columns and value is not None:
            return bool(value)
        return value

    @classmethod
    def _encode(cls, key: str, value: Any) -> Any:
        if key in cls.json_columns and not isinstance(value, str):
            return json.dumps(value if value is not None else [], ensure_ascii=False)
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, Decimal):
            return float(value)
        return value

    @classmethod
    def _check_columns(cls, keys) -> None:
        excess = [col for col in keys if col not in TABLE_COLUMNS[cls.table_name]]
        if excess:
            raise KeyError(f"Unknown arguments: {', '.join(excess)}")

    @classmethod
    def new(cls, cur: Any = None, **kwargs) -> "BaseClass":
        if "id" in kwargs:
            raise KeyError("Invalid ID key found")
        cls._check_columns(kwargs)
        if "updated_at" in TABLE_COLUMNS[cls.table_name]:
            kwargs.setdefault("updated_at", utcnow())
        if "created_at" in TABLE_COLUMNS[cls.table_name]:
            kwargs.setdefault("created_at", utcnow())
        values = tuple(cls._encode(k, v) for k, v in kwargs.items())
        with _cursor(cur) as cursor:
            cursor.execute(
                f"""
                INSERT INTO {cls.table_name} ({", ".join(kwargs.keys())})
                VALUES ({", ".join(["?" for _ in kwargs])})
            """,
                values,
            )
            last_id = cursor.lastrowid
            cursor.execute(f"SELECT * FROM {cls.table_name} WHERE id = ?", (last_id,))
            return cls(**cursor.fetchone())

    @classmethod
    def get(cls, cur: Any = None, order_by: Optional[str] = None, **kwargs) -> List[Any]:
        cls._check_columns(kwargs)
        query = f"SELECT * FROM {cls.table_name}"
        if kwargs:
            query += " WHERE " + " AND ".join(f"{key} = ?" for key in kwargs)
        if order_by:
            query += f" ORDER BY {order_by}"
        with _cursor(cur) as cursor:
            cursor.execute(query, tuple(cls._encode(k, v) for k, v in kwargs.items()))
            return [cls(**entry) for entry in cursor.fetchall()]

    @classmethod
    def get_one(cls, cur: Any = None, **kwargs) -> Optional[Any]:
        found = cls.get(cur=cur, **kwargs)
        return found[0] if found else None

    def update(self, *keys: str, cur: Any = None) -> bool:
        columns = TABLE_COLUMNS[self.table_name]
        if not keys:
            keys = tuple(k for k in vars(self) if k in columns and k not in self.non_update)
        else:
            invalid = [k for k in keys if k in self.non_update or k not in columns]
            if invalid:
                raise KeyError(f"Invalid keys for update: {', '.join(invalid)}")
        if not keys:
            log.info(f"Nothing updated to {self.table_name}")
            return True
        if "updated_at" in columns:
            self.updated_at = utcnow()
            if "updated_at" not in keys:
                keys = keys + ("updated_at",)
        set_clause = ", ".join(f"{k} = ?" for k in keys)
        params = tuple(self._encode(k, getattr(self, k)) for k in keys) + (self.id,)
        with _cursor(cur) as cursor:
            cursor.execute(f"UPDATE {self.table_name} SET {set_clause} WHERE id = ?", params)
        return True

    def delete(self, cur: Any = None) -> None:
        with _cursor(cur) as cursor:
            cursor.execute(f"DELETE FROM {self.table_name} WHERE id = ?", (self.id,))


class User(UserMixin, BaseClass):
    table_name = "user_table"
    non_update = ["id", "created_at"]
    json_columns = ("cart",)
    bool_columns = ("is_admin",)

    id: int
    username: str
    email: str
    password: str
    full_name: str
    phone: Optional[str]
    address: Optional[str]
    is_admin: bool
    balance: str
    cart: List[Dict[str, Any]]

    @staticmethod
    def hash_password(password: str) -> str:
        rounds = int(current_app.config.get("BCRYPT_ROUNDS", 12))
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")

    def check_password(self, input_password: str) -> bool:
        return bcrypt.checkpw(input_password.encode("utf-8"), self.password.encode("utf-8"))

    def update_password(self, old_password: str, new_password: str) -> bool:
        if not self.check_password(old_password):
            return False
        self.password = self.hash_password(new_password)
        self.update("password")
        return True

    @property
    def balance_amount(self) -> Decimal:
        return money(self.balance or 0)

    def to_client(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "fullName": self.full_name,
            "phone": self.phone,
            "address": self.address,
            "isAdmin": bool(self.is_admin),
            "balance": f"{self.balance_amount:.2f}",
            "createdAt": self.created_at,
        }


class Product(BaseClass):
    table_name = "product_table"
    json_columns = ("images", "labels")
    bool_columns = ("is_available", "is_preorder", "is_rare", "is_easy_to_care")

    id: int
    name: str
    price: float
    quantity: int
    images: List[str]

    def to_client(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "originalPrice": self.original_price,
            "images": self.images,
            "quantity": self.quantity,
            "category": self.category,
            "isAvailable": bool(self.is_available),
            "isPreorder": bool(self.is_preorder),
            "isRare": bool(self.is_rare),
            "isEasyToCare": bool(self.is_easy_to_care),
            "labels": self.labels,
            "deliveryCost": self.delivery_cost,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


def _as_quantity(value: Any) -> int:
    """Unparseable quantities read as 0 so stock bookkeeping skips them."""
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass
class OrderItem:
    """Line item frozen at order time; only serialized at the storage boundary."""
    product_id: int
    name: str
    price: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItem":
        return cls(
            product_id=int(data.get("productId", data.get("id", 0))),
            name=str(data.get("name", "")),
            price=money(data.get("price", 0)),
            quantity=_as_quantity(data.get("quantity")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": float(self.price),
            "quantity": self.quantity,
        }


class OrderStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def can_become(self, target: "OrderStatus") -> bool:
        return target == self or target in ORDER_TRANSITIONS[self]

    @property
    def is_payment_confirmed(self) -> bool:
        return self in (OrderStatus.PAID, OrderStatus.PROCESSING)


ORDER_TRANSITIONS: Dict[OrderStatus, frozenset] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PENDING_VERIFICATION = "pending_verification"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(StrEnum):
    BALANCE = "balance"
    DIRECT_TRANSFER = "directTransfer"
    YOOMONEY = "yoomoney"


class Order(BaseClass):
    table_name = "order_table"
    non_update = ["id", "user_id", "created_at"]
    json_columns = ("items", "status_history")
    bool_columns = ("need_insulation", "product_quantities_reduced")

    id: int
    user_id: int
    items: List[OrderItem]
    total_amount: float
    delivery_amount: float
    order_status: str
    payment_status: str
    promo_code: Optional[str]
    promo_code_discount: Optional[float]
    product_quantities_reduced: bool
    status_history: List[Dict[str, str]]

    @classmethod
    def _decode(cls, key: str, value: Any) -> Any:
        value = super()._decode(key, value)
        if key == "items":
            return [item if isinstance(item, OrderItem) else OrderItem.from_dict(item) for item in value or []]
        return value

    @classmethod
    def _encode(cls, key: str, value: Any) -> Any:
        if key == "items" and not isinstance(value, str):
            value = [item.to_dict() if isinstance(item, OrderItem) else item for item in value or []]
        return super()._encode(key, value)

    @property
    def items_total(self) -> Decimal:
        return sum((item.total for item in self.items), Decimal("0"))

    @property
    def status(self) -> OrderStatus:
        return OrderStatus(self.order_status or OrderStatus.PENDING)

    def to_client(self, product_images: Optional[Dict[int, str]] = None) -> Dict[str, Any]:
        items = []
        for item in self.items:
            data = item.to_dict()
            if product_images is not None:
                data["productImage"] = product_images.get(item.product_id)
            items.append(data)
        discount = self.promo_code_discount
        return {
            "id": self.id,
            "userId": self.user_id,
            "items": items,
            "itemsTotal": float(self.items_total),
            "totalAmount": self.total_amount,
            "deliveryAmount": self.delivery_amount or 0,
            "promoCode": self.promo_code,
            "promoCodeDiscount": discount if discount else None,
            "fullName": self.full_name or "",
            "address": self.address or "",
            "phone": self.phone or "",
            "socialNetwork": self.social_network,
            "socialUsername": self.social_username,
            "comment": self.comment or "",
            "deliveryType": self.delivery_type,
            "deliverySpeed": self.delivery_speed or "standard",
            "needInsulation": bool(self.need_insulation),
            "paymentMethod": self.payment_method,
            "paymentStatus": self.payment_status,
            "orderStatus": self.order_status,
            "paymentProofUrl": self.payment_proof_url,
            "adminComment": self.admin_comment or "",
            "trackingNumber": self.tracking_number,
            "estimatedDeliveryDate": self.estimated_delivery_date,
            "actualDeliveryDate": self.actual_delivery_date,
            "lastStatusChangeAt": self.last_status_change_at,
            "statusHistory": self.status_history,
            "productQuantitiesReduced": bool(self.product_quantities_reduced),
            "receiptNumber": self.receipt_number,
            "receiptUrl": self.receipt_url,
            "receiptGeneratedAt": self.receipt_generated_at,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class PromoCode(BaseClass):
    table_name = "promo_code_table"
    bool_columns = ("is_active",)

    id: int
    code: str
    discount_type: str
    discount_value: float
    min_order_amount: Optional[float]
    start_date: str
    end_date: str
    max_uses: Optional[int]
    current_uses: int
    is_active: bool

    def to_client(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discountType": self.discount_type,
            "discountValue": self.discount_value,
            "minOrderAmount": self.min_order_amount,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "maxUses": self.max_uses,
            "currentUses": self.current_uses,
            "isActive": bool(self.is_active),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class PromoCodeUse(BaseClass):
    table_name = "promo_code_use_table"
    non_update = ["id", "promo_code_id", "user_id", "order_id", "used_at"]


class Review(BaseClass):
    table_name = "review_table"
    non_update = ["id", "product_id", "user_id", "created_at"]
    json_columns = ("images",)
    bool_columns = ("is_approved",)

    def to_client(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "productId": self.product_id,
            "rating": self.rating,
            "text": self.text,
            "images": self.images,
            "isApproved": bool(self.is_approved),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class PaymentDetails(BaseClass):
    """Single row holding the bank transfer details shown at checkout."""
    table_name = "payment_details_table"
    bool_columns = ("card_number_secure",)

    @classmethod
    def current(cls, cur: Any = None) -> "PaymentDetails":
        rows = cls.get(cur=cur, order_by="id")
        if rows:
            return rows[0]
        return cls.new(cur=cur, card_number="", card_holder="", bank_name="", instructions="")

    @property
    def plain_card_number(self) -> str:
        if self.card_number and self.card_number_secure:
            return encryption.decrypt_data(self.card_number)
        return self.card_number or ""

    def set_card_number(self, card_number: str) -> None:
        if card_number and encryption.is_enabled():
            self.card_number = encryption.encrypt_data(card_number)
            self.card_number_secure = True
        else:
            self.card_number = card_number
            self.card_number_secure = False

    def to_client(self) -> Dict[str, Any]:
        card_number = self.plain_card_number
        bank_details = "\n".join(
            line for line in (
                f"Card number: {card_number}" if card_number else "",
                f"Card holder: {self.card_holder}" if self.card_holder else "",
                f"Bank: {self.bank_name}" if self.bank_name else "",
            ) if line
        )
        return {
            "cardNumber": card_number,
            "cardHolder": self.card_holder,
            "bankName": self.bank_name,
            "instructions": self.instructions,
            "qrCodeUrl": self.qr_code_url,
            "bankDetails": bank_details,
            "updatedAt": self.updated_at,
        }


class Setting(BaseClass):
    table_name = "setting_table"
    non_update = ["id", "key", "created_at"]

    def __repr__(self) -> str:
        return f"<Setting {self.key}={self.value}>"

    def __str__(self) -> str:
        return str(self.value)


class Notification(BaseClass):
    table_name = "notification_table"
    bool_columns = ("is_read",)

    def to_client(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "message": self.message,
            "orderId": self.order_id,
            "isRead": bool(self.is_read),
            "createdAt": self.created_at,
        }


def notify(user_id: int, type_: str, message: str, order_id: Optional[int] = None, cur: Any = None) -> Notification:
    return Notification.new(cur=cur, user_id=user_id, type=type_, message=message, order_id=order_id)
