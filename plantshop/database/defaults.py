import bcrypt
from typing import Any, Dict, List, Mapping


def build_default_list(config: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """
    Rows that must exist after startup.
    Each entry is seeded only when no row with ``key == value`` exists yet.
    """
    admin_email = str(config.get("ADMIN_EMAIL", "")).strip().lower()
    admin_password = str(config.get("ADMIN_PASSWORD", ""))
    return [
        {
            "object_name": "USER",
            "type": "NOT_NULL",
            "key": "email",
            "value": admin_email,
            "data": {
                "username": admin_email.split("@")[0],
                "full_name": "Administrator",
                "is_admin": 1,
                "password": bcrypt.hashpw(
                    admin_password.encode("utf-8"), bcrypt.gensalt(int(config.get("BCRYPT_ROUNDS", 12)))
                ).decode("utf-8"),
            },
        },
        {
            "object_name": "SETTING",
            "type": "NOT_NULL",
            "key": "key",
            "value": "site_name",
            "data": {"value": config.get("STORE_NAME", "Jungle Plants"), "description": "The website name"},
        },
        {
            "object_name": "SETTING",
            "type": "NOT_NULL",
            "key": "key",
            "value": "currency",
            "data": {"value": "RUB", "description": "The display currency"},
        },
        {
            "object_name": "SETTING",
            "type": "NOT_NULL",
            "key": "key",
            "value": "contact_email",
            "data": {"value": admin_email, "description": "Primary contact email visible on website"},
        },
        {
            "object_name": "SETTING",
            "type": "NOT_NULL",
            "key": "key",
            "value": "contact_phone",
            "data": {"value": "", "description": "Primary contact phone visible on website"},
        },
        {
            "object_name": "PAYMENT_DETAILS",
            "type": "SINGLE_ROW",
            "data": {
                "card_number": "",
                "card_holder": "",
                "bank_name": "",
                "instructions": "Transfer the order total and upload the payment receipt.",
            },
        },
    ]
