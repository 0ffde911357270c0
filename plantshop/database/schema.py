schema = [
    {"table_name": "user_table",
    "table_columns": {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "username": "TEXT NOT NULL",
        "email": "TEXT UNIQUE NOT NULL COLLATE NOCASE",
        "password": "TEXT NOT NULL",
        "full_name": "TEXT NOT NULL",
        "phone": "TEXT",
        "address": "TEXT",
        "is_admin": "BOOL DEFAULT 0",
        "balance": "TEXT DEFAULT '0.00'",
        "cart": "TEXT DEFAULT '[]'",
        "created_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at": "TIMESTAMP"
        }},
    {"table_name": "product_table",
    "table_columns": {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "name": "TEXT NOT NULL",
        "description": "TEXT DEFAULT ''",
        "price": "FLOAT DEFAULT 0.0",
        "original_price": "FLOAT",
        "images": "TEXT DEFAULT '[]'",
        "quantity": "INTEGER DEFAULT 0",
        "category": "TEXT DEFAULT ''",
        "is_available": "BOOL DEFAULT 1",
        "is_preorder": "BOOL DEFAULT 0",
        "is_rare": "BOOL DEFAULT 0",
        "is_easy_to_care": "BOOL DEFAULT 0",
        "labels": "TEXT DEFAULT '[]'",
        "delivery_cost": "FLOAT DEFAULT 0.0",
        "created_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
        "updated_at": "TIMESTAMP"
        }},
    {
        "table_name": "order_table",
        "table_columns": {
            "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
            "user_id": "INTEGER NOT NULL",
            "items": "TEXT DEFAULT '[]'",   # line item snapshot, see OrderItem
            "total_amount": "FLOAT DEFAULT 0.0",
            "delivery_amount": "FLOAT DEFAULT 0.0",
            "full_name": "TEXT",
            "address": "TEXT",
            "phone": "TEXT",
            "social_network": "TEXT",
            "social_username": "TEXT",
            "comment": "TEXT",
            "need_insulation": "BOOL DEFAULT 0",
            "delivery_type": "TEXT",
            "delivery_speed": "TEXT",
            "payment_method": "TEXT",
            "payment_status": "TEXT DEFAULT 'pending'",
            "order_status": "TEXT DEFAULT 'pending'",
            "payment_proof_url": "TEXT",
            "admin_comment": "TEXT",
            "promo_code": "TEXT",
            "promo_code_discount": "FLOAT",
            "tracking_number": "TEXT",
            "estimated_delivery_date": "TEXT",
            "actual_delivery_date": "TEXT",
            "last_status_change_at": "TIMESTAMP",
            "status_history": "TEXT DEFAULT '[]'",
            "product_quantities_reduced": "BOOL DEFAULT 0",
            "receipt_number": "TEXT",
            "receipt_url": "TEXT",
            "receipt_generated_at": "TIMESTAMP",
            "created_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "updated_at": "TIMESTAMP",
            "FOREIGN KEY": [{
                    "key": "user_id",
                    "parent_table": "user_table",
                    "parent_key": "id"
                }]
        }},
    {
        "table_name": "review_table",
        "table_columns": {
            "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
            "user_id": "INTEGER NOT NULL",
            "product_id": "INTEGER NOT NULL",
            "rating": "INTEGER NOT NULL",
            "text": "TEXT NOT NULL",
            "images": "TEXT DEFAULT '[]'",
            "is_approved": "BOOL DEFAULT 0",
            "created_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "updated_at": "TIMESTAMP",
            "FOREIGN KEY": [{
                    "key": "user_id",
                    "parent_table": "user_table",
                    "parent_key": "id"
                },
                {
                    "key": "product_id",
                    "parent_table": "product_table",
                    "parent_key": "id"
                }]
        }},
    {
        "table_name": "promo_code_table",
        "table_columns": {
            "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
            "code": "TEXT UNIQUE NOT NULL",
            "description": "TEXT",
            "discount_type": "TEXT NOT NULL CHECK (discount_type IN ('percentage', 'fixed'))",
            "discount_value": "FLOAT NOT NULL",
            "min_order_amount": "FLOAT",
            "start_date": "TIMESTAMP NOT NULL",
            "end_date": "TIMESTAMP NOT NULL",
            "max_uses": "INTEGER",
            "current_uses": "INTEGER DEFAULT 0",
            "is_active": "BOOL DEFAULT 1",
            "created_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "updated_at": "TIMESTAMP"
        }},
    {
        "table_name": "promo_code_use_table",
        "table_columns": {
            "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
            "promo_code_id": "INTEGER NOT NULL",
            "user_id": "INTEGER NOT NULL",
            "order_id": "INTEGER NOT NULL",
            "discount_amount": "FLOAT DEFAULT 0.0",
            "used_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "FOREIGN KEY": [{
                    "key": "promo_code_id",
                    "parent_table": "promo_code_table",
                    "parent_key": "id",
                    "instruction": "ON DELETE CASCADE"
                },
                {
                    "key": "order_id",
                    "parent_table": "order_table",
                    "parent_key": "id"
                }]
        }},
    {
        "table_name": "payment_details_table",
        "table_columns": {
            "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
            "card_number": "TEXT DEFAULT ''",
            "card_number_secure": "BOOL DEFAULT 0",
            "card_holder": "TEXT DEFAULT ''",
            "bank_name": "TEXT DEFAULT ''",
            "instructions": "TEXT DEFAULT ''",
            "qr_code_url": "TEXT",
            "created_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "updated_at": "TIMESTAMP"
        }},
    {
        "table_name": "setting_table",
        "table_columns": {
            "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
            "key": "TEXT UNIQUE NOT NULL",
            "value": "TEXT",
            "description": "TEXT",
            "created_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "updated_at": "TIMESTAMP"
        }},
    {
        "table_name": "notification_table",
        "table_columns": {
            "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
            "user_id": "INTEGER NOT NULL",
            "type": "TEXT NOT NULL",
            "message": "TEXT NOT NULL",
            "order_id": "INTEGER",
            "is_read": "BOOL DEFAULT 0",
            "created_at": "TIMESTAMP DEFAULT CURRENT_TIMESTAMP",
            "FOREIGN KEY": [{
                    "key": "user_id",
                    "parent_table": "user_table",
                    "parent_key": "id"
                }]
        }},
]
