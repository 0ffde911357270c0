from plantshop.utils.logging import get_logger
from typing import Dict, List, Any

log = get_logger(__name__)


def _map_type(col_type: str) -> str:
    """Map schema type strings to SQLite column definitions."""
    parts = col_type.split()
    base_type = parts[0].upper()
    constraints = " ".join(parts[1:])

    type_map = {
        "INTEGER": "INTEGER",
        "TEXT": "TEXT",
        "FLOAT": "REAL",
        "TIMESTAMP": "TEXT",
        "BOOL": "INTEGER",
    }
    mapped_base = type_map.get(base_type, base_type)
    return f"{mapped_base} {constraints}".strip()


def _table_exists(cur: Any, table_name: str) -> bool:
    cur.execute("SELECT 1 FROM sqlite_master WHERE type='table' AND name=?", (table_name,))
    return cur.fetchone() is not None


def _existing_columns(cur: Any, table_name: str) -> Dict[str, str]:
    cur.execute(f"PRAGMA table_info({table_name})")
    return {row["name"].lower(): row["type"].lower() for row in cur.fetchall()}


def _create_table(cur: Any, table_name: str, cols_def: Dict[str, Any]) -> None:
    parts = []
    for col_name, col_type in cols_def.items():
        if col_name.upper() in ("FOREIGN KEY", "UNIQUE"):
            continue
        mapped_type = _map_type(col_type)
        if "NOT NULL" in mapped_type.upper() and "DEFAULT" not in mapped_type.upper() \
                and "PRIMARY KEY" not in mapped_type.upper():
            default_val = "''" if mapped_type.upper().startswith("TEXT") else "0"
            mapped_type += f" DEFAULT {default_val}"
        parts.append(f"{col_name} {mapped_type}")

    if "UNIQUE" in cols_def:
        for group in cols_def["UNIQUE"]:
            parts.append(f"UNIQUE ({', '.join(group)})")

    if "FOREIGN KEY" in cols_def:
        for fk in cols_def["FOREIGN KEY"]:
            instr = fk.get("instruction", "").strip()
            parts.append(
                f"FOREIGN KEY ({fk['key']}) REFERENCES {fk['parent_table']}({fk['parent_key']}) {instr}".strip()
            )
    cur.execute(f"CREATE TABLE {table_name} ({', '.join(parts)})")


def _add_column(cur: Any, table_name: str, col_name: str, col_type: str) -> None:
    mapped_type = _map_type(col_type)
    # SQLite cannot add UNIQUE/PK columns; NOT NULL needs a default
    mapped_type = mapped_type.replace("UNIQUE", "").strip()
    if "NOT NULL" in mapped_type.upper() and "DEFAULT" not in mapped_type.upper():
        default_val = "''" if mapped_type.upper().startswith("TEXT") else "0"
        mapped_type += f" DEFAULT {default_val}"
    cur.execute(f"ALTER TABLE {table_name} ADD COLUMN {col_name} {mapped_type}")


def setupDB(schema: List[Dict[str, Any]], db: Any) -> None:
    """
    Synchronize DB schema:
    - Create missing tables with all columns/constraints.
    - Add missing columns to existing tables (no data loss).
    Safe to run on every startup.
    """
    if not schema:
        log.error("No schema provided")
        return

    with db.connection() as (conn, cur):
        for table_def in schema:
            table_name = table_def["table_name"]
            cols_def = table_def["table_columns"]

            if not _table_exists(cur, table_name):
                _create_table(cur, table_name, cols_def)
                log.info(f"Created table {table_name}")
                continue

            existing_cols = _existing_columns(cur, table_name)
            for col_name, col_type in cols_def.items():
                if col_name.upper() in ("FOREIGN KEY", "UNIQUE"):
                    continue
                if col_name.lower() not in existing_cols:
                    _add_column(cur, table_name, col_name, col_type)
                    log.info(f"Added column {table_name}.{col_name}")
        log.info("Schema sync complete")
