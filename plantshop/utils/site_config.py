"""
Read path for the public key/value settings.
Kept as one JSON blob in Redis; the database stays authoritative and is
used directly whenever Redis is disabled or unreachable.
"""
import json
from typing import Any, Dict

import redis

from .extensions import redis_client
from .logging import get_logger

log = get_logger(__name__)

CONFIG_KEY = "plantshop:config:settings"


def _load_from_db() -> Dict[str, Any]:
    from plantshop.models import models  # late import, circular otherwise

    return {setting.key: setting.value for setting in models.Setting.get(order_by="key")}


def cache_config() -> Dict[str, Any]:
    """Push all settings to Redis. Overwrites the key on every call."""
    settings = _load_from_db()
    if not redis_client.enabled:
        return settings
    try:
        redis_client.client.set(CONFIG_KEY, json.dumps(settings))
        log.info("Site config cached to Redis (%d keys)", len(settings))
    except redis.RedisError as e:
        log.warning("Could not cache site config: %s", e)
    return settings


def get_settings() -> Dict[str, Any]:
    if redis_client.enabled:
        try:
            raw = redis_client.client.get(CONFIG_KEY)
        except redis.RedisError as e:
            log.warning("Redis unavailable, reading settings from DB: %s", e)
            return _load_from_db()
        if raw is not None:
            try:
                return json.loads(raw)
            except json.JSONDecodeError:
                log.warning("Corrupted Redis config key, falling back to DB")
        return cache_config()
    return _load_from_db()


def get_config(key: str, default: Any = None) -> Any:
    return get_settings().get(key, default)


def invalidate_config_cache() -> None:
    """Call from admin routes after settings changes."""
    if not redis_client.enabled:
        return
    try:
        redis_client.client.delete(CONFIG_KEY)
        log.info("Invalidated Redis settings cache")
    except redis.RedisError as e:
        log.warning("Could not invalidate settings cache: %s", e)
