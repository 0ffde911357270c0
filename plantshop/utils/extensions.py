from plantshop.utils.logging import get_logger

from flask import Flask, jsonify
from flask_login import LoginManager
import redis
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from redis import Redis

logger = get_logger(__name__)

login_manager = LoginManager()


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify(message="Authentication required"), 401


class RedisClient:
    """Optional Redis connection; ``enabled`` is False when REDIS_URL is empty."""

    def __init__(self) -> None:
        self._client: "Redis | None" = None

    def init_app(self, app: Flask) -> None:
        url = app.config.get("REDIS_URL")
        self._client = redis.from_url(url, decode_responses=True) if url else None
        if self._client is None:
            logger.info("REDIS_URL not set, settings cache disabled")
        app.extensions["redis"] = self

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> "Redis":
        if self._client is None:
            raise RuntimeError("Redis not initialized")
        return self._client


redis_client = RedisClient()
