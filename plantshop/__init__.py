import os
from typing import Any, Mapping, Optional

from flask import Flask

from dotenv import load_dotenv

from .config import config_by_name
from .utils.logging import setup_logging
from .utils.extensions import login_manager, redis_client
from .database import db

load_dotenv()


def _load_config(app: Flask, config_name: str, test_config: Optional[Mapping[str, Any]]) -> None:
    config_class = config_by_name[config_name]
    app.config.from_object(config_class)
    app.config.from_envvar("PLANTSHOP_SETTINGS", silent=True)
    if test_config:
        app.config.from_mapping(test_config)
    config_class.init_app(app)


def _prepare_store(app: Flask) -> None:
    """Sync the schema, seed the admin and default rows, warm the settings cache."""
    from .models import models
    from .database import build_default_list
    from .utils.site_config import cache_config

    with app.app_context():
        db.checkDB()
        models.set_defaults(build_default_list(app.config))
        cache_config()

    @login_manager.user_loader
    def load_user(user_id: str) -> Optional[models.User]:
        # Read per request so role changes apply immediately
        return models.User.get_one(id=int(user_id))


def create_app(config_name: Optional[str] = None, test_config: Optional[Mapping[str, Any]] = None) -> Flask:
    """
    Application factory.
    ``test_config`` is applied last, after the PLANTSHOP_SETTINGS file.
    """
    config_name = config_name or os.getenv("FLASK_ENV", "default")
    app = Flask(__name__, instance_relative_config=True, static_folder=None)

    _load_config(app, config_name, test_config)
    setup_logging(app)

    # ------------------------------------------------------------------
    # Extensions
    # ------------------------------------------------------------------
    login_manager.init_app(app)
    redis_client.init_app(app)
    db.init_app(app)

    _prepare_store(app)

    # ------------------------------------------------------------------
    # Routes & error handling
    # ------------------------------------------------------------------
    from .blueprints import init_blueprints
    from .utils.error_handlers import register_error_handlers
    init_blueprints(app)
    register_error_handlers(app)

    app.logger.info("Plant shop ready (%s config, database %s)", config_name, db.path)
    return app
