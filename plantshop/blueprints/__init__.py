"""
Central registry for all blueprints.
Import this from plantshop/__init__.py → one function call registers everything.
"""
from flask import Flask, Blueprint
from plantshop.utils.logging import get_logger
from typing import List, Tuple, Optional

log = get_logger(__name__)

BLUEPRINTS: List[Tuple[Blueprint, Optional[str]]] = []


def register_blueprint(bp: Blueprint, *, url_prefix: Optional[str] = None) -> None:
    """Helper used inside each blueprint's __init__.py"""
    BLUEPRINTS.append((bp, url_prefix))


def init_blueprints(app: Flask) -> None:
    """Call this once per app from the app factory"""
    for bp, prefix in BLUEPRINTS:
        app.register_blueprint(bp, url_prefix=prefix)
        log.debug("Blueprint registered: %s → %s", bp.name, prefix or "/")
    log.info("All %d blueprints registered", len(BLUEPRINTS))


from .auth import *
from .catalog import *
from .cart import *
from .orders import *
from .promo import *
from .users import *
from .site import *
from .exports import *
