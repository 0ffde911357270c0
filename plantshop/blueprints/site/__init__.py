from flask import Blueprint
from plantshop.blueprints import register_blueprint

bp = Blueprint('site', __name__)

from . import routes

register_blueprint(bp)
