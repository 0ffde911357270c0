from flask import Response, current_app, jsonify, request, send_from_directory

from . import bp
from . import forms
from plantshop.models import models
from plantshop.processor import save_image, save_images
from plantshop.processor.uploads import upload_dir
from plantshop.utils import site_config
from plantshop.utils.helpers import admin_required, json_body
from plantshop.utils.logging import get_logger

log = get_logger(__name__)


@bp.route("/api/settings")
def settings() -> Response:
    return jsonify(site_config.get_settings())


@bp.route("/api/settings", methods=["PUT"])
@admin_required
def update_setting() -> Response:
    form = forms.SettingForm(json_body()).validate_or_raise()
    setting = models.Setting.get_one(key=form.key.data)
    value = form.value.data or ""
    if setting is None:
        models.Setting.new(key=form.key.data, value=value, description=form.description.data or "")
    else:
        setting.value = value
        keys = ["value"]
        if form.description.data:
            setting.description = form.description.data
            keys.append("description")
        setting.update(*keys)
    site_config.invalidate_config_cache()
    log.info("Setting %s updated", form.key.data)
    return jsonify(site_config.cache_config())


@bp.route("/api/payment-details")
def payment_details() -> Response:
    return jsonify(models.PaymentDetails.current().to_client())


@bp.route("/api/payment-details", methods=["PUT"])
@admin_required
def update_payment_details() -> Response:
    form = forms.PaymentDetailsForm(json_body()).validate_or_raise()
    details = models.PaymentDetails.current()
    fields = form.submitted()
    card_number = fields.pop("card_number", None)
    keys = list(fields)
    for key, value in fields.items():
        setattr(details, key, value)
    if card_number is not None:
        details.set_card_number(card_number.replace(" ", ""))
        keys += ["card_number", "card_number_secure"]
    details.update(*keys)
    log.info("Payment details updated (%s)", ", ".join(keys) or "no changes")
    return jsonify(models.PaymentDetails.current().to_client())


@bp.route("/api/upload", methods=["POST"])
@admin_required
def upload() -> tuple[Response, int]:
    return jsonify(imageUrl=save_image(request.files.get("image"), prefix="product")), 201


@bp.route("/api/upload-images", methods=["POST"])
@admin_required
def upload_images() -> tuple[Response, int]:
    return jsonify(imageUrls=save_images(request.files.getlist("images"), prefix="product")), 201


@bp.route("/api/upload-qr-code", methods=["POST"])
@admin_required
def upload_qr_code() -> tuple[Response, int]:
    url = save_image(request.files.get("qrCode"), prefix="qr")
    details = models.PaymentDetails.current()
    details.qr_code_url = url
    details.update("qr_code_url")
    return jsonify(qrCodeUrl=url), 201


@bp.route("/uploads/<path:filename>")
def uploaded_file(filename: str) -> Response:
    return send_from_directory(upload_dir(), filename)


@bp.route("/receipts/<path:filename>")
def receipt_file(filename: str) -> Response:
    return send_from_directory(current_app.config["RECEIPT_FOLDER"], filename, mimetype="application/pdf")
