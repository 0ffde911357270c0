import pathlib
import uuid
from typing import List

from PIL import Image as PilImage, UnidentifiedImageError

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from plantshop.utils.exceptions import ValidationError
from plantshop.utils.logging import get_logger

log = get_logger(__name__)


def upload_dir() -> pathlib.Path:
    path = pathlib.Path(current_app.config["UPLOAD_FOLDER"])
    path.mkdir(parents=True, exist_ok=True)
    return path


def _extension(filename: str) -> str:
    name = secure_filename(filename or "")
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def save_image(file: FileStorage | None, prefix: str = "image") -> str:
    """
    Validate, downsize and re-encode an uploaded image.
    Returns the public URL (/uploads/<name>).
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")
    ext = _extension(file.filename)
    allowed_extensions = current_app.config.get("IMAGE_EXTENSIONS", {"png", "jpg", "jpeg", "gif", "webp"})
    if ext not in allowed_extensions:
        raise ValidationError(f"Only images are allowed ({', '.join(sorted(allowed_extensions))})")

    try:
        img = PilImage.open(file.stream)
        img.verify()
        file.stream.seek(0)
        img = PilImage.open(file.stream)
        img.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        log.warning("Rejected upload %s: %s", file.filename, e)
        raise ValidationError("Uploaded file is not a valid image") from e

    # Resize to fit within IMAGE_MAX_SIZE while preserving aspect ratio
    max_size = current_app.config.get("IMAGE_MAX_SIZE", 1000)
    if img.width > max_size or img.height > max_size:
        ratio = min(max_size / img.width, max_size / img.height)
        new_size = (int(img.width * ratio), int(img.height * ratio))
        img = img.resize(new_size, PilImage.Resampling.LANCZOS)

    # Format-specific options (compression/quality)
    save_kwargs = {}
    if ext in {"jpg", "jpeg"}:
        if img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        save_kwargs["quality"] = 85
        save_kwargs["optimize"] = True
    elif ext == "png":
        save_kwargs["optimize"] = True
        save_kwargs["compress_level"] = 6
    elif ext == "webp":
        save_kwargs["quality"] = 80
    elif ext == "gif":
        save_kwargs["optimize"] = True

    filename = f"{prefix}-{uuid.uuid4().hex}.{ext}"
    img.save(str(upload_dir() / filename), **save_kwargs)
    log.info("Saved upload %s as %s", file.filename, filename)
    return f"/uploads/{filename}"


def save_images(files: List[FileStorage], prefix: str = "image") -> List[str]:
    limit = current_app.config.get("MAX_UPLOAD_FILES", 10)
    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > limit:
        raise ValidationError(f"At most {limit} files can be uploaded at once")
    return [save_image(file, prefix) for file in files]
