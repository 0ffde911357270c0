from flask import current_app
from cryptography.fernet import Fernet, InvalidToken
from .logging import get_logger

log = get_logger(__name__)


def get_key() -> bytes | None:
    key = current_app.config.get("ENCRYPTION_KEY")
    return key.encode("utf-8") if key else None


def is_enabled() -> bool:
    return get_key() is not None


def encrypt_data(plain_text: str) -> str:
    if not plain_text:
        raise ValueError("Cannot encrypt nothing")
    key = get_key()
    if key is None:
        raise ValueError("No Encryption Key Specified")
    try:
        return Fernet(key).encrypt(plain_text.encode("utf-8")).decode("utf-8")
    except ValueError as e:
        log.error(f"Encryption Failed: {e}")
        raise RuntimeError("Encryption Error") from e


def decrypt_data(cipher_text: str) -> str:
    if not cipher_text:
        raise ValueError("Cannot decrypt nothing")
    key = get_key()
    if key is None:
        raise ValueError("No Encryption Key Specified")
    try:
        return Fernet(key).decrypt(cipher_text.encode("utf-8")).decode("utf-8")
    except InvalidToken:
        log.warning("Invalid decryption token")
        raise ValueError("Invalid or corrupted Cipher Text")
