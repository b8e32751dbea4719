import os
from typing import Any

from .exceptions import InvalidInputError

ALLOWED_IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".gif", ".webp"]
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

MAX_ID = 2 ** 31 - 1  # верхняя граница колонки Integer


def parse_id(value: Any, field: str = "ID") -> int:
    """
    Строгий разбор идентификатора: int или строка из ASCII-цифр, от 1 до MAX_ID.
    "12abc", "1.5", "²", True и пустые значения отклоняются.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"Invalid {field}")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise InvalidInputError(f"Invalid {field}")

    if parsed <= 0 or parsed > MAX_ID:
        raise InvalidInputError(f"Invalid {field}")
    return parsed


def require_text(value: Any, field: str) -> str:
    """Обязательное непустое строковое поле (пробелы не считаются)"""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"Missing required field: {field}")
    return value.strip()


def validate_image_upload(filename: str, content: bytes) -> None:
    """Проверка расширения и размера загружаемого изображения"""
    if not content:
        raise InvalidInputError("Image file is empty")

    if len(content) > MAX_IMAGE_SIZE:
        raise InvalidInputError(f"Image must not exceed {MAX_IMAGE_SIZE // (1024 * 1024)}MB")

    extension = os.path.splitext(filename or "")[1].lower()
    if extension not in ALLOWED_IMAGE_EXTENSIONS:
        raise InvalidInputError(
            f"Unsupported image format. Allowed: {', '.join(ALLOWED_IMAGE_EXTENSIONS)}"
        )
