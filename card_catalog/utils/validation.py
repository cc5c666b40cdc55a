"""
Input validation utilities for the card catalog application.

Everything here rejects caller-side defects before a network call is made:
unusable image payloads, missing credentials and unknown options.
"""

import re
from typing import Any, List, Optional, Union
from pathlib import Path

from card_catalog.core.constants import CONDITION_MODES
from card_catalog.core.types import ImageInput
from card_catalog.utils.config import settings
from card_catalog.utils.error_handler import ConfigurationError, InvalidInputError

_URL_PATTERN = re.compile(
    r'^https?://'  # http:// or https://
    r'(?:(?:[A-Z0-9](?:[A-Z0-9-]{0,61}[A-Z0-9])?\.)+[A-Z]{2,63}\.?|'  # domain...
    r'localhost|'  # localhost...
    r'\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})'  # ...or ip
    r'(?::\d{1,5})?'  # optional port
    r'(?:/?|[/?]\S+)$', re.IGNORECASE)

_BASE64_PATTERN = re.compile(r'^[A-Za-z0-9+/_\-\s]+={0,2}\s*$')


def validate_file_path(file_path: Union[str, Path], must_exist: bool = False) -> Path:
    """
    Validate and normalize a file path.

    Args:
        file_path: File path to validate
        must_exist: Whether the file must already exist

    Returns:
        Normalized Path object

    Raises:
        InvalidInputError: If path is invalid or file doesn't exist when required
    """
    try:
        path = Path(file_path)

        if must_exist and not path.is_file():
            raise InvalidInputError(
                f"File does not exist: {path}",
                details={"file_path": str(path), "must_exist": must_exist}
            )

        return path.resolve()

    except InvalidInputError:
        raise
    except Exception as e:
        raise InvalidInputError(
            f"Invalid file path: {file_path}",
            details={"file_path": str(file_path), "error": str(e)}
        )


def validate_base64_payload(payload: Any, min_length: Optional[int] = None) -> str:
    """
    Validate a base64 image payload.

    Only a cheap plausibility check: the payload must be a string of base64
    characters at least ``min_length`` long. A ``data:`` URI prefix is
    stripped.

    Raises:
        InvalidInputError: If the payload is empty, implausibly short or not base64
    """
    if min_length is None:
        min_length = settings.MIN_IMAGE_PAYLOAD_LENGTH

    if not isinstance(payload, str) or not payload.strip():
        raise InvalidInputError(
            "Image payload must be a non-empty base64 string",
            details={"payload_type": type(payload).__name__}
        )

    data = payload.strip()
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]

    if len(data) < min_length:
        raise InvalidInputError(
            f"Image payload too short: {len(data)} characters",
            details={"length": len(data), "min_length": min_length}
        )

    if not _BASE64_PATTERN.match(data):
        raise InvalidInputError(
            "Image payload is not base64 encoded",
            details={"length": len(data)}
        )

    return data


def validate_image_url(url: Any, allowed_schemes: Optional[List[str]] = None) -> str:
    """
    Validate a remote image URL.

    Raises:
        InvalidInputError: If the URL is malformed or uses another scheme
    """
    if allowed_schemes is None:
        allowed_schemes = ['http', 'https']

    if not isinstance(url, str) or not _URL_PATTERN.match(url.strip()):
        raise InvalidInputError(
            f"Invalid image URL: {url}",
            details={"url": url, "allowed_schemes": allowed_schemes}
        )

    url = url.strip()
    scheme = url.split('://')[0].lower()
    if scheme not in allowed_schemes:
        raise InvalidInputError(
            f"URL scheme '{scheme}' not allowed. Allowed schemes: {allowed_schemes}",
            details={"url": url, "scheme": scheme, "allowed_schemes": allowed_schemes}
        )

    return url


def validate_image_input(image: Any, min_length: Optional[int] = None) -> ImageInput:
    """
    Validate an image handed over by the capture side.

    Returns a normalized ImageInput (trimmed payload or URL).

    Raises:
        InvalidInputError: If no usable payload is present
    """
    if not isinstance(image, ImageInput):
        raise InvalidInputError(
            "Expected an ImageInput",
            details={"type": type(image).__name__}
        )

    if image.base64 is not None:
        data = validate_base64_payload(image.base64, min_length=min_length)
        return ImageInput(base64=data, image_uri=image.image_uri)

    if image.url is not None:
        url = validate_image_url(image.url)
        return ImageInput(url=url, image_uri=image.image_uri or url)

    raise InvalidInputError("Image carries neither a base64 payload nor a URL")


def validate_token(token: Optional[str]) -> str:
    """
    Validate an API token.

    Raises:
        ConfigurationError: If the token is missing or a placeholder value
    """
    if not token or not isinstance(token, str) or not token.strip():
        raise ConfigurationError(
            "Recognition API token is not configured",
            details={"setting": "XIMILAR_API_TOKEN"}
        )

    normalized = token.strip()
    if normalized.lower() in ['none', 'null', 'undefined']:
        raise ConfigurationError(
            "Recognition API token cannot be a placeholder value",
            details={"setting": "XIMILAR_API_TOKEN"}
        )

    return normalized


def validate_condition_mode(mode: Any) -> str:
    """
    Validate a condition grading mode.

    Raises:
        InvalidInputError: If the mode is not supported by the grading service
    """
    normalized = str(mode or "").strip().lower()
    if normalized not in CONDITION_MODES:
        raise InvalidInputError(
            f"Condition mode '{mode}' is not allowed. Allowed values: {list(CONDITION_MODES)}",
            details={"mode": mode, "allowed_values": list(CONDITION_MODES)}
        )
    return normalized
