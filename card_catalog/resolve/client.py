"""Ximilar recognition API client."""

import asyncio
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import aiohttp

from card_catalog.core.types import ImageInput, TransportFailure
from card_catalog.utils.config import Settings, settings as default_settings
from card_catalog.utils.log import LoggerMixin
from card_catalog.utils.validation import validate_token

RawResponse = Dict[str, Any]


class Endpoint(str, Enum):
    SPORT_ID = "/collectibles/v2/sport_id"
    TCG_ID = "/collectibles/v2/tcg_id"
    COMICS_ID = "/collectibles/v2/comics_id"
    SLAB_ID = "/collectibles/v2/slab_id"
    ANALYZE = "/collectibles/v2/analyze"
    DETECT = "/collectibles/v2/detect"
    PROCESS = "/collectibles/v2/process"
    CARD_OCR_ID = "/collectibles/v2/card_ocr_id"
    GRADE = "/card-grader/v2/grade"
    CONDITION = "/card-grader/v2/condition"
    CENTERING = "/card-grader/v2/centering"


def build_payload(
    image: ImageInput,
    *,
    pricing: Optional[bool] = None,
    slab_id: Optional[bool] = None,
    slab_grade: Optional[bool] = None,
    analyze_all: Optional[bool] = None,
    lang: Optional[str] = None,
    price_sources: Optional[List[str]] = None,
    back_image: Optional[ImageInput] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build a request body; flags left at None are not sent."""
    records = [image.to_record()]
    if back_image is not None:
        records[0]["Side"] = "front"
        records.append({**back_image.to_record(), "Side": "back"})

    body: Dict[str, Any] = {"records": records}
    flags = {
        "pricing": pricing,
        "slab_id": slab_id,
        "slab_grade": slab_grade,
        "analyze_all": analyze_all,
        "lang": lang,
        "price_sources": price_sources,
    }
    body.update({k: v for k, v in flags.items() if v is not None})
    if extra:
        body.update(extra)
    return body


class RecognitionClient(LoggerMixin):
    """Issues authenticated POSTs against the recognition endpoints.

    ``call`` never raises for transport problems: non-2xx statuses, network
    exceptions and undecodable bodies come back as ``TransportFailure``. The
    only exception it lets through is ``ConfigurationError`` for a missing
    token, raised before any request is made.
    """

    def __init__(self, token: Optional[str] = None, settings: Optional[Settings] = None,
                 base_url: Optional[str] = None):
        self.settings = settings or default_settings
        self.base_url = (base_url or self.settings.XIMILAR_BASE_URL).rstrip("/")
        self._token = token
        self.session: Optional[aiohttp.ClientSession] = None

    def set_token(self, token: Optional[str]) -> None:
        """Override the configured token for subsequent calls; None clears it."""
        self._token = token.strip() if isinstance(token, str) and token.strip() else None

    def resolve_token(self) -> str:
        """Runtime token first, then configuration."""
        return validate_token(self._token or self.settings.XIMILAR_API_TOKEN)

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()

    async def call(self, endpoint: Endpoint, payload: Dict[str, Any]) -> Union[RawResponse, TransportFailure]:
        token = self.resolve_token()
        headers = {
            "Authorization": f"Token {token}",
            "Content-Type": "application/json",
        }
        url = f"{self.base_url}{endpoint.value}"
        context = self.log_start("recognition_call", endpoint=endpoint.name)

        try:
            await self._ensure_session()
            async with self.session.post(url, json=payload, headers=headers) as response:
                if not 200 <= response.status < 300:
                    failure = TransportFailure(endpoint.name, f"HTTP {response.status}", response.status)
                    self.log_error(context, failure.reason, status=response.status)
                    return failure
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            failure = TransportFailure(endpoint.name, str(e) or type(e).__name__)
            self.log_error(context, e)
            return failure
        except Exception as e:
            # e.g. RuntimeError from a session closed underneath the request
            failure = TransportFailure(endpoint.name, f"{type(e).__name__}: {e}")
            self.log_error(context, e, unexpected=True)
            return failure

        if not isinstance(data, dict):
            failure = TransportFailure(endpoint.name, "response body is not a JSON object", response.status)
            self.log_error(context, failure.reason)
            return failure

        self.log_success(context, status=response.status)
        return data

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def __aenter__(self) -> "RecognitionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
