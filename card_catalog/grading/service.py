"""Card condition grading against the dedicated grader endpoints."""

import asyncio
from typing import Any, Dict, Optional

from card_catalog.core.types import (
    CenteringResult,
    ConditionResult,
    GradeResult,
    GradingReport,
    ImageInput,
    TransportFailure,
)
from card_catalog.resolve.client import Endpoint, RecognitionClient, build_payload
from card_catalog.resolve.parse import first_record, objects_of, record_succeeded
from card_catalog.utils.config import settings
from card_catalog.utils.error_handler import ErrorContext, handle_error
from card_catalog.utils.log import LoggerMixin
from card_catalog.utils.validation import validate_condition_mode, validate_image_input


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_dict(value: Any) -> Optional[Dict[str, Any]]:
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return value[0]
    return None


class GradingService(LoggerMixin):
    """Grade, condition and centering assessments for an identified card.

    The three calls are independent of each other and of identification.
    """

    def __init__(self, client: RecognitionClient):
        self.client = client

    @staticmethod
    def _images(front: ImageInput, back: Optional[ImageInput]):
        front = validate_image_input(front)
        return front, validate_image_input(back) if back is not None else None

    async def _record(self, endpoint: Endpoint, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        response = await self.client.call(endpoint, payload)
        if isinstance(response, TransportFailure):
            return None
        record = first_record(response)
        return record if record_succeeded(record) else None

    async def grade(self, front: ImageInput, back: Optional[ImageInput] = None) -> Optional[GradeResult]:
        front, back = self._images(front, back)
        record = await self._record(Endpoint.GRADE, build_payload(front, back_image=back))
        if record is None:
            return None
        grades = _dict(record.get("grades"))
        return GradeResult(
            corners=_number(grades.get("corners")),
            edges=_number(grades.get("edges")),
            surface=_number(grades.get("surface")),
            centering=_number(grades.get("centering")),
            final=_number(grades.get("final")),
            condition=_string(grades.get("condition")),
        )

    async def condition(self, front: ImageInput, back: Optional[ImageInput] = None,
                        mode: Optional[str] = None) -> Optional[ConditionResult]:
        front, back = self._images(front, back)
        mode = validate_condition_mode(mode or settings.CONDITION_MODE)
        payload = build_payload(front, back_image=back, extra={"mode": mode})
        record = await self._record(Endpoint.CONDITION, payload)
        if record is None:
            return None

        entry = None
        objects = objects_of(record)
        if objects:
            entry = _first_dict(objects[0].get("Condition"))
        if entry is None:
            entry = _first_dict(record.get("Condition"))
        if entry is None:
            return None
        return ConditionResult(
            label=_string(entry.get("label")),
            scale_value=_number(entry.get("scale_value")),
            max_scale_value=_number(entry.get("max_scale_value")),
            mode=_string(entry.get("mode")),
        )

    async def centering(self, front: ImageInput, back: Optional[ImageInput] = None) -> Optional[CenteringResult]:
        front, back = self._images(front, back)
        record = await self._record(Endpoint.CENTERING, build_payload(front, back_image=back))
        if record is None:
            return None
        grades = _dict(record.get("grades"))
        card = _first_dict(record.get("card")) or {}
        info = _dict(card.get("centering"))
        return CenteringResult(
            centering=_number(grades.get("centering")),
            left_right=_string(info.get("left/right")),
            top_bottom=_string(info.get("top/bottom")),
        )

    async def assess(self, front: ImageInput, back: Optional[ImageInput] = None,
                     mode: Optional[str] = None) -> GradingReport:
        """Run grade, condition and centering concurrently.

        A failed call leaves its field empty without cancelling the others.
        Invalid input and a missing token raise before anything is sent.
        """
        front, back = self._images(front, back)
        mode = validate_condition_mode(mode or settings.CONDITION_MODE)
        self.client.resolve_token()

        context = self.log_start("assess_card", has_back=back is not None, mode=mode)
        results = await asyncio.gather(
            self.grade(front, back),
            self.condition(front, back, mode),
            self.centering(front, back),
            return_exceptions=True,
        )

        settled = []
        for name, result in zip(("grade", "condition", "centering"), results):
            if isinstance(result, Exception):
                error_context = ErrorContext(
                    operation="assess_card",
                    module=__name__,
                    function=name,
                    input_data={"has_back": back is not None, "mode": mode},
                )
                settled.append(handle_error(result, error_context, self.logger, reraise=False))
            else:
                settled.append(result)

        report = GradingReport(grade=settled[0], condition=settled[1], centering=settled[2])
        self.log_success(context, complete=report.complete)
        return report
