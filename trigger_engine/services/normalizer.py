"""
Event normalization from raw storage rows.

Rows arrive as mappings (one per logged food item, medication dose or symptom
reading). Each row is normalized into zero or more canonical events with UTC
timestamps. A malformed row is reported as a ComputationError and dropped
without affecting the rest of the batch.
"""

import json
import math
import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

import structlog
from pydantic import ValidationError

from trigger_engine.domain.categories import classify_food, classify_medication
from trigger_engine.domain.errors import ComputationError
from trigger_engine.domain.models import ExposureCategory, ExposureEvent, OutcomeEvent, to_utc
from trigger_engine.services.result import Result

logger = structlog.get_logger(__name__)

Row = Mapping[str, Any]
ExposureResult = Result[list[ExposureEvent], ComputationError]
OutcomeResult = Result[OutcomeEvent, ComputationError]

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+))")


def parse_timestamp(value: Any) -> datetime:
    """Parse a datetime or ISO-8601 string into an aware UTC datetime."""
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, str) and value.strip():
        try:
            return to_utc(datetime.fromisoformat(value.strip()))
        except ValueError as exc:
            raise ComputationError(f"malformed timestamp {value!r}") from exc
    raise ComputationError(f"malformed timestamp {value!r}")


def parse_quantity(value: Any) -> float:
    """
    Parse a portion size or dosage amount.

    The leading number of a string is used ("2 cups" -> 2.0). Missing,
    unparsable, non-finite or negative values default to 1.0.
    """
    if isinstance(value, bool):
        return 1.0
    if isinstance(value, int | float):
        quantity = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if match is None:
            return 1.0
        quantity = float(match.group(1))
    else:
        return 1.0
    if not math.isfinite(quantity) or quantity < 0:
        return 1.0
    return quantity


def _optional_text(value: Any, field: str) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise ComputationError(f"non-text {field} {value!r}")


def _parse_allergens(value: Any) -> list[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError:
            return [part for part in value.split(",") if part.strip()]
        return [str(item) for item in decoded] if isinstance(decoded, list) else [str(decoded)]
    if not isinstance(value, list | tuple | set | frozenset):
        raise ComputationError(f"malformed allergens {value!r}")
    return [str(item) for item in value]


class EventNormalizer:
    """Turns raw intake and symptom rows into canonical events."""

    def __init__(self) -> None:
        self.logger = logger.bind(component="event_normalizer")

    def food_events(self, row: Row, index: int | None = None) -> ExposureResult:
        """One event per matched category, carrying the portion size as quantity."""
        try:
            timestamp = parse_timestamp(row.get("timestamp"))
            name = str(row.get("name") or "")
            categories = classify_food(
                name,
                _optional_text(row.get("category"), "category"),
                _parse_allergens(row.get("allergens")),
            )
            quantity = parse_quantity(row.get("portion_size"))
        except ComputationError as e:
            return Result.err(ComputationError(str(e), index))

        if not categories:
            self.logger.debug("food_unclassified", name=name, index=index)
        return Result.ok(
            [ExposureEvent(timestamp=timestamp, category=c, quantity=quantity) for c in categories]
        )

    def medication_events(self, row: Row, index: int | None = None) -> ExposureResult:
        try:
            timestamp = parse_timestamp(row.get("timestamp"))
            name = str(row.get("name") or "")
            categories = classify_medication(
                name, _optional_text(row.get("category"), "category")
            )
            quantity = parse_quantity(row.get("dosage_amount"))
        except ComputationError as e:
            return Result.err(ComputationError(str(e), index))

        if not categories:
            self.logger.debug("medication_unclassified", name=name, index=index)
        return Result.ok(
            [ExposureEvent(timestamp=timestamp, category=c, quantity=quantity) for c in categories]
        )

    def exposure_event(self, row: Row, index: int | None = None) -> ExposureResult:
        """Normalize a row that already names its category."""
        try:
            timestamp = parse_timestamp(row.get("timestamp"))
            raw_category = str(row.get("category") or "").strip().lower()
            try:
                category = ExposureCategory(raw_category)
            except ValueError as exc:
                raise ComputationError(f"unrecognized category {raw_category!r}") from exc
            quantity = parse_quantity(row.get("quantity"))
        except ComputationError as e:
            return Result.err(ComputationError(str(e), index))

        return Result.ok([ExposureEvent(timestamp=timestamp, category=category, quantity=quantity)])

    def outcome_event(self, row: Row, index: int | None = None) -> OutcomeResult:
        try:
            timestamp = parse_timestamp(row.get("timestamp"))
            return Result.ok(
                OutcomeEvent(
                    timestamp=timestamp,
                    outcome_id=row.get("outcome_id"),
                    severity=row.get("severity"),
                )
            )
        except ComputationError as e:
            return Result.err(ComputationError(str(e), index))
        except ValidationError as e:
            fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
            return Result.err(ComputationError(f"invalid outcome fields: {fields}", index))

    def normalize_exposures(
        self,
        food_rows: Iterable[Row] = (),
        medication_rows: Iterable[Row] = (),
        exposure_rows: Iterable[Row] = (),
    ) -> list[ExposureEvent]:
        """Normalize every exposure row, drop failures, and return events in time order."""
        events: list[ExposureEvent] = []
        dropped = 0
        batches = (
            ("food", food_rows, self.food_events),
            ("medication", medication_rows, self.medication_events),
            ("exposure", exposure_rows, self.exposure_event),
        )
        for kind, rows, normalize in batches:
            for index, row in enumerate(rows):
                result = normalize(row, index)
                if result.is_ok():
                    events.extend(result.unwrap())
                else:
                    dropped += 1
                    self.logger.warning(
                        "exposure_record_dropped", kind=kind, error=str(result.unwrap_err())
                    )

        # stable sort keeps same-timestamp events in input order
        events.sort(key=lambda e: e.timestamp)
        self.logger.info("exposures_normalized", count=len(events), dropped=dropped)
        return events

    def normalize_outcomes(self, rows: Iterable[Row]) -> list[OutcomeEvent]:
        events: list[OutcomeEvent] = []
        dropped = 0
        for index, row in enumerate(rows):
            result = self.outcome_event(row, index)
            if result.is_ok():
                events.append(result.unwrap())
            else:
                dropped += 1
                self.logger.warning("outcome_record_dropped", error=str(result.unwrap_err()))

        events.sort(key=lambda e: e.timestamp)
        self.logger.info("outcomes_normalized", count=len(events), dropped=dropped)
        return events
