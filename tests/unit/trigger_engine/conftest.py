"""Shared fixtures: synthetic exposure/outcome diaries."""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

import pytest

from trigger_engine.domain.models import ExposureCategory, ExposureEvent, OutcomeEvent

Diary = tuple[list[ExposureEvent], list[OutcomeEvent]]
DiaryFactory = Callable[..., Diary]

DAY_ONE = datetime(2024, 3, 1, tzinfo=UTC)


def _diary(
    high_days: Sequence[bool],
    category: ExposureCategory = ExposureCategory.DAIRY,
    outcome_id: str = "bloating",
    exposure_hour: int = 8,
    outcome_hour: int = 10,
    high_severity: int = 8,
    low_severity: int = 2,
    exposed_on_high: bool = True,
) -> Diary:
    """One outcome reading per day; the category is consumed on high (or low) days."""
    exposures: list[ExposureEvent] = []
    outcomes: list[OutcomeEvent] = []
    for offset, high in enumerate(high_days):
        day = DAY_ONE + timedelta(days=offset)
        if high == exposed_on_high:
            exposures.append(
                ExposureEvent(timestamp=day.replace(hour=exposure_hour), category=category)
            )
        outcomes.append(
            OutcomeEvent(
                timestamp=day.replace(hour=outcome_hour),
                outcome_id=outcome_id,
                severity=high_severity if high else low_severity,
            )
        )
    return exposures, outcomes


def alternating(days: int) -> list[bool]:
    """Odd days (1-based) high, even days low."""
    return [offset % 2 == 0 for offset in range(days)]


@pytest.fixture
def diary_factory() -> DiaryFactory:
    return _diary


@pytest.fixture
def dairy_ten_days() -> Diary:
    """Ten days alternating: dairy at 08:00 then severity 8 at 10:00 on odd days, severity 2 on even days."""
    return _diary(alternating(10))


@pytest.fixture
def dairy_twenty_days() -> Diary:
    """Same pattern over twenty days, enough to clear the default event floor."""
    return _diary(alternating(20))
