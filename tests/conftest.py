"""Shared fixtures for scoring tests."""
from datetime import datetime, timedelta, timezone

import pytest

from scoring.logging.event_logger import EventLogger
from scoring.schemas import Annotation, AttestationOptions, Policy, Weight
from scoring.utils.clock import FixedClock

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_annotation(kind: str, minutes_ago: float = 0, satisfied: bool = True, data_ref: str = "data-1") -> Annotation:
    return Annotation(
        key=f"{kind}-{minutes_ago}",
        data_ref=data_ref,
        host="node-1",
        kind=kind,
        is_satisfied=satisfied,
        timestamp=NOW - timedelta(minutes=minutes_ago),
    )


def make_policy(name: str = "test", cadence: int = 60, time_range: int = 0, **weights: int) -> Policy:
    return Policy(
        name=name,
        weights=[Weight(annotation_key=k, value=v) for k, v in weights.items()],
        attestation_options=AttestationOptions(cadence_threshold_mins=cadence, time_range_mins=time_range),
    )


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def event_logger(tmp_path):
    return EventLogger(tmp_path / "logs" / "events.jsonl")
