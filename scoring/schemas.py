"""
Pydantic data models for the DCF scoring core.

Defines all core data structures: Events, Policies (Weights, Attestation Options),
Annotations, and Scores.
"""
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator, PrivateAttr
from typing import Optional, Dict, Any, List
from datetime import datetime
from enum import Enum
from uuid import uuid4

from scoring.errors import PolicyValidationError, InvalidCadenceError, InvalidTimeRangeError
from scoring.utils.clock import utc_now, ensure_utc
import config


# ==================== Event System ====================

class EventLevel(str, Enum):
    """Windows Event Viewer style event levels"""
    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"
    CRITICAL = "Critical"


class EventCategory(str, Enum):
    """Event category taxonomy"""
    SCORING = "Scoring"
    POLICY = "Policy"
    SYSTEM = "System"


class Event(BaseModel):
    """
    Windows Event Viewer style event.

    Maps to SIEM index fields for Splunk/Sentinel integration.
    """
    event_id: int  # 1001 to 4999, see config.EVENT_IDS
    timestamp: datetime = Field(default_factory=utc_now)
    level: EventLevel
    category: EventCategory
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

    def to_jsonl(self) -> str:
        """Serialize to JSONL format for logging"""
        return self.model_dump_json()


# ==================== Policies ====================

class Weight(BaseModel):
    """
    Relative importance (1-10) of one annotation kind.

    Out-of-range values are clamped, never rejected; an omitted value resolves to 1.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    annotation_key: str = Field(default="", alias="key")
    value: int = Field(default=0, validate_default=True)

    @field_validator("value")
    @classmethod
    def _clamp(cls, value: int) -> int:
        return clamp_weight(value)


def clamp_weight(value: int) -> int:
    """Clamp a raw weight into [WEIGHT_MIN, WEIGHT_MAX]."""
    if value < config.WEIGHT_MIN:
        return config.WEIGHT_MIN
    if value > config.WEIGHT_MAX:
        return config.WEIGHT_MAX
    return value


class AttestationOptions(BaseModel):
    """
    Factors that affect the score calculation of attestation annotations.

    cadence_threshold_mins: maximum interval between attestation cycles still
        counted as continuous coverage. Must be > 0.
    time_range_mins: how far back to look. 0 means the full annotation history.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cadence_threshold_mins: int = Field(default=0, alias="cadenceThresholdMins")
    time_range_mins: int = Field(default=0, alias="timeRange")

    @model_validator(mode="after")
    def _check_bounds(self) -> "AttestationOptions":
        if self.cadence_threshold_mins <= 0:
            raise InvalidCadenceError("CadenceThresholdMins must be a positive integer")
        if self.time_range_mins < 0:
            raise InvalidTimeRangeError("TimeRange must be 0 or a positive integer")
        return self

    @classmethod
    def create(cls, cadence_threshold_mins: int, time_range_mins: int = 0) -> "AttestationOptions":
        """
        Build validated options.

        Raises:
            InvalidCadenceError: cadence is not strictly positive
            InvalidTimeRangeError: time range is negative
        """
        try:
            return cls(cadence_threshold_mins=cadence_threshold_mins, time_range_mins=time_range_mins)
        except ValidationError as e:
            raise unwrap_policy_error(e) from e


class Policy(BaseModel):
    """
    Named bundle of annotation weights and attestation options (a DCF policy).

    Loaded wholesale by a policy provider and read-only afterwards.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(alias="classifier")
    weights: List[Weight] = Field(default_factory=list, alias="items")
    attestation_options: AttestationOptions = Field(alias="attestationOpts")

    _weight_index: Dict[str, Weight] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        # first definition of a kind wins
        index = {}
        for weight in self.weights:
            index.setdefault(weight.annotation_key, weight)
        self._weight_index = index

    def fetch_weight(self, kind: str) -> Weight:
        """
        Resolve the weight for an annotation kind.

        Unknown kinds still count, at the minimum weight of 1.
        """
        weight = self._weight_index.get(kind)
        if weight is None or weight.value == 0:
            return Weight(annotation_key=kind, value=config.DEFAULT_WEIGHT)
        return weight


def unwrap_policy_error(
    exc: ValidationError,
    classifier: Optional[str] = None,
    index: Optional[int] = None
) -> PolicyValidationError:
    """
    Convert a pydantic ValidationError into a PolicyValidationError.

    The specific cadence/time-range error is kept when it was the cause.
    """
    for error in exc.errors():
        cause = (error.get("ctx") or {}).get("error")
        if isinstance(cause, PolicyValidationError):
            cause.classifier = classifier
            cause.index = index
            return cause

    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'record'}: {error['msg']}"
        for error in exc.errors()
    )
    return PolicyValidationError(f"invalid policy record: {problems}", classifier=classifier, index=index)


# ==================== Annotations & Scores ====================

class Annotation(BaseModel):
    """
    A single trust signal evaluation for a piece of data.

    Assumed already verified upstream; scoring reads kind, is_satisfied and timestamp.
    """
    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(default="", alias="_key")
    data_ref: str = Field(default="", alias="dataRef")
    hash: str = ""
    host: str = ""
    kind: str = Field(default="", alias="type")
    signature: str = ""
    is_satisfied: bool = Field(default=False, alias="isSatisfied")
    timestamp: datetime = Field(default_factory=utc_now)

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def is_attestation(self) -> bool:
        return self.kind == config.ATTESTATION_KIND


class Score(BaseModel):
    """
    Confidence score for one dataRef under one policy.

    passed/count only reflect non-attestation annotations.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    key: str = Field(default_factory=lambda: str(uuid4()), alias="_key")
    data_ref: str = Field(alias="dataRef")
    passed: int = Field(default=0, alias="score")
    count: int = 0
    policy: str
    confidence: float = Field(ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=utc_now)
