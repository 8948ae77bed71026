"""
Local policy source: decode classifier records into Policy models.

A record that fails validation is never defaulted. Either the whole load
aborts, or the record is logged and skipped.
"""
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from scoring.errors import PolicyLoadError, PolicyValidationError
from scoring.logging.event_logger import EventLogger, logger
from scoring.schemas import Policy, unwrap_policy_error

# Keys that may hold the record list in an object-shaped policy file
POLICY_LIST_KEYS = ("dcf", "policies")


def parse_policy(record: Dict[str, Any], index: Optional[int] = None) -> Policy:
    """
    Decode one policy record.

    Args:
        record: Raw record with classifier, items and attestationOpts
        index: Position of the record in its source (for error context)

    Returns:
        Validated Policy (weights clamped to 1-10)

    Raises:
        PolicyValidationError: the record is malformed
    """
    classifier = record.get("classifier") if isinstance(record, dict) else None
    try:
        return Policy.model_validate(record)
    except ValidationError as e:
        raise unwrap_policy_error(e, classifier=classifier, index=index) from e


def load_policies(
    records: Iterable[Dict[str, Any]],
    skip_invalid: bool = False,
    event_logger: Optional[EventLogger] = None,
    source: str = "memory"
) -> List[Policy]:
    """
    Decode a sequence of policy records.

    Args:
        records: Raw policy records
        skip_invalid: Log and drop invalid records instead of aborting
        event_logger: Where rejections are recorded (defaults to global logger)
        source: Label for the load event

    Returns:
        Policies in source order

    Raises:
        PolicyValidationError: a record is invalid and skip_invalid is False
    """
    event_logger = event_logger or logger
    policies = []
    skipped = 0

    for index, record in enumerate(records):
        try:
            policies.append(parse_policy(record, index=index))
        except PolicyValidationError as e:
            if not skip_invalid:
                raise
            skipped += 1
            event_logger.log_policy_rejected(str(e), classifier=e.classifier, index=index)

    event_logger.log_policies_loaded([p.name for p in policies], source=source, skipped=skipped)
    return policies


def load_policy_file(
    path: Path,
    skip_invalid: bool = False,
    event_logger: Optional[EventLogger] = None
) -> List[Policy]:
    """
    Read policies from a JSON file.

    The file holds either a list of records or an object with a "dcf"
    (or "policies") list.

    Raises:
        PolicyLoadError: file missing, unreadable or not policy-shaped
        PolicyValidationError: a record is invalid and skip_invalid is False
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PolicyLoadError(f"cannot read policy file {path}: {e}") from e

    if isinstance(raw, dict):
        for key in POLICY_LIST_KEYS:
            if key in raw:
                raw = raw[key]
                break

    if not isinstance(raw, list):
        raise PolicyLoadError(f"policy file {path} does not contain a list of policies")

    return load_policies(raw, skip_invalid=skip_invalid, event_logger=event_logger, source=str(path))
