"""
JSONL event logger with Windows Event Viewer style Event IDs.

Thread-safe logging for SIEM integration.
"""
import threading
from pathlib import Path
from typing import Optional, List, Dict

from pydantic import ValidationError

from scoring.schemas import Event, EventLevel, EventCategory, Score
import config


class EventLogger:
    """
    JSONL logger for scoring events.

    Event ID ranges:
    - 1001 to 1999: Scoring events
    - 2001 to 2999: Policy events
    - 4001 to 4999: System events

    All events written to logs/events.jsonl in append-only mode.
    """

    def __init__(self, log_path: Path = config.EVENT_LOG_FILE):
        self.log_path = Path(log_path)
        self.lock = threading.Lock()

    def log_event(self, event: Event) -> None:
        """
        Append event to JSONL log file.

        Scoring calls may run on parallel threads, so writes are serialized.

        Args:
            event: Event object to log
        """
        with self.lock:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(event.to_jsonl() + "\n")

    def log_score(self, score: Score, annotation_count: int) -> None:
        """
        Log a computed score.

        Event ID: 1001 (computed) or 1002 (zero confidence)
        """
        if score.confidence == 0:
            event_id = 1002
            level = EventLevel.WARNING
        else:
            event_id = 1001
            level = EventLevel.INFORMATION

        event = Event(
            event_id=event_id,
            level=level,
            category=EventCategory.SCORING,
            message=f"{config.EVENT_IDS[event_id]}: {score.data_ref} ({score.confidence:.2f})",
            details={
                "score_key": score.key,
                "data_ref": score.data_ref,
                "policy": score.policy,
                "confidence": score.confidence,
                "passed": score.passed,
                "count": score.count,
                "annotations": annotation_count
            }
        )
        self.log_event(event)

    def log_classifier_not_found(self, classifier: str, data_ref: Optional[str] = None) -> None:
        """Event ID: 2001"""
        event = Event(
            event_id=2001,
            level=EventLevel.ERROR,
            category=EventCategory.POLICY,
            message=f"Classifier not found: {classifier}",
            details={"classifier": classifier, "data_ref": data_ref}
        )
        self.log_event(event)

    def log_policy_rejected(
        self,
        reason: str,
        classifier: Optional[str] = None,
        index: Optional[int] = None
    ) -> None:
        """Event ID: 2002"""
        event = Event(
            event_id=2002,
            level=EventLevel.WARNING,
            category=EventCategory.POLICY,
            message=f"Policy record rejected: {classifier or f'#{index}'}",
            details={"classifier": classifier, "index": index, "reason": reason}
        )
        self.log_event(event)

    def log_policies_loaded(self, classifiers: List[str], source: str, skipped: int = 0) -> None:
        """Event ID: 2003"""
        event = Event(
            event_id=2003,
            level=EventLevel.INFORMATION,
            category=EventCategory.POLICY,
            message=f"Policies loaded from {source}: {len(classifiers)}",
            details={"classifiers": classifiers, "source": source, "skipped": skipped}
        )
        self.log_event(event)

    def log_system_event(
        self,
        event_id: int,
        message: str,
        details: Optional[dict] = None
    ) -> None:
        """
        Log system-level event.

        Event IDs:
        - 4001: Scoring run started
        """
        event = Event(
            event_id=event_id,
            level=EventLevel.INFORMATION,
            category=EventCategory.SYSTEM,
            message=message,
            details=details or {}
        )
        self.log_event(event)

    def read_events(self, limit: int = 100, level: Optional[EventLevel] = None) -> List[Event]:
        """
        Read recent events from log.

        Args:
            limit: Maximum number of events to return
            level: Filter by event level (optional)

        Returns:
            List of Event objects (most recent first)
        """
        if not self.log_path.exists():
            return []

        events = []
        with open(self.log_path, "r", encoding="utf-8") as f:
            lines = f.readlines()

        for line in reversed(lines):
            if not line.strip():
                continue
            try:
                event = Event.model_validate_json(line)
            except ValidationError:
                # Skip malformed lines
                continue
            if level is None or event.level == level:
                events.append(event)
                if len(events) >= limit:
                    break

        return events

    def get_event_count(self) -> int:
        """Get total number of events logged"""
        if not self.log_path.exists():
            return 0

        with open(self.log_path, "r", encoding="utf-8") as f:
            return sum(1 for line in f if line.strip())

    def summarize(self) -> Dict[int, int]:
        """Count logged events per event ID."""
        counts: Dict[int, int] = {}
        for event in self.read_events(limit=self.get_event_count() or 1):
            counts[event.event_id] = counts.get(event.event_id, 0) + 1
        return counts


# Global logger instance
logger = EventLogger()
