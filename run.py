"""
Application entry point.

Scores an annotations file against a local policy file and prints the scores.
"""
import argparse
import json
import sys
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError

from scoring.errors import ScoringError
from scoring.logging.event_logger import EventLogger
from scoring.pipeline import ScoringPipeline
from scoring.policy.provider import create_policy_provider
from scoring.schemas import Annotation
import config


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Compute DCF confidence scores for annotated data.")
    parser.add_argument("annotations", type=Path, help="JSON file with a list of annotations")
    parser.add_argument("classifier", help="Policy classifier to score with")
    parser.add_argument("--policies", type=Path, default=config.POLICY_FILE, help="Local policy file")
    parser.add_argument("--data-ref", default=None, help="Only score this dataRef")
    parser.add_argument("--log-file", type=Path, default=config.EVENT_LOG_FILE, help="JSONL event log")
    args = parser.parse_args(argv)

    try:
        raw = json.loads(args.annotations.read_text(encoding="utf-8"))
        annotations = TypeAdapter(List[Annotation]).validate_python(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Cannot read annotations from {args.annotations}: {e}", file=sys.stderr)
        return 2

    if args.data_ref:
        annotations = [a for a in annotations if a.data_ref == args.data_ref]

    event_logger = EventLogger(args.log_file)

    try:
        provider = create_policy_provider(path=args.policies, event_logger=event_logger)
        event_logger.log_system_event(
            event_id=4001,
            message=config.EVENT_IDS[4001],
            details={"classifier": args.classifier, "annotations": len(annotations)}
        )
        scores = ScoringPipeline(provider, event_logger=event_logger).score_many(annotations, args.classifier)
    except ScoringError as e:
        print(f"Scoring failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(
        [score.model_dump(mode="json", by_alias=True) for score in scores.values()],
        indent=2
    ))
    return 0


if __name__ == "__main__":
    sys.exit(main())
