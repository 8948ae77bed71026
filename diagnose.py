#!/usr/bin/env python3
"""
Diagnostic script to check the local scoring policies.
"""
import sys
from pathlib import Path

from scoring.errors import PolicyLoadError
from scoring.logging.event_logger import logger
from scoring.policy.provider import LocalPolicyProvider
import config


def diagnose(path: Path = config.POLICY_FILE) -> int:
    print("=" * 60)
    print("DCF Scoring Policy Diagnostic")
    print("=" * 60)

    print(f"\nLoading policies from {path}...")
    try:
        provider = LocalPolicyProvider.from_file(path, skip_invalid=True)
    except PolicyLoadError as e:
        print(f"Failed: {e}")
        return 1

    classifiers = provider.classifiers()
    print(f"Total policies: {len(classifiers)}")

    for classifier in classifiers:
        options = provider.get_attestation_options(classifier)
        print(f"\nPolicy: {classifier}")
        print(f"   Cadence threshold: {options.cadence_threshold_mins} min")
        if options.time_range_mins:
            print(f"   Time range: {options.time_range_mins} min")
        else:
            print("   Time range: full history")
        for weight in provider.get_weights(classifier):
            print(f"   - {weight.annotation_key}: {weight.value}")

    rejected = [e for e in logger.read_events(limit=len(classifiers) + 50) if e.event_id == 2002]
    if rejected:
        print("\nRecently rejected records:")
        for event in rejected:
            print(f"   - {event.message}: {event.details.get('reason')}")

    print("\n" + "=" * 60)
    print(f"Event log: {logger.log_path} ({logger.summarize()})")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(diagnose(Path(sys.argv[1]) if len(sys.argv) > 1 else config.POLICY_FILE))
