"""
Attestation trust: how much of the evaluation window is covered by
attestation cycles arriving no more than the cadence threshold apart.
"""
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from scoring.schemas import Annotation, AttestationOptions
from scoring.utils.clock import utc_now, ensure_utc


def _minutes(delta: timedelta) -> float:
    return delta.total_seconds() / 60


class AttestationTrustCalculator:
    """
    Score attestation annotations by temporal coverage rather than pass/fail.

    The covered fraction of the window is scaled by the attestation weight
    and added to the other annotations' passed weight.

    A non-zero time range limits how far back the calculation looks, so a
    long outage well in the past does not drag down current confidence.
    Attestations up to one cadence before the window still count, crediting
    the part of their cadence that reaches into it.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock

    def calculate(
        self,
        annotations: Iterable[Annotation],
        options: AttestationOptions,
        weight: int,
        now: Optional[datetime] = None
    ) -> float:
        """
        Calculate the attestation contribution to passed weight.

        Args:
            annotations: Attestation annotations for one dataRef
            options: Cadence threshold and time range from the policy
            weight: Attestation weight from the policy
            now: Reference time (defaults to the calculator clock)

        Returns:
            Value between 0.0 and weight; 0.0 when no attestation falls in the window
        """
        now = ensure_utc(now) if now is not None else self.clock()
        cadence_mins = float(options.cadence_threshold_mins)

        earliest_limit: Optional[datetime] = None
        if options.time_range_mins == 0:
            # no window set, use the whole attestation history
            filtered = list(annotations)
        else:
            earliest_limit = now - timedelta(minutes=options.time_range_mins)
            grace_limit = earliest_limit - timedelta(minutes=options.cadence_threshold_mins)
            filtered = [a for a in annotations if a.timestamp > grace_limit]

        if not filtered:
            return 0.0

        filtered.sort(key=lambda a: a.timestamp)

        if earliest_limit is None:
            earliest_limit = filtered[0].timestamp

        covered_mins = 0.0
        previous: Optional[Annotation] = None
        for annotation in filtered:
            if annotation.timestamp <= earliest_limit:
                covered_mins = cadence_mins - _minutes(earliest_limit - annotation.timestamp)
                continue
            if previous is None:
                previous = annotation
                continue

            covered_mins += min(_minutes(annotation.timestamp - previous.timestamp), cadence_mins)
            previous = annotation

        if previous is not None:
            covered_mins += min(_minutes(now - previous.timestamp), cadence_mins)

        elapsed_mins = _minutes(now - earliest_limit)
        if elapsed_mins <= 0:
            return 0.0

        coverage = min(max(covered_mins / elapsed_mins, 0.0), 1.0)
        return coverage * weight


# Global instance
attestation_calculator = AttestationTrustCalculator()
