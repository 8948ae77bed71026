"""
Score Aggregator: combines weighted annotation results into one confidence figure.
"""
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, List, Optional, Tuple

from scoring.calculator.attestation import AttestationTrustCalculator
from scoring.errors import DivisionByZeroWeightError
from scoring.schemas import Annotation, Policy, Score
from scoring.utils.clock import utc_now, ensure_utc
import config


def partition_annotations(annotations: Iterable[Annotation]) -> Tuple[List[Annotation], List[Annotation]]:
    """Split annotations into (attestation, generic)."""
    attestations = []
    generic = []
    for annotation in annotations:
        if annotation.is_attestation:
            attestations.append(annotation)
        else:
            generic.append(annotation)
    return attestations, generic


def round_confidence(value: float, precision: int = config.CONFIDENCE_PRECISION) -> float:
    """Round half-up to the configured number of decimal places."""
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


class ScoreAggregator:
    """
    Weighted confidence scoring for a dataRef.

    Flow:
    1. Split attestation annotations from generic ones
    2. Weight each generic annotation by policy; satisfied ones count as passed
    3. Add attestation coverage (scaled by attestation weight) to passed weight;
       the attestation weight always joins the total
    4. confidence = passed weight / total weight, rounded
    """

    def __init__(
        self,
        attestation_calculator: Optional[AttestationTrustCalculator] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.clock = clock
        self.attestation_calculator = attestation_calculator or AttestationTrustCalculator(clock=clock)

    def compute_score(
        self,
        data_ref: str,
        annotations: Iterable[Annotation],
        policy: Policy,
        now: Optional[datetime] = None
    ) -> Score:
        """
        Compute the confidence score for one dataRef.

        Args:
            data_ref: Key of the data being scored
            annotations: All annotations for that data
            policy: Policy supplying weights and attestation options
            now: Reference time (defaults to the aggregator clock)

        Returns:
            Score; passed/count cover generic annotations only

        Raises:
            DivisionByZeroWeightError: the weighted total is zero
        """
        now = ensure_utc(now) if now is not None else self.clock()
        attestations, generic = partition_annotations(annotations)

        total_weight = 0.0
        passed_weight = 0.0
        passed = 0
        for annotation in generic:
            weight = policy.fetch_weight(annotation.kind)
            total_weight += weight.value
            if annotation.is_satisfied:
                passed += 1
                passed_weight += weight.value

        attestation_weight = policy.fetch_weight(config.ATTESTATION_KIND)
        passed_weight += self.attestation_calculator.calculate(
            attestations,
            policy.attestation_options,
            attestation_weight.value,
            now=now
        )
        total_weight += attestation_weight.value

        if total_weight <= 0:
            raise DivisionByZeroWeightError(data_ref, policy.name)

        confidence = round_confidence(passed_weight / total_weight)

        return Score(
            data_ref=data_ref,
            passed=passed,
            count=len(generic),
            policy=policy.name,
            confidence=min(max(confidence, 0.0), 1.0),
            timestamp=now
        )


# Global instance
score_aggregator = ScoreAggregator()
