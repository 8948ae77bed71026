"""
ScoringPipeline: resolves the policy for a classifier, scores annotations, logs results.
"""
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from scoring.calculator.aggregator import ScoreAggregator, score_aggregator
from scoring.errors import ClassifierNotFoundError
from scoring.logging.event_logger import EventLogger, logger
from scoring.policy.provider import PolicyProvider
from scoring.schemas import Annotation, Score


class ScoringPipeline:
    """
    End-to-end scoring for annotated data.

    Flow:
    1. Resolve the policy for the classifier from the provider
    2. Aggregate the annotations into a confidence score
    3. Log the score event
    4. Return the score (storing it is the caller's concern)
    """

    def __init__(
        self,
        provider: PolicyProvider,
        aggregator: Optional[ScoreAggregator] = None,
        event_logger: Optional[EventLogger] = None
    ):
        self.provider = provider
        self.aggregator = aggregator or score_aggregator
        self.event_logger = event_logger or logger

    def score(
        self,
        data_ref: str,
        annotations: Iterable[Annotation],
        classifier: str,
        now: Optional[datetime] = None
    ) -> Score:
        """
        Score one dataRef under the named policy.

        Raises:
            ClassifierNotFoundError: no policy for the classifier (logged, then re-raised)
            DivisionByZeroWeightError: the policy yields a zero total weight
        """
        try:
            policy = self.provider.get_policy(classifier)
        except ClassifierNotFoundError:
            self.event_logger.log_classifier_not_found(classifier, data_ref=data_ref)
            raise

        annotations = list(annotations)
        score = self.aggregator.compute_score(data_ref, annotations, policy, now=now)
        self.event_logger.log_score(score, annotation_count=len(annotations))
        return score

    def score_many(
        self,
        annotations: Iterable[Annotation],
        classifier: str,
        now: Optional[datetime] = None
    ) -> Dict[str, Score]:
        """
        Group a mixed batch by dataRef and score each group.

        Returns:
            Dictionary mapping dataRef to Score, in first-seen order
        """
        grouped: Dict[str, List[Annotation]] = defaultdict(list)
        for annotation in annotations:
            grouped[annotation.data_ref].append(annotation)

        return {
            data_ref: self.score(data_ref, group, classifier, now=now)
            for data_ref, group in grouped.items()
        }
