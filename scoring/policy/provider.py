"""
Policy providers: resolve weights and attestation options by classifier.

The local provider serves policies loaded once from static config. Other
backing sources only need get_weights and get_attestation_options.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from scoring.errors import ClassifierNotFoundError, ConfigurationError
from scoring.logging.event_logger import EventLogger
from scoring.policy.loader import load_policy_file
from scoring.schemas import AttestationOptions, Policy, Weight
import config


class PolicyProvider(ABC):
    """Read-only source of scoring policies."""

    @abstractmethod
    def get_weights(self, classifier: str) -> List[Weight]:
        """
        Raises:
            ClassifierNotFoundError: no policy with that name
        """

    @abstractmethod
    def get_attestation_options(self, classifier: str) -> AttestationOptions:
        """
        Raises:
            ClassifierNotFoundError: no policy with that name
        """

    @abstractmethod
    def classifiers(self) -> List[str]:
        """Names of the policies this provider knows."""

    def get_policy(self, classifier: str) -> Policy:
        """Assemble the full policy for a classifier."""
        return Policy(
            name=classifier,
            weights=self.get_weights(classifier),
            attestation_options=self.get_attestation_options(classifier)
        )


class LocalPolicyProvider(PolicyProvider):
    """
    Serves policies held in memory.

    On duplicate classifier names the first record wins.
    """

    def __init__(self, policies: Iterable[Policy]):
        self._policies: Dict[str, Policy] = {}
        for policy in policies:
            self._policies.setdefault(policy.name, policy)

    @classmethod
    def from_file(
        cls,
        path: Path = config.POLICY_FILE,
        skip_invalid: bool = False,
        event_logger: Optional[EventLogger] = None
    ) -> "LocalPolicyProvider":
        """Load a provider from a local JSON policy file."""
        return cls(load_policy_file(path, skip_invalid=skip_invalid, event_logger=event_logger))

    def get_policy(self, classifier: str) -> Policy:
        try:
            return self._policies[classifier]
        except KeyError:
            raise ClassifierNotFoundError(classifier) from None

    def get_weights(self, classifier: str) -> List[Weight]:
        return list(self.get_policy(classifier).weights)

    def get_attestation_options(self, classifier: str) -> AttestationOptions:
        return self.get_policy(classifier).attestation_options

    def classifiers(self) -> List[str]:
        return list(self._policies)


def create_policy_provider(
    provider_type: str = config.POLICY_PROVIDER,
    policies: Optional[Iterable[Policy]] = None,
    path: Optional[Path] = None,
    skip_invalid: bool = False,
    event_logger: Optional[EventLogger] = None
) -> PolicyProvider:
    """
    Build a policy provider of the configured type.

    Args:
        provider_type: Backing source ("local")
        policies: Already-loaded policies; read from path when omitted
        path: Policy file (defaults to config.POLICY_FILE)
        skip_invalid: Skip invalid records instead of aborting the load
        event_logger: Logger for load events

    Raises:
        ConfigurationError: unknown provider type
    """
    if provider_type != "local":
        raise ConfigurationError(f"unsupported policy provider: {provider_type}")

    if policies is not None:
        return LocalPolicyProvider(policies)
    return LocalPolicyProvider.from_file(
        path or config.POLICY_FILE,
        skip_invalid=skip_invalid,
        event_logger=event_logger
    )
