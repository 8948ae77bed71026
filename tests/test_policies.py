"""
Unit tests for policy models, loading and providers.

Tests:
- Weight clamping on construction and decoding
- Attestation option validation
- Weight lookup fallback
- Policy file loading (abort / skip)
- Local provider lookups
"""
import json

import pytest

from scoring.errors import (
    ClassifierNotFoundError,
    ConfigurationError,
    InvalidCadenceError,
    InvalidTimeRangeError,
    PolicyLoadError,
    PolicyValidationError,
)
from scoring.policy.loader import load_policies, load_policy_file, parse_policy
from scoring.policy.provider import LocalPolicyProvider, PolicyProvider, create_policy_provider
from scoring.schemas import AttestationOptions, Weight, clamp_weight

from conftest import make_policy


def policy_record(classifier="default", items=None, cadence=30, time_range=0):
    return {
        "classifier": classifier,
        "items": items if items is not None else [{"key": "tpm", "value": 5}],
        "attestationOpts": {"cadenceThresholdMins": cadence, "timeRange": time_range},
    }


class TestWeight:
    """Test weight clamping."""

    def test_clamp_in_range_unchanged(self):
        """Test values already in range pass through."""
        for value in range(1, 11):
            assert clamp_weight(value) == value

    def test_clamp_bounds(self):
        """Test values outside range are clamped, not rejected."""
        for value in (-100, -1, 0, 1, 5, 10, 11, 1000):
            assert 1 <= clamp_weight(value) <= 10
        assert clamp_weight(0) == 1
        assert clamp_weight(42) == 10

    def test_construction_clamps(self):
        """Test constructing a Weight clamps the value."""
        assert Weight(annotation_key="tpm", value=15).value == 10
        assert Weight(annotation_key="tpm", value=-3).value == 1

    def test_omitted_value_resolves_to_one(self):
        """Test a decoded weight without value gets weight 1."""
        weight = Weight.model_validate({"key": "tls"})
        assert weight.annotation_key == "tls"
        assert weight.value == 1

    def test_round_trip_yields_clamped_value(self):
        """Test serializing a decoded weight keeps the clamped value."""
        weight = Weight.model_validate_json('{"key": "tpm", "value": 42}')
        dumped = weight.model_dump(by_alias=True)
        assert dumped == {"key": "tpm", "value": 10}
        assert Weight.model_validate(dumped) == weight


class TestAttestationOptions:
    """Test attestation option validation."""

    def test_valid_options_unchanged(self):
        """Test valid options are returned as given."""
        options = AttestationOptions.create(50, 180)
        assert options.cadence_threshold_mins == 50
        assert options.time_range_mins == 180

    def test_zero_time_range_allowed(self):
        """Test time range 0 (full history) is valid."""
        assert AttestationOptions.create(10, 0).time_range_mins == 0

    def test_invalid_cadence(self):
        """Test cadence must be strictly positive."""
        for cadence in (0, -5):
            with pytest.raises(InvalidCadenceError):
                AttestationOptions.create(cadence, 10)

    def test_invalid_time_range(self):
        """Test negative time range is rejected."""
        with pytest.raises(InvalidTimeRangeError):
            AttestationOptions.create(10, -1)

    def test_direct_construction_fails(self):
        """Test constructing invalid options directly raises a ValueError."""
        with pytest.raises(ValueError):
            AttestationOptions(cadence_threshold_mins=0)

    def test_round_trip_uses_wire_names(self):
        """Test options serialize with policy file field names."""
        options = AttestationOptions.model_validate({"cadenceThresholdMins": 5})
        dumped = options.model_dump(by_alias=True)
        assert dumped == {"cadenceThresholdMins": 5, "timeRange": 0}
        assert AttestationOptions.model_validate(dumped) == options


class TestFetchWeight:
    """Test weight resolution by annotation kind."""

    def test_known_kind(self):
        """Test a defined kind returns its weight."""
        policy = make_policy(tpm=7, tls=2)
        assert policy.fetch_weight("tpm").value == 7
        assert policy.fetch_weight("tls").value == 2

    def test_unknown_kind_falls_back_to_one(self):
        """Test unknown kinds still count at weight 1."""
        policy = make_policy(tpm=7)
        for kind in ("pki", "sbom", "", "attestation"):
            weight = policy.fetch_weight(kind)
            assert weight.value == 1
            assert weight.annotation_key == kind

    def test_first_definition_wins(self):
        """Test duplicate kinds resolve to the first entry."""
        policy = parse_policy(policy_record(items=[{"key": "tpm", "value": 3}, {"key": "tpm", "value": 9}]))
        assert policy.fetch_weight("tpm").value == 3

    def test_zero_weight_falls_back_to_one(self):
        """Test an unvalidated zero weight is re-checked on lookup."""
        policy = make_policy()
        policy._weight_index["tpm"] = Weight.model_construct(annotation_key="tpm", value=0)
        assert policy.fetch_weight("tpm").value == 1


class TestPolicyLoader:
    """Test decoding policy records."""

    def test_parse_record(self):
        """Test a well-formed record decodes with clamped weights."""
        policy = parse_policy(policy_record(items=[{"key": "tpm", "value": 12}, {"key": "tls"}], cadence=50, time_range=100))
        assert policy.name == "default"
        assert [(w.annotation_key, w.value) for w in policy.weights] == [("tpm", 10), ("tls", 1)]
        assert policy.attestation_options.cadence_threshold_mins == 50
        assert policy.attestation_options.time_range_mins == 100

    def test_parse_invalid_cadence(self):
        """Test invalid cadence fails the record with context."""
        with pytest.raises(InvalidCadenceError) as exc_info:
            parse_policy(policy_record(classifier="bad", cadence=0), index=3)
        assert exc_info.value.classifier == "bad"
        assert exc_info.value.index == 3

    def test_parse_missing_cadence(self):
        """Test an omitted cadence is treated as invalid."""
        record = policy_record()
        record["attestationOpts"] = {"timeRange": 10}
        with pytest.raises(InvalidCadenceError):
            parse_policy(record)

    def test_parse_invalid_time_range(self):
        """Test negative time range fails the record."""
        with pytest.raises(InvalidTimeRangeError):
            parse_policy(policy_record(time_range=-10))

    def test_parse_missing_attestation_options(self):
        """Test a record without attestation options fails to load."""
        record = policy_record()
        del record["attestationOpts"]
        with pytest.raises(PolicyValidationError) as exc_info:
            parse_policy(record)
        assert not isinstance(exc_info.value, (InvalidCadenceError, InvalidTimeRangeError))

    def test_load_aborts_on_invalid_record(self, event_logger):
        """Test the default load is fatal on a bad record."""
        records = [policy_record("ok"), policy_record("bad", cadence=-1)]
        with pytest.raises(InvalidCadenceError):
            load_policies(records, event_logger=event_logger)

    def test_load_skips_invalid_record(self, event_logger):
        """Test skip mode drops and logs the bad record."""
        records = [policy_record("ok"), policy_record("bad", cadence=-1), policy_record("also-ok")]
        policies = load_policies(records, skip_invalid=True, event_logger=event_logger)

        assert [p.name for p in policies] == ["ok", "also-ok"]
        rejected = [e for e in event_logger.read_events() if e.event_id == 2002]
        assert len(rejected) == 1
        assert rejected[0].details["classifier"] == "bad"
        assert rejected[0].details["index"] == 1

    def test_load_file_with_dcf_key(self, tmp_path, event_logger):
        """Test loading an object-shaped policy file."""
        path = tmp_path / "policies.json"
        path.write_text(json.dumps({"dcf": [policy_record("a"), policy_record("b")]}))
        policies = load_policy_file(path, event_logger=event_logger)
        assert [p.name for p in policies] == ["a", "b"]

    def test_load_file_with_list(self, tmp_path, event_logger):
        """Test loading a list-shaped policy file."""
        path = tmp_path / "policies.json"
        path.write_text(json.dumps([policy_record("a")]))
        assert load_policy_file(path, event_logger=event_logger)[0].name == "a"

    def test_load_file_missing(self, tmp_path, event_logger):
        """Test a missing file raises PolicyLoadError."""
        with pytest.raises(PolicyLoadError):
            load_policy_file(tmp_path / "nope.json", event_logger=event_logger)

    def test_load_file_malformed(self, tmp_path, event_logger):
        """Test malformed JSON and wrong shapes raise PolicyLoadError."""
        path = tmp_path / "policies.json"
        path.write_text("{not json")
        with pytest.raises(PolicyLoadError):
            load_policy_file(path, event_logger=event_logger)

        path.write_text(json.dumps({"other": 1}))
        with pytest.raises(PolicyLoadError):
            load_policy_file(path, event_logger=event_logger)


class TestLocalPolicyProvider:
    """Test policy lookups by classifier."""

    def test_get_weights_and_options(self):
        """Test lookups return the loaded policy content."""
        provider = LocalPolicyProvider([make_policy("p1", cadence=20, time_range=100, tpm=4)])
        weights = provider.get_weights("p1")
        assert [(w.annotation_key, w.value) for w in weights] == [("tpm", 4)]
        options = provider.get_attestation_options("p1")
        assert (options.cadence_threshold_mins, options.time_range_mins) == (20, 100)

    def test_unknown_classifier(self):
        """Test unknown classifiers raise ClassifierNotFoundError."""
        provider = LocalPolicyProvider([make_policy("p1")])
        with pytest.raises(ClassifierNotFoundError) as exc_info:
            provider.get_weights("missing")
        assert exc_info.value.classifier == "missing"
        with pytest.raises(ClassifierNotFoundError):
            provider.get_attestation_options("missing")

    def test_first_policy_wins(self):
        """Test duplicate classifier names keep the first record."""
        provider = LocalPolicyProvider([make_policy("p1", tpm=2), make_policy("p1", tpm=9)])
        assert provider.get_weights("p1")[0].value == 2
        assert provider.classifiers() == ["p1"]

    def test_weights_are_a_copy(self):
        """Test callers cannot mutate the stored weight list."""
        provider = LocalPolicyProvider([make_policy("p1", tpm=2)])
        provider.get_weights("p1").clear()
        assert len(provider.get_weights("p1")) == 1

    def test_from_file(self, tmp_path, event_logger):
        """Test loading a provider from a policy file."""
        path = tmp_path / "policies.json"
        path.write_text(json.dumps({"dcf": [policy_record("file-policy")]}))
        provider = LocalPolicyProvider.from_file(path, event_logger=event_logger)
        assert provider.classifiers() == ["file-policy"]

    def test_other_sources_assemble_policy(self):
        """Test a provider implementing only the lookups still yields full policies."""

        class StaticProvider(PolicyProvider):
            def get_weights(self, classifier):
                return [Weight(annotation_key="tls", value=3)]

            def get_attestation_options(self, classifier):
                return AttestationOptions.create(15)

            def classifiers(self):
                return ["static"]

        policy = StaticProvider().get_policy("static")
        assert policy.name == "static"
        assert policy.fetch_weight("tls").value == 3
        assert policy.attestation_options.cadence_threshold_mins == 15

    def test_factory(self):
        """Test the provider factory."""
        provider = create_policy_provider("local", policies=[make_policy("p1")])
        assert isinstance(provider, LocalPolicyProvider)
        with pytest.raises(ConfigurationError):
            create_policy_provider("remote", policies=[])
