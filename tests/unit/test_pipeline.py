"""Unit tests for gating step definition and execution."""

import pytest
import yaml

from cytogate.config import GatingOptions
from cytogate.core.data import SampleCollection
from cytogate.core.dispatch import AlgorithmFamily, GatingAdaptor, UnregisteredAlgorithmError
from cytogate.core.gates import QUADRANTS, GateSet, RectangleGate, ResultKind
from cytogate.pipeline import GatingStep, run_gating_step


class TestGatingStep:
    """Tests for GatingStep dataclass."""

    def test_create_step(self):
        """Test creating a basic step."""
        step = GatingStep(algorithm="mindensity", channels=["CD3"])
        assert step.pop_alias == ["+"]
        assert step.args == {}
        assert step.group_by == []
        assert step.collapse is False
        assert step.preprocessing is None

    def test_validate_ok(self):
        valid, errors = GatingStep(algorithm="mindensity", channels=["CD3"]).validate()
        assert valid
        assert errors == []

    def test_validate_channels(self):
        valid, errors = GatingStep(algorithm="mindensity", channels=["a", "b", "c"]).validate()
        assert not valid
        assert "channels" in errors[0]

    def test_validate_collapsed_standardize(self):
        step = GatingStep(algorithm="tailgate", channels=["CD3"], collapse=True, preprocessing="standardize")
        valid, errors = step.validate()
        assert not valid
        assert "standardize" in errors[0]

    def test_validate_quadrant_aliases(self):
        """Quadrant steps name one population per quadrant."""
        step = GatingStep(algorithm="quadgate_seq", channels=["CD3", "CD4"])
        assert step.validate()[0]
        valid, errors = step.validate(AlgorithmFamily.QUADRANT)
        assert not valid
        assert "4 quadrants" in errors[0]

        step.pop_alias = list(QUADRANTS)
        assert step.validate(AlgorithmFamily.QUADRANT) == (True, [])

    def test_from_dict_comma_strings(self):
        """Channels, aliases and group keys accept comma-separated strings."""
        step = GatingStep.from_dict(
            {
                "algorithm": "quadgate_seq",
                "channels": "CD3, CD4",
                "pop_alias": "-+,++,+-,--",
                "group_by": "visit",
            }
        )
        assert step.channels == ["CD3", "CD4"]
        assert step.pop_alias == ["-+", "++", "+-", "--"]
        assert step.group_by == ["visit"]

    def test_from_dict_missing_fields(self):
        with pytest.raises(KeyError, match="channels"):
            GatingStep.from_dict({"algorithm": "mindensity"})

    def test_to_dict_round_trip(self):
        step = GatingStep(algorithm="flowclust_1d", channels=["CD4"], args={"K": 2}, preprocessing="prior_flowclust")
        assert GatingStep.from_dict(step.to_dict()) == step

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "step.yaml"
        path.write_text(yaml.safe_dump({"step": {"algorithm": "quantile", "channels": ["CD3"], "args": {"probs": 0.9}}}))
        step = GatingStep.from_yaml(path)
        assert step.algorithm == "quantile"
        assert step.args == {"probs": 0.9}

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            GatingStep.from_yaml(tmp_path / "missing.yaml")


class TestRunGatingStep:
    """Tests for run_gating_step."""

    def test_each_sample_gated_alone(self, samples, recording_algorithm, stub_registry):
        """Without grouping or collapse every sample is its own invocation."""
        stub = recording_algorithm()
        adaptor = GatingAdaptor(registry=stub_registry("mindensity", stub))
        result = run_gating_step(samples, GatingStep("mindensity", ["CD3"]), adaptor)

        assert len(stub.calls) == 3
        assert [len(c["table"]) for c in stub.calls] == [400, 400, 400]
        assert result.sample_names == samples.sample_names
        assert result.kind == ResultKind.GATE

    def test_collapse_by_group(self, four_samples, recording_algorithm, stub_registry):
        """Collapsed groups are merged and gated once each."""
        stub = recording_algorithm()
        adaptor = GatingAdaptor(registry=stub_registry("mindensity", stub))
        step = GatingStep("mindensity", ["CD3"], group_by=["visit"], collapse=True)
        result = run_gating_step(four_samples, step, adaptor)

        assert [len(c["table"]) for c in stub.calls] == [400, 400]
        assert result["s1"] is result["s3"]
        assert result["s1"] is not result["s2"]

    def test_collapse_without_keys(self, samples, recording_algorithm, stub_registry):
        stub = recording_algorithm()
        adaptor = GatingAdaptor(registry=stub_registry("mindensity", stub))
        run_gating_step(samples, GatingStep("mindensity", ["CD3"], collapse=True), adaptor)
        assert len(stub.calls) == 1
        assert len(stub.last["table"]) == 1200

    def test_grouped_standardization(self, four_samples, recording_algorithm, stub_registry):
        """Grouped, uncollapsed tail gating searches the group's standardized table."""
        stub = recording_algorithm()
        adaptor = GatingAdaptor(registry=stub_registry("tailgate", stub))
        step = GatingStep("tailgate", ["CD3"], group_by=["visit"], preprocessing="standardize")
        run_gating_step(four_samples, step, adaptor)

        assert len(stub.calls) == 4
        # Each call sees the merged standardized table of its visit group
        assert [len(c["table"]) for c in stub.calls] == [400, 400, 400, 400]

    def test_prior_elicited_across_samples(self, samples, recording_algorithm, stub_registry):
        """Without grouping keys one prior is learned from every sample and
        handed to each per-sample invocation."""
        seen_data = []

        def elicitor(data, channels, **kwargs):
            seen_data.append(data.sample_names)
            return tuple(data.sample_names)

        stub = recording_algorithm()
        adaptor = GatingAdaptor(registry=stub_registry("flowclust_1d", stub))
        step = GatingStep(
            "flowclust_1d",
            ["CD4"],
            args={"K": 2},
            preprocessing="prior_flowclust",
            preprocessing_args={"K": 2, "elicitor": elicitor},
        )
        run_gating_step(samples, step, adaptor)

        assert seen_data == [["s1", "s2", "s3"]]
        assert len(stub.calls) == 3
        assert [len(c["table"]) for c in stub.calls] == [400, 400, 400]
        assert all(c["kwargs"]["prior"] == ("s1", "s2", "s3") for c in stub.calls)

    def test_prior_elicited_per_group(self, four_samples, recording_algorithm, stub_registry):
        seen_data = []

        def elicitor(data, channels, **kwargs):
            seen_data.append(data.sample_names)
            return tuple(data.sample_names)

        adaptor = GatingAdaptor(registry=stub_registry("flowclust_1d", recording_algorithm()))
        step = GatingStep(
            "flowclust_1d",
            ["CD4"],
            group_by=["visit"],
            preprocessing="prior_flowclust",
            preprocessing_args={"elicitor": elicitor},
        )
        run_gating_step(four_samples, step, adaptor)
        assert seen_data == [["s1", "s3"], ["s2", "s4"]]

    def test_standardize_without_groups(self, samples, recording_algorithm, stub_registry):
        """Each sample is searched on its own standardized events."""
        stub = recording_algorithm()
        adaptor = GatingAdaptor(registry=stub_registry("tailgate", stub))
        run_gating_step(samples, GatingStep("tailgate", ["CD3"], preprocessing="standardize"), adaptor)
        assert [len(c["table"]) for c in stub.calls] == [400, 400, 400]

    def test_collapsed_prior_is_spec(self, four_samples, stub_registry):
        seen = []

        def algorithm(table, channel, prior=None, **kwargs):
            seen.append(prior)
            return RectangleGate({channel: (0, 1)})

        adaptor = GatingAdaptor(registry=stub_registry("flowclust_1d", algorithm))
        step = GatingStep(
            "flowclust_1d",
            ["CD4"],
            group_by=["visit"],
            collapse=True,
            preprocessing="prior_flowclust",
            preprocessing_args={"elicitor": lambda data, channels, **kw: len(data)},
        )
        run_gating_step(four_samples, step, adaptor)
        assert seen == [2, 2]

    def test_parallel_groups(self, four_samples, recording_algorithm, stub_registry):
        stub = recording_algorithm()
        adaptor = GatingAdaptor(GatingOptions(n_jobs=2), registry=stub_registry("mindensity", stub))
        step = GatingStep("mindensity", ["CD3"], group_by=["visit"], collapse=True)
        result = run_gating_step(four_samples, step, adaptor, backend="threading")
        assert sorted(result.sample_names) == ["s1", "s2", "s3", "s4"]
        assert len(stub.calls) == 2

    def test_quadrant_alias_count_checked(self, samples, recording_algorithm, stub_registry):
        stub = recording_algorithm()
        adaptor = GatingAdaptor(registry=stub_registry("quadgate_seq", stub))
        with pytest.raises(ValueError, match="quadrants"):
            run_gating_step(samples, GatingStep("quadgate_seq", ["CD3", "CD4"]), adaptor)
        assert stub.calls == []

    def test_small_sample_among_quadrant_gates(self, samples):
        """A dummy for a small sample has the same shape as its neighbours' gates."""
        mixed = SampleCollection({"s1": samples["s1"], "small": samples["s2"].head(5)})
        adaptor = GatingAdaptor(GatingOptions(min_events=20))
        step = GatingStep("quadgate_seq", ["CD3", "CD4"], pop_alias=list(QUADRANTS))
        result = run_gating_step(mixed, step, adaptor)

        assert result.kind == ResultKind.GATE_SET
        assert isinstance(result["small"], GateSet)
        assert len(result["small"]) == len(result["s1"]) == 4
        assert result["small"][0].gate_id == "dummy"

    def test_invalid_step(self, samples):
        with pytest.raises(ValueError, match="Invalid gating step"):
            run_gating_step(samples, GatingStep("mindensity", []))

    def test_unregistered_before_preprocessing(self, samples):
        step = GatingStep("nope", ["CD3"], preprocessing="standardize")
        with pytest.raises(UnregisteredAlgorithmError):
            run_gating_step(samples, step)
