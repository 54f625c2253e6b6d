"""Unit tests for GatingOptions."""

import pytest

from cytogate.config import GatingOptions


class TestGatingOptions:
    """Tests for GatingOptions."""

    def test_defaults(self):
        options = GatingOptions()
        assert options.min_events == 0
        assert options.random_seed is None
        assert options.algorithm_defaults == {}
        assert options.n_jobs == 1

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_events": -1},
            {"min_events": 2.5},
            {"min_events": True},
            {"n_jobs": 0},
            {"algorithm_defaults": {"mindensity": 1.5}},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            GatingOptions(**kwargs)

    def test_from_yaml_gating_section(self, gating_options_yaml):
        options = GatingOptions.from_yaml(gating_options_yaml)
        assert options.min_events == 10
        assert options.random_seed == 7
        assert options.defaults_for("mindensity") == {"adjust": 1.5}

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            GatingOptions.from_yaml(tmp_path / "missing.yaml")

    def test_from_yaml_empty(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert GatingOptions.from_yaml(path) == GatingOptions()

    def test_round_trip(self):
        options = GatingOptions(min_events=5, random_seed=1, algorithm_defaults={"tailgate": {"tol": 0.05}})
        assert GatingOptions.from_dict(options.to_dict()) == options

    def test_from_dict_ignores_unknown_keys(self):
        options = GatingOptions.from_dict({"min_events": 3, "colour": "blue"})
        assert options.min_events == 3

    def test_defaults_for_returns_copy(self):
        options = GatingOptions(algorithm_defaults={"mindensity": {"adjust": 1.5}})
        defaults = options.defaults_for("mindensity")
        defaults["adjust"] = 9
        assert options.defaults_for("mindensity") == {"adjust": 1.5}
        assert options.defaults_for("tailgate") == {}

    def test_frozen(self):
        options = GatingOptions()
        with pytest.raises(AttributeError):
            options.min_events = 5
