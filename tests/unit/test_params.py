"""Unit tests for argument coercion and family argument structures."""

import numpy as np
import pytest

from cytogate.core.dispatch import (
    BoundaryArgs,
    InvalidArgumentError,
    Mixture2DArgs,
    MixtureArgs,
    coerce_bounds,
    coerce_count,
)


class TestCoerceCount:
    """Tests for coerce_count."""

    @pytest.mark.parametrize("value", [2, 2.0, "2", [2], np.array([2]), np.int64(2)])
    def test_accepted_forms(self, value):
        """Integral values in several forms coerce to int."""
        assert coerce_count("K", value) == 2

    def test_none_passes_through(self):
        assert coerce_count("K", None) is None

    @pytest.mark.parametrize("value", [2.5, "two", True, -1, [1, 2], float("nan")])
    def test_rejected_values(self, value):
        """Non-integral, boolean, negative and multi-element values raise."""
        with pytest.raises(InvalidArgumentError, match="'K'"):
            coerce_count("K", value)


class TestCoerceBounds:
    """Tests for coerce_bounds."""

    def test_default_fill(self):
        assert coerce_bounds("min", None, 2, -np.inf) == [-np.inf, -np.inf]

    def test_scalar_for_one_channel(self):
        assert coerce_bounds("max", 3, 1, np.inf) == [3.0]

    def test_length_mismatch(self):
        """Bounds must have one value per channel."""
        with pytest.raises(InvalidArgumentError, match="must match"):
            coerce_bounds("min", [1, 2], 1, -np.inf)


class TestFamilyArgs:
    """Tests for the per-family argument dataclasses."""

    def test_mixture_args_split(self):
        """Mixture arguments keep unknown keys in extra."""
        args = MixtureArgs.from_kwargs({"K": 3, "cutpoint_method": "boundary", "quantile": 0.9})
        assert args.cluster.K == 3
        assert args.cutpoint_method == "boundary"
        assert args.extra == {"quantile": 0.9}

    def test_mixture_args_do_not_mutate_input(self):
        kwargs = {"K": 3, "neg": 1}
        MixtureArgs.from_kwargs(kwargs)
        assert kwargs == {"K": 3, "neg": 1}

    def test_mixture_args_bad_method(self):
        with pytest.raises(InvalidArgumentError):
            MixtureArgs.from_kwargs({"cutpoint_method": 1})

    def test_mixture_2d_args(self):
        args = Mixture2DArgs.from_kwargs({"K": "3", "target": [1, 2]})
        assert args.K == 3
        assert args.extra == {"target": [1, 2]}

    def test_boundary_args(self):
        args = BoundaryArgs.from_kwargs({"min": [0, 1], "max": [5, 6]}, 2)
        assert args.min == (0.0, 1.0)
        assert args.max == (5.0, 6.0)
