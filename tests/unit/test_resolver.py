"""Unit tests for cluster-parameter resolution."""

import logging

import pytest

from cytogate.core.dispatch import (
    ClusterArgs,
    InvalidArgumentError,
    ParameterInconsistencyError,
    resolve_cluster_args,
    resolve_cluster_params,
)


class TestResolveClusterParams:
    """Tests for resolve_cluster_params."""

    def test_k_from_neg_and_pos(self):
        """K is derived when only neg and pos are given."""
        params = resolve_cluster_params(neg=2, pos=1)
        assert params.K == 3
        assert params.neg == 2
        assert params.pos == 1

    def test_k_stays_none(self):
        """K stays undecided when it cannot be derived."""
        assert resolve_cluster_params().K is None
        assert resolve_cluster_params(neg=1).K is None
        assert resolve_cluster_params(pos=1).K is None

    def test_override_warns(self, caplog):
        """An explicit K is overridden by neg + pos with a warning."""
        with caplog.at_level(logging.WARNING):
            params = resolve_cluster_params(K=5, neg=1, pos=1)
        assert params.K == 2
        assert "Setting K = neg + pos = 2" in caplog.text

    def test_override_uses_given_logger(self, caplog):
        """The warning goes to the logger passed in."""
        logger = logging.getLogger("test.resolver")
        with caplog.at_level(logging.WARNING, logger="test.resolver"):
            resolve_cluster_params(K=3, neg=1, pos=1, logger=logger)
        assert any(r.name == "test.resolver" for r in caplog.records)

    def test_no_warning_without_override(self, caplog):
        """Consistent inputs log nothing."""
        with caplog.at_level(logging.WARNING):
            resolve_cluster_params(K=3, neg=1)
        assert caplog.records == []

    def test_pos_exceeds_k(self):
        """pos > K is inconsistent."""
        with pytest.raises(ParameterInconsistencyError, match="positive"):
            resolve_cluster_params(K=2, pos=3)

    def test_neg_exceeds_k(self):
        """neg > K is inconsistent."""
        with pytest.raises(ParameterInconsistencyError, match="negative"):
            resolve_cluster_params(K=1, neg=2)

    def test_counts_equal_to_k_are_allowed(self):
        """A single count may equal K."""
        assert resolve_cluster_params(K=2, pos=2).pos == 2
        assert resolve_cluster_params(K=2, neg=2).neg == 2

    def test_explicit_none_is_absent(self):
        """neg/pos passed as None behave as if not given."""
        params = resolve_cluster_params(K=2, neg=None, pos=None)
        assert params == resolve_cluster_params(K=2)

    def test_length_one_vectors(self):
        """Length-1 vectors are unwrapped."""
        params = resolve_cluster_params(K=[3], neg=(1,))
        assert params.K == 3
        assert params.neg == 1

    def test_longer_vectors_rejected(self):
        """Extra vector elements are an error, not silently dropped."""
        with pytest.raises(InvalidArgumentError):
            resolve_cluster_params(K=[2, 3])


class TestResolveClusterArgs:
    """Tests for resolving parsed ClusterArgs."""

    def test_matches_value_form(self):
        """Parsed and raw forms resolve identically."""
        args = ClusterArgs.from_values(K=4, neg=2, pos=1)
        assert resolve_cluster_args(args) == resolve_cluster_params(K=4, neg=2, pos=1)

    def test_pop_from_removes_keys(self):
        """pop_from consumes K/neg/pos and leaves other arguments."""
        kwargs = {"K": 2, "neg": 1, "quantile": 0.9}
        args = ClusterArgs.pop_from(kwargs)
        assert kwargs == {"quantile": 0.9}
        assert args.has_neg is True
        assert args.has_pos is False
