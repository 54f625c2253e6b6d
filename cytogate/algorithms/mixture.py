"""Gaussian mixture gates and their priors.

The mixtures are fit with scikit-learn's ``GaussianMixture``. A prior is
summarized across samples as the mean component parameters (``mu0``,
``lambda0``, ``w0``) plus the between-sample spread of the means
(``omega0``); when it is supplied the fit is initialized from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.stats import chi2, norm
from sklearn.mixture import GaussianMixture

from ..core.data.samples import SampleCollection
from ..core.gates.types import MixturePolygonGate, MixtureRectangleGate

logger = logging.getLogger(__name__)

CUTPOINT_METHODS = ("boundary", "quantile", "min_density")


@dataclass
class MixturePrior:
    """Mixture prior elicited from several samples.

    Attributes
    ----------
    channels : List[str]
        Channels the prior covers
    K : int
        Number of components
    mu0 : np.ndarray
        (K, d) mean of the component means
    omega0 : np.ndarray
        (K, d, d) between-sample covariance of the component means
    lambda0 : np.ndarray
        (K, d, d) mean of the component covariances
    w0 : np.ndarray
        (K,) mean component weights
    n_samples : int
        Number of samples the prior was fit on
    """

    channels: List[str]
    K: int
    mu0: np.ndarray
    omega0: np.ndarray
    lambda0: np.ndarray
    w0: np.ndarray
    n_samples: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "channels": list(self.channels),
            "K": self.K,
            "mu0": self.mu0.tolist(),
            "omega0": self.omega0.tolist(),
            "lambda0": self.lambda0.tolist(),
            "w0": self.w0.tolist(),
            "n_samples": self.n_samples,
        }


def event_matrix(
    table: pd.DataFrame,
    channels: Sequence[str],
    min_value: float = -np.inf,
    max_value: float = np.inf,
) -> np.ndarray:
    """(n, d) finite events with every coordinate inside ``[min_value, max_value]``."""
    X = table[list(channels)].to_numpy(dtype=float)
    keep = np.all(np.isfinite(X), axis=1) & np.all((X >= min_value) & (X <= max_value), axis=1)
    return X[keep]


def _fit(
    X: np.ndarray,
    K: int,
    random_state: Optional[int] = 0,
    prior: Optional[MixturePrior] = None,
) -> GaussianMixture:
    """Fit a full-covariance mixture, initialized from ``prior`` when it matches."""
    if len(X) < K:
        raise ValueError(f"cannot fit {K} components to {len(X)} events")
    init: Dict[str, Any] = {}
    if prior is not None and prior.K == K and prior.mu0.shape[1] == X.shape[1]:
        init["means_init"] = prior.mu0
        init["weights_init"] = prior.w0 / prior.w0.sum()
    model = GaussianMixture(
        n_components=K,
        covariance_type="full",
        random_state=random_state,
        **init,
    )
    return model.fit(X)


def _ordered(model: GaussianMixture):
    """Means, covariances and weights sorted by the first coordinate."""
    order = np.argsort(model.means_[:, 0])
    return model.means_[order], model.covariances_[order], model.weights_[order]


def select_k(X: np.ndarray, max_K: int = 4, random_state: Optional[int] = 0) -> int:
    """Number of components (1..max_K) with the lowest BIC."""
    candidates = range(1, max(1, min(max_K, len(X))) + 1)
    scores = {k: _fit(X, k, random_state).bic(X) for k in candidates}
    return min(scores, key=scores.get)


def prior_flowclust(
    prior_data: SampleCollection,
    channels: Sequence[str],
    K: Optional[int] = None,
    min: float = -np.inf,
    max: float = np.inf,
    max_K: int = 4,
    random_state: Optional[int] = 0,
    **kwargs,
) -> MixturePrior:
    """Elicit a mixture prior by fitting every sample separately.

    Parameters
    ----------
    prior_data : SampleCollection
        Samples to learn the prior from
    channels : Sequence[str]
        One or two channels
    K : int, optional
        Number of components; chosen by BIC on the merged data when omitted
    min, max : float
        Events outside ``[min, max]`` are ignored

    Raises
    ------
    ValueError
        If no sample has enough events to fit ``K`` components
    """
    channels = list(channels)
    if K is None:
        K = select_k(event_matrix(prior_data.merge().data, channels, min, max), max_K, random_state)
        logger.info("prior_flowclust: selected K = %d by BIC", K)

    means, covs, weights = [], [], []
    for name, table in prior_data.items():
        X = event_matrix(table, channels, min, max)
        if len(X) < 2 * K:
            logger.warning("%s: only %d events; skipped for prior elicitation", name, len(X))
            continue
        mu, sigma, w = _ordered(_fit(X, K, random_state))
        means.append(mu)
        covs.append(sigma)
        weights.append(w)

    if not means:
        raise ValueError(f"no sample has enough events to elicit a {K}-component prior")

    means = np.stack(means)
    lambda0 = np.mean(np.stack(covs), axis=0)
    if len(means) > 1:
        omega0 = np.stack(
            [np.atleast_2d(np.cov(means[:, k, :], rowvar=False)) for k in range(K)]
        )
    else:
        omega0 = lambda0.copy()
    return MixturePrior(
        channels=channels,
        K=K,
        mu0=means.mean(axis=0),
        omega0=omega0,
        lambda0=lambda0,
        w0=np.mean(np.stack(weights), axis=0),
        n_samples=len(means),
    )


def _boundary_cut(model: GaussianMixture, means: np.ndarray, neg_cluster: int) -> float:
    """Point between the last negative and first positive mean where the
    posterior of the negative components drops below one half."""
    order = np.argsort(model.means_[:, 0])
    negative = order[:neg_cluster]
    grid = np.linspace(means[neg_cluster - 1, 0], means[neg_cluster, 0], 512)
    posterior = model.predict_proba(grid.reshape(-1, 1))[:, negative].sum(axis=1)
    crossed = np.nonzero(posterior < 0.5)[0]
    return float(grid[crossed[0]] if len(crossed) else grid[-1])


def _min_density_cut(model: GaussianMixture, means: np.ndarray, neg_cluster: int) -> float:
    grid = np.linspace(means[neg_cluster - 1, 0], means[neg_cluster, 0], 512)
    density = np.exp(model.score_samples(grid.reshape(-1, 1)))
    return float(grid[np.argmin(density)])


def flowclust_1d(
    table: pd.DataFrame,
    channel: str,
    prior: Optional[MixturePrior] = None,
    K: Optional[int] = None,
    neg_cluster: Optional[int] = None,
    cutpoint_method: str = "boundary",
    quantile: float = 0.99,
    min: Optional[float] = None,
    max: Optional[float] = None,
    positive: bool = True,
    max_K: int = 4,
    random_state: Optional[int] = 0,
    filter_id: str = "flowclust_1d",
    **kwargs,
) -> MixtureRectangleGate:
    """Gate one channel by a Gaussian mixture.

    The lowest ``neg_cluster`` components (sorted by mean) are negative.
    ``cutpoint_method`` places the cut:

    * ``"boundary"``: where the negative posterior drops below 0.5
    * ``"quantile"``: at ``quantile`` of the last negative component
    * ``"min_density"``: at the mixture density minimum between groups

    The two between-group methods fall back to ``"quantile"`` when every
    component is negative.
    """
    if cutpoint_method not in CUTPOINT_METHODS:
        raise ValueError(
            f"unknown cutpoint_method '{cutpoint_method}'; expected one of {CUTPOINT_METHODS}"
        )
    lo = -np.inf if min is None else min
    hi = np.inf if max is None else max
    X = event_matrix(table, [channel], lo, hi)

    if K is None:
        K = prior.K if prior is not None else select_k(X, max_K, random_state)
    model = _fit(X, K, random_state, prior=prior)
    means, covs, weights = _ordered(model)
    sds = np.sqrt(covs[:, 0, 0])

    neg = 1 if neg_cluster is None else int(neg_cluster)
    neg = int(np.clip(neg, 1, K))
    method = cutpoint_method if neg < K else "quantile"
    if method == "boundary":
        cut = _boundary_cut(model, means, neg)
    elif method == "min_density":
        cut = _min_density_cut(model, means, neg)
    else:
        cut = float(norm.ppf(quantile, loc=means[neg - 1, 0], scale=sds[neg - 1]))

    bounds = (cut, np.inf) if positive else (-np.inf, cut)
    return MixtureRectangleGate(
        {channel: bounds},
        gate_id=filter_id,
        priors={channel: prior.to_dict()} if prior is not None else {},
        posteriors={
            "means": means[:, 0].tolist(),
            "sds": sds.tolist(),
            "weights": weights.tolist(),
            "cutpoint_method": method,
        },
    )


def ellipse_vertices(center: np.ndarray, cov: np.ndarray, radius: float, n: int = 50) -> np.ndarray:
    """Vertices of the ellipse ``(x - c)' cov^-1 (x - c) = radius^2``."""
    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    theta = np.linspace(0, 2 * np.pi, n, endpoint=False)
    circle = np.column_stack([np.cos(theta), np.sin(theta)])
    return center + radius * circle @ (eigenvectors * np.sqrt(np.maximum(eigenvalues, 0))).T


def flowclust_2d(
    table: pd.DataFrame,
    x_channel: str,
    y_channel: str,
    use_prior: str = "no",
    prior: Any = None,
    K: int = 2,
    target: Optional[Sequence[float]] = None,
    quantile: float = 0.9,
    random_state: Optional[int] = 0,
    filter_id: str = "flowclust_2d",
    **kwargs,
) -> MixturePolygonGate:
    """Ellipse around one component of a two-channel Gaussian mixture.

    The component nearest ``target`` is chosen, or the heaviest one when no
    target is given. The ellipse holds ``quantile`` of its probability mass.
    """
    if use_prior not in ("yes", "no"):
        raise ValueError(f"use_prior must be 'yes' or 'no', got {use_prior!r}")
    fit_prior = prior if use_prior == "yes" and isinstance(prior, MixturePrior) else None
    X = event_matrix(table, [x_channel, y_channel])
    model = _fit(X, int(K), random_state, prior=fit_prior)
    means, covs, weights = _ordered(model)

    if target is None:
        k = int(np.argmax(weights))
    else:
        k = int(np.argmin(np.linalg.norm(means - np.asarray(target, dtype=float), axis=1)))

    radius = float(np.sqrt(chi2.ppf(quantile, df=2)))
    vertices = ellipse_vertices(means[k], covs[k], radius)
    return MixturePolygonGate(
        x_channel=x_channel,
        y_channel=y_channel,
        vertices=vertices,
        gate_id=filter_id,
        priors={"joint": fit_prior.to_dict()} if fit_prior is not None else {},
        posteriors={
            "means": means.tolist(),
            "weights": weights.tolist(),
            "component": k,
        },
    )
