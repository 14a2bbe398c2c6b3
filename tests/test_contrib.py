"""Unit tests for glmsparsenet.contrib module.

Tests cover:
    - Each facade installs its own degree transform
    - Caller's options object is never modified
    - Arguments other than the transform are forwarded unchanged
    - Facade result equals a direct call with with_transform()
    - End-to-end run of all six facades on a small dataset
"""
import numpy as np
import pytest

from glmsparsenet import contrib
from glmsparsenet.contrib import (
    FACADES,
    cv_glm_degree,
    cv_glm_hub,
    cv_glm_orphan,
    glm_degree,
    glm_hub,
    glm_orphan,
)
from glmsparsenet.glm import cv_glm_sparse_net, glm_sparse_net
from glmsparsenet.options import network_options
from glmsparsenet.transforms import DegreeTransform

EXPECTED = {
    glm_orphan: DegreeTransform.ORPHAN,
    glm_hub: DegreeTransform.HUB,
    glm_degree: DegreeTransform.DEGREE,
    cv_glm_orphan: DegreeTransform.ORPHAN,
    cv_glm_hub: DegreeTransform.HUB,
    cv_glm_degree: DegreeTransform.DEGREE,
}


@pytest.fixture
def recorder(monkeypatch):
    """Replace the underlying entry points with doubles that record their arguments."""
    calls = []

    def fake(kind):
        def _fn(xdata, ydata, network, options, **kwargs):
            calls.append({"kind": kind, "x": xdata, "y": ydata, "network": network,
                          "options": options, "kwargs": kwargs})
            return kind
        return _fn

    monkeypatch.setattr(contrib.glm, "glm_sparse_net", fake("fit"))
    monkeypatch.setattr(contrib.glm, "cv_glm_sparse_net", fake("cv"))
    return calls


# ===== wiring =====

class TestFacadeWiring:
    @pytest.mark.parametrize("facade", list(EXPECTED))
    def test_installs_transform(self, recorder, facade):
        facade("x", "y", "correlation", network_options(min_degree=0.2))
        assert recorder[0]["options"].trans_fun is EXPECTED[facade]

    @pytest.mark.parametrize("facade", list(EXPECTED))
    def test_caller_options_unchanged(self, recorder, facade):
        opts = network_options(min_degree=0.2, trans_fun="identity")
        facade("x", "y", "correlation", opts)
        assert opts.trans_fun is DegreeTransform.IDENTITY
        assert recorder[0]["options"] is not opts

    @pytest.mark.parametrize("facade", list(EXPECTED))
    def test_other_fields_forwarded(self, recorder, facade):
        opts = network_options(min_degree=0.2, cutoff=0.1, n_largest=3, method="spearman")
        facade("x", "y", "covariance", opts, alpha=0.5, nfolds=4)
        call = recorder[0]
        assert call["x"] == "x" and call["y"] == "y" and call["network"] == "covariance"
        assert call["kwargs"] == {"alpha": 0.5, "nfolds": 4}
        assert call["options"] == opts.with_transform(EXPECTED[facade])

    @pytest.mark.parametrize("facade", list(EXPECTED))
    def test_default_options(self, recorder, facade):
        facade("x", "y", "correlation")
        assert recorder[0]["options"] == network_options().with_transform(EXPECTED[facade])

    def test_routing(self, recorder):
        assert glm_hub("x", "y", "correlation") == "fit"
        assert cv_glm_hub("x", "y", "correlation") == "cv"

    def test_overrides_existing_transform(self, recorder):
        glm_orphan("x", "y", "correlation", network_options(trans_fun="hub"))
        assert recorder[0]["options"].trans_fun is DegreeTransform.ORPHAN

    def test_registry(self):
        assert FACADES["orphan"] == (glm_orphan, cv_glm_orphan)
        assert FACADES["hub"] == (glm_hub, cv_glm_hub)
        assert FACADES["degree"] == (glm_degree, cv_glm_degree)


# ===== equivalence with direct calls =====

class TestEquivalence:
    def test_glm_hub_equals_direct(self, xy_small):
        x, y = xy_small
        opts = network_options(min_degree=0.2)
        a = glm_hub(x, y, "correlation", opts, n_lambda=10)
        b = glm_sparse_net(x, y, "correlation", opts.with_transform(DegreeTransform.HUB), n_lambda=10)
        assert np.allclose(a.coef_path, b.coef_path)
        assert np.allclose(a.penalty_factor, b.penalty_factor)

    def test_cv_glm_orphan_equals_direct(self, xy_small):
        x, y = xy_small
        opts = network_options(min_degree=0.2)
        a = cv_glm_orphan(x, y, "correlation", opts, nfolds=4, seed=0, n_lambda=8)
        b = cv_glm_sparse_net(x, y, "correlation", opts.with_transform("orphan"),
                              nfolds=4, seed=0, n_lambda=8)
        assert np.allclose(a.cvm, b.cvm)
        assert a.lambda_min == b.lambda_min


# ===== end to end =====

class TestEndToEnd:
    @pytest.mark.parametrize("name", ["orphan", "hub", "degree"])
    def test_fit_and_cv(self, xy_small, name):
        x, y = xy_small
        opts = network_options(min_degree=0.2)
        fit_fn, cv_fn = FACADES[name]

        fit = fit_fn(x, y, "correlation", opts, n_lambda=10)
        assert fit.coef_path.shape == (5, 10)
        assert fit.options.trans_fun is EXPECTED[fit_fn]

        cv = cv_fn(x, y, "correlation", opts, nfolds=5, seed=0, n_lambda=10)
        assert cv.cvm.shape == (10,)
        assert np.isfinite(cv.lambda_min)

    def test_degree_isolated_feature_needs_min_degree(self, xy_small):
        x, y = xy_small
        degrees = np.array([0.0, 1.0, 2.0, 1.0, 1.0])
        with pytest.raises(ValueError, match="min_degree"):
            glm_degree(x, y, degrees)
        fit = glm_degree(x, y, degrees, network_options(min_degree=0.5), n_lambda=5)
        assert fit.penalty_factor[0] == pytest.approx(2.0)

    def test_degree_tiny_degree_needs_min_degree(self, xy_small):
        x, y = xy_small
        degrees = np.array([1e-320, 1.0, 2.0, 1.0, 1.0])
        with pytest.raises(ValueError, match="min_degree"):
            glm_degree(x, y, degrees)

    def test_orphan_and_hub_opposite_monotonic(self, xy_small):
        x, y = xy_small
        degrees = np.array([0.5, 1.0, 2.0, 4.0, 8.0])
        orphan = glm_orphan(x, y, degrees, n_lambda=5).penalty_factor
        hub = glm_hub(x, y, degrees, n_lambda=5).penalty_factor
        assert np.all(np.diff(orphan) <= 0)
        assert np.all(np.diff(hub) >= 0)
