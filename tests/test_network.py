"""Unit tests for glmsparsenet.network module.

Tests cover:
    - build_network: correlation / covariance / adjacency specs
    - cutoff: edges below threshold are dropped
    - graph_degrees: weighted and unweighted degree
    - network_degrees: precomputed degree vectors, shape errors
    - graph_stats: node/edge counting, isolated nodes
    - export_graphml: file output
"""
import networkx as nx
import numpy as np
import pandas as pd
import pytest

from glmsparsenet.network import (
    build_network,
    export_graphml,
    graph_degrees,
    graph_stats,
    network_degrees,
)
from glmsparsenet.options import network_options

NAMES = ["a", "b", "c", "d"]


@pytest.fixture
def adjacency():
    """Symmetric 4x4 adjacency with one isolated node (d)."""
    return np.array([
        [1.0, 0.5, 0.2, 0.0],
        [0.5, 1.0, -0.8, 0.0],
        [0.2, -0.8, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])


class TestBuildNetwork:
    def test_correlation_degrees_match_colsums(self, xy_small):
        x, _ = xy_small
        names = [f"X{j + 1}" for j in range(x.shape[1])]
        degrees, G = network_degrees(x, names, "correlation", network_options())
        corr = np.abs(np.corrcoef(x, rowvar=False))
        expected = corr.sum(axis=0) - 1.0
        assert np.allclose(degrees, expected)
        assert G.number_of_nodes() == 5

    def test_spearman_method(self, xy_small):
        x, _ = xy_small
        names = [f"X{j + 1}" for j in range(x.shape[1])]
        degrees, _ = network_degrees(x, names, "correlation", network_options(method="spearman"))
        expected = pd.DataFrame(x).corr(method="spearman").abs().to_numpy().sum(axis=0) - 1.0
        assert np.allclose(degrees, expected)

    def test_covariance(self, xy_small):
        x, _ = xy_small
        names = [f"X{j + 1}" for j in range(x.shape[1])]
        degrees, _ = network_degrees(x, names, "covariance", network_options())
        cov = np.abs(np.cov(x, rowvar=False))
        assert np.allclose(degrees, cov.sum(axis=0) - np.diag(cov))

    def test_unknown_type(self, xy_small):
        x, _ = xy_small
        with pytest.raises(ValueError, match="未知网络类型"):
            build_network(x, [f"X{j}" for j in range(5)], "mutual_info", network_options())

    def test_adjacency_ignores_diagonal_and_sign(self, adjacency):
        G = build_network(np.zeros((3, 4)), NAMES, adjacency, network_options())
        degrees = graph_degrees(G, NAMES)
        assert np.allclose(degrees, [0.7, 1.3, 1.0, 0.0])

    def test_isolated_nodes_kept(self, adjacency):
        G = build_network(np.zeros((3, 4)), NAMES, adjacency, network_options())
        assert "d" in G
        assert G.degree("d") == 0

    def test_adjacency_dataframe(self, adjacency):
        df = pd.DataFrame(adjacency, index=NAMES, columns=NAMES)
        G = build_network(np.zeros((3, 4)), NAMES, df, network_options())
        assert G.number_of_edges() == 3

    def test_adjacency_dataframe_not_modified(self, adjacency):
        df = pd.DataFrame(adjacency, index=NAMES, columns=NAMES)
        G = build_network(np.zeros((3, 4)), NAMES, df, network_options())
        assert not any(G.has_edge(n, n) for n in NAMES)
        assert np.allclose(np.diag(df.to_numpy()), 1.0)

    def test_adjacency_dataframe_aligned_by_label(self, adjacency):
        df = pd.DataFrame(adjacency, index=NAMES, columns=NAMES)
        shuffled = df.loc[["c", "a", "d", "b"], ["b", "d", "a", "c"]]
        expected = graph_degrees(build_network(np.zeros((3, 4)), NAMES, df, network_options()), NAMES)
        got = graph_degrees(build_network(np.zeros((3, 4)), NAMES, shuffled, network_options()), NAMES)
        assert np.allclose(got, expected)
        assert np.allclose(got, [0.7, 1.3, 1.0, 0.0])

    def test_adjacency_dataframe_unlabelled_positional(self, adjacency):
        df = pd.DataFrame(adjacency)
        degrees = graph_degrees(build_network(np.zeros((3, 4)), NAMES, df, network_options()), NAMES)
        assert np.allclose(degrees, [0.7, 1.3, 1.0, 0.0])

    def test_adjacency_wrong_shape(self):
        with pytest.raises(ValueError, match="形状"):
            build_network(np.zeros((3, 4)), NAMES, np.ones((3, 3)), network_options())

    def test_adjacency_nan(self, adjacency):
        adjacency[0, 1] = np.nan
        with pytest.raises(ValueError, match="NaN"):
            build_network(np.zeros((3, 4)), NAMES, adjacency, network_options())

    def test_constant_column_has_no_edges(self):
        rng = np.random.default_rng(0)
        x = rng.normal(size=(10, 3))
        x[:, 2] = 1.0
        degrees, G = network_degrees(x, ["a", "b", "c"], "correlation", network_options())
        assert degrees[2] == 0.0
        assert G.degree("c") == 0


class TestCutoff:
    def test_cutoff_drops_weak_edges(self, adjacency):
        G = build_network(np.zeros((3, 4)), NAMES, adjacency, network_options(cutoff=0.3))
        assert G.number_of_edges() == 2
        assert not G.has_edge("a", "c")

    def test_unweighted_counts_edges(self, adjacency):
        opts = network_options(consider_unweighted=True)
        degrees, _ = network_degrees(np.zeros((3, 4)), NAMES, adjacency, opts)
        assert np.allclose(degrees, [2, 2, 2, 0])

    def test_unweighted_with_cutoff(self, adjacency):
        opts = network_options(cutoff=0.3, consider_unweighted=True)
        degrees, _ = network_degrees(np.zeros((3, 4)), NAMES, adjacency, opts)
        assert np.allclose(degrees, [1, 2, 1, 0])


class TestDegreeVector:
    def test_vector_passthrough(self):
        degrees, G = network_degrees(np.zeros((3, 4)), NAMES, [1, 2, 3, 4], network_options())
        assert np.allclose(degrees, [1, 2, 3, 4])
        assert G is None

    def test_series_aligned_by_name(self):
        s = pd.Series({"d": 4.0, "c": 3.0, "b": 2.0, "a": 1.0})
        degrees, _ = network_degrees(np.zeros((3, 4)), NAMES, s, network_options())
        assert np.allclose(degrees, [1, 2, 3, 4])

    def test_vector_wrong_length(self):
        with pytest.raises(ValueError, match="长度"):
            network_degrees(np.zeros((3, 4)), NAMES, [1, 2, 3], network_options())

    def test_three_dim_rejected(self):
        with pytest.raises(ValueError, match="维"):
            network_degrees(np.zeros((3, 4)), NAMES, np.zeros((4, 4, 4)), network_options())


class TestGraphStats:
    def test_stats(self, adjacency):
        G = build_network(np.zeros((3, 4)), NAMES, adjacency, network_options())
        stats = graph_stats(G)
        assert stats["total_nodes"] == 4
        assert stats["total_edges"] == 3
        assert stats["isolated"] == 1
        assert stats["max_degree"] == pytest.approx(1.3)
        assert stats["mean_degree"] == pytest.approx(0.75)

    def test_empty_graph(self):
        stats = graph_stats(nx.Graph())
        assert stats["total_nodes"] == 0
        assert stats["mean_degree"] == 0.0


class TestExportGraphml:
    def test_export(self, adjacency, tmp_path):
        G = build_network(np.zeros((3, 4)), NAMES, adjacency, network_options())
        out = export_graphml(G, tmp_path / "sub" / "net.graphml")
        assert out.exists()
        G2 = nx.read_graphml(str(out))
        assert G2.number_of_edges() == 3
