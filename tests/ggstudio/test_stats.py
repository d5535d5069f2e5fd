# %%
import numpy as np
import pytest

from ggstudio.dataset import Dataset
from ggstudio.errors import ConfigurationError
from ggstudio.stats import (
    bin_breaks,
    bw_nrd0,
    compute_stat,
    stat_bin,
    stat_boxplot,
    stat_count,
    stat_density,
    stat_smooth,
)


def test_bin_breaks_binwidth_boundary():
    edges = bin_breaks(np.array([0.1, 0.2, 1.3, 2.5]), binwidth=0.2)
    assert np.allclose(np.diff(edges), 0.2)
    assert edges[0] <= 0.1
    assert edges[-1] >= 2.5
    # default boundary is half a bin width, so edges sit at odd multiples of 0.1
    assert np.isclose(edges[0], 0.1)


def test_bin_breaks_bins_and_explicit():
    edges = bin_breaks(np.linspace(0, 10, 50), bins=11)
    assert np.allclose(np.diff(edges), 1.0)
    assert list(bin_breaks(np.array([1.0]), breaks=[3, 1, 2])) == [1, 2, 3]


def test_stat_bin_counts_per_group():
    frame = Dataset(
        {
            "x": [0.2, 0.2, 0.25, 1.3, 1.5],
            "fill": ["a", "a", "a", "b", "b"],
            "group": [0, 0, 0, 1, 1],
        }
    )
    out = stat_bin(frame, binwidth=0.5)
    assert set(out.names) >= {"x", "y", "count", "density", "xmin", "xmax", "width", "fill", "group"}
    a = out.subset(out["group"] == 0)
    b = out.subset(out["group"] == 1)
    assert a["count"].sum() == 3
    assert b["count"].sum() == 2
    # both groups share the same bins
    assert a["xmin"].tolist() == b["xmin"].tolist()
    assert set(a["fill"].tolist()) == {"a"}
    # density integrates to one within a group
    assert np.isclose((a["density"] * a["width"]).sum(), 1.0)


def test_stat_bin_rejects_discrete_x():
    with pytest.raises(ConfigurationError) as info:
        stat_bin(Dataset({"x": ["a", "b"], "group": [0, 0]}), bins=5)
    assert info.value.channel == "x"


def test_stat_count():
    frame = Dataset({"x": ["suv", "compact", "suv"], "group": [0, 0, 0]})
    out = stat_count(frame)
    assert out["x"].tolist() == ["compact", "suv"]
    assert out["count"].tolist() == [1, 2]
    assert out["y"].tolist() == [1, 2]


def test_stat_smooth_lm_is_exact_on_a_line():
    x = np.arange(10, dtype=float)
    frame = Dataset({"x": x, "y": 2 * x + 1, "group": np.zeros(10, dtype=int)})
    out = stat_smooth(frame, method="lm", n=5)
    assert len(out) == 5
    assert np.allclose(out["y"], 2 * out["x"] + 1)


def test_stat_smooth_loess_follows_data():
    x = np.linspace(0, 6, 40)
    frame = Dataset({"x": x, "y": np.sin(x), "group": np.zeros(40, dtype=int)})
    out = stat_smooth(frame, method="loess", span=0.3)
    assert len(out) == 80
    assert np.max(np.abs(out["y"] - np.sin(out["x"]))) < 0.2


def test_stat_smooth_unknown_method():
    frame = Dataset({"x": [1.0, 2.0], "y": [1.0, 2.0]})
    with pytest.raises(ConfigurationError):
        stat_smooth(frame, method="gam")


def test_stat_density_integrates_to_about_one():
    rng = np.random.default_rng(1)
    frame = Dataset({"x": rng.normal(size=200), "group": np.zeros(200, dtype=int)})
    out = stat_density(frame)
    assert len(out) == 512
    x, y = out["x"], out["y"]
    area = np.sum(np.diff(x) * (y[1:] + y[:-1]) / 2)
    assert 0.9 < area <= 1.01


def test_bw_nrd0():
    x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
    sd = np.std(x, ddof=1)
    iqr = 2.0
    assert np.isclose(bw_nrd0(x), 0.9 * min(sd, iqr / 1.34) * 5 ** -0.2)


def test_stat_boxplot():
    y = [1, 2, 3, 4, 5, 6, 7, 8, 9, 100]
    frame = Dataset({"x": ["a"] * 10, "y": y, "group": [0] * 10})
    out = stat_boxplot(frame)
    assert len(out) == 1
    assert out["middle"][0] == 5.5
    assert out["ymax"][0] == 9
    assert out["outliers"][0] == [100.0]
    assert out["x"][0] == "a"


def test_compute_stat_dispatch():
    frame = Dataset({"x": [1.0], "y": [2.0]})
    assert compute_stat("identity", frame, {}) is frame
