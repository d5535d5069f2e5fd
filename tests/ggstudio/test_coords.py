# %%
import math

import pytest

from ggstudio.coords import Coord, coord_cartesian, coord_polar, coord_quickmap, polar_transform
from ggstudio.dataset import Dataset
from ggstudio.draw import draw, to_mark
from ggstudio.errors import ConfigurationError


def bars():
    return draw("bar", Dataset({"x": ["a", "b"], "y": [1.0, 2.0]}), 0, {})


def test_polar_turns_bars_into_wedges():
    out = polar_transform(bars(), theta="y", start=0.0)
    # one bar drawable, one wedge ring per bar
    assert [d.kind for d in out] == ["polygon"]
    frame = out[0].frame
    assert "x" not in frame
    assert len(frame["polygon"]) == 2
    for ring in frame["polygon"]:
        assert ring[0] == ring[-1]
        # every vertex lies on the unit disk
        assert all(math.hypot(px, py) <= 1.0 + 1e-9 for px, py in ring)


def test_polar_moves_points():
    points = draw("point", Dataset({"x": [0.0, 1.0], "y": [1.0, 1.0]}), 0, {})
    out = coord_polar().transform(points)
    assert out[0].kind == "point"
    x, y = out[0].frame["x"], out[0].frame["y"]
    assert x[0] == pytest.approx(0.0)
    assert y[0] == pytest.approx(1.0)


def test_polar_rejects_contours():
    contour = draw("contour", Dataset({"x": [1, 2], "y": [1, 2], "z": [1, 2]}), 3, {})
    with pytest.raises(ConfigurationError) as info:
        polar_transform(contour, "x", 0.0)
    assert info.value.layer == 3


def test_cartesian_limits_zoom():
    assert coord_cartesian(xlim=(0, 1)).plot_options([]) == {"x": {"domain": [0, 1]}, "clip": True}
    assert coord_cartesian().plot_options([]) == {}


def test_quickmap_aspect_ratio():
    points = draw("point", Dataset({"x": [10.0, 11.0], "y": [59.0, 61.0]}), 0, {})
    options = coord_quickmap().plot_options(points)
    assert options["aspectRatio"] == pytest.approx(2.0)


def test_flip_swaps_mark_and_channels():
    (bar,) = bars()
    mark = to_mark(bar, flip=True).for_json()
    assert mark["path"] == "Plot.barX"
    options = mark["args"][1]
    assert options["y"] == "x"
    assert options["x1"] == "ymin"


def test_unknown_coord():
    with pytest.raises(ValueError):
        Coord("spherical")
