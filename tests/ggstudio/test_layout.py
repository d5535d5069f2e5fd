# %%
import datetime
import math

import numpy as np

import ggstudio.plot as gg
from ggstudio.layout import JSCall, JSRef
from ggstudio.widget import to_json, to_json_with_config

Plot = JSRef("Plot")


def small_plot():
    data = gg.Dataset({"a": [1.0, 2.0, 3.0], "b": [3.0, 1.0, 2.0]})
    return gg.ggplot(data, gg.aes(x="a", y="b")) + gg.geom_point()


def test_js_references():
    dot = Plot.dot
    assert dot.for_json() == {"__type__": "js_ref", "path": "Plot.dot"}
    call = dot([1, 2], {"x": "a"})
    assert isinstance(call, JSCall)
    assert call.for_json() == {
        "__type__": "function",
        "path": "Plot.dot",
        "args": ([1, 2], {"x": "a"}),
    }


def test_to_json_values():
    assert to_json(float("nan")) is None
    assert to_json(math.inf) is None
    assert to_json(np.int64(3)) == 3
    assert to_json(np.array([1.5, np.nan])) == [1.5, None]
    assert to_json({"when": datetime.date(2024, 1, 2)}) == {
        "when": {"__type__": "datetime", "value": "2024-01-02"}
    }
    assert to_json(Plot.frame()) == {"__type__": "function", "path": "Plot.frame", "args": []}


def test_plot_serializes_with_config():
    data = to_json_with_config(small_plot())
    assert data["plotCdn"].startswith("https://")
    assert data["ast"]["path"] == "Figure"
    plot = data["ast"]["args"][0]["panels"][0]["plot"]
    assert plot["path"] == "Plot.plot"
    dots = plot["args"][0]["marks"][0]
    assert dots["path"] == "Plot.dot"
    assert dots["args"][0][0] == {"x": 1.0, "y": 3.0, "group": 0}


def test_row_and_column():
    p = small_plot()
    row = p & p
    assert isinstance(row, gg.Row)
    assert len(row.items) == 2
    assert len((row & p).items) == 3
    column = p | row
    assert column.for_json().path == "Column"


def test_save_html(tmp_path):
    path = tmp_path / "plots" / "points.html"
    small_plot().save_html(str(path))
    html = path.read_text()
    assert "renderData" in html
    assert "Plot.dot" in html
