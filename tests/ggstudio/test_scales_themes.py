# %%
import pytest

import ggstudio.plot as gg
from ggstudio.errors import ConfigurationError
from ggstudio.scales import Scale, default_scale


def test_scale_plot_options():
    assert gg.scale_x_log10(name="Carat").plot_options() == {"type": "log", "label": "Carat"}
    assert gg.scale_y_continuous(limits=(0, 10), breaks=[0, 5, 10]).plot_options() == {
        "type": "linear",
        "domain": [0, 10],
        "ticks": [0, 5, 10],
    }
    assert gg.scale_x_discrete(limits=["b", "a"]).plot_options() == {"type": "band", "domain": ["b", "a"]}


def test_colour_scales():
    manual = gg.scale_fill_manual({"setosa": "red", "virginica": "blue"}).plot_options()
    assert manual["domain"] == ["setosa", "virginica"]
    assert manual["range"] == ["red", "blue"]
    assert manual["type"] == "ordinal"
    gradient = gg.scale_colour_gradient(low="white", high="black").plot_options()
    assert gradient["range"] == ["white", "black"]
    assert gg.scale_colour_identity().plot_options() == {"type": "identity"}


def test_scale_channel_aliases():
    assert Scale("color").channel == "colour"
    assert gg.scale_color_manual(["red"]).channel == "colour"
    with pytest.raises(ValueError):
        Scale("x", kind="ordinal")
    with pytest.raises(ValueError):
        gg.scale_x_continuous(trans="sqrt")


def test_limits_helpers():
    assert gg.xlim(0, 10).kind == "continuous"
    assert gg.xlim("a", "b").kind == "discrete"
    assert gg.ylim([1, 2]).limits == (1, 2)
    assert default_scale("fill", discrete=True).kind == "discrete"


def test_unknown_theme_element():
    with pytest.raises(ConfigurationError, match="legend_pos"):
        gg.theme(legend_pos="bottom")
    with pytest.raises(ConfigurationError):
        gg.theme(legend_position="left")


def test_theme_chrome():
    chrome = gg.theme_classic().chrome()
    assert chrome["grid"] is False
    assert chrome["style"]["background"] == "white"
    chrome = gg.theme(axis_text_size=14, panel_width=300).chrome()
    assert chrome["grid"] is True
    assert chrome["style"]["fontSize"] == "14px"
    assert chrome["width"] == 300


def test_labels_merge_and_alias():
    labels = gg.labs(color="Kind", title="A").merge(gg.labs(title="B"))
    assert dict(labels) == {"colour": "Kind", "title": "B"}
    assert dict(gg.ggtitle("T")) == {"title": "T", "subtitle": None}
