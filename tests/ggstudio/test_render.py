# %%
import pytest

import ggstudio.plot as gg
from ggstudio.errors import ConfigurationError, DefaultFallbackWarning
from ggstudio.render import RenderedPlot, channel_frame
from ggstudio.resolve import resolve_layer

volcano = gg.Dataset.from_matrix([[100, 101, 102], [104, 108, 103], [101, 102, 100]])

co2 = gg.Dataset(
    {
        "Type": ["Quebec", "Quebec", "Mississippi", "Mississippi"],
        "Treatment": ["chilled", "nonchilled", "chilled", "nonchilled"],
        "Plant": ["Qc1", "Qn1", "Mc1", "Mn1"],
        "conc": [95.0, 95.0, 175.0, 175.0],
        "uptake": [14.2, 16.0, 10.6, 13.6],
    }
)

mpg = gg.Dataset({"class": ["suv", "compact", "suv", "midsize", "suv"]})


def contour_without_z():
    return (
        gg.ggplot(volcano, gg.aes(x="x", y="y"))
        + gg.geom_raster(gg.aes(fill="z"))
        + gg.geom_contour()
    )


def test_missing_channel_fails_that_layer_only():
    with pytest.raises(ConfigurationError) as info:
        gg.render(contour_without_z())
    error = info.value
    assert error.channel == "z"
    assert error.layer == 1
    assert isinstance(error.rendered, RenderedPlot)
    # the raster layer still rendered
    assert [layer.index for layer in error.rendered.layers] == [0]
    assert len(error.rendered.panels[0].marks) == 1


def test_lenient_render_collects_errors():
    result = contour_without_z().render(strict=False)
    assert len(result.errors) == 1
    assert str(result.errors[0]).startswith("layer 1:")
    mark = result.panels[0].marks[0].for_json()
    assert mark["path"] == "Plot.rect"


def test_render_issues_fallback_warnings():
    iris = gg.Dataset({"Petal.Width": [0.2, 0.4, 1.3, 1.5, 2.1]})
    p = gg.ggplot(iris, gg.aes(x="Petal.Width")) + gg.geom_histogram()
    with pytest.warns(DefaultFallbackWarning, match="bins = 30"):
        result = gg.render(p)
    assert len(result.warnings) == 1
    assert result.panels[0].options["y"]["label"] == "count"


def test_flip_moves_bars_and_labels():
    p = gg.ggplot(mpg, gg.aes(x="class")) + gg.geom_bar() + gg.coord_flip()
    panel = gg.render(p).panels[0]
    assert panel.marks[0].for_json()["path"] == "Plot.barX"
    assert panel.options["y"]["label"] == "class"
    assert panel.options["x"]["label"] == "count"


def test_grid_facets_share_domains():
    p = (
        gg.ggplot(co2, gg.aes(x="conc", y="uptake"))
        + gg.geom_point()
        + gg.facet_grid("Type", "Treatment")
    )
    result = gg.render(p)
    assert len(result.panels) == 4
    assert (result.nrow, result.ncol) == (2, 2)
    assert result.strips
    domains = {tuple(panel.options["x"]["domain"]) for panel in result.panels}
    assert domains == {(95.0, 175.0)}
    assert result.panels[0].label == "Mississippi, chilled"


def test_free_facets_do_not_pin_domains():
    p = (
        gg.ggplot(co2, gg.aes(x="conc", y="uptake"))
        + gg.geom_point()
        + gg.facet_wrap("Type", scales="free")
    )
    result = gg.render(p)
    assert len(result.panels) == 2
    assert "domain" not in result.panels[0].options["x"]


def test_discrete_colour_gets_a_legend():
    p = gg.ggplot(co2, gg.aes(x="conc", y="uptake", colour="Type")) + gg.geom_point()
    result = gg.render(p)
    colour = result.panels[0].options["color"]
    assert colour["type"] == "ordinal"
    assert colour["domain"] == ["Mississippi", "Quebec"]
    assert colour["label"] == "Type"
    assert result.legend.for_json()["path"] == "Plot.legend"

    hidden = gg.render(p + gg.theme(legend_position="none"))
    assert hidden.legend is None


def test_channel_frame_has_group_codes():
    p = gg.ggplot(co2, gg.aes(x="conc", y="uptake", colour="Type")) + gg.geom_line()
    frame = channel_frame(resolve_layer(p, 0))
    assert set(frame.names) == {"x", "y", "colour", "group"}
    assert frame["group"].tolist() == [1, 1, 0, 0]


def test_figure_structure():
    p = gg.ggplot(co2, gg.aes(x="conc", y="uptake")) + gg.geom_point() + gg.labs(title="CO2")
    figure = p.for_json().for_json()
    assert figure["path"] == "Figure"
    options = figure["args"][0]
    assert options["title"] == "CO2"
    assert options["panels"][0]["plot"].for_json()["path"] == "Plot.plot"


def test_theme_chrome_reaches_panels():
    p = gg.ggplot(co2, gg.aes(x="conc", y="uptake")) + gg.geom_point() + gg.theme_bw()
    panel = gg.render(p).panels[0]
    assert panel.options["style"]["background"] == "white"
    assert panel.marks[-1].for_json()["path"] == "Plot.frame"


# Mississippi/nonchilled has no rows
co2_partial = gg.Dataset(
    {
        "Type": ["Quebec", "Quebec", "Quebec", "Mississippi", "Mississippi"],
        "Treatment": ["chilled", "nonchilled", "nonchilled", "chilled", "chilled"],
        "Plant": ["Qc1", "Qn1", "Qn2", "Mc1", "Mc2"],
        "conc": [95.0, 95.0, 175.0, 95.0, 175.0],
        "uptake": [14.2, 16.0, 30.4, 10.6, 12.0],
    }
)


@pytest.mark.parametrize(
    "layer",
    [
        gg.geom_histogram(gg.aes(x="uptake"), binwidth=5),
        gg.geom_bar(gg.aes(x="Plant")),
        gg.geom_area(gg.aes(x="conc", y="uptake")),
    ],
)
def test_empty_facet_cell_renders_blank_panel(layer):
    p = gg.ggplot(co2_partial) + layer + gg.facet_grid("Type", "Treatment")
    result = gg.render(p)
    assert len(result.panels) == 4
    empty = [panel for panel in result.panels if not panel.marks]
    assert [panel.label for panel in empty] == ["Mississippi, nonchilled"]
    assert all(panel.marks for panel in result.panels if panel is not empty[0])


def test_mapped_linetype_dashes_lines():
    data = gg.Dataset(
        {
            "Type": ["Quebec", "Quebec", "Quebec", "Quebec", "Mississippi", "Mississippi"],
            "Treatment": ["chilled", "chilled", "nonchilled", "nonchilled", "nonchilled", "nonchilled"],
            "conc": [95.0, 175.0, 95.0, 175.0, 95.0, 175.0],
            "uptake": [14.2, 24.1, 16.0, 30.4, 10.6, 19.2],
        }
    )
    p = (
        gg.ggplot(data, gg.aes(x="conc", y="uptake", linetype="Treatment"))
        + gg.geom_line()
        + gg.facet_wrap("Type")
    )
    mississippi, quebec = gg.render(p).panels

    def dashes(panel):
        return [mark.for_json()["args"][1].get("strokeDasharray") for mark in panel.marks]

    assert dashes(quebec) == [None, "4,3"]
    # levels are shared by all panels, so nonchilled is dashed here too
    assert dashes(mississippi) == ["4,3"]
    rows = quebec.marks[1].for_json()["args"][0]
    assert {row["linetype"] for row in rows} == {"nonchilled"}
