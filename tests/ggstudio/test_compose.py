# %%
import warnings

import pytest

import ggstudio.plot as gg
from ggstudio.errors import OverrideWarning
from ggstudio.plot_spec import Composition, PlotSpec, compose

iris = gg.Dataset(
    {
        "Petal.Width": [0.2, 0.2, 1.3, 1.5, 2.1, 2.3],
        "Petal.Length": [1.4, 1.3, 4.0, 4.5, 5.8, 6.1],
        "Species": ["setosa", "setosa", "versicolor", "versicolor", "virginica", "virginica"],
    }
)


def base() -> PlotSpec:
    return gg.ggplot(iris, gg.aes(x="Petal.Width", fill="Species"))


def test_ggplot_starts_empty():
    p = base()
    assert isinstance(p, PlotSpec)
    assert p.layers == ()
    assert dict(p.scales) == {}
    assert p.coord is None
    assert p.facet is None


def test_layers_append_in_order():
    p = base() + gg.geom_histogram(binwidth=0.2) + gg.geom_density()
    assert [layer.geom for layer in p.layers] == ["histogram", "density"]
    assert p.layers[0].params == {"binwidth": 0.2}


def test_compose_is_pure():
    p = base() + gg.geom_point()
    before = p.effective_state()
    result = compose(p, [gg.geom_line(), gg.scale_x_log10(), gg.coord_flip(), gg.theme_bw()])
    assert isinstance(result, Composition)
    assert p.effective_state() == before
    assert len(p.layers) == 1
    assert "x" not in p.scales
    assert p.coord is None
    assert len(result.spec.layers) == 2


def test_scales_are_read_only():
    p = base() + gg.scale_x_log10()
    with pytest.raises(TypeError):
        p.scales["y"] = gg.scale_y_log10()


def test_branching_from_a_saved_plot():
    p = gg.ggplot(iris, gg.aes(x="Petal.Width", y="Petal.Length"))
    grouped = p + gg.geom_line(gg.aes(group="Species"))
    coloured = p + gg.geom_line(gg.aes(colour="Species"))
    assert p.layers == ()
    assert grouped.layers[0].mapping == {"group": "Species"}
    assert coloured.layers[0].mapping == {"colour": "Species"}


def test_non_overlapping_components_commute():
    components = [
        gg.scale_x_continuous(name="Width"),
        gg.scale_fill_discrete(name="Kind"),
        gg.coord_flip(),
        gg.facet_wrap("Species"),
        gg.theme(axis_text_size=14),
        gg.labs(title="Petals"),
    ]
    p = base() + gg.geom_histogram(binwidth=0.2)
    for first in components:
        for second in components:
            if first is second:
                continue
            a = compose(compose(p, first).spec, second).spec
            b = compose(compose(p, second).spec, first).spec
            assert a.effective_state() == b.effective_state()
            assert a == b


def test_second_scale_wins_with_one_warning():
    first = gg.scale_x_continuous(name="first")
    second = gg.scale_x_continuous(name="second")
    result = compose(compose(base(), first).spec, second)
    assert result.spec.scales["x"] == second
    assert len(result.warnings) == 1
    assert isinstance(result.warnings[0], OverrideWarning)


def test_scale_replacement_is_not_a_merge():
    p = base() + gg.scale_x_continuous(name="Width", limits=(0, 3))
    with pytest.warns(OverrideWarning):
        p = p + gg.scale_x_continuous(breaks=[0, 1, 2])
    assert p.scales["x"].name is None
    assert p.scales["x"].limits is None


def test_plus_reissues_warnings():
    p = base() + gg.scale_x_log10()
    with pytest.warns(OverrideWarning) as record:
        p + gg.scale_x_continuous()
    assert len([w for w in record if issubclass(w.category, OverrideWarning)]) == 1


def test_distinct_scales_do_not_warn():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        p = base() + gg.scale_x_log10() + gg.scale_y_log10() + gg.labs(x="a") + gg.labs(x="b")
    assert set(p.scales) == {"x", "y"}
    assert p.labels["x"] == "b"


def test_coord_and_facet_replace():
    p = base() + gg.coord_flip()
    result = compose(p, gg.coord_polar())
    assert result.spec.coord.kind == "polar"
    assert len(result.warnings) == 1

    p = base() + gg.facet_wrap("Species")
    result = compose(p, gg.facet_grid(cols="Species"))
    assert result.spec.facet.wrap is False
    assert len(result.warnings) == 1


def test_theme_merges_elements():
    p = base() + gg.theme(axis_text_size=14)
    result = compose(p, gg.theme(legend_position="bottom"))
    assert result.warnings == []
    assert result.spec.theme.elements == {"axis_text_size": 14, "legend_position": "bottom"}

    result = compose(result.spec, gg.theme(axis_text_size=10))
    assert len(result.warnings) == 1
    assert result.spec.theme.get("axis_text_size") == 10


def test_complete_theme_replaces_everything():
    p = base() + gg.theme(axis_text_size=14)
    result = compose(p, gg.theme_bw())
    assert result.spec.theme.complete
    assert "axis_text_size" not in result.spec.theme.elements
    assert len(result.warnings) == 1


def test_none_and_unknown_components():
    p = base()
    assert compose(p, None).spec is p
    with pytest.raises(TypeError):
        compose(p, 42)
    with pytest.raises(TypeError):
        p + "geom_point"


def test_new():
    p = gg.new(
        gg.geom_point(),
        gg.coord_flip(),
        data=iris,
        mapping=gg.aes("Petal.Width", "Petal.Length"),
    )
    assert len(p.layers) == 1
    assert p.coord.kind == "flip"
    assert p.data is iris
