# %%
import pytest

from ggstudio.dataset import Dataset
from ggstudio.errors import ConfigurationError
from ggstudio.facets import facet_grid, facet_wrap

co2 = Dataset(
    {
        "Type": ["Quebec", "Quebec", "Mississippi", "Mississippi", "Quebec"],
        "Treatment": ["chilled", "nonchilled", "chilled", "chilled", "chilled"],
        "uptake": [1.0, 2.0, 3.0, 4.0, 5.0],
    }
)


def test_grid_has_n_by_m_cells():
    cells = facet_grid("Type", "Treatment").cells([co2])
    # Mississippi/nonchilled is empty but still gets a panel
    assert len(cells) == 2 * 2
    assert [(c.row, c.col) for c in cells] == [(0, 0), (0, 1), (1, 0), (1, 1)]
    assert cells[0].values == {"Type": "Mississippi", "Treatment": "chilled"}
    assert len(cells[1].subset(co2)) == 0


def test_formula():
    facet = facet_grid("Type ~ Treatment")
    assert facet.rows == ("Type",)
    assert facet.cols == ("Treatment",)
    assert facet_grid(". ~ Treatment").rows == ()


def test_scales_policy_does_not_change_cells():
    for scales in ("fixed", "free", "free_x", "free_y"):
        assert len(facet_grid("Type", "Treatment", scales=scales).cells([co2])) == 4
    assert facet_grid(cols="Type", scales="free_y").free_y
    assert not facet_grid(cols="Type", scales="free_y").free_x
    with pytest.raises(ValueError):
        facet_grid(cols="Type", scales="loose")


def test_wrap_layout():
    data = Dataset({"class": ["a", "b", "c", "d", "e"]})
    cells = facet_wrap("class").cells([data])
    assert [(c.row, c.col) for c in cells] == [(0, 0), (0, 1), (0, 2), (1, 0), (1, 1)]
    cells = facet_wrap("class", ncol=2).cells([data])
    assert cells[-1].row == 2
    assert cells[-1].label == "e"


def test_data_without_the_variable_repeats():
    cells = facet_grid(cols="Type").cells([co2])
    other = Dataset({"uptake": [10.0, 20.0]})
    assert all(len(c.subset(other)) == 2 for c in cells)


def test_unknown_variable():
    with pytest.raises(ConfigurationError):
        facet_grid(cols="Colour").cells([co2])


def test_missing_values_form_their_own_panel():
    data = Dataset({"depth": [1.0, float("nan"), 2.0, float("nan")], "mag": [4.0, 5.0, 6.0, 7.0]})
    cells = facet_wrap("depth").cells([data])
    assert [c.values["depth"] for c in cells] == [1.0, 2.0, None]
    assert cells[-1].label == "NA"
    assert cells[-1].subset(data)["mag"].tolist() == [5.0, 7.0]
    # every row lands in exactly one panel
    assert sum(len(c.subset(data)) for c in cells) == len(data)

    labels = Dataset({"site": ["a", None, "a"]})
    assert [c.label for c in facet_wrap("site").cells([labels])] == ["a", "NA"]
