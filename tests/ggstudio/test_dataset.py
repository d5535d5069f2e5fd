# %%
import numpy as np
import pandas as pd
import pytest

from ggstudio.dataset import Dataset, factorize, resolution


def test_from_dict_and_rows():
    d = Dataset({"x": [1, 2, 3], "s": ["a", "b", "a"]})
    assert d.names == ["x", "s"]
    assert len(d) == 3
    assert not d.is_discrete("x")
    assert d.is_discrete("s")
    assert d.rows() == [{"x": 1, "s": "a"}, {"x": 2, "s": "b"}, {"x": 3, "s": "a"}]

    rows = Dataset([{"x": 1, "y": 2}, {"x": 3}])
    assert rows.names == ["x", "y"]
    assert rows["y"].tolist() == [2, None]


def test_columns_are_read_only():
    d = Dataset({"x": [1.0, 2.0]})
    with pytest.raises(ValueError):
        d["x"][0] = 5.0


def test_unequal_lengths():
    with pytest.raises(ValueError):
        Dataset({"x": [1, 2], "y": [1]})


def test_data_frame_like():
    class Frame:
        def to_dict(self, orient):
            assert orient == "list"
            return {"a": [1, 2]}

    assert Dataset(Frame())["a"].tolist() == [1, 2]


def test_subset_and_with_columns():
    d = Dataset({"x": [1, 2, 3]})
    sub = d.subset(d["x"] > 1)
    assert sub["x"].tolist() == [2, 3]
    assert len(d) == 3

    wider = d.with_columns(label="k", y=np.array([4, 5, 6]))
    assert wider["label"].tolist() == ["k", "k", "k"]
    assert wider.is_discrete("label")
    assert "label" not in d


def test_unique_sorted():
    d = Dataset({"s": ["b", "a", "b", "c"]})
    assert d.unique("s") == ["a", "b", "c"]


def test_concat_keeps_shared_columns():
    a = Dataset({"x": [1], "y": [2]})
    b = Dataset({"x": [3], "z": [4]})
    both = Dataset.concat([a, Dataset(), b])
    assert both.names == ["x"]
    assert both["x"].tolist() == [1, 3]


def test_melt():
    wide = Dataset({"id": [1, 2], "crisp": [3.0, 4.0], "buttery": [0.0, 1.5]})
    long = wide.melt(["id"], var_name="scale", value_name="score")
    assert len(long) == 4
    assert long["id"].tolist() == [1, 2, 1, 2]
    assert long["scale"].tolist() == ["crisp", "crisp", "buttery", "buttery"]
    assert long["score"].tolist() == [3.0, 4.0, 0.0, 1.5]
    assert not long.is_discrete("score")


def test_melt_mixed_columns_and_unknown_id():
    wide = Dataset({"id": [1], "name": ["a"], "score": [2.5]})
    long = wide.melt(["id"])
    assert long.names == ["id", "variable", "value"]
    assert long["value"].tolist() == ["a", 2.5]
    assert long.is_discrete("value")
    with pytest.raises(KeyError):
        wide.melt(["subject"])


def test_from_data_frame_keeps_missing_text_as_none():
    d = Dataset(pd.DataFrame({"t": ["a", None], "v": [1.0, None]}))
    assert d["t"].tolist() == ["a", None]
    assert d.is_discrete("t")
    assert np.isnan(d["v"][1])


def test_from_matrix():
    grid = Dataset.from_matrix([[1, 2, 3], [4, 5, 6]])
    assert len(grid) == 6
    assert grid["x"].tolist() == [1, 2, 1, 2, 1, 2]
    assert grid["y"].tolist() == [1, 1, 2, 2, 3, 3]
    assert grid["z"].tolist() == [1, 4, 2, 5, 3, 6]


def test_factorize():
    codes, levels = factorize(np.array(["b", "a", "b"], dtype=object))
    assert levels == ["a", "b"]
    assert codes.tolist() == [1, 0, 1]


def test_resolution():
    assert resolution(np.array([1.0, 1.5, 3.0])) == 0.5
    assert resolution(np.array([2.0, 2.0])) == 1.0
    assert resolution(np.array(["a", "b"], dtype=object)) == 1.0
