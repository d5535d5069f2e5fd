from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd


def _column(values: Any) -> np.ndarray:
    arr = np.array(values)
    if arr.ndim != 1:
        arr = np.array(list(values), dtype=object)
    if arr.dtype.kind in "SU" or (
        arr.dtype.kind == "O" and all(isinstance(v, str) for v in arr)
    ):
        arr = arr.astype(object)
    arr.setflags(write=False)
    return arr


def _frame_column(series: pd.Series) -> np.ndarray:
    values = series.to_numpy()
    if values.dtype.kind == "O":
        values = np.where(series.isna().to_numpy(), None, values)
    return values


class Dataset:
    """
    A read-only, long-form table: one row per observation, one column per variable.

    Columns are stored as numpy arrays and are never modified once the dataset is
    built; every operation returns a new Dataset.

    Args:
        data: A dict of column sequences, a list of row dicts, another Dataset, a
            pandas DataFrame, or any object with a `to_dict("list")` method.
    """

    def __init__(self, data: Any = None):
        if data is None:
            columns: Dict[str, Any] = {}
        elif isinstance(data, Dataset):
            columns = data._columns
        elif isinstance(data, dict):
            columns = data
        elif isinstance(data, pd.DataFrame):
            columns = {name: _frame_column(data[name]) for name in data.columns}
        elif hasattr(data, "to_dict"):
            columns = data.to_dict("list")
        elif isinstance(data, (list, tuple)):
            columns = _rows_to_columns(data)
        else:
            raise TypeError(f"Cannot build a Dataset from {type(data).__name__}")

        self._columns: Dict[str, np.ndarray] = {
            str(name): values if isinstance(data, Dataset) else _column(values)
            for name, values in columns.items()
        }
        lengths = {len(v) for v in self._columns.values()}
        if len(lengths) > 1:
            raise ValueError(f"Columns have different lengths: {sorted(lengths)}")
        self._length = lengths.pop() if lengths else 0

    @property
    def names(self) -> List[str]:
        return list(self._columns)

    def __len__(self) -> int:
        return self._length

    def __contains__(self, name: object) -> bool:
        return name in self._columns

    def __getitem__(self, name: str) -> np.ndarray:
        return self._columns[name]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        return self.names == other.names and all(
            np.array_equal(self[n], other[n]) for n in self.names
        )

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return f"<Dataset rows={len(self)} columns={self.names}>"

    def subset(self, mask: Union[np.ndarray, Sequence[bool], Sequence[int]]) -> "Dataset":
        """Select rows by boolean mask or integer index."""
        mask = np.asarray(mask)
        return Dataset({name: values[mask] for name, values in self._columns.items()})

    def select(self, names: Iterable[str]) -> "Dataset":
        return Dataset({name: self._columns[name] for name in names})

    def with_columns(self, **columns: Any) -> "Dataset":
        """Return a copy with columns added or replaced. Scalars are broadcast."""
        out = dict(self._columns)
        for name, values in columns.items():
            if np.ndim(values) == 0:
                dtype = object if isinstance(values, str) else None
                values = np.repeat(np.array([values], dtype=dtype), len(self))
            out[name] = values
        return Dataset(out)

    def rename(self, mapping: Dict[str, str]) -> "Dataset":
        return Dataset({mapping.get(k, k): v for k, v in self._columns.items()})

    def is_discrete(self, name: str) -> bool:
        """Strings, booleans and other non-numeric columns are discrete."""
        return self._columns[name].dtype.kind not in "iufc"

    def unique(self, name: str) -> list:
        """Distinct values of a column, sorted when the values are orderable."""
        values = list(dict.fromkeys(self._columns[name].tolist()))
        try:
            return sorted(values)
        except TypeError:
            return values

    def rows(self) -> List[Dict[str, Any]]:
        """Row dicts with plain Python values, NaN included."""
        lists = {name: values.tolist() for name, values in self._columns.items()}
        return [
            {name: lists[name][i] for name in lists} for i in range(len(self))
        ]

    @staticmethod
    def concat(datasets: Sequence["Dataset"]) -> "Dataset":
        """Stack datasets row-wise, keeping the columns they all share."""
        datasets = [d for d in datasets if d.names]
        if not datasets:
            return Dataset()
        shared = [n for n in datasets[0].names if all(n in d for d in datasets[1:])]
        return Dataset({n: np.concatenate([d[n] for d in datasets]) for n in shared})

    def melt(
        self,
        id_vars: Sequence[str],
        value_vars: Optional[Sequence[str]] = None,
        var_name: str = "variable",
        value_name: str = "value",
    ) -> "Dataset":
        """
        Reshape from wide to long form.

        Each row of the result is one (identifier, variable, value) triple: the
        `value_vars` columns are stacked into `value_name`, labelled by `var_name`.
        """
        id_vars = list(id_vars)
        missing = [v for v in id_vars if v not in self]
        if missing:
            raise KeyError(f"Unknown id columns: {missing}")
        frame = pd.DataFrame(self._columns)
        return Dataset(
            frame.melt(
                id_vars=id_vars,
                value_vars=None if value_vars is None else list(value_vars),
                var_name=var_name,
                value_name=value_name,
            )
        )

    @staticmethod
    def from_matrix(matrix: Any, names: Sequence[str] = ("x", "y", "z")) -> "Dataset":
        """
        Melt a 2-D matrix into (row, column, value) triples with 1-based indices.
        """
        matrix = np.asarray(matrix)
        if matrix.ndim != 2:
            raise ValueError(f"Expected a 2-D matrix, got {matrix.ndim} dimensions")
        n_rows, n_cols = matrix.shape
        row_name, col_name, value_name = names
        return Dataset(
            {
                row_name: np.tile(np.arange(1, n_rows + 1), n_cols),
                col_name: np.repeat(np.arange(1, n_cols + 1), n_rows),
                value_name: matrix.ravel(order="F"),
            }
        )


def _rows_to_columns(rows: Sequence[Dict[str, Any]]) -> Dict[str, list]:
    names: Dict[str, None] = {}
    for row in rows:
        if not isinstance(row, dict):
            raise TypeError("Row data must be a list of dicts")
        names.update(dict.fromkeys(row))
    return {name: [row.get(name) for row in rows] for name in names}


def as_dataset(data: Any) -> Optional[Dataset]:
    if data is None or isinstance(data, Dataset):
        return data
    return Dataset(data)


def factorize(values: np.ndarray) -> tuple:
    """
    Encode values as integer codes.

    Returns (codes, levels) where `levels[codes[i]] == values[i]`. Levels are
    sorted when orderable, otherwise kept in order of first appearance.
    """
    items = values.tolist()
    levels = list(dict.fromkeys(items))
    try:
        levels = sorted(levels)
    except TypeError:
        pass
    index = {level: i for i, level in enumerate(levels)}
    codes = np.array([index[v] for v in items], dtype=int)
    return codes, levels


def resolution(values: np.ndarray) -> float:
    """Smallest non-zero gap between distinct numeric values (1 for discrete or single values)."""
    if values.dtype.kind not in "iuf":
        return 1.0
    distinct = np.unique(values[~np.isnan(values.astype(float))])
    if len(distinct) < 2:
        return 1.0
    gaps = np.diff(distinct)
    return float(gaps[gaps > 0].min())
