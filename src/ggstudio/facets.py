import itertools
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from ggstudio.dataset import Dataset
from ggstudio.errors import ConfigurationError

SCALE_POLICIES = ("fixed", "free", "free_x", "free_y")

Vars = Union[str, Sequence[str], None]


def _vars(value: Vars) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split("+") if v.strip() not in ("", "."))
    return tuple(value)


def _level(value: Any) -> Any:
    """Facet level of a value; NaN and None are the same missing level."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return value


def _level_order(combo: tuple) -> tuple:
    return tuple((v is None, 0 if v is None else v) for v in combo)


def _formula(formula: str) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    lhs, _, rhs = formula.partition("~")
    return _vars(lhs), _vars(rhs)


@dataclass(frozen=True)
class Cell:
    """One facet panel: its grid position and the variable values it shows."""

    row: int
    col: int
    values: Dict[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return ", ".join("NA" if v is None else str(v) for v in self.values.values())

    def mask(self, data: Dataset) -> np.ndarray:
        mask = np.ones(len(data), dtype=bool)
        for name, value in self.values.items():
            if name in data:
                levels = [_level(v) for v in data[name].tolist()]
                mask &= np.array([v == value for v in levels], dtype=bool)
        return mask

    def subset(self, data: Dataset) -> Dataset:
        """Rows of `data` belonging to this cell. Data without a facet variable repeats in every cell."""
        return data.subset(self.mask(data))


@dataclass(frozen=True)
class Facet:
    """
    Split the plot into panels by the values of `rows` and `cols` variables.

    In a grid every combination of row and column values gets a panel, so N row
    values by M column values gives N x M panels. A wrapped facet lays out only
    the combinations present in the data, `ncol` panels per row. `scales`
    ("fixed", "free", "free_x", "free_y") decides whether panels share axes.
    """

    rows: Tuple[str, ...] = ()
    cols: Tuple[str, ...] = ()
    scales: str = "fixed"
    wrap: bool = False
    ncol: Optional[int] = None

    def __post_init__(self):
        if self.scales not in SCALE_POLICIES:
            raise ValueError(f"scales must be one of {SCALE_POLICIES}, got '{self.scales}'")

    @property
    def free_x(self) -> bool:
        return self.scales in ("free", "free_x")

    @property
    def free_y(self) -> bool:
        return self.scales in ("free", "free_y")

    @property
    def variables(self) -> Tuple[str, ...]:
        return self.rows + self.cols

    def _combinations(self, names: Tuple[str, ...], datasets: Sequence[Dataset]) -> List[tuple]:
        if not names:
            return [()]
        for name in names:
            if not any(name in d for d in datasets):
                raise ConfigurationError(f"Faceting variable '{name}' not found in any layer data")
        combos: Dict[tuple, None] = {}
        for data in datasets:
            if not all(n in data for n in names):
                continue
            columns = [[_level(v) for v in data[n].tolist()] for n in names]
            combos.update(dict.fromkeys(zip(*columns)))
        try:
            return sorted(combos, key=_level_order)
        except TypeError:
            return list(combos)

    def cells(self, datasets: Sequence[Dataset]) -> List[Cell]:
        if self.wrap:
            combos = self._combinations(self.cols, datasets)
            ncol = self.ncol or max(1, math.ceil(math.sqrt(len(combos))))
            return [
                Cell(i // ncol, i % ncol, dict(zip(self.cols, combo)))
                for i, combo in enumerate(combos)
            ]
        row_combos = self._combinations(self.rows, datasets)
        col_combos = self._combinations(self.cols, datasets)
        return [
            Cell(i, j, {**dict(zip(self.rows, r)), **dict(zip(self.cols, c))})
            for (i, r), (j, c) in itertools.product(enumerate(row_combos), enumerate(col_combos))
        ]


def facet_null() -> Facet:
    return Facet()


def facet_grid(rows: Vars = None, cols: Vars = None, scales: str = "fixed") -> Facet:
    """
    Lay out panels in a grid of `rows` x `cols` variables.

    Usage:
        facet_grid("Type", "Treatment")
        facet_grid("Type ~ Treatment")
        facet_grid(cols="Species", scales="free_x")
    """
    if isinstance(rows, str) and "~" in rows:
        rows, cols = _formula(rows)
    return Facet(rows=_vars(rows), cols=_vars(cols), scales=scales)


def facet_wrap(facets: Vars, ncol: Optional[int] = None, scales: str = "fixed") -> Facet:
    """Wrap a 1-D ribbon of panels, one per combination of `facets` values, into rows."""
    if isinstance(facets, str) and "~" in facets:
        lhs, rhs = _formula(facets)
        facets = lhs + rhs
    return Facet(cols=_vars(facets), scales=scales, wrap=True, ncol=ncol)


def single_cell() -> List[Cell]:
    return [Cell(0, 0)]
