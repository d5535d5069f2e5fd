from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from ggstudio.aes import Aes
from ggstudio.dataset import Dataset, as_dataset
from ggstudio.positions import Position, as_position

MappingInput = Union[Aes, Dict[str, str], None]
PositionInput = Union[str, Position, None]


@dataclass(frozen=True)
class Layer:
    """
    One layer of a plot: data, mapping, statistic, geometry and position.

    Any of `geom`, `stat`, `position` and `data` may be left unset; they are
    filled in from the defaults tables (or the plot's data) when the plot is
    resolved. `params` holds statistic parameters (e.g. `binwidth`) alongside
    fixed aesthetics for the geometry (e.g. `colour="red"`).
    """

    geom: Optional[str] = None
    stat: Optional[str] = None
    mapping: Aes = field(default_factory=Aes)
    data: Optional[Dataset] = None
    position: Optional[Position] = None
    params: Dict[str, Any] = field(default_factory=dict)
    inherit_aes: bool = True

    def __post_init__(self):
        if self.geom is None and self.stat is None:
            raise TypeError("A layer needs a geometry or a statistic")
        if not isinstance(self.mapping, Aes):
            object.__setattr__(self, "mapping", Aes(self.mapping))
        object.__setattr__(self, "data", as_dataset(self.data))
        object.__setattr__(self, "position", as_position(self.position))
        object.__setattr__(self, "params", dict(self.params))

    @property
    def label(self) -> str:
        return f"geom_{self.geom}" if self.geom else f"stat_{self.stat}"


def layer(
    geom: Optional[str] = None,
    stat: Optional[str] = None,
    mapping: MappingInput = None,
    data: Any = None,
    position: PositionInput = None,
    inherit_aes: bool = True,
    **params: Any,
) -> Layer:
    """Create a layer from any combination of geometry, statistic and position."""
    return Layer(
        geom=geom,
        stat=stat,
        mapping=mapping,
        data=data,
        position=position,
        params=params,
        inherit_aes=inherit_aes,
    )


def _geom_layer(geom: str, doc: str):
    def constructor(
        mapping: MappingInput = None,
        data: Any = None,
        stat: Optional[str] = None,
        position: PositionInput = None,
        inherit_aes: bool = True,
        **params: Any,
    ) -> Layer:
        return layer(geom, stat, mapping, data, position, inherit_aes, **params)

    constructor.__name__ = f"geom_{geom}"
    constructor.__qualname__ = constructor.__name__
    constructor.__doc__ = doc
    return constructor


def _stat_layer(stat: str, doc: str):
    def constructor(
        mapping: MappingInput = None,
        data: Any = None,
        geom: Optional[str] = None,
        position: PositionInput = None,
        inherit_aes: bool = True,
        **params: Any,
    ) -> Layer:
        return layer(geom, stat, mapping, data, position, inherit_aes, **params)

    constructor.__name__ = f"stat_{stat}"
    constructor.__qualname__ = constructor.__name__
    constructor.__doc__ = doc
    return constructor


geom_point = _geom_layer("point", "Points (scatterplot). Requires x and y.")
geom_line = _geom_layer(
    "line",
    """
    Lines connecting observations in order of x.

    Rows are connected within groups. Mapping a discrete `colour` (or `linetype`)
    groups the rows implicitly; map `group` to group without colouring.
    """,
)
geom_path = _geom_layer(
    "path", "Lines connecting observations in the order they appear in the data."
)
geom_bar = _geom_layer(
    "bar",
    "Bars whose heights count the rows at each x (stat_count), stacked by default.",
)
geom_col = _geom_layer("col", "Bars whose heights are the mapped y values, stacked by default.")
geom_histogram = _geom_layer(
    "histogram",
    """
    Histogram: bin a continuous x (stat_bin) and draw the counts as bars.

    Args:
        binwidth: Width of each bin. If neither `binwidth`, `bins` nor `breaks`
            is given, 30 bins are used and a DefaultFallbackWarning is issued.
        bins: Number of bins.
        breaks: Explicit bin edges.
        boundary, center: Align bin edges to a boundary, or bins to a center.
    """,
)
geom_tile = _geom_layer("tile", "Rectangles centred on (x, y), sized to the data resolution.")
geom_raster = _geom_layer("raster", "Like geom_tile, for regular grids.")
geom_contour = _geom_layer(
    "contour",
    """
    Contour lines of a surface z = f(x, y). Requires x, y and z.

    Args:
        bins, binwidth, breaks: Number, spacing or values of the contour levels.
    """,
)
geom_smooth = _geom_layer(
    "smooth",
    """
    Smoothed conditional mean (stat_smooth).

    Args:
        method: 'lm' (polynomial least squares of `degree`) or 'loess' (local
            linear regression over a `span` fraction of the data).
    """,
)
geom_density = _geom_layer("density", "Kernel density estimate of x (stat_density).")
geom_text = _geom_layer("text", "Text labels at (x, y). Requires label.")
geom_area = _geom_layer("area", "Filled area from zero to y, stacked by default.")
geom_boxplot = _geom_layer(
    "boxplot", "Box and whiskers summary of y for each x (stat_boxplot)."
)

stat_identity = _stat_layer("identity", "Leave the data as is.")
stat_bin = _stat_layer("bin", "Bin a continuous x; draws a histogram by default.")
stat_count = _stat_layer("count", "Count rows at each x; draws bars by default.")
stat_smooth = _stat_layer("smooth", "Smoothed conditional mean; draws geom_smooth by default.")
stat_density = _stat_layer("density", "Kernel density estimate of x.")
stat_contour = _stat_layer("contour", "Contour levels of z over (x, y).")
stat_boxplot = _stat_layer("boxplot", "Five number summary of y for each x.")
