# Defaults and rules tables.
#
# Geometries and statistics name each other as defaults; the resolver fills a
# layer's unset fields from these tables before rendering.
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from ggstudio.errors import ConfigurationError
from ggstudio.util import CONFIG


@dataclass(frozen=True)
class GeomDef:
    name: str
    stat: str
    position: str
    required: FrozenSet[str]
    optional: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class Fallback:
    """Parameters filled in, with a warning, when none of `any_of` is given."""

    any_of: Tuple[str, ...]
    fill: Callable[[], Dict[str, Any]]
    message: str


@dataclass(frozen=True)
class StatDef:
    name: str
    geom: str
    required: FrozenSet[str] = frozenset()
    optional: FrozenSet[str] = frozenset()
    computed: FrozenSet[str] = frozenset()
    params: FrozenSet[str] = frozenset()
    fallbacks: Tuple[Fallback, ...] = ()


@dataclass(frozen=True)
class PositionDef:
    name: str
    params: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class GroupingRule:
    """
    Mapped channels that split a layer's rows into groups when `group` is unset.

    With `discrete_only`, only channels mapped to discrete (non-numeric) variables
    take part, so a continuous colour gradient does not break a line apart.
    """

    name: str
    channels: Tuple[str, ...]
    discrete_only: bool = True


def _geom(name, stat, position, required, optional=()):
    return GeomDef(name, stat, position, frozenset(required), frozenset(optional))


GEOMS: Dict[str, GeomDef] = {
    g.name: g
    for g in [
        _geom("point", "identity", "identity", ["x", "y"], ["colour", "fill", "size", "alpha", "shape"]),
        _geom("line", "identity", "identity", ["x", "y"], ["colour", "size", "alpha", "linetype"]),
        _geom("path", "identity", "identity", ["x", "y"], ["colour", "size", "alpha", "linetype"]),
        _geom("bar", "count", "stack", ["x", "y"], ["colour", "fill", "alpha"]),
        _geom("col", "identity", "stack", ["x", "y"], ["colour", "fill", "alpha"]),
        _geom("histogram", "bin", "stack", ["x", "y"], ["colour", "fill", "alpha"]),
        _geom("tile", "identity", "identity", ["x", "y"], ["fill", "colour", "alpha"]),
        _geom("raster", "identity", "identity", ["x", "y"], ["fill", "alpha"]),
        _geom("contour", "contour", "identity", ["x", "y", "z"], ["colour", "alpha", "linetype", "size"]),
        _geom("smooth", "smooth", "identity", ["x", "y"], ["colour", "fill", "alpha", "size", "linetype"]),
        _geom("density", "density", "identity", ["x", "y"], ["colour", "fill", "alpha"]),
        _geom("text", "identity", "identity", ["x", "y", "label"], ["colour", "size", "alpha"]),
        _geom("area", "identity", "stack", ["x", "y"], ["colour", "fill", "alpha"]),
        _geom(
            "boxplot",
            "boxplot",
            "dodge",
            ["x", "ymin", "lower", "middle", "upper", "ymax"],
            ["colour", "fill", "alpha"],
        ),
        _geom("image", "identity", "identity", []),
    ]
}

_bin_fallback = Fallback(
    any_of=("binwidth", "bins", "breaks"),
    fill=lambda: {"bins": CONFIG["default_bins"]},
    message="stat_bin() using bins = {bins}. Pick better value with `binwidth`.",
)

_smooth_fallback = Fallback(
    any_of=("method",),
    fill=lambda: {"method": "loess"},
    message="geom_smooth() using method = '{method}'",
)

STATS: Dict[str, StatDef] = {
    s.name: s
    for s in [
        StatDef("identity", "point"),
        StatDef(
            "bin",
            "histogram",
            required=frozenset(["x"]),
            optional=frozenset(["weight"]),
            computed=frozenset(["y", "count", "density", "xmin", "xmax", "width"]),
            params=frozenset(["binwidth", "bins", "breaks", "boundary", "center"]),
            fallbacks=(_bin_fallback,),
        ),
        StatDef(
            "count",
            "bar",
            required=frozenset(["x"]),
            optional=frozenset(["weight"]),
            computed=frozenset(["y", "count", "width"]),
            params=frozenset(["width"]),
        ),
        StatDef(
            "smooth",
            "smooth",
            required=frozenset(["x", "y"]),
            optional=frozenset(["weight"]),
            params=frozenset(["method", "span", "degree", "n"]),
            fallbacks=(_smooth_fallback,),
        ),
        StatDef(
            "density",
            "density",
            required=frozenset(["x"]),
            optional=frozenset(["weight"]),
            computed=frozenset(["y", "density", "count"]),
            params=frozenset(["bw", "adjust", "n"]),
        ),
        StatDef(
            "contour",
            "contour",
            required=frozenset(["x", "y", "z"]),
            params=frozenset(["bins", "binwidth", "breaks"]),
        ),
        StatDef(
            "boxplot",
            "boxplot",
            required=frozenset(["y"]),
            optional=frozenset(["x", "weight"]),
            computed=frozenset(["ymin", "lower", "middle", "upper", "ymax"]),
            params=frozenset(["coef"]),
        ),
    ]
}

POSITIONS: Dict[str, PositionDef] = {
    p.name: p
    for p in [
        PositionDef("identity"),
        PositionDef("stack"),
        PositionDef("fill"),
        PositionDef("dodge", frozenset(["width"])),
        PositionDef("jitter", frozenset(["width", "height", "seed"])),
    ]
}

colour_implies_group = GroupingRule("colour-implies-group", ("colour", "linetype"))
fill_implies_group = GroupingRule("fill-implies-group", ("fill", "colour"))
x_implies_group = GroupingRule("x-implies-group", ("x", "colour", "fill"), discrete_only=False)

GROUPING_RULES: Dict[str, GroupingRule] = {
    "line": colour_implies_group,
    "path": colour_implies_group,
    "smooth": colour_implies_group,
    "contour": colour_implies_group,
    "area": fill_implies_group,
    "bar": fill_implies_group,
    "col": fill_implies_group,
    "histogram": fill_implies_group,
    "density": fill_implies_group,
    "boxplot": x_implies_group,
}


def geom_def(name: str, stat: Optional[str] = None) -> GeomDef:
    if name not in GEOMS:
        raise ConfigurationError(f"Unknown geometry '{name}'", geom=name, stat=stat)
    return GEOMS[name]


def stat_def(name: str, geom: Optional[str] = None) -> StatDef:
    if name not in STATS:
        raise ConfigurationError(f"Unknown statistic '{name}'", geom=geom, stat=name)
    return STATS[name]


def position_def(name: str) -> PositionDef:
    if name not in POSITIONS:
        raise ConfigurationError(f"Unknown position adjustment '{name}'")
    return POSITIONS[name]


def supported_channels(geom: GeomDef, stat: StatDef) -> FrozenSet[str]:
    return geom.required | geom.optional | stat.required | stat.optional | {"group"}


def required_channels(geom: GeomDef, stat: StatDef) -> FrozenSet[str]:
    """Channels the mapping itself must provide: the statistic computes the rest."""
    return stat.required | (geom.required - stat.computed)
