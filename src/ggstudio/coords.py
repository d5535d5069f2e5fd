import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ggstudio.dataset import Dataset, factorize
from ggstudio.draw import Drawable
from ggstudio.errors import ConfigurationError

COORD_KINDS = ("cartesian", "flip", "polar", "fixed", "quickmap")

UNIT_DISK = {"type": "MultiPoint", "coordinates": [[-1.05, -1.05], [1.05, 1.05]]}


@dataclass(frozen=True)
class Coord:
    """
    A coordinate system, applied after every layer has been drawn.

    Args:
        kind: "cartesian", "flip", "polar", "fixed" or "quickmap".
        xlim, ylim: Zoom limits (cartesian); they do not change the data.
        theta: For polar coordinates, the channel mapped to angle ("x" or "y").
        start: Offset of the starting angle from 12 o'clock, in radians.
        ratio: Aspect ratio y/x (fixed).
    """

    kind: str = "cartesian"
    xlim: Optional[Tuple[float, float]] = None
    ylim: Optional[Tuple[float, float]] = None
    theta: str = "x"
    start: float = 0.0
    ratio: float = 1.0

    def __post_init__(self):
        if self.kind not in COORD_KINDS:
            raise ValueError(f"Coordinate system must be one of {COORD_KINDS}")
        if self.theta not in ("x", "y"):
            raise ValueError("theta must be 'x' or 'y'")

    @property
    def flipped(self) -> bool:
        return self.kind == "flip"

    def transform(self, drawables: List[Drawable]) -> List[Drawable]:
        if self.kind == "polar":
            return polar_transform(drawables, self.theta, self.start)
        return drawables

    def plot_options(self, drawables: Sequence[Drawable]) -> Dict[str, Any]:
        """Plot-level options this coordinate system imposes."""
        if self.kind == "cartesian":
            options: Dict[str, Any] = {}
            if self.xlim is not None:
                options["x"] = {"domain": list(self.xlim)}
            if self.ylim is not None:
                options["y"] = {"domain": list(self.ylim)}
            if options:
                options["clip"] = True
            return options
        if self.kind == "fixed":
            return {"aspectRatio": self.ratio}
        if self.kind == "quickmap":
            lats = _values(drawables, ("y", "ymin", "ymax"), extra=_tile_lats(drawables))
            if len(lats) == 0:
                return {}
            mid = math.radians((float(lats.min()) + float(lats.max())) / 2)
            return {"aspectRatio": 1 / max(math.cos(mid), 1e-6)}
        if self.kind == "polar":
            return {
                "projection": {"type": "reflect-y", "domain": UNIT_DISK},
                "x": {"axis": None},
                "y": {"axis": None},
            }
        return {}


def coord_cartesian(
    xlim: Optional[Sequence[float]] = None, ylim: Optional[Sequence[float]] = None
) -> Coord:
    """Cartesian coordinates; `xlim`/`ylim` zoom without dropping data."""
    return Coord(
        "cartesian",
        tuple(xlim) if xlim is not None else None,
        tuple(ylim) if ylim is not None else None,
    )


def coord_flip() -> Coord:
    """Swap the x and y axes."""
    return Coord("flip")


def coord_polar(theta: str = "x", start: float = 0.0) -> Coord:
    """
    Polar coordinates: `theta` becomes the angle, the other channel the radius.

    A stacked bar chart in `coord_polar(theta="y")` is a pie chart.
    """
    return Coord("polar", theta=theta, start=start)


def coord_fixed(ratio: float = 1.0) -> Coord:
    """Cartesian coordinates with a fixed ratio between y and x units."""
    return Coord("fixed", ratio=ratio)


coord_equal = coord_fixed


def coord_quickmap() -> Coord:
    """Approximate a map projection by fixing the aspect ratio at the middle latitude."""
    return Coord("quickmap")


def _values(drawables: Sequence[Drawable], names: Sequence[str], extra=()) -> np.ndarray:
    chunks = [np.asarray(extra, dtype=float)]
    for d in drawables:
        for name in names:
            if name in d.frame and not d.frame.is_discrete(name):
                chunks.append(d.frame[name].astype(float))
    values = np.concatenate(chunks)
    return values[np.isfinite(values)]


def _tile_lats(drawables: Sequence[Drawable]) -> List[float]:
    return [
        lat
        for d in drawables
        if d.kind == "image"
        for lat in (d.params["tile"].south, d.params["tile"].north)
    ]


# %% polar


class _Axis:
    """Maps one channel's values (continuous or discrete) onto [0, 1]."""

    def __init__(self, drawables: Sequence[Drawable], channel: str, from_zero: bool):
        self.names = (channel, f"{channel}min", f"{channel}max")
        self.levels: Optional[List[Any]] = None
        discrete = [
            d.frame[channel]
            for d in drawables
            if channel in d.frame and d.frame.is_discrete(channel)
        ]
        if discrete:
            self.levels = factorize(np.concatenate(discrete))[1]
            self.lo, self.hi = 0.0, float(len(self.levels))
            return
        values = _values(drawables, self.names)
        if len(values) == 0:
            self.lo, self.hi = 0.0, 1.0
            return
        self.lo = min(0.0, float(values.min())) if from_zero else float(values.min())
        self.hi = float(values.max())
        if self.hi == self.lo:
            self.hi = self.lo + 1.0

    def positions(self, frame: Dataset, name: str) -> np.ndarray:
        if self.levels is not None and frame.is_discrete(name):
            index = {level: i for i, level in enumerate(self.levels)}
            return np.array([index[v] + 0.5 for v in frame[name].tolist()], dtype=float)
        return frame[name].astype(float)

    def extent(self, frame: Dataset) -> Tuple[np.ndarray, np.ndarray]:
        lo_name, hi_name = self.names[1], self.names[2]
        if lo_name in frame and hi_name in frame:
            return frame[lo_name].astype(float), frame[hi_name].astype(float)
        centre = self.positions(frame, self.names[0])
        half = 0.45
        return centre - half, centre + half

    def scale(self, values: np.ndarray) -> np.ndarray:
        return (values - self.lo) / (self.hi - self.lo)


def _project(theta: np.ndarray, r: np.ndarray, start: float) -> Tuple[np.ndarray, np.ndarray]:
    angle = 2 * np.pi * theta + start
    return r * np.sin(angle), r * np.cos(angle)


def _wedge(t1, t2, r1, r2, start) -> List[List[float]]:
    steps = max(2, int(abs(t2 - t1) * 60) + 2)
    arc = np.linspace(t1, t2, steps)
    ox, oy = _project(arc, np.full(steps, r2), start)
    ix, iy = _project(arc[::-1], np.full(steps, r1), start)
    ring = list(zip(np.concatenate([ox, ix]).tolist(), np.concatenate([oy, iy]).tolist()))
    ring.append(ring[0])
    return [list(p) for p in ring]


def polar_transform(drawables: List[Drawable], theta: str, start: float) -> List[Drawable]:
    """
    Project drawables onto the unit disk.

    Points, text and lines move vertex by vertex; rectangles (bars, tiles) and
    areas become wedge polygons.
    """
    r_channel = "y" if theta == "x" else "x"
    theta_axis = _Axis(drawables, theta, from_zero=False)
    r_axis = _Axis(drawables, r_channel, from_zero=True)
    axes = {theta: theta_axis, r_channel: r_axis}

    def to_disk(x_scaled, y_scaled):
        if theta == "x":
            return _project(x_scaled, np.clip(y_scaled, 0, None), start)
        return _project(y_scaled, np.clip(x_scaled, 0, None), start)

    out = []
    for d in drawables:
        frame = d.frame
        if d.kind in ("contour", "image", "vrule", "hrule", "tick"):
            raise ConfigurationError(
                f"coord_polar() cannot draw geom_{d.geom}", geom=d.geom, layer=d.layer
            )
        if len(frame) == 0:
            out.append(d)
        elif d.kind in ("point", "text", "line"):
            x, y = to_disk(
                axes["x"].scale(axes["x"].positions(frame, "x")),
                axes["y"].scale(axes["y"].positions(frame, "y")),
            )
            out.append(d.with_frame(frame.with_columns(x=x, y=y)))
        elif d.kind == "area":
            out.append(d.with_frame(_area_polygons(frame, axes, to_disk), "polygon"))
        else:
            out.append(d.with_frame(_wedges(frame, theta, axes, start), "polygon"))
    return out


POSITIONAL = ("x", "y", "xmin", "xmax", "ymin", "ymax")


def _wedges(frame: Dataset, theta: str, axes: Dict[str, _Axis], start: float) -> Dataset:
    r_channel = "y" if theta == "x" else "x"
    t_lo, t_hi = (axes[theta].scale(v) for v in axes[theta].extent(frame))
    r_lo, r_hi = (axes[r_channel].scale(v) for v in axes[r_channel].extent(frame))
    rings = np.empty(len(frame), dtype=object)
    for i in range(len(frame)):
        rings[i] = _wedge(t_lo[i], t_hi[i], max(r_lo[i], 0.0), r_hi[i], start)
    keep = [n for n in frame.names if n not in POSITIONAL]
    return frame.select(keep).with_columns(polygon=rings)


def _area_polygons(frame: Dataset, axes: Dict[str, _Axis], to_disk) -> Dataset:
    groups = frame["group"] if "group" in frame else np.zeros(len(frame), dtype=int)
    rows = []
    for g in np.unique(groups):
        sub = frame.subset(groups == g)
        xs = axes["x"].scale(axes["x"].positions(sub, "x"))
        upper = axes["y"].scale(sub["ymax"].astype(float))
        lower = axes["y"].scale(sub["ymin"].astype(float))
        px, py = to_disk(np.concatenate([xs, xs[::-1]]), np.concatenate([upper, lower[::-1]]))
        ring = [[a, b] for a, b in zip(px.tolist(), py.tolist())]
        ring.append(ring[0])
        row = {n: sub[n].tolist()[0] for n in sub.names if n not in POSITIONAL}
        row["polygon"] = ring
        rows.append(row)
    polygons = np.empty(len(rows), dtype=object)
    for i, row in enumerate(rows):
        polygons[i] = row.pop("polygon")
    if rows and rows[0]:
        return Dataset(rows).with_columns(polygon=polygons)
    return Dataset({"polygon": polygons})
