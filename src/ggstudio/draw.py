"""
Geometries: turn a layer's computed data into drawables, and drawables into
Observable Plot marks.

A drawable is a primitive (points, lines, rectangles, ...) with its data still
in channel space, so coordinate systems can transform it before it becomes a
`Plot.*` mark.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ggstudio.dataset import Dataset, resolution
from ggstudio.layout import JSRef

Plot = JSRef("Plot")


@dataclass
class Drawable:
    kind: str
    frame: Dataset
    geom: str
    layer: int
    params: Dict[str, Any] = field(default_factory=dict)

    def with_frame(self, frame: Dataset, kind: Optional[str] = None) -> "Drawable":
        return replace(self, frame=frame, kind=kind or self.kind)


GEOM_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "point": {"fill": "black", "r": 2.5},
    "line": {"stroke": "black", "strokeWidth": 1.5},
    "path": {"stroke": "black", "strokeWidth": 1.5},
    "smooth": {"stroke": "#3366FF", "strokeWidth": 2},
    "contour": {"stroke": "#3366FF"},
    "bar": {"fill": "#595959"},
    "col": {"fill": "#595959"},
    "histogram": {"fill": "#595959"},
    "area": {"fill": "#595959"},
    "density": {"fill": "none", "stroke": "black"},
    "tile": {"fill": "#595959"},
    "raster": {"fill": "#595959"},
    "text": {"fill": "black"},
    "boxplot": {"fill": "white", "stroke": "#333333"},
}

# channel -> Plot option, per drawable kind
STYLE_CHANNELS: Dict[str, Dict[str, str]] = {
    "point": {"colour": "fill", "fill": "fill", "size": "r", "alpha": "fillOpacity", "shape": "symbol"},
    "text": {"colour": "fill", "size": "fontSize", "alpha": "fillOpacity"},
    "line": {"colour": "stroke", "size": "strokeWidth", "alpha": "strokeOpacity"},
    "contour": {"colour": "stroke", "size": "strokeWidth", "alpha": "strokeOpacity"},
    "area": {"fill": "fill", "colour": "stroke", "alpha": "fillOpacity"},
    "rect": {"fill": "fill", "colour": "stroke", "alpha": "fillOpacity"},
    "bar": {"fill": "fill", "colour": "stroke", "alpha": "fillOpacity"},
    "cell": {"fill": "fill", "colour": "stroke", "alpha": "fillOpacity"},
    "polygon": {"fill": "fill", "colour": "stroke", "alpha": "fillOpacity"},
    "vrule": {"colour": "stroke"},
    "hrule": {"colour": "stroke"},
    "tick": {"colour": "stroke"},
}

LINETYPES = {
    "solid": None,
    "dashed": "4,3",
    "dotted": "1,3",
    "dotdash": "1,3,4,3",
    "longdash": "8,4",
    "twodash": "2,2,6,2",
}

# levels of a mapped linetype take these in order, cycling
LINETYPE_ORDER = ("solid", "dashed", "dotted", "dotdash", "longdash", "twodash")


def _sorted_by_x(frame: Dataset) -> Dataset:
    if len(frame) == 0 or frame.is_discrete("x"):
        return frame
    return frame.subset(np.argsort(frame["x"].astype(float), kind="stable"))


def _span(frame: Dataset) -> Dataset:
    """Vertical extent of bars and areas: from 0 to y unless stacked already."""
    if "ymin" in frame and "ymax" in frame:
        return frame
    y = frame["y"].astype(float)
    return frame.with_columns(ymin=np.zeros(len(frame)), ymax=y)


def _extent(frame: Dataset, channel: str, width: Any) -> Dict[str, np.ndarray]:
    lo, hi = f"{channel}min", f"{channel}max"
    if lo in frame and hi in frame:
        return {}
    centre = frame[channel].astype(float)
    if width is None:
        width = 0.9 * resolution(frame[channel])
    half = np.asarray(width, dtype=float) / 2
    return {lo: centre - half, hi: centre + half}


def _bars(d: Drawable) -> List[Drawable]:
    frame = _span(d.frame)
    if frame.is_discrete("x"):
        return [d.with_frame(frame, "bar")]
    width = frame["width"] if "width" in frame else d.params.get("width")
    frame = frame.with_columns(**_extent(frame, "x", width))
    return [d.with_frame(frame, "rect")]


def _tiles(d: Drawable) -> List[Drawable]:
    frame = d.frame
    if frame.is_discrete("x") or frame.is_discrete("y"):
        return [d.with_frame(frame, "cell")]
    x_width = d.params.get("width", resolution(frame["x"]))
    y_height = d.params.get("height", resolution(frame["y"]))
    frame = frame.with_columns(**_extent(frame, "x", x_width), **_extent(frame, "y", y_height))
    return [d.with_frame(frame, "rect")]


def _boxplot(d: Drawable) -> List[Drawable]:
    frame = d.frame
    if len(frame) == 0:
        return []
    whiskers = d.with_frame(frame, "vrule")
    box = frame.with_columns(ymin=frame["lower"], ymax=frame["upper"])
    median = frame.with_columns(y=frame["middle"])
    if frame.is_discrete("x"):
        parts = [whiskers, d.with_frame(box, "bar"), d.with_frame(median, "tick")]
    else:
        box = box.with_columns(**_extent(box, "x", frame["width"] if "width" in frame else None))
        median = median.with_columns(xmin=box["xmin"], xmax=box["xmax"])
        parts = [whiskers, d.with_frame(box, "rect"), d.with_frame(median, "hrule")]

    xs, ys = [], []
    for x, outliers in zip(frame["x"].tolist(), frame["outliers"].tolist()):
        xs.extend([x] * len(outliers))
        ys.extend(outliers)
    if ys:
        x_type = object if frame.is_discrete("x") else float
        points = Dataset({"x": np.array(xs, dtype=x_type), "y": ys})
        parts.append(replace(d, frame=points, kind="point", params={}))
    return parts


def _dashed(d: Drawable, levels: Sequence[Any]) -> List[Drawable]:
    """
    One drawable per linetype level. Plot dashes a whole mark, so rows mapped to
    different linetypes cannot share one.
    """
    values = d.frame["linetype"].tolist()

    def part(mask: np.ndarray, linetype: str) -> Drawable:
        return replace(d, frame=d.frame.subset(mask), params={**d.params, "linetype": linetype})

    out = []
    rest = np.ones(len(values), dtype=bool)
    for i, level in enumerate(levels):
        mask = np.array([v == level for v in values], dtype=bool)
        if mask.any():
            rest &= ~mask
            out.append(part(mask, LINETYPE_ORDER[i % len(LINETYPE_ORDER)]))
    if rest.any():
        out.append(part(rest, "solid"))
    return out


def draw(
    geom: str,
    frame: Dataset,
    layer: int,
    params: Dict[str, Any],
    linetypes: Optional[Sequence[Any]] = None,
) -> List[Drawable]:
    """
    Build the drawables for one layer's computed (and position-adjusted) data.

    `linetypes` are the levels of the layer's mapped linetype, in legend order;
    they default to the levels present in `frame`.
    """
    if len(frame) == 0 and geom != "image":
        return []
    drawables = _shapes(Drawable(geom, frame, geom, layer, params))
    if "linetype" not in frame:
        return drawables
    if linetypes is None:
        linetypes = frame.unique("linetype")
    out: List[Drawable] = []
    for d in drawables:
        if d.kind in ("line", "contour") and "linetype" in d.frame:
            out.extend(_dashed(d, linetypes))
        else:
            out.append(d)
    return out


def _shapes(d: Drawable) -> List[Drawable]:
    geom, frame = d.geom, d.frame
    if geom in ("point", "text", "contour", "image"):
        return [d.with_frame(frame, geom)]
    if geom in ("line", "smooth"):
        return [d.with_frame(_sorted_by_x(frame), "line")]
    if geom == "path":
        return [d.with_frame(frame, "line")]
    if geom in ("area", "density"):
        return [d.with_frame(_sorted_by_x(_span(frame)), "area")]
    if geom in ("bar", "col", "histogram"):
        return _bars(d)
    if geom in ("tile", "raster"):
        return _tiles(d)
    if geom == "boxplot":
        return _boxplot(d)
    raise ValueError(f"No drawing rule for geometry '{geom}'")


# %% Observable Plot marks

POSITION_OPTIONS: Dict[str, Tuple[str, Dict[str, str]]] = {
    "point": ("dot", {"x": "x", "y": "y"}),
    "text": ("text", {"x": "x", "y": "y", "text": "label"}),
    "line": ("line", {"x": "x", "y": "y", "z": "group"}),
    "area": ("areaY", {"x": "x", "y1": "ymin", "y2": "ymax", "z": "group"}),
    "rect": ("rect", {"x1": "xmin", "x2": "xmax", "y1": "ymin", "y2": "ymax"}),
    "bar": ("barY", {"x": "x", "y1": "ymin", "y2": "ymax"}),
    "cell": ("cell", {"x": "x", "y": "y"}),
    "contour": ("contour", {"x": "x", "y": "y", "value": "z"}),
    "vrule": ("ruleX", {"x": "x", "y1": "ymin", "y2": "ymax"}),
    "hrule": ("ruleY", {"y": "y", "x1": "xmin", "x2": "xmax"}),
    "tick": ("tickY", {"x": "x", "y": "y"}),
    "polygon": ("geo", {}),
}

FLIPPED_NAMES = {
    "areaY": "areaX",
    "barY": "barX",
    "ruleX": "ruleY",
    "ruleY": "ruleX",
    "tickY": "tickX",
}

FLIPPED_OPTIONS = {"x": "y", "y": "x", "x1": "y1", "y1": "x1", "x2": "y2", "y2": "x2", "fx": "fy"}


def _style(d: Drawable) -> Dict[str, Any]:
    channels = STYLE_CHANNELS.get(d.kind, {})
    style = dict(GEOM_DEFAULTS.get(d.geom, {}))
    if d.kind in ("vrule", "hrule", "tick"):
        style = {"stroke": style.get("stroke", "currentColor")}
    for channel, option in channels.items():
        if channel in d.params:
            style[option] = d.params[channel]
    for channel, option in channels.items():
        if channel in d.frame:
            style[option] = channel
    linetype = d.params.get("linetype")
    if linetype in LINETYPES and LINETYPES[linetype]:
        style["strokeDasharray"] = LINETYPES[linetype]
    return style


def _raster(d: Drawable) -> Any:
    tile = d.params["tile"]
    colors, width, height = tile.pixels(d.params.get("resolution", 128))
    return Plot.raster(
        [{"c": c} for c in colors],
        {
            "x1": tile.west,
            "x2": tile.east,
            "y1": tile.north,
            "y2": tile.south,
            "width": width,
            "height": height,
            "fill": {"value": "c", "scale": None},
            "imageRendering": "pixelated",
        },
    )


def _features(frame: Dataset) -> List[Dict[str, Any]]:
    features = []
    for row in frame.rows():
        ring = row.pop("polygon")
        features.append(
            {"type": "Feature", "geometry": {"type": "Polygon", "coordinates": [ring]}, **row}
        )
    return features


def to_mark(d: Drawable, flip: bool = False) -> Any:
    """The `Plot.<mark>(data, options)` call for a drawable."""
    if d.kind == "image":
        return _raster(d)
    name, positions = POSITION_OPTIONS[d.kind]
    options = {k: v for k, v in positions.items() if v in d.frame}
    if d.kind in ("bar", "vrule", "tick", "point") and "xdodge" in d.frame:
        options["fx"], options["x"] = "x", "xdodge"
    if d.kind == "contour":
        for param, option in (("bins", "thresholds"), ("breaks", "thresholds"), ("binwidth", "interval")):
            if param in d.params:
                options[option] = d.params[param]
        options["fill"] = "none"
    options.update(_style(d))

    data = _features(d.frame) if d.kind == "polygon" else d.frame.rows()
    if flip:
        name = FLIPPED_NAMES.get(name, name)
        options = {FLIPPED_OPTIONS.get(k, k): v for k, v in options.items()}
    return getattr(Plot, name)(data, options)
