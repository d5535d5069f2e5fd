"""
Rendering dispatch: turn a plot specification into Observable Plot panels.

The pipeline, for each layer and facet cell: statistic, position adjustment,
geometry (drawables in channel space). The coordinate system is applied last,
then scales, labels and theme chrome become Plot options. A layer that fails
to resolve or compute is left out and reported; its siblings still render.
"""
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ggstudio.coords import Coord
from ggstudio.dataset import Dataset, factorize
from ggstudio.draw import FLIPPED_OPTIONS, Drawable, Plot, draw, to_mark
from ggstudio.errors import ConfigurationError
from ggstudio.facets import Cell, facet_null, single_cell
from ggstudio.layout import JSRef, LayoutItem
from ggstudio.positions import adjust
from ggstudio.resolve import ResolvedLayer, resolve_layer
from ggstudio.scales import default_scale
from ggstudio.stats import compute_stat
from ggstudio.util import deep_merge

Figure = JSRef("Figure")

COMPUTED_LABELS = {"bin": "count", "count": "count", "density": "density"}


@dataclass
class Panel:
    """One facet cell, drawn as a single `Plot.plot`."""

    row: int
    col: int
    label: str
    drawables: List[Drawable]
    marks: List[Any]
    options: Dict[str, Any]

    def plot(self) -> Any:
        return Plot.plot({**self.options, "marks": self.marks})


@dataclass
class RenderedPlot(LayoutItem):
    """
    A rendered plot: a grid of panels plus any layer errors and warnings.

    Displays like any other layout item (widget or HTML) and can be saved with
    `save_html` or `save_image`.
    """

    panels: List[Panel]
    nrow: int = 1
    ncol: int = 1
    labels: Dict[str, Optional[str]] = field(default_factory=dict)
    legend: Any = None
    legend_position: str = "right"
    strips: bool = False
    layers: List[ResolvedLayer] = field(default_factory=list)
    errors: List[ConfigurationError] = field(default_factory=list)
    warnings: List[Warning] = field(default_factory=list)

    def __post_init__(self):
        LayoutItem.__init__(self)

    def for_json(self) -> Any:
        return Figure(
            {
                "panels": [
                    {"row": p.row, "col": p.col, "label": p.label, "plot": p.plot()}
                    for p in self.panels
                ],
                "nrow": self.nrow,
                "ncol": self.ncol,
                "title": self.labels.get("title"),
                "subtitle": self.labels.get("subtitle"),
                "caption": self.labels.get("caption"),
                "strips": self.strips,
                "legend": self.legend,
                "legendPosition": self.legend_position,
            }
        )


# %% channel space


def _group_codes(data: Dataset, group_by: Sequence[str]) -> np.ndarray:
    if not group_by:
        return np.zeros(len(data), dtype=int)
    keys = np.empty(len(data), dtype=object)
    columns = [data[name].tolist() for name in group_by]
    for i, key in enumerate(zip(*columns)):
        keys[i] = key
    return factorize(keys)[0]


def channel_frame(layer: ResolvedLayer) -> Dataset:
    """A layer's data renamed to channel space, with an integer `group` column."""
    columns = {
        channel: layer.data[variable]
        for channel, variable in layer.mapping.items()
        if channel != "group"
    }
    columns["group"] = _group_codes(layer.data, layer.group_by)
    return Dataset(columns)


def _draw_layer(
    layer: ResolvedLayer, frame: Dataset, linetypes: Optional[list] = None
) -> List[Drawable]:
    computed = compute_stat(layer.stat, frame, layer.stat_params)
    adjusted = adjust(computed, layer.position)
    params = {**layer.stat_params, **layer.geom_params}
    return draw(layer.geom, adjusted, layer.index, params, linetypes)


def _transform(coord: Coord, drawables: List[Drawable], errors: Dict[int, ConfigurationError]):
    while True:
        try:
            return coord.transform(drawables)
        except ConfigurationError as e:
            if e.layer is None:
                raise
            errors.setdefault(e.layer, e.for_layer(e.layer))
            drawables = [d for d in drawables if d.layer != e.layer]


# %% scales


def _domain(drawables: Sequence[Drawable], channel: str) -> Optional[list]:
    names = (channel, f"{channel}min", f"{channel}max")
    levels: List[Any] = []
    numbers: List[np.ndarray] = []
    for d in drawables:
        if d.kind == "image":
            tile = d.params["tile"]
            bounds = (tile.west, tile.east) if channel == "x" else (tile.south, tile.north)
            numbers.append(np.asarray(bounds, dtype=float))
        for name in names:
            if name not in d.frame or len(d.frame) == 0:
                continue
            if d.frame.is_discrete(name):
                levels.extend(d.frame[name].tolist())
            else:
                values = d.frame[name].astype(float)
                numbers.append(values[np.isfinite(values)])
    if levels:
        column = np.empty(len(levels), dtype=object)
        column[:] = levels
        return factorize(column)[1]
    values = np.concatenate(numbers) if numbers else np.array([])
    if len(values) == 0:
        return None
    return [float(values.min()), float(values.max())]


def _colour_domain(drawables: Sequence[Drawable]) -> Optional[list]:
    mapped = [
        Drawable(d.kind, d.frame.select([c]).rename({c: "colour"}), d.geom, d.layer)
        for d in drawables
        for c in ("colour", "fill")
        if c in d.frame
    ]
    return _domain(mapped, "colour") if mapped else None


def _label(spec, layers: Sequence[ResolvedLayer], channel: str) -> Optional[str]:
    """Axis or legend title: labs() first, then the scale name, then the variable name."""
    if channel in spec.labels:
        return spec.labels[channel]
    scale = spec.scales.get(channel)
    if scale is not None and scale.name is not None:
        return scale.name
    for layer in layers:
        if channel in layer.mapping:
            return layer.mapping[channel]
    if channel == "y":
        for layer in layers:
            if layer.stat in COMPUTED_LABELS:
                return COMPUTED_LABELS[layer.stat]
    return None


def _colour_channel(spec, layers: Sequence[ResolvedLayer]) -> Optional[str]:
    for layer in layers:
        for channel in ("colour", "fill"):
            if channel in layer.mapping:
                return channel
    return None


def _positional_options(
    spec, coord: Coord, layers, drawables: Sequence[Drawable], share_x: bool, share_y: bool
) -> Dict[str, Any]:
    if coord.kind == "polar":
        return {}
    options: Dict[str, Any] = {}
    dodged = any("xdodge" in d.frame for d in drawables)
    for channel, share in (("x", share_x), ("y", share_y)):
        key = channel
        opts: Dict[str, Any] = {}
        if channel == "x" and dodged:
            key = "fx"
            options["x"] = {"axis": None}
        scale = spec.scales.get(channel)
        if share:
            domain = _domain(drawables, channel)
            if domain is not None:
                opts["domain"] = domain
        if scale is not None:
            opts.update(scale.plot_options())
        label = _label(spec, layers, channel)
        if label is not None:
            opts["label"] = label
        options[key] = opts
    if coord.flipped:
        options = {FLIPPED_OPTIONS.get(k, k): v for k, v in options.items()}
    return options


def _colour_options(spec, layers, drawables: Sequence[Drawable]) -> Dict[str, Any]:
    channel = _colour_channel(spec, layers)
    if channel is None:
        return {}
    domain = _colour_domain(drawables)
    discrete = any(
        d.frame.is_discrete(c) for d in drawables for c in ("colour", "fill") if c in d.frame
    )
    scale = spec.scales.get(channel) or default_scale(channel, discrete)
    opts = scale.plot_options()
    opts.pop("legend", None)
    if domain is not None and "domain" not in opts and scale.kind != "identity":
        opts["domain"] = domain
    label = _label(spec, layers, channel)
    if label is not None:
        opts["label"] = label
    return {"color": opts}


def _other_scales(spec) -> Dict[str, Any]:
    return {
        scale.plot_scale: scale.plot_options()
        for channel, scale in spec.scales.items()
        if channel in ("size", "alpha", "shape")
    }


# %% render


def render(spec, strict: bool = True) -> RenderedPlot:
    """
    Render `spec` into a grid of Observable Plot panels.

    A layer whose configuration is wrong (unsupported or missing channels,
    variables not in the data, a statistic that cannot handle its input) is
    dropped from the output and its ConfigurationError collected. With
    `strict=True` the first such error is raised, carrying the partial render
    as `.rendered`; with `strict=False` the errors are kept on `.errors`.
    Warnings (e.g. default bin counts) are collected on `.warnings` and issued.
    """
    errors: Dict[int, ConfigurationError] = {}
    layers: List[ResolvedLayer] = []
    for index in range(len(spec.layers)):
        try:
            layers.append(resolve_layer(spec, index))
        except ConfigurationError as e:
            errors[index] = e.for_layer(index)
    found = [w for layer in layers for w in layer.warnings]

    facet = spec.facet or facet_null()
    cells: List[Cell] = (
        facet.cells([layer.data for layer in layers]) if facet.variables else single_cell()
    )
    frames = {layer.index: channel_frame(layer) for layer in layers}
    # linetype levels span the whole layer so every panel dashes them alike
    linetypes = {i: frame.unique("linetype") for i, frame in frames.items() if "linetype" in frame}
    coord = spec.coord or Coord()

    per_cell: List[List[Drawable]] = []
    for cell in cells:
        drawables: List[Drawable] = []
        for layer in layers:
            if layer.index in errors:
                continue
            frame = frames[layer.index].subset(cell.mask(layer.data))
            try:
                drawables.extend(_draw_layer(layer, frame, linetypes.get(layer.index)))
            except ConfigurationError as e:
                errors[layer.index] = e.for_layer(layer.index)
        per_cell.append(drawables)
    per_cell = [
        _transform(coord, [d for d in drawables if d.layer not in errors], errors)
        for drawables in per_cell
    ]
    per_cell = [[d for d in drawables if d.layer not in errors] for drawables in per_cell]
    good = [layer for layer in layers if layer.index not in errors]
    everything = [d for drawables in per_cell for d in drawables]

    shared = deep_merge(
        _colour_options(spec, good, everything),
        _other_scales(spec),
    )
    # map tiles are not scale-aware marks, so their bounds always set the domain
    pinned = len(cells) > 1 or any(d.kind == "image" for d in everything)
    fixed_x = not facet.free_x and pinned
    fixed_y = not facet.free_y and pinned
    chrome = spec.theme.chrome()
    legend_position = spec.theme.get("legend_position", "right")

    # fixed facets share domains across panels; free ones scale each panel alone
    positional = _positional_options(spec, coord, good, everything, fixed_x, fixed_y)
    base = deep_merge(chrome, deep_merge(positional, shared))

    panels = []
    for cell, drawables in zip(cells, per_cell):
        options = deep_merge(base, coord.plot_options(drawables))
        marks = [to_mark(d, coord.flipped) for d in drawables]
        if spec.theme.get("panel_border"):
            marks.append(Plot.frame())
        panels.append(Panel(cell.row, cell.col, cell.label, drawables, marks, options))

    legend = None
    colour = shared.get("color")
    if colour is not None and legend_position != "none" and colour.get("type") != "identity":
        legend = Plot.legend({"color": colour})

    result = RenderedPlot(
        panels=panels,
        nrow=max((c.row for c in cells), default=0) + 1,
        ncol=max((c.col for c in cells), default=0) + 1,
        labels={k: spec.labels.get(k) for k in ("title", "subtitle", "caption")},
        legend=legend,
        legend_position=legend_position,
        strips=bool(facet.variables),
        layers=good,
        errors=[errors[i] for i in sorted(errors)],
        warnings=list(found),
    )
    for warning in found:
        warnings.warn(warning, stacklevel=2)
    if strict and result.errors:
        first = result.errors[0]
        first.rendered = result
        raise first
    return result
