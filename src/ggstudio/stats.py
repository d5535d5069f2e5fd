"""
Statistic transforms.

Each statistic takes a layer's data in channel space (one column per mapped
channel plus an integer `group` column) and returns the derived data to draw.
Statistics work group by group; channels that are constant within a group
(e.g. the `fill` a histogram is split by) are carried through to the output.
"""
from typing import Any, Callable, Dict, Iterator, Optional, Sequence

import numpy as np

from ggstudio.dataset import Dataset, factorize, resolution
from ggstudio.errors import ConfigurationError

Columns = Dict[str, Any]


def _split(frame: Dataset) -> Iterator[Dataset]:
    groups = frame["group"] if "group" in frame else np.zeros(len(frame), dtype=int)
    for g in np.unique(groups):
        yield frame.subset(groups == g)


def _is_constant(values: np.ndarray) -> bool:
    items = values.tolist()
    return all(v == items[0] for v in items[1:])


def _carry(sub: Dataset, out: Columns) -> Dataset:
    n = len(next(iter(out.values()))) if out else 0
    carried = {
        name: np.repeat(sub[name][:1], n)
        for name in sub.names
        if name not in out and len(sub) and _is_constant(sub[name])
    }
    return Dataset({**carried, **out})


def by_group(frame: Dataset, compute: Callable[[Dataset], Columns]) -> Dataset:
    if len(frame) == 0:
        return frame
    pieces = [_carry(sub, compute(sub)) for sub in _split(frame)]
    return Dataset.concat([piece for piece in pieces if len(piece)])


def _weights(frame: Dataset) -> np.ndarray:
    if "weight" in frame:
        return frame["weight"].astype(float)
    return np.ones(len(frame))


def _numeric(frame: Dataset, channel: str, stat: str) -> np.ndarray:
    if frame.is_discrete(channel):
        raise ConfigurationError(
            f"stat_{stat}() requires a continuous '{channel}' channel",
            channel=channel,
            stat=stat,
        )
    return frame[channel].astype(float)


# %% identity


def stat_identity(frame: Dataset) -> Dataset:
    return frame


# %% bin


def bin_breaks(
    x: np.ndarray,
    binwidth: Optional[float] = None,
    bins: Optional[int] = None,
    breaks: Optional[Sequence[float]] = None,
    boundary: Optional[float] = None,
    center: Optional[float] = None,
) -> np.ndarray:
    """
    Compute bin edges covering `x`.

    Explicit `breaks` win; otherwise bins of `binwidth` (or `bins` equal bins)
    are aligned so that `boundary` (default: half a bin width) is an edge, or
    `center` is a bin centre.
    """
    if breaks is not None:
        return np.sort(np.asarray(breaks, dtype=float))
    x = x[np.isfinite(x)]
    if len(x) == 0:
        return np.array([0.0, 1.0])
    lo, hi = float(x.min()), float(x.max())
    if binwidth is None:
        bins = int(bins if bins is not None else 30)
        if bins < 1:
            raise ValueError("bins must be at least 1")
        if hi == lo:
            binwidth = 0.1
        elif bins == 1:
            binwidth = hi - lo
            if boundary is None and center is None:
                boundary = lo
        else:
            binwidth = (hi - lo) / (bins - 1)
    if binwidth <= 0:
        raise ValueError("binwidth must be positive")
    if boundary is None:
        boundary = binwidth / 2 if center is None else center - binwidth / 2
    origin = boundary + np.floor((lo - boundary) / binwidth) * binwidth
    n = max(1, int(np.ceil((hi - origin) / binwidth)))
    edges = origin + binwidth * np.arange(n + 1)
    if edges[-1] < hi:
        edges = np.append(edges, edges[-1] + binwidth)
    return edges


def stat_bin(frame: Dataset, **params: Any) -> Dataset:
    x = _numeric(frame, "x", "bin")
    edges = bin_breaks(x, **params)
    widths = np.diff(edges)
    mids = (edges[:-1] + edges[1:]) / 2

    def compute(sub: Dataset) -> Columns:
        values = sub["x"].astype(float)
        keep = np.isfinite(values)
        count, _ = np.histogram(values[keep], bins=edges, weights=_weights(sub)[keep])
        total = count.sum()
        density = count / (total * widths) if total > 0 else np.zeros(len(count))
        return {
            "x": mids,
            "y": count.astype(float),
            "count": count.astype(float),
            "density": density,
            "xmin": edges[:-1],
            "xmax": edges[1:],
            "width": widths,
        }

    return by_group(frame, compute)


# %% count


def stat_count(frame: Dataset, width: Optional[float] = None) -> Dataset:
    bar_width = width if width is not None else 0.9 * resolution(frame["x"])

    def compute(sub: Dataset) -> Columns:
        codes, levels = factorize(sub["x"])
        count = np.bincount(codes, weights=_weights(sub), minlength=len(levels))
        x = np.empty(len(levels), dtype=object if sub.is_discrete("x") else float)
        x[:] = levels
        return {
            "x": x,
            "y": count,
            "count": count,
            "width": np.full(len(levels), bar_width),
        }

    return by_group(frame, compute)


# %% smooth


def _loess(x, y, w, grid, span):
    k = max(2, int(np.ceil(span * len(x))))
    fitted = np.empty(len(grid))
    for i, g in enumerate(grid):
        d = np.abs(x - g)
        h = np.partition(d, min(k, len(d)) - 1)[min(k, len(d)) - 1]
        u = d / h if h > 0 else np.where(d == 0, 0.0, np.inf)
        tricube = np.where(u < 1, (1 - u**3) ** 3, 0.0) * w
        near = tricube > 0
        if len(np.unique(x[near])) >= 2:
            coef = np.polyfit(x[near], y[near], 1, w=np.sqrt(tricube[near]))
            fitted[i] = np.polyval(coef, g)
        else:
            fitted[i] = np.average(y[near], weights=tricube[near])
    return fitted


def stat_smooth(
    frame: Dataset,
    method: str = "loess",
    span: float = 0.75,
    degree: int = 1,
    n: int = 80,
) -> Dataset:
    if method not in ("lm", "loess"):
        raise ConfigurationError(
            f"Unknown smoothing method '{method}' (expected 'lm' or 'loess')",
            stat="smooth",
        )
    _numeric(frame, "x", "smooth")
    _numeric(frame, "y", "smooth")

    def compute(sub: Dataset) -> Columns:
        x, y, w = sub["x"].astype(float), sub["y"].astype(float), _weights(sub)
        keep = np.isfinite(x) & np.isfinite(y)
        x, y, w = x[keep], y[keep], w[keep]
        if len(np.unique(x)) < 2:
            return {"x": np.array([]), "y": np.array([])}
        grid = np.linspace(x.min(), x.max(), n)
        if method == "lm":
            fitted = np.polyval(np.polyfit(x, y, degree, w=np.sqrt(w)), grid)
        else:
            fitted = _loess(x, y, w, grid, span)
        return {"x": grid, "y": fitted}

    return by_group(frame, compute)


# %% density


def bw_nrd0(x: np.ndarray) -> float:
    """Silverman's rule of thumb bandwidth."""
    if len(x) < 2:
        return 1.0
    sd = np.std(x, ddof=1)
    iqr = np.subtract(*np.percentile(x, [75, 25]))
    lo = min(sd, iqr / 1.34)
    if lo <= 0:
        lo = sd or abs(x[0]) or 1.0
    return float(0.9 * lo * len(x) ** -0.2)


def stat_density(
    frame: Dataset, bw: Optional[float] = None, adjust: float = 1, n: int = 512
) -> Dataset:
    _numeric(frame, "x", "density")

    def compute(sub: Dataset) -> Columns:
        x, w = sub["x"].astype(float), _weights(sub)
        keep = np.isfinite(x)
        x, w = x[keep], w[keep]
        if len(x) < 2:
            return {"x": np.array([]), "y": np.array([])}
        bandwidth = (bw if bw is not None else bw_nrd0(x)) * adjust
        grid = np.linspace(x.min(), x.max(), n)
        z = (grid[:, None] - x[None, :]) / bandwidth
        kernel = np.exp(-0.5 * z**2) / np.sqrt(2 * np.pi)
        density = (kernel * w).sum(axis=1) / (w.sum() * bandwidth)
        return {"x": grid, "y": density, "density": density, "count": density * len(x)}

    return by_group(frame, compute)


# %% contour


def stat_contour(frame: Dataset, **params: Any) -> Dataset:
    # isolines are traced by the contour mark itself; only the inputs are checked
    for channel in ("x", "y", "z"):
        _numeric(frame, channel, "contour")
    return frame


# %% boxplot


def _single(value: Any) -> np.ndarray:
    out = np.empty(1, dtype=object)
    out[0] = value
    return out


def stat_boxplot(frame: Dataset, coef: float = 1.5) -> Dataset:
    _numeric(frame, "y", "boxplot")

    def compute(sub: Dataset) -> Columns:
        y = sub["y"].astype(float)
        y = y[np.isfinite(y)]
        if len(y) == 0:
            return {"ymin": np.array([])}
        q1, median, q3 = np.percentile(y, [25, 50, 75])
        reach = coef * (q3 - q1)
        inside = y[(y >= q1 - reach) & (y <= q3 + reach)]
        outliers = y[(y < q1 - reach) | (y > q3 + reach)]
        return {
            "ymin": np.array([inside.min()]),
            "lower": np.array([q1]),
            "middle": np.array([median]),
            "upper": np.array([q3]),
            "ymax": np.array([inside.max()]),
            "outliers": _single(outliers.tolist()),
            "width": np.array([0.9 * resolution(frame["x"])]) if "x" in frame else np.array([0.9]),
        }

    return by_group(frame, compute)


STAT_FUNCTIONS: Dict[str, Callable[..., Dataset]] = {
    "identity": stat_identity,
    "bin": stat_bin,
    "count": stat_count,
    "smooth": stat_smooth,
    "density": stat_density,
    "contour": stat_contour,
    "boxplot": stat_boxplot,
}


def compute_stat(name: str, frame: Dataset, params: Dict[str, Any]) -> Dataset:
    """Apply the named statistic to a layer's channel-space data."""
    return STAT_FUNCTIONS[name](frame, **params)
