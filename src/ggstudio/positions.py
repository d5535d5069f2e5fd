from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import numpy as np

from ggstudio.dataset import Dataset, factorize, resolution
from ggstudio.registry import position_def


@dataclass(frozen=True)
class Position:
    """A position adjustment and its parameters."""

    name: str
    params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        definition = position_def(self.name)
        unknown = set(self.params) - definition.params
        if unknown:
            raise TypeError(f"position_{self.name}() got unknown parameters {sorted(unknown)}")


def position_identity() -> Position:
    return Position("identity")


def position_stack() -> Position:
    """Stack overlapping marks on top of each other, first group on top."""
    return Position("stack")


def position_fill() -> Position:
    """Stack, then normalise each stack to a total height of 1."""
    return Position("fill")


def position_dodge(width: Optional[float] = None) -> Position:
    """Place overlapping marks side by side."""
    return Position("dodge", {} if width is None else {"width": width})


def position_jitter(
    width: Optional[float] = None, height: Optional[float] = None, seed: Optional[int] = None
) -> Position:
    """
    Add uniform random noise to point positions.

    `width` and `height` default to 40% of the data resolution in each direction;
    pass `seed` for reproducible jitter.
    """
    params = {"width": width, "height": height, "seed": seed}
    return Position("jitter", {k: v for k, v in params.items() if v is not None})


def as_position(value: Union[str, Position, None]) -> Optional[Position]:
    if value is None or isinstance(value, Position):
        return value
    return Position(value)


def _groups(frame: Dataset) -> np.ndarray:
    if "group" in frame:
        return frame["group"]
    return np.zeros(len(frame), dtype=int)


def stack(frame: Dataset, normalise: bool = False) -> Dataset:
    if len(frame) == 0 or ("y" not in frame and "ymax" not in frame):
        return frame
    heights = (frame["y"] if "y" in frame else frame["ymax"]).astype(float)
    if "ymin" in frame and "y" not in frame:
        heights = heights - frame["ymin"].astype(float)
    x_codes = factorize(frame["x"])[0] if "x" in frame else np.zeros(len(frame), dtype=int)
    groups = _groups(frame)

    ymin = np.zeros(len(frame))
    ymax = np.zeros(len(frame))
    for code in np.unique(x_codes):
        idx = np.flatnonzero(x_codes == code)
        # later groups sit at the bottom of the stack
        idx = idx[np.argsort(-groups[idx], kind="stable")]
        h = np.nan_to_num(heights[idx])
        pos = np.cumsum(np.where(h >= 0, h, 0))
        neg = np.cumsum(np.where(h < 0, h, 0))
        ymax[idx] = np.where(h >= 0, pos, neg - h)
        ymin[idx] = np.where(h >= 0, pos - h, neg)
        if normalise:
            total = pos[-1] - neg[-1] if len(idx) else 0
            if total > 0:
                ymin[idx] /= total
                ymax[idx] /= total
    return frame.with_columns(ymin=ymin, ymax=ymax, y=ymax)


def dodge(frame: Dataset, width: Optional[float] = None) -> Dataset:
    if len(frame) == 0 or "x" not in frame:
        return frame
    x_codes = factorize(frame["x"])[0]
    groups = _groups(frame)
    slots = np.zeros(len(frame), dtype=int)
    counts = np.ones(len(frame), dtype=int)
    for code in np.unique(x_codes):
        idx = np.flatnonzero(x_codes == code)
        present = np.unique(groups[idx])
        slots[idx] = np.searchsorted(present, groups[idx])
        counts[idx] = len(present)
    if counts.max() <= 1:
        return frame

    if frame.is_discrete("x"):
        # discrete positions are dodged inside each x band at draw time
        return frame.with_columns(xdodge=slots)

    x = frame["x"].astype(float)
    if width is None:
        width = frame["width"].astype(float) if "width" in frame else 0.9 * resolution(frame["x"])
    slot_width = np.asarray(width) / counts
    centre = x + (slots - (counts - 1) / 2) * slot_width
    return frame.with_columns(
        x=centre, xmin=centre - slot_width / 2, xmax=centre + slot_width / 2, width=slot_width
    )


def jitter(
    frame: Dataset,
    width: Optional[float] = None,
    height: Optional[float] = None,
    seed: Optional[int] = None,
) -> Dataset:
    rng = np.random.default_rng(seed)
    changes = {}
    for channel, amount in (("x", width), ("y", height)):
        if channel not in frame or frame.is_discrete(channel):
            continue
        values = frame[channel].astype(float)
        if amount is None:
            amount = 0.4 * resolution(frame[channel])
        changes[channel] = values + rng.uniform(-amount, amount, len(values))
    return frame.with_columns(**changes) if changes else frame


def adjust(frame: Dataset, position: Position) -> Dataset:
    """Apply a position adjustment to a layer's computed data."""
    if position.name == "stack":
        return stack(frame)
    if position.name == "fill":
        return stack(frame, normalise=True)
    if position.name == "dodge":
        return dodge(frame, **position.params)
    if position.name == "jitter":
        return jitter(frame, **position.params)
    return frame
