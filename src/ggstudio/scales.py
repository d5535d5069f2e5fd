from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

from ggstudio.aes import channel_name

SCALE_KINDS = ("identity", "continuous", "discrete", "gradient")

# Observable Plot has one colour scale: colour and fill both feed it.
PLOT_SCALE_NAMES = {
    "x": "x",
    "y": "y",
    "colour": "color",
    "fill": "color",
    "size": "r",
    "alpha": "opacity",
    "shape": "symbol",
}


@dataclass(frozen=True)
class Scale:
    """
    How one channel's data values become visual values.

    Args:
        channel: The channel this scale controls ("x", "colour", ...).
        kind: One of "identity", "continuous", "discrete", "gradient".
        limits: Domain limits: (lo, hi) for continuous scales, the ordered levels
            for discrete ones.
        name: Display name (axis or legend title).
        options: Extra settings: `breaks`, `trans`, `low`/`high` colours, `values`,
            `range`.
    """

    channel: str
    kind: str = "continuous"
    limits: Optional[Tuple[Any, ...]] = None
    name: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "channel", channel_name(self.channel))
        if self.kind not in SCALE_KINDS:
            raise ValueError(f"Scale kind must be one of {SCALE_KINDS}, got '{self.kind}'")
        if self.limits is not None:
            object.__setattr__(self, "limits", tuple(self.limits))

    @property
    def plot_scale(self) -> Optional[str]:
        return PLOT_SCALE_NAMES.get(self.channel)

    def plot_options(self) -> Dict[str, Any]:
        """Observable Plot options for this scale."""
        opts: Dict[str, Any] = {}
        positional = self.channel in ("x", "y")
        if self.kind == "identity":
            opts["type"] = "identity"
        elif self.kind == "discrete":
            opts["type"] = "band" if positional else "ordinal"
        elif self.options.get("trans") == "log10":
            opts["type"] = "log"
        else:
            opts["type"] = "linear"

        if self.limits is not None:
            opts["domain"] = list(self.limits)
        if self.name is not None:
            opts["label"] = self.name
        if "breaks" in self.options:
            opts["ticks"] = list(self.options["breaks"])
        if self.kind == "gradient":
            opts["range"] = [self.options.get("low", "#132B43"), self.options.get("high", "#56B1F7")]
            opts["interpolate"] = "rgb"
        if "values" in self.options:
            values = self.options["values"]
            if isinstance(values, dict):
                opts["domain"] = list(values)
                opts["range"] = list(values.values())
            else:
                opts["range"] = list(values)
        if "range" in self.options:
            opts["range"] = list(self.options["range"])
        if self.channel in ("colour", "fill") and self.kind != "identity":
            opts["legend"] = True
        return opts


def _continuous(channel):
    def scale(
        name: Optional[str] = None,
        limits: Optional[Sequence[float]] = None,
        breaks: Optional[Sequence[float]] = None,
        trans: Optional[str] = None,
    ) -> Scale:
        options: Dict[str, Any] = {}
        if breaks is not None:
            options["breaks"] = breaks
        if trans is not None:
            if trans != "log10":
                raise ValueError(f"Unsupported transform '{trans}'")
            options["trans"] = trans
        return Scale(channel, "continuous", limits, name, options)

    scale.__name__ = f"scale_{channel}_continuous"
    scale.__doc__ = f"Continuous position scale for {channel}."
    return scale


def _discrete(channel):
    def scale(name: Optional[str] = None, limits: Optional[Sequence[Any]] = None) -> Scale:
        return Scale(channel, "discrete", limits, name)

    scale.__name__ = f"scale_{channel}_discrete"
    scale.__doc__ = f"Discrete position scale for {channel}; `limits` orders the levels."
    return scale


scale_x_continuous = _continuous("x")
scale_y_continuous = _continuous("y")
scale_x_discrete = _discrete("x")
scale_y_discrete = _discrete("y")


def scale_x_log10(name: Optional[str] = None, limits: Optional[Sequence[float]] = None) -> Scale:
    return Scale("x", "continuous", limits, name, {"trans": "log10"})


def scale_y_log10(name: Optional[str] = None, limits: Optional[Sequence[float]] = None) -> Scale:
    return Scale("y", "continuous", limits, name, {"trans": "log10"})


def xlim(*limits: Any) -> Scale:
    """Set x limits: `xlim(0, 10)` for continuous data, `xlim("a", "b")` for discrete."""
    if len(limits) == 1 and isinstance(limits[0], (list, tuple)):
        limits = tuple(limits[0])
    kind = "discrete" if any(isinstance(v, str) for v in limits) else "continuous"
    return Scale("x", kind, limits)


def ylim(*limits: Any) -> Scale:
    if len(limits) == 1 and isinstance(limits[0], (list, tuple)):
        limits = tuple(limits[0])
    kind = "discrete" if any(isinstance(v, str) for v in limits) else "continuous"
    return Scale("y", kind, limits)


def scale_colour_gradient(
    name: Optional[str] = None,
    low: str = "#132B43",
    high: str = "#56B1F7",
    limits: Optional[Sequence[float]] = None,
) -> Scale:
    """Sequential two-colour gradient for a continuous colour mapping."""
    return Scale("colour", "gradient", limits, name, {"low": low, "high": high})


def scale_fill_gradient(
    name: Optional[str] = None,
    low: str = "#132B43",
    high: str = "#56B1F7",
    limits: Optional[Sequence[float]] = None,
) -> Scale:
    return Scale("fill", "gradient", limits, name, {"low": low, "high": high})


def scale_colour_discrete(name: Optional[str] = None, limits: Optional[Sequence[Any]] = None) -> Scale:
    return Scale("colour", "discrete", limits, name)


def scale_fill_discrete(name: Optional[str] = None, limits: Optional[Sequence[Any]] = None) -> Scale:
    return Scale("fill", "discrete", limits, name)


def scale_colour_manual(values: Any, name: Optional[str] = None) -> Scale:
    """
    Discrete colours chosen by hand: a list in level order, or a dict level -> colour.
    """
    return Scale("colour", "discrete", None, name, {"values": values})


def scale_fill_manual(values: Any, name: Optional[str] = None) -> Scale:
    return Scale("fill", "discrete", None, name, {"values": values})


def scale_colour_identity() -> Scale:
    """Use the data values (CSS colours) as they are."""
    return Scale("colour", "identity")


def scale_fill_identity() -> Scale:
    return Scale("fill", "identity")


def scale_size(name: Optional[str] = None, range: Sequence[float] = (1, 6)) -> Scale:
    return Scale("size", "continuous", None, name, {"range": range})


scale_color_gradient = scale_colour_gradient
scale_color_discrete = scale_colour_discrete
scale_color_manual = scale_colour_manual
scale_color_identity = scale_colour_identity


def default_scale(channel: str, discrete: bool) -> Scale:
    """The scale a channel gets when the plot does not declare one."""
    return Scale(channel, "discrete" if discrete else "continuous")
