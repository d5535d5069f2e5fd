from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional

from ggstudio.errors import ConfigurationError

CHANNELS = frozenset(
    [
        "x",
        "y",
        "z",
        "xmin",
        "xmax",
        "ymin",
        "ymax",
        "xend",
        "yend",
        "colour",
        "fill",
        "size",
        "alpha",
        "shape",
        "linetype",
        "group",
        "label",
        "weight",
    ]
)

ALIASES = {"color": "colour", "col": "colour"}


def channel_name(name: str) -> str:
    """Normalise a channel name (`color` -> `colour`), rejecting unknown channels."""
    name = ALIASES.get(name, name)
    if name not in CHANNELS:
        raise ConfigurationError(f"Unknown aesthetic channel '{name}'", channel=name)
    return name


class Aes(Mapping):
    """
    An immutable mapping table from visual channel to data variable.

    Channel names come from `CHANNELS`; values are column names in the
    (long-form) dataset the layer draws from.
    """

    def __init__(self, channels: Optional[Dict[str, Any]] = None):
        table: Dict[str, str] = {}
        for name, variable in (channels or {}).items():
            if variable is None:
                continue
            if not isinstance(variable, str):
                raise TypeError(
                    f"Channel '{name}' must map to a variable name, got {type(variable).__name__}"
                )
            table[channel_name(name)] = variable
        self._table = table

    def __getitem__(self, channel: str) -> str:
        return self._table[ALIASES.get(channel, channel)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, channel: object) -> bool:
        if isinstance(channel, str):
            channel = ALIASES.get(channel, channel)
        return channel in self._table

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._table) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._table.items()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self._table.items())
        return f"aes({inner})"

    def overlay(self, layer: Optional[Mapping]) -> "Aes":
        """
        Overlay a layer's mapping on top of this (plot-level) mapping.

        Layer entries win for identical channels; plot entries fill the rest.
        """
        if not layer:
            return self
        return Aes({**self._table, **dict(layer)})

    def without(self, *channels: str) -> "Aes":
        return Aes({k: v for k, v in self._table.items() if k not in channels})


def aes(x: Optional[str] = None, y: Optional[str] = None, **channels: Any) -> Aes:
    """
    Create an aesthetic mapping.

    Usage:
        aes("Petal.Width", fill="Species")
        aes(x="Time", y="uptake", colour="Plant")
    """
    return Aes({"x": x, "y": y, **channels})
