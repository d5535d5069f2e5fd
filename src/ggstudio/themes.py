from collections.abc import Mapping
from typing import Any, Dict, Iterator, Optional, Tuple

from ggstudio.aes import channel_name
from ggstudio.errors import ConfigurationError

ELEMENTS = frozenset(
    [
        "axis_text_size",
        "legend_position",
        "panel_grid",
        "panel_border",
        "panel_background",
        "plot_background",
        "font_family",
        "panel_width",
        "panel_height",
        "aspect_ratio",
    ]
)

LEGEND_POSITIONS = ("right", "bottom", "none")


class Theme:
    """
    Overrides for non-data chrome: fonts, grid lines, backgrounds, legend, panel size.

    Themes compose element by element; a complete theme (`theme_bw()`, ...) replaces
    every element at once.
    """

    def __init__(self, elements: Optional[Dict[str, Any]] = None, complete: bool = False):
        elements = dict(elements or {})
        unknown = set(elements) - ELEMENTS
        if unknown:
            raise ConfigurationError(f"Unknown theme elements: {sorted(unknown)}")
        if elements.get("legend_position", "right") not in LEGEND_POSITIONS:
            raise ConfigurationError(
                f"legend_position must be one of {LEGEND_POSITIONS}"
            )
        self.elements = elements
        self.complete = complete

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Theme):
            return NotImplemented
        return self.elements == other.elements and self.complete == other.complete

    def __repr__(self) -> str:
        return f"Theme({self.elements!r}, complete={self.complete})"

    def merge(self, other: "Theme") -> Tuple["Theme", Tuple[str, ...]]:
        """Apply `other` on top of this theme; also return the element names it replaced."""
        if other.complete:
            return Theme(other.elements, complete=True), tuple(self.elements)
        replaced = tuple(k for k in other.elements if k in self.elements)
        return Theme({**self.elements, **other.elements}, self.complete), replaced

    def get(self, name: str, default: Any = None) -> Any:
        return self.elements.get(name, default)

    def chrome(self) -> Dict[str, Any]:
        """Observable Plot options for these elements (on top of the grey default)."""
        elements = {**theme_grey().elements, **self.elements}
        style: Dict[str, Any] = {"background": elements["panel_background"]}
        if "axis_text_size" in elements:
            style["fontSize"] = f"{elements['axis_text_size']}px"
        if "font_family" in elements:
            style["fontFamily"] = elements["font_family"]
        options: Dict[str, Any] = {"grid": bool(elements["panel_grid"]), "style": style}
        if "panel_width" in elements:
            options["width"] = elements["panel_width"]
        if "panel_height" in elements:
            options["height"] = elements["panel_height"]
        if "aspect_ratio" in elements:
            options["aspectRatio"] = elements["aspect_ratio"]
        return options


def theme(**elements: Any) -> Theme:
    """
    Override individual theme elements.

    Usage:
        theme(axis_text_size=14, legend_position="bottom")
    """
    return Theme(elements)


def theme_grey() -> Theme:
    return Theme(
        {"panel_grid": True, "panel_border": False, "panel_background": "#EBEBEB"},
        complete=True,
    )


theme_gray = theme_grey


def theme_bw() -> Theme:
    return Theme(
        {"panel_grid": True, "panel_border": True, "panel_background": "white"},
        complete=True,
    )


def theme_minimal() -> Theme:
    return Theme(
        {"panel_grid": True, "panel_border": False, "panel_background": "white"},
        complete=True,
    )


def theme_classic() -> Theme:
    return Theme(
        {"panel_grid": False, "panel_border": False, "panel_background": "white"},
        complete=True,
    )


LABEL_KEYS = frozenset(["title", "subtitle", "caption"])


class Labels(Mapping):
    """Plot titles and per-channel axis/legend titles. Later labels win, silently."""

    def __init__(self, labels: Optional[Dict[str, Optional[str]]] = None):
        table = {}
        for key, value in (labels or {}).items():
            key = key if key in LABEL_KEYS else channel_name(key)
            table[key] = value
        self._table = table

    def __getitem__(self, key: str) -> Optional[str]:
        return self._table[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"labs({', '.join(f'{k}={v!r}' for k, v in self._table.items())})"

    def merge(self, other: "Labels") -> "Labels":
        return Labels({**self._table, **other._table})


def labs(**labels: Optional[str]) -> Labels:
    """
    Set the plot title, subtitle, caption, or the title of any channel's axis/legend.

    Usage:
        labs(title="Iris petals", x="Petal width (cm)", fill="Species")
    """
    return Labels(labels)


def ggtitle(title: str, subtitle: Optional[str] = None) -> Labels:
    return labs(title=title, subtitle=subtitle)


def xlab(label: str) -> Labels:
    return labs(x=label)


def ylab(label: str) -> Labels:
    return labs(y=label)
