# %%
import importlib.util
import pathlib
from functools import lru_cache
from typing import Any, Dict, Optional

import requests

from ggstudio.errors import ExternalFetchError

PARENT_PATH = pathlib.Path(importlib.util.find_spec("ggstudio.util").origin).parent

CONFIG: Dict[str, Any] = {
    "display_as": "widget",
    "default_bins": 30,
    "request_timeout": 10,
    "dataset_url": "https://vincentarelbundock.github.io/Rdatasets/csv/{package}/{item}.csv",
    "tile_urls": {
        "satellite": "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        "roadmap": "https://tile.openstreetmap.org/{z}/{x}/{y}.png",
        "terrain": "https://server.arcgisonline.com/ArcGIS/rest/services/World_Topo_Map/MapServer/tile/{z}/{y}/{x}",
    },
    "user_agent": "ggstudio (+https://github.com/ggstudio/ggstudio)",
    "plot_cdn": "https://cdn.jsdelivr.net/npm/@observablehq/plot@0.6/+esm",
}


def deep_merge(dict1: Dict[str, Any], dict2: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two dictionaries, returning a new dictionary.

    Values in dict2 win, except that nested dictionaries are merged rather than replaced.
    """
    result = dict1.copy()
    for k, v in dict2.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def configure(options: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
    """
    Update the global configuration.

    Usage:
        configure(display_as="html")
        configure({"tile_urls": {"satellite": "https://example.com/{z}/{x}/{y}.png"}})
    """
    merged = deep_merge(CONFIG, {**(options or {}), **kwargs})
    CONFIG.clear()
    CONFIG.update(merged)


@lru_cache(maxsize=256)
def fetch(url: str) -> bytes:
    """
    GET `url` and return the response body, caching it for the session.

    One request, no retry; any network or HTTP failure raises ExternalFetchError.
    """
    try:
        response = requests.get(
            url,
            headers={"User-Agent": CONFIG["user_agent"]},
            timeout=CONFIG["request_timeout"],
        )
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ExternalFetchError(f"Request to {url} failed: {exc}") from exc
    return response.content
