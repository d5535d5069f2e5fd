"""
Map tiles as plot backgrounds.

Tiles come from a slippy-map tile server (`CONFIG["tile_urls"]`, one URL
template per map type) and are drawn as a raster in longitude/latitude, so
layers plotted on top use ordinary lon/lat data.
"""
import io
import math
from dataclasses import dataclass
from typing import Any, List, Tuple

import numpy as np
from PIL import Image

from ggstudio.coords import coord_quickmap
from ggstudio.errors import ExternalFetchError
from ggstudio.layer import Layer
from ggstudio.plot_spec import PlotSpec, ggplot
from ggstudio.util import CONFIG, fetch


def tile_xy(lon: float, lat: float, zoom: int) -> Tuple[int, int]:
    """The (x, y) index of the web-mercator tile containing (lon, lat) at `zoom`."""
    n = 2**zoom
    lat = max(min(lat, 85.0511), -85.0511)
    x = int((lon + 180.0) / 360.0 * n)
    y = int((1.0 - math.asinh(math.tan(math.radians(lat))) / math.pi) / 2.0 * n)
    return min(max(x, 0), n - 1), min(max(y, 0), n - 1)


def tile_bounds(x: int, y: int, zoom: int) -> Tuple[float, float, float, float]:
    """(west, east, south, north) of a tile, in degrees."""
    n = 2**zoom

    def lat(row):
        return math.degrees(math.atan(math.sinh(math.pi * (1 - 2 * row / n))))

    return x / n * 360.0 - 180.0, (x + 1) / n * 360.0 - 180.0, lat(y + 1), lat(y)


@dataclass(frozen=True)
class MapTile:
    image: Image.Image
    zoom: int
    x: int
    y: int
    maptype: str
    west: float
    east: float
    south: float
    north: float

    def pixels(self, max_size: int = 128) -> Tuple[List[str], int, int]:
        """Downsample to at most `max_size` pixels a side; return (css colours, width, height)."""
        image = self.image.convert("RGB")
        image.thumbnail((max_size, max_size))
        width, height = image.size
        rgb = np.asarray(image).reshape(-1, 3)
        colors = ["#%02x%02x%02x" % (r, g, b) for r, g, b in rgb.tolist()]
        return colors, width, height


def fetch_tile(lon: float, lat: float, zoom: int = 10, maptype: str = "satellite") -> MapTile:
    """
    Fetch the map tile containing (lon, lat).

    Args:
        lon, lat: Centre of interest, in degrees.
        zoom: Tile zoom level (0 is the whole world).
        maptype: A key of CONFIG["tile_urls"]: "satellite", "roadmap" or "terrain".

    Raises:
        ExternalFetchError: The tile server could not be reached, refused, or
            answered with something other than an image.
    """
    urls = CONFIG["tile_urls"]
    if maptype not in urls:
        raise ValueError(f"Unknown maptype '{maptype}', expected one of {sorted(urls)}")
    x, y = tile_xy(lon, lat, zoom)
    url = urls[maptype].format(z=zoom, x=x, y=y)
    content = fetch(url)
    try:
        image = Image.open(io.BytesIO(content))
        image.load()
    except OSError as exc:
        raise ExternalFetchError(f"Response from {url} is not an image: {exc}") from exc
    west, east, south, north = tile_bounds(x, y, zoom)
    return MapTile(image, zoom, x, y, maptype, west, east, south, north)


def annotation_raster(tile: MapTile, resolution: int = 128) -> Layer:
    """A layer drawing `tile` over its own lon/lat bounds."""
    return Layer(
        geom="image",
        params={"tile": tile, "resolution": resolution},
        inherit_aes=False,
    )


def ggmap(tile: MapTile, data: Any = None, mapping: Any = None) -> PlotSpec:
    """
    Start a plot with `tile` as the background, in an approximate map projection.

    Usage:
        tile = fetch_tile(lon=179, lat=-22, zoom=4)
        ggmap(tile, quakes) + geom_point(aes(x="long", y="lat", colour="mag"))
    """
    return ggplot(data, mapping) + [annotation_raster(tile), coord_quickmap()]
