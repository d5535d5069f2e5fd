from typing import Optional


class ConfigurationError(ValueError):
    """
    A layer asks for something its geometry or statistic cannot provide.

    Raised when a mapping uses a channel the geometry/statistic does not support,
    when a required channel is never mapped, or when a mapped variable is missing
    from the data. The offending channel, geometry, statistic and layer index are
    kept as attributes so partial plots can be debugged layer by layer.
    """

    def __init__(
        self,
        message: str,
        channel: Optional[str] = None,
        geom: Optional[str] = None,
        stat: Optional[str] = None,
        layer: Optional[int] = None,
    ):
        super().__init__(message)
        self.channel = channel
        self.geom = geom
        self.stat = stat
        self.layer = layer
        self.rendered = None

    def for_layer(self, index: int) -> "ConfigurationError":
        """Return a copy of this error attributed to the layer at `index`."""
        message = self.args[0]
        if self.layer is None:
            message = f"layer {index}: {message}"
        error = ConfigurationError(
            message, channel=self.channel, geom=self.geom, stat=self.stat, layer=index
        )
        return error


class OverrideWarning(UserWarning):
    """Composition replaced an existing scale, coordinate system, facet or theme entry."""


class DefaultFallbackWarning(UserWarning):
    """A parameter without a safe default was filled in with a heuristic."""


class ExternalFetchError(RuntimeError):
    """An HTTP request to an external service (map tiles, datasets) failed."""
