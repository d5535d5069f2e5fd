"""
Default resolution: fill every layer's unset fields before it is drawn.

Geometry and statistic name each other as defaults, the geometry names its
position adjustment, statistic parameters without a safe default are filled in
with a warning, and the effective mapping is validated against what the
geometry and statistic understand.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ggstudio.aes import ALIASES, Aes
from ggstudio.dataset import Dataset
from ggstudio.errors import ConfigurationError, DefaultFallbackWarning
from ggstudio.positions import Position
from ggstudio.registry import (
    GROUPING_RULES,
    GeomDef,
    StatDef,
    geom_def,
    required_channels,
    stat_def,
    supported_channels,
)

# Parameters understood by geometries (fixed aesthetics and sizes)
GEOM_PARAMS = frozenset(
    [
        "colour",
        "fill",
        "size",
        "alpha",
        "linetype",
        "shape",
        "width",
        "height",
        "tile",
        "resolution",
    ]
)


@dataclass
class ResolvedLayer:
    """A layer with every default filled in, ready to compute and draw."""

    index: int
    geom: str
    stat: str
    stat_params: Dict[str, Any]
    geom_params: Dict[str, Any]
    position: Position
    mapping: Aes
    data: Dataset
    group_by: Tuple[str, ...] = ()
    grouping_rule: Optional[str] = None
    warnings: List[DefaultFallbackWarning] = field(default_factory=list)

    @property
    def label(self) -> str:
        return f"geom_{self.geom}"


def _defaults(geom: Optional[str], stat: Optional[str]) -> Tuple[GeomDef, StatDef]:
    if geom is None:
        s = stat_def(stat)
        return geom_def(s.geom, stat), s
    g = geom_def(geom, stat)
    return g, stat_def(stat or g.stat, geom)


def _split_params(
    params: Dict[str, Any], g: GeomDef, s: StatDef
) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    stat_params: Dict[str, Any] = {}
    geom_params: Dict[str, Any] = {}
    for name, value in params.items():
        name = ALIASES.get(name, name)
        if name in s.params:
            stat_params[name] = value
        elif name in GEOM_PARAMS:
            geom_params[name] = value
        else:
            raise ConfigurationError(
                f"geom_{g.name}/stat_{s.name} got an unknown parameter '{name}'",
                geom=g.name,
                stat=s.name,
            )
    return stat_params, geom_params


def _fallbacks(s: StatDef, stat_params: Dict[str, Any]) -> List[DefaultFallbackWarning]:
    found = []
    for fallback in s.fallbacks:
        if any(stat_params.get(name) is not None for name in fallback.any_of):
            continue
        filled = fallback.fill()
        stat_params.update(filled)
        found.append(DefaultFallbackWarning(fallback.message.format(**filled)))
    return found


def _mapping(spec, layer, g: GeomDef, s: StatDef) -> Aes:
    supported = supported_channels(g, s)
    for channel in layer.mapping:
        if channel not in supported:
            raise ConfigurationError(
                f"geom_{g.name}/stat_{s.name} does not understand the '{channel}' aesthetic",
                channel=channel,
                geom=g.name,
                stat=s.name,
            )
    mapping = spec.mapping.overlay(layer.mapping) if layer.inherit_aes else layer.mapping
    # inherited channels the layer cannot use are dropped
    mapping = mapping.without(*(set(mapping) - supported))

    missing = sorted(required_channels(g, s) - set(mapping))
    if missing:
        raise ConfigurationError(
            f"geom_{g.name}/stat_{s.name} requires the following missing aesthetics: "
            + ", ".join(missing),
            channel=missing[0],
            geom=g.name,
            stat=s.name,
        )
    return mapping


def _data(spec, layer, mapping: Aes, g: GeomDef, s: StatDef) -> Dataset:
    data = layer.data if layer.data is not None else spec.data
    if data is None:
        if mapping:
            raise ConfigurationError(
                f"geom_{g.name} has no data: give the layer or the plot a dataset",
                geom=g.name,
                stat=s.name,
            )
        return Dataset()
    for channel, variable in mapping.items():
        if variable not in data:
            raise ConfigurationError(
                f"Variable '{variable}' mapped to '{channel}' is not a column of the data "
                f"(geom_{g.name}/stat_{s.name})",
                channel=channel,
                geom=g.name,
                stat=s.name,
            )
    return data


def _grouping(geom: str, mapping: Aes, data: Dataset) -> Tuple[Tuple[str, ...], Optional[str]]:
    if "group" in mapping:
        return (mapping["group"],), None
    rule = GROUPING_RULES.get(geom)
    if rule is None:
        return (), None
    variables = [
        mapping[channel]
        for channel in rule.channels
        if channel in mapping and (not rule.discrete_only or data.is_discrete(mapping[channel]))
    ]
    variables = list(dict.fromkeys(variables))
    return tuple(variables), (rule.name if variables else None)


def resolve_layer(spec, index: int) -> ResolvedLayer:
    """
    Resolve the layer at `index` of `spec`.

    Raises ConfigurationError naming the channel and the geometry/statistic when
    the layer maps a channel they do not support, leaves a required channel
    unmapped, maps a variable that is not in the data, or has no data at all.
    """
    layer = spec.layers[index]
    g, s = _defaults(layer.geom, layer.stat)
    position = layer.position or Position(g.position)

    stat_params, geom_params = _split_params(layer.params, g, s)
    found = _fallbacks(s, stat_params)

    mapping = _mapping(spec, layer, g, s)
    data = _data(spec, layer, mapping, g, s)
    group_by, rule = _grouping(g.name, mapping, data)

    return ResolvedLayer(
        index=index,
        geom=g.name,
        stat=s.name,
        stat_params=stat_params,
        geom_params=geom_params,
        position=position,
        mapping=mapping,
        data=data,
        group_by=group_by,
        grouping_rule=rule,
        warnings=found,
    )


def resolve(spec) -> List[ResolvedLayer]:
    """Resolve every layer of `spec`, raising on the first misconfigured one."""
    resolved = []
    for index in range(len(spec.layers)):
        try:
            resolved.append(resolve_layer(spec, index))
        except ConfigurationError as e:
            raise e.for_layer(index) from e
    return resolved
