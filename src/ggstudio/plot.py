# %%
# ruff: noqa: F401
"""
The public interface:

    import ggstudio.plot as gg

    iris = gg.load("iris")
    (
        gg.ggplot(iris, gg.aes(x="Petal.Width", fill="Species"))
        + gg.geom_histogram(binwidth=0.2)
        + gg.labs(title="Petal width by species")
    )
"""
from ggstudio.aes import aes
from ggstudio.coords import (
    coord_cartesian,
    coord_equal,
    coord_fixed,
    coord_flip,
    coord_polar,
    coord_quickmap,
)
from ggstudio.dataset import Dataset
from ggstudio.datasets import load, volcano_grid
from ggstudio.errors import (
    ConfigurationError,
    DefaultFallbackWarning,
    ExternalFetchError,
    OverrideWarning,
)
from ggstudio.facets import facet_grid, facet_null, facet_wrap
from ggstudio.layer import (
    geom_area,
    geom_bar,
    geom_boxplot,
    geom_col,
    geom_contour,
    geom_density,
    geom_histogram,
    geom_line,
    geom_path,
    geom_point,
    geom_raster,
    geom_smooth,
    geom_text,
    geom_tile,
    layer,
    stat_bin,
    stat_boxplot,
    stat_contour,
    stat_count,
    stat_density,
    stat_identity,
    stat_smooth,
)
from ggstudio.layout import Column, Row
from ggstudio.maps import annotation_raster, fetch_tile, ggmap
from ggstudio.plot_spec import PlotSpec, compose, ggplot, new
from ggstudio.positions import (
    position_dodge,
    position_fill,
    position_identity,
    position_jitter,
    position_stack,
)
from ggstudio.render import render
from ggstudio.resolve import resolve, resolve_layer
from ggstudio.scales import (
    scale_color_discrete,
    scale_color_gradient,
    scale_color_identity,
    scale_color_manual,
    scale_colour_discrete,
    scale_colour_gradient,
    scale_colour_identity,
    scale_colour_manual,
    scale_fill_discrete,
    scale_fill_gradient,
    scale_fill_identity,
    scale_fill_manual,
    scale_size,
    scale_x_continuous,
    scale_x_discrete,
    scale_x_log10,
    scale_y_continuous,
    scale_y_discrete,
    scale_y_log10,
    xlim,
    ylim,
)
from ggstudio.themes import (
    ggtitle,
    labs,
    theme,
    theme_bw,
    theme_classic,
    theme_gray,
    theme_grey,
    theme_minimal,
    xlab,
    ylab,
)
from ggstudio.util import configure
