# %% [markdown]
# # A grammar of graphics, one component at a time
#
# A plot is built from independent pieces: data, an aesthetic mapping from
# variables to visual channels, geometries, statistics, position adjustments,
# scales, facets, a coordinate system and a theme. Each piece is added with
# `+`, and every addition returns a new plot, so a half-built plot can be kept
# and extended in several directions.

# %%
import ggstudio.plot as gg

# %% [markdown]
# ## Histograms and statistics
#
# `iris` has one row per flower. Mapping petal width to `x` and species to
# `fill` and adding a histogram layer is enough: the histogram's default
# statistic bins the data, and its default position stacks the species.

# %%
iris = gg.load("iris")

p = gg.ggplot(iris, gg.aes(x="Petal.Width", fill="Species"))
p + gg.geom_histogram(binwidth=0.2)

# %% [markdown]
# Without a bin width the statistic falls back to 30 bins and says so with a
# `DefaultFallbackWarning`. The same layer can be named from the statistic's
# side: `stat_bin()` draws a histogram by default.

# %%
p + gg.stat_bin(bins=15) + gg.labs(title="Petal width", y="flowers")

# %% [markdown]
# Layers stack up in order. A density curve per species on its own:

# %%
gg.ggplot(iris, gg.aes(x="Petal.Length", colour="Species")) + gg.geom_density()

# %% [markdown]
# ## Grouping
#
# `CO2` records CO2 uptake of twelve plants at seven concentrations. A line
# layer needs to know which points belong together. Mapping `group` connects
# each plant's points:

# %%
co2 = gg.load("CO2")
base = gg.ggplot(co2, gg.aes(x="conc", y="uptake"))
base + gg.geom_line(gg.aes(group="Plant"))

# %% [markdown]
# Mapping `colour` to the plant does the same grouping implicitly, and colours
# each line:

# %%
base + gg.geom_line(gg.aes(colour="Plant"))

# %% [markdown]
# `base` was never modified, so both plots share it. Facets split the plot by
# plant origin and treatment, one panel per combination:

# %%
(
    base
    + gg.geom_point(gg.aes(colour="Treatment"))
    + gg.geom_smooth(gg.aes(colour="Treatment"), method="loess", span=0.9)
    + gg.facet_grid(cols="Type")
)

# %% [markdown]
# ## Surfaces
#
# `volcano` is a matrix of heights. Reshaped to one (x, y, z) row per cell, it
# can be drawn as a raster, with contour lines on top:

# %%
volcano = gg.volcano_grid()
(
    gg.ggplot(volcano, gg.aes(x="x", y="y"))
    + gg.geom_raster(gg.aes(fill="z"))
    + gg.geom_contour(gg.aes(z="z"), colour="white")
    + gg.scale_fill_gradient(low="#440154", high="#FDE725")
    + gg.coord_fixed()
)

# %% [markdown]
# Leaving out `z` is a configuration error. The error names the channel, and
# the raster layer still renders; `render(strict=False)` returns the partial
# plot and keeps the error on `.errors`.

# %%
broken = (
    gg.ggplot(volcano, gg.aes(x="x", y="y"))
    + gg.geom_raster(gg.aes(fill="z"))
    + gg.geom_contour()
)
partial = broken.render(strict=False)
partial.errors

# %%
partial

# %% [markdown]
# ## Reshaping before plotting
#
# `french_fries` stores five taste scores per tasting in separate columns.
# Melting them into long form gives one row per score, which facets by
# treatment and colours by flavour:

# %%
fries = gg.load("french_fries")
scores = fries.melt(
    id_vars=["time", "treatment", "subject", "rep"],
    var_name="flavour",
    value_name="score",
)
(
    gg.ggplot(scores, gg.aes(x="flavour", y="score", fill="flavour"))
    + gg.geom_boxplot()
    + gg.facet_grid(cols="treatment")
    + gg.theme(legend_position="none")
)

# %% [markdown]
# ## Counts, positions and coordinates
#
# `geom_bar` counts rows per `x`; `position="dodge"` places groups side by side
# instead of stacking them, and `coord_flip()` turns the bars sideways.

# %%
mpg = gg.load("mpg")
bars = gg.ggplot(mpg, gg.aes(x="class", fill="drv"))
bars + gg.geom_bar()

# %%
bars + gg.geom_bar(position="dodge") + gg.coord_flip()

# %% [markdown]
# A stacked bar in polar coordinates is a pie:

# %%
(
    gg.ggplot(mpg, gg.aes(x="class", fill="class"))
    + gg.geom_bar(width=1)
    + gg.coord_polar(theta="y")
)

# %% [markdown]
# Adding a second scale for a channel replaces the first, with an
# `OverrideWarning`:

# %%
(
    gg.ggplot(mpg, gg.aes(x="displ", y="hwy"))
    + gg.geom_point(gg.aes(colour="class"))
    + gg.scale_x_continuous(name="Displacement")
    + gg.scale_x_log10(name="Displacement (log)")
    + gg.theme_bw()
)

# %% [markdown]
# ## Maps
#
# `fetch_tile` downloads the map tile around a point. `ggmap` starts a plot
# with the tile as background, in an approximate map projection, so ordinary
# longitude/latitude layers go on top. Here are the Fiji earthquakes:

# %%
quakes = gg.load("quakes")
tile = gg.fetch_tile(lon=179, lat=-22, zoom=4)
gg.ggmap(tile, quakes) + gg.geom_point(gg.aes(x="long", y="lat", colour="mag"), alpha=0.6)

# %% [markdown]
# ## Layout and export
#
# Plots combine with `&` (side by side) and `|` (stacked), and save to HTML or
# PNG.

# %%
histogram = p + gg.geom_histogram(binwidth=0.2)
points = gg.ggplot(iris, gg.aes(x="Petal.Length", y="Petal.Width", colour="Species")) + gg.geom_point()
layout = histogram & points
layout.save_html("scratch/iris.html")
