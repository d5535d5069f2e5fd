"""
Example datasets, downloaded as CSV from the Rdatasets collection.

    iris = load("iris")
    ggplot(iris, aes(x="Petal.Width", fill="Species")) + geom_histogram(binwidth=0.2)

Values that parse as numbers become numeric columns; "NA" and empty cells are
missing (NaN in numeric columns, None otherwise).
"""
import io
from typing import Dict, Optional

import numpy as np
import pandas as pd

from ggstudio.dataset import Dataset
from ggstudio.util import CONFIG, fetch

ALIASES: Dict[str, str] = {
    "iris": "datasets/iris",
    "CO2": "datasets/CO2",
    "volcano": "datasets/volcano",
    "quakes": "datasets/quakes",
    "french_fries": "reshape2/french_fries",
    "mpg": "ggplot2/mpg",
    "diamonds": "ggplot2/diamonds",
    "faithful": "datasets/faithful",
}

_loaded: Dict[str, Dataset] = {}


def parse_csv(content: bytes) -> Dataset:
    """Parse CSV bytes into a Dataset, dropping the unnamed row-name column."""
    try:
        frame = pd.read_csv(io.BytesIO(content), na_values=["NA"])
    except pd.errors.EmptyDataError:
        return Dataset()
    if len(frame.columns) and frame.columns[0] in ("rownames", "Unnamed: 0"):
        frame = frame.drop(columns=frame.columns[0])
    return Dataset(frame)


def load(name: str, package: Optional[str] = None) -> Dataset:
    """
    Load an example dataset by name ("iris", "CO2", "mpg", ...) or as "package/item".

    Datasets are cached for the session. Raises ExternalFetchError when the
    download fails.
    """
    key = f"{package}/{name}" if package else ALIASES.get(name, name)
    if "/" not in key:
        key = f"datasets/{key}"
    if key not in _loaded:
        pkg, item = key.split("/", 1)
        content = fetch(CONFIG["dataset_url"].format(package=pkg, item=item))
        _loaded[key] = parse_csv(content)
    return _loaded[key]


def volcano_grid(data: Optional[Dataset] = None) -> Dataset:
    """
    The volcano height matrix in long form: x (row), y (column), z (height).

    Rdatasets stores the matrix as one row per matrix row with columns V1..V61.
    """
    data = data if data is not None else load("volcano")
    matrix = np.column_stack([data[name].astype(float) for name in data.names])
    return Dataset.from_matrix(matrix, names=("x", "y", "z"))
