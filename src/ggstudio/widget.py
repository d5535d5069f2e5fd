import datetime
import warnings
from typing import Any, Iterable

import anywidget
import numpy as np
import traitlets

from ggstudio.util import CONFIG, PARENT_PATH


def to_json(data: Any) -> Any:
    # Handle NaN at top level
    if isinstance(data, float):
        if np.isnan(data) or np.isinf(data):
            return None
        return data

    # Handle basic JSON-serializable types first since they're most common
    if isinstance(data, (str, int, bool)):
        return data

    if data is None:
        return None

    if isinstance(data, (datetime.date, datetime.datetime)):
        return {"__type__": "datetime", "value": data.isoformat()}

    # numpy scalars
    if isinstance(data, np.generic):
        return to_json(data.item())

    if isinstance(data, np.ndarray):
        if data.ndim == 0:  # It's a scalar
            return to_json(data.item())
        return [to_json(x) for x in data.tolist()]

    # Handle objects with custom serialization
    if hasattr(data, "for_json"):
        return to_json(data.for_json())

    # Handle containers
    if isinstance(data, dict):
        return {str(k): to_json(v) for k, v in data.items()}

    if isinstance(data, (list, tuple)):
        return [to_json(x) for x in data]

    if isinstance(data, Iterable):
        if not hasattr(data, "__len__") and not hasattr(data, "__getitem__"):
            warnings.warn(
                "Potentially exhaustible iterator encountered: generator", UserWarning
            )
        return [to_json(x) for x in data]

    raise TypeError(f"Object of type {type(data)} is not JSON serializable")


def to_json_with_config(ast: Any, _widget: Any = None) -> Any:
    return to_json({"ast": ast, "plotCdn": CONFIG["plot_cdn"]})


class Widget(anywidget.AnyWidget):
    _esm = PARENT_PATH / "js/widget.js"
    data = traitlets.Any().tag(sync=True, to_json=to_json_with_config)

    def __init__(self, ast: Any):
        super().__init__()
        self.data = ast
