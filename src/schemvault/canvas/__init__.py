"""
Exposes the public interface of the canvas package.
"""
from .differ import (
    ChangeCount,
    layout_equal,
    quantify_changes,
    reduce_component,
    reduce_connection,
)

__all__ = [
    "ChangeCount",
    "layout_equal",
    "quantify_changes",
    "reduce_component",
    "reduce_connection",
]
