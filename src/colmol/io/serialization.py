"""
JSON helpers.

Structures, views and contact results serialize to plain dicts of lists
(``to_json``); these helpers write them to disk and turn analysis output
holding numpy values into something ``json`` accepts.
"""

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Union

import numpy as np

from colmol.core.structures import Structure, StructureView


def to_jsonable(value):
    """Recursively convert objects into JSON-serializable types."""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if hasattr(value, "to_json"):
        return to_jsonable(value.to_json())
    if isinstance(value, Mapping):
        return {to_jsonable(key): to_jsonable(val) for key, val in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [to_jsonable(item) for item in value]
    return value


def dump_structure(structure: Union[Structure, StructureView], path: Union[str, Path]) -> Path:
    """Write ``structure.to_json()`` to ``path``."""
    path = Path(path)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(structure.to_json(), handle)
    return path


def load_structure(path: Union[str, Path]) -> Union[Structure, StructureView]:
    """Read a file written by :func:`dump_structure`."""
    with Path(path).open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    return structure_from_json(data)


def structure_from_json(data) -> Union[Structure, StructureView]:
    """Rebuild a Structure or StructureView from its ``to_json`` dict."""
    kind = data.get("metadata", {}).get("type", "Structure")
    if kind == "StructureView":
        return StructureView.load_json(data)
    if kind != "Structure":
        raise ValueError(f"not a serialized structure: {kind!r}")
    return Structure().from_json(data)
