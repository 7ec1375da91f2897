from __future__ import annotations

from typing import Any, Dict, Iterable, List


def flatten_record(obj: Dict[str, Any], sep: str = ".", prefix: str = "") -> Dict[str, Any]:
    """Flatten nested dicts into dotted keys; lists are kept as values."""
    flat: Dict[str, Any] = {}
    for key, value in obj.items():
        name = f"{prefix}{sep}{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            flat.update(flatten_record(value, sep=sep, prefix=name))
        elif isinstance(value, dict):
            flat[name] = None
        else:
            flat[name] = value
    return flat


def flatten_records(objs: Iterable[Dict[str, Any]], sep: str = ".") -> List[Dict[str, Any]]:
    return [flatten_record(obj, sep=sep) for obj in objs]
