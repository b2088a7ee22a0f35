"""
Dot-path access into nested config objects.

``set_path`` never mutates its input: every dict or list along the path
is shallow-copied and the untouched branches are shared with the
original, so callers can compare old and new configs by identity.
Path segments that are digits index into lists.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union

Container = Union[Dict[str, Any], List[Any]]

_MISSING = object()


def split_path(path: str) -> List[str]:
    if not isinstance(path, str) or not path.strip():
        raise ValueError("Config path must be a non-empty string")
    keys = path.split(".")
    if any(k == "" for k in keys):
        raise ValueError(f"Invalid config path: {path!r}")
    return keys


def _list_index(container: List[Any], key: str, path: str, allow_append: bool) -> int:
    if not key.isdigit():
        raise TypeError(f"Path {path!r}: '{key}' is not a list index")
    index = int(key)
    limit = len(container) if allow_append else len(container) - 1
    if index > limit:
        raise IndexError(f"Path {path!r}: index {index} out of range")
    return index


def get_path(obj: Any, path: str, default: Any = None) -> Any:
    """Read a value by dot-path, returning ``default`` when any hop is missing."""
    current = obj
    for key in split_path(path):
        if isinstance(current, Mapping):
            current = current.get(key, _MISSING)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return default
        if current is _MISSING:
            return default
    return current


def set_path(obj: Container, path: str, value: Any) -> Container:
    """Return a copy of ``obj`` with ``value`` written at ``path``.

    Missing (or ``None``) intermediates become dicts. Writing one past
    the end of a list appends.
    """
    keys = split_path(path)
    return _set(obj if obj is not None else {}, keys, value, path)


def _set(container: Any, keys: List[str], value: Any, path: str) -> Container:
    key, rest = keys[0], keys[1:]

    if isinstance(container, list):
        new_list = list(container)
        index = _list_index(new_list, key, path, allow_append=True)
        if index == len(new_list):
            new_list.append(None)
        new_list[index] = value if not rest else _set(_child(new_list[index], path), rest, value, path)
        return new_list

    if isinstance(container, Mapping):
        new_dict = dict(container)
        if not rest:
            new_dict[key] = value
        else:
            new_dict[key] = _set(_child(new_dict.get(key), path), rest, value, path)
        return new_dict

    raise TypeError(f"Path {path!r}: cannot descend into {type(container).__name__}")


def _child(existing: Any, path: str) -> Container:
    if existing is None:
        return {}
    if isinstance(existing, (Mapping, list)):
        return existing
    raise TypeError(
        f"Path {path!r}: cannot descend into {type(existing).__name__} value"
    )


def delete_path(obj: Container, path: str) -> Container:
    """Return a copy of ``obj`` without the key at ``path`` (no-op if absent)."""
    keys = split_path(path)
    parent = get_path(obj, ".".join(keys[:-1])) if len(keys) > 1 else obj
    last = keys[-1]
    if isinstance(parent, Mapping) and last in parent:
        trimmed = {k: v for k, v in parent.items() if k != last}
    elif isinstance(parent, list) and last.isdigit() and int(last) < len(parent):
        trimmed = parent[: int(last)] + parent[int(last) + 1:]
    else:
        return obj
    if len(keys) == 1:
        return trimmed
    return set_path(obj, ".".join(keys[:-1]), trimmed)


def apply_updates(obj: Container, updates: Mapping[str, Any]) -> Container:
    """Apply several ``path -> value`` writes in order, immutably."""
    result = obj if obj is not None else {}
    for path, value in updates.items():
        result = set_path(result, path, value)
    return result
