"""
Dotted-path access into nested value trees.

Values, touched flags and errors are all stored flat by path in the registry
("address.street") and folded into nested dicts on read. These helpers are the
only place that walks or builds that nesting.
"""

from typing import Any, Dict, Iterable, List


class _Missing:
    """Sentinel for "no value at this path" (distinct from a stored None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'MISSING'

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def split_path(path: str) -> List[str]:
    if not path:
        raise ValueError("Path must be a non-empty dotted string")
    return path.split('.')


def _step(container: Any, key: str) -> Any:
    if isinstance(container, dict):
        return container.get(key, MISSING)
    if isinstance(container, (list, tuple)) and key.isdigit():
        index = int(key)
        return container[index] if index < len(container) else MISSING
    return MISSING


def get_path(tree: Any, path: str, default: Any = MISSING) -> Any:
    """Read the value at ``path``.

    A literal key equal to the whole path wins over traversal, so flat
    ``{"a.b": 1}`` trees resolve the same way as nested ``{"a": {"b": 1}}``.
    """
    if isinstance(tree, dict) and path in tree:
        return tree[path]

    current = tree
    for key in split_path(path):
        current = _step(current, key)
        if current is MISSING:
            return default
    return current


def set_path(tree: Dict[str, Any], path: str, value: Any) -> Dict[str, Any]:
    """Write ``value`` at ``path`` in place, creating intermediate dicts.

    A non-dict intermediate is replaced by a dict. Returns ``tree``.
    """
    keys = split_path(path)
    current = tree
    for key in keys[:-1]:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[keys[-1]] = value
    return tree


def unset_path(tree: Dict[str, Any], path: str) -> bool:
    """Delete the value at ``path`` and prune containers left empty.

    Returns True if something was removed.
    """
    keys = split_path(path)
    trail = []
    current = tree
    for key in keys[:-1]:
        child = current.get(key) if isinstance(current, dict) else None
        if not isinstance(child, dict):
            return False
        trail.append((current, key))
        current = child

    if keys[-1] not in current:
        return False
    del current[keys[-1]]

    # Walk back up, dropping parents that are now empty
    for parent, key in reversed(trail):
        if parent[key]:
            break
        del parent[key]
    return True


def merge_trees(base: Dict[str, Any], overlay: Any) -> Dict[str, Any]:
    """Overlay ``overlay`` onto ``base`` in place, leaf by leaf.

    Where both sides hold a dict the merge recurses; otherwise the overlay
    value replaces the base value. A None/empty overlay is a no-op.
    """
    if not overlay:
        return base
    for key, value in overlay.items():
        existing = base.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merge_trees(existing, value)
        elif isinstance(value, dict):
            base[key] = merge_trees({}, value)
        else:
            base[key] = value
    return base


def fold_paths(entries: Iterable) -> Dict[str, Any]:
    """Build a nested tree from ``(path, value)`` pairs, later pairs winning."""
    tree: Dict[str, Any] = {}
    for path, value in entries:
        set_path(tree, path, value)
    return tree


def strict_equal(left: Any, right: Any) -> bool:
    """Deep equality that keeps booleans apart from numbers.

    ``True == 1`` and ``0 == False`` hold in Python but a checkbox flipping to
    True is a real edit of a field that held 1. Other numbers compare by value.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) or isinstance(right, dict):
        if not (isinstance(left, dict) and isinstance(right, dict)):
            return False
        if left.keys() != right.keys():
            return False
        return all(strict_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) or isinstance(right, (list, tuple)):
        if type(left) is not type(right) or len(left) != len(right):
            return False
        return all(strict_equal(a, b) for a, b in zip(left, right))
    return left == right
