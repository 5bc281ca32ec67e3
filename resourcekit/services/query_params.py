from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Optional, Tuple

_BRACKETS_RE = re.compile(r"(?:\[[^\[\]]*\])+")
_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")


def _param_items(params: Mapping[str, Any]) -> Iterable[Tuple[str, Any]]:
    # starlette's QueryParams keeps repeated keys only in multi_items().
    multi_items = getattr(params, "multi_items", None)
    if callable(multi_items):
        return multi_items()
    return list(params.items())


def _segments(key: str, name: str) -> Optional[List[str]]:
    if not key.startswith(name):
        return None
    rest = key[len(name):]
    if not _BRACKETS_RE.fullmatch(rest):
        return None
    return _SEGMENT_RE.findall(rest)


def nested_param(params: Mapping[str, Any], name: str) -> Any:
    """Returns ``params[name]`` decoding the ``name[key]=value`` form.

    ``sort=title`` gives ``"title"``, ``sort[title]=desc&sort[id]=asc`` gives
    ``{"title": "desc", "id": "asc"}`` in query order, deeper keys nest:
    ``sort[title][x]=y`` gives ``{"title": {"x": "y"}}``. Repeated plain keys
    keep the last value. Values that are already decoded (plain mappings)
    are returned as is.
    """
    nested: dict[str, Any] = {}
    value = None
    for key, raw in _param_items(params):
        if key == name:
            value = raw
            continue
        segments = _segments(key, name)
        if not segments or not segments[0]:
            continue
        target = nested
        for segment in segments[:-1]:
            child = target.get(segment)
            if not isinstance(child, dict):
                child = target[segment] = {}
            target = child
        target[segments[-1]] = raw
    if nested:
        return nested
    return value
