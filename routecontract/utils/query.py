"""
Query string flattening with bracket syntax.

The default query encoders (requests, urllib) only understand flat
key/value pairs, while route schemas may declare arbitrarily nested query
shapes. Nested values are flattened into bracketed keys:

    {"tags": ["a", "b"]}              -> tags[]=a&tags[]=b
    {"filter": {"min": 1, "max": 5}}  -> filter[min]=1&filter[max]=5
    {"rows": [{"id": 1}]}             -> rows[][id]=1

parse_query() performs the inverse on the server side, so Flask's flat
MultiDict arrives at the schema as the nested structure the client sent.
"""

import re
from typing import Any, Dict, Iterable, List, Tuple
from urllib.parse import urlencode


_KEY_PATTERN = re.compile(r'^([^\[\]]+)((?:\[[^\[\]]*\])*)$')
_SEGMENT_PATTERN = re.compile(r'\[([^\[\]]*)\]')


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def flatten_query(params: Dict[str, Any]) -> List[Tuple[str, str]]:
    """
    Flatten a nested query mapping into (key, value) pairs.

    None values are dropped, as are empty lists and dicts.

    Examples:
        {"tags": ["a", "b"]} -> [("tags[]", "a"), ("tags[]", "b")]
        {"page": 2}          -> [("page", "2")]
    """
    pairs: List[Tuple[str, str]] = []

    def _walk(prefix: str, value: Any) -> None:
        if value is None:
            return
        if isinstance(value, dict):
            for key, item in value.items():
                _walk(f"{prefix}[{key}]" if prefix else str(key), item)
        elif isinstance(value, (list, tuple)):
            for item in value:
                _walk(f"{prefix}[]", item)
        else:
            pairs.append((prefix, _stringify(value)))

    _walk('', params or {})
    return pairs


def serialize_query(params: Dict[str, Any]) -> str:
    """
    Serialize a nested query mapping to a query string (brackets left unescaped).

    Example:
        serialize_query({"tags": ["a", "b"]}) -> "tags[]=a&tags[]=b"
    """
    return urlencode(flatten_query(params), safe='[]')


def _split_key(raw_key: str) -> List[str]:
    match = _KEY_PATTERN.match(raw_key)
    if not match:
        return [raw_key]
    root, brackets = match.groups()
    return [root] + _SEGMENT_PATTERN.findall(brackets)


def _assign(node: Dict[str, Any], keys: List[str], value: Any) -> None:
    head, rest = keys[0], keys[1:]

    if not rest:
        if head not in node:
            node[head] = value
        elif isinstance(node[head], list):
            node[head].append(value)
        else:
            # Repeated plain key (a=1&a=2) collects into a list
            node[head] = [node[head], value]
        return

    if rest[0] == '':
        child = node.get(head)
        if not isinstance(child, list):
            child = node[head] = []
        _append(child, rest[1:], value)
    else:
        child = node.get(head)
        if not isinstance(child, dict):
            child = node[head] = {}
        _assign(child, rest, value)


def _append(items: List[Any], keys: List[str], value: Any) -> None:
    if not keys:
        items.append(value)
        return

    if keys[0] == '':
        child: List[Any] = []
        items.append(child)
        _append(child, keys[1:], value)
        return

    # rows[][id]=1&rows[][name]=x fills the last object until a key repeats
    last = items[-1] if items else None
    if isinstance(last, dict) and keys[0] not in last:
        target = last
    else:
        target = {}
        items.append(target)
    _assign(target, keys, value)


def parse_query(pairs: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """
    Rebuild a nested mapping from flat (key, value) pairs.

    Args:
        pairs: Key/value pairs, e.g. request.args.items(multi=True)

    Returns:
        Nested dict; values stay strings (coercion is the schema's job)

    Example:
        [("tags[]", "a"), ("tags[]", "b")] -> {"tags": ["a", "b"]}
    """
    result: Dict[str, Any] = {}
    for raw_key, value in pairs:
        _assign(result, _split_key(raw_key), value)
    return result
