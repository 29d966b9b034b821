"""
Request builder - translates a contract call into requests.Session.request() kwargs.

    build_request_config("get", "/users/:id", {"path": {"id": 7}, "query": {"tags": ["a"]}})
    -> {"method": "get", "url": "/users/7", "headers": None,
        "params": "tags[]=a", "json": None}

Config keys:
- path: values substituted into :name placeholders
- header: request headers (passed through)
- query: nested query, serialized with bracket syntax
- body: JSON body (passed through)
- anything else: extra transport options, merged last (may override method/url)

Pure function: the output depends only on the arguments.
"""

import re
from typing import Any, Dict, Mapping, Optional

from ..utils.query import serialize_query


def replace_path_params(url: str, path_params: Mapping[str, Any]) -> str:
    """
    Substitute every :key placeholder with str(value).

    Placeholders without a value are left as-is. Only whole tokens match,
    so :id does not touch :idx.

    Example:
        replace_path_params("/users/:id", {"id": 7}) -> "/users/7"
    """
    modified_url = url
    for key, value in path_params.items():
        pattern = re.compile(rf':{re.escape(str(key))}(?![A-Za-z0-9_])')
        replacement = str(value)
        modified_url = pattern.sub(lambda _match: replacement, modified_url)
    return modified_url


def build_request_config(
    method: str,
    path: str,
    config: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build transport kwargs for one call.

    Args:
        method: HTTP method, e.g. "get"
        path: Path template from the route table, e.g. "/users/:id"
        config: Optional call config (path/header/query/body + extra options)

    Returns:
        Dict with method, url, headers, params, json and any extra options
    """
    if config is None:
        # No config means no path params to substitute; url stays as given
        return {"method": method, "url": path}

    rest = dict(config)
    path_params = rest.pop('path', None)
    headers = rest.pop('header', None)
    query = rest.pop('query', None)
    body = rest.pop('body', None)

    request_config: Dict[str, Any] = {
        "method": method,
        "url": replace_path_params(path, path_params) if path_params is not None else path,
        "headers": headers,
        "params": serialize_query(query) if query is not None else None,
        "json": body,
    }
    # Extra options win, including method/url
    request_config.update(rest)
    return request_config
