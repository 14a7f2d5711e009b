"""URL template helpers for HTTP bindings.

Only a small subset of the ``google.api.http`` path template grammar is
supported: plain ``/``-separated segments, some of which are a single
``{field}`` placeholder. The functions listed in ``EMBEDDED_HELPERS`` are also
copied verbatim into generated transport code, so they may only refer to each
other, to builtins and to ``IndexOutOfRangeError`` / ``FieldNotFoundError``.
"""

from __future__ import annotations

import inspect

from svcforge.errors import FieldNotFoundError, IndexOutOfRangeError


def remove_braces(val: str) -> str:
    """Remove every opening and closing curly brace from ``val``."""
    return val.replace("{", "").replace("}", "")


def build_param_map(url_tmpl: str) -> dict[str, int]:
    """Map each placeholder of ``url_tmpl`` to its index among the ``/``-split segments.

    For ``"/v1/{a}/{b}"`` the result is ``{"a": 2, "b": 3}``. Brace balance is
    not checked and a name used twice keeps its last position.
    """
    rv: dict[str, int] = {}
    for idx, part in enumerate(url_tmpl.split("/")):
        if "{" in part or "}" in part:
            rv[remove_braces(part)] = idx
    return rv


def split_path(url: str, url_tmpl: str) -> list[str]:
    """Split ``url`` on ``/`` after checking it has as many segments as ``url_tmpl``."""
    expected = len(url_tmpl.rstrip("/").split("/"))
    received = len(url.rstrip("/").split("/"))
    if expected != received:
        raise IndexOutOfRangeError(
            f"expecting a path containing {expected} parts, provided path contains {received} parts"
        )
    return url.split("/")


def path_params(url: str, url_tmpl: str) -> dict[str, str]:
    """Return the value of every placeholder of ``url_tmpl`` found in ``url``."""
    parts = split_path(url, url_tmpl)
    return {name: parts[idx] for name, idx in build_param_map(url_tmpl).items()}


def path_extract(url: str, url_tmpl: str, field: str) -> str:
    """Return the value of the single placeholder ``field`` found in ``url``."""
    param_map = build_param_map(url_tmpl)
    if field not in param_map:
        raise FieldNotFoundError(f"field {field!r} is not a placeholder of {url_tmpl!r}")
    parts = split_path(url, url_tmpl)
    return parts[param_map[field]]


def base_path(url_tmpl: str) -> str:
    """Return the longest leading run of ``url_tmpl`` segments without placeholders.

    ``"/v1/user/{userid}/home"`` gives ``"/v1/user"``; a template whose first
    segment is a placeholder gives the root ``"/"``.
    """
    static: list[str] = []
    for part in url_tmpl.split("/"):
        if "{" in part or "}" in part:
            break
        static.append(part)
    else:
        return url_tmpl
    rv = "/".join(static)
    if not rv and url_tmpl.startswith("/"):
        return "/"
    return rv


def query_params(vals: dict[str, list[str]]) -> dict[str, str]:
    """Flatten multi-valued query parameters, keeping only the first value of each.

    Repeated values are dropped on purpose; requests with repeated fields are
    not rebuilt from the query string.
    """
    return {key: values[0] for key, values in vals.items() if values}


EMBEDDED_HELPERS = (remove_braces, build_param_map, split_path, path_params, path_extract, base_path, query_params)


def helpers_source() -> str:
    """Return the source of ``EMBEDDED_HELPERS`` for inclusion in generated code."""
    return "\n\n".join(inspect.getsource(func) for func in EMBEDDED_HELPERS)
