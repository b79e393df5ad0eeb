from __future__ import annotations

import re


_PARAM_ANGLE = re.compile(r"<(?:[A-Za-z_][A-Za-z0-9_]*:)?([A-Za-z_][A-Za-z0-9_]*)>")
_PARAM_COLON = re.compile(r"(?<=/):([A-Za-z_][A-Za-z0-9_]*)")
_MULTI_SLASH = re.compile(r"/{2,}")


def normalize_path(path: str) -> str:
    """
    Rewrite framework placeholder syntax into OpenAPI "{param}" syntax.

      /users/:id        -> /users/{id}     (gin, echo, fiber, chi-style)
      /users/<id>       -> /users/{id}     (flask)
      /users/<int:id>   -> /users/{id}     (flask with converter)
      /users/{id}       -> unchanged
      /files/*filepath  -> unchanged (wildcards have no OpenAPI equivalent)
    """
    p = (path or "").strip()
    if not p.startswith("/"):
        p = "/" + p

    p = _PARAM_ANGLE.sub(r"{\1}", p)
    p = _PARAM_COLON.sub(r"{\1}", p)
    p = _MULTI_SLASH.sub("/", p)
    return p


def path_segments(path: str) -> list[str]:
    return [seg for seg in path.strip("/").split("/") if seg]
