"""Various utilities used in multiple places.

This module contains the URL helpers shared by discovery and request building.

"""

from __future__ import annotations

import re
from typing import Mapping
from urllib.parse import urlsplit

from furl import furl  # type: ignore[import-untyped]

UrlParts = Mapping[str, str]

SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
"""Identifiers that do not match this get a default `http://` scheme."""

DEFAULT_SCHEME = "http://"


def url_parts(url: str) -> dict[str, str]:
    """Split a URL into its parts.

    Only the parts that are present and non-empty in `url` are included in the result, so that the
    result can be used as a set of overrides for [compose_url()][requests_openid.utils.compose_url].

    Args:
        url: the url to split. May be relative, like `/path?query`.

    Returns:
        a dict with keys among `scheme`, `username`, `password`, `host`, `port`, `path`,
        `query` and `fragment`.

    """
    split = urlsplit(url.strip())
    userinfo, _, hostport = split.netloc.rpartition("@")
    username, _, password = userinfo.partition(":")
    host, port = hostport, ""
    if hostport.startswith("["):
        end = hostport.find("]") + 1
        host = hostport[:end]
        if hostport[end : end + 1] == ":":
            port = hostport[end + 1 :]
    elif ":" in hostport:
        host, _, port = hostport.rpartition(":")

    parts = {
        "scheme": split.scheme,
        "username": username,
        "password": password,
        "host": host,
        "port": port,
        "path": split.path,
        "query": split.query,
        "fragment": split.fragment,
    }
    return {key: val for key, val in parts.items() if val}


def compose_url(base: str | UrlParts, overrides: str | UrlParts) -> str:
    """Merge a base url with a set of overriding parts.

    Every part from `overrides` replaces the matching part from `base`, except the query: when both
    have one, the result contains the base query followed by the overriding query, joined with `&`.
    This way, parameters appended to an endpoint never erase the query string that the endpoint
    already contains.

    A relative path in `overrides` (one that does not start with `/`) is resolved against the
    directory of the base path. Parts that are missing from both are omitted from the result.

    Args:
        base: the base url, as `str` or as a mapping of parts.
        overrides: the overriding url or parts.

    Returns:
        the composed url, as
        `scheme://[user[:pass]@]host[:port][path][?query][#fragment]`

    """
    url = url_parts(base) if isinstance(base, str) else {key: val for key, val in base.items() if val}
    parts = url_parts(overrides) if isinstance(overrides, str) else {key: val for key, val in overrides.items() if val}

    if url.get("query") and parts.get("query"):
        parts["query"] = f"{url['query']}&{parts['query']}"
    path = parts.get("path")
    if path and not path.startswith("/") and "host" not in parts:
        directory = url.get("path", "").rpartition("/")[0]
        parts["path"] = f"{directory}/{path}"

    url.update(parts)

    userinfo = ""
    if url.get("username"):
        userinfo = f"{url['username']}:{url['password']}@" if url.get("password") else f"{url['username']}@"

    composed = f"{url.get('scheme', '')}://{userinfo}{url.get('host', '')}"
    if url.get("port"):
        composed += f":{url['port']}"
    composed += url.get("path", "")
    if url.get("query"):
        composed += f"?{url['query']}"
    if url.get("fragment"):
        composed += f"#{url['fragment']}"
    return composed


def normalize_identity(identity: str | None) -> str | None:
    """Normalize a user supplied identifier.

    Leading and trailing whitespace is removed, and `http://` is prepended if the identifier has
    no `http` or `https` scheme.

    Returns:
        the normalized identifier, or `None` if `identity` is empty.

    """
    if not identity or not identity.strip():
        return None
    identity = identity.strip()
    if not SCHEME_PATTERN.match(identity):
        identity = DEFAULT_SCHEME + identity
    return identity


def origin(url: str) -> str:
    """Return the origin (`scheme://host[:port]`) of `url`."""
    return str(furl(url).origin)
