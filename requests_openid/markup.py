"""Lightweight scanners for the HTML and XRDS documents met during discovery.

These are regular expression scans over the raw text. They only recognize the `<link>`, `<meta>`
and `<Service>` shapes that discovery looks for.

"""

from __future__ import annotations

import html
import re
from typing import Iterator

_ATTR_VALUE = r"""['"]([^'"]+)['"]"""


def _key_attr(attr_name: str, attr_value: str) -> str:
    return rf"""\s{re.escape(attr_name)}\s*=\s*['"][^'"]*?{re.escape(attr_value)}[^'"]*?['"]"""


def _value_attr(value_name: str) -> str:
    return rf"\s{re.escape(value_name)}\s*={_ATTR_VALUE}"


def html_tag(content: str, tag: str, attr_name: str, attr_value: str, value_name: str) -> str | None:
    """Extract an attribute value from the first tag that matches a key attribute.

    This looks for a `<tag>` whose `attr_name` attribute contains `attr_value` (case-insensitive
    substring match), and which also carries a `value_name` attribute. Both attribute orders are
    tried: tags where the key attribute comes first are preferred over tags where it comes last.

    Example:
        ```python
        html_tag(
            '<link rel="openid.server" href="https://op.example/">',
            "link",
            "rel",
            "openid.server",
            "href",
        )
        # "https://op.example/"
        ```

    Args:
        content: the HTML or XML text to scan
        tag: the tag name, like `link` or `meta`
        attr_name: the name of the key attribute, like `rel`
        attr_value: the value to look for in the key attribute, like `openid.server`
        value_name: the name of the attribute to return, like `href`

    Returns:
        the unescaped attribute value, or `None` if no tag matches.

    """
    key = _key_attr(attr_name, attr_value)
    value = _value_attr(value_name)
    opening = rf"<{re.escape(tag)}\b[^>]*?"
    for pattern in (
        rf"{opening}{key}[^>]*?{value}[^>]*>",
        rf"{opening}{value}[^>]*?{key}[^>]*>",
    ):
        match = re.search(pattern, content, re.IGNORECASE)
        if match:
            return html.unescape(match.group(1))
    return None


def xrds_services(content: str) -> Iterator[str]:
    """Iterate over the inner text of each `<Service>` element in an XRDS document."""
    for match in re.finditer(
        r"<(?:[\w.-]+:)?Service\b[^>]*>(.*?)</(?:[\w.-]+:)?Service\s*>", content, re.DOTALL | re.IGNORECASE
    ):
        yield match.group(1)


def xrds_element(service: str, name: str) -> str | None:
    """Return the text of the first child element of a `<Service>` whose tag name matches `name`.

    `name` is a regular expression, so that `r"\\w*Delegate"` matches `<openid:Delegate>`.

    """
    match = re.search(
        rf"<(?:[\w.-]+:)?(?:{name})\b[^>]*>\s*([^<]*?)\s*</", service, re.IGNORECASE
    )
    if match and match.group(1):
        return html.unescape(match.group(1))
    return None


def xrds_service(content: str, namespace: str, *, exact: bool = False) -> str | None:
    """Return the first `<Service>` of an XRDS document that declares a given type.

    Args:
        content: the XRDS document
        namespace: the type URI to look for
        exact: if `True`, a `<Type>` must be exactly `namespace`. Otherwise, it must start with it.

    Returns:
        the inner text of the matching `<Service>`, or `None` if there is none.

    """
    for service in xrds_services(content):
        for match in re.finditer(r"<(?:[\w.-]+:)?Type\b[^>]*>\s*([^<]*?)\s*</", service, re.IGNORECASE):
            service_type = match.group(1)
            if service_type == namespace or (not exact and service_type.startswith(namespace)):
                return service
    return None
