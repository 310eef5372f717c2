"""Simple Registration (sreg) and Attribute Exchange (AX) support.

Those extensions let a relying party ask the provider for some attributes about the user, like an
email address or a nickname. OpenID 1.1 providers are asked with sreg, OpenID 2.0 providers with AX.

Attributes can be named either with their sreg name (`email`) or with their AX schema path
(`contact/email`); both are mapped to each other with `AX_TO_SREG`.

See [Simple Registration 1.0](https://openid.net/specs/openid-simple-registration-extension-1_0.html)
and [Attribute Exchange 1.0](https://openid.net/specs/openid-attribute-exchange-1_0.html).

"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from .enums import Namespaces

if TYPE_CHECKING:
    from .assertion import Assertion

AX_SCHEMA = "http://axschema.org/"

AX_TO_SREG = {
    "namePerson/friendly": "nickname",
    "contact/email": "email",
    "namePerson": "fullname",
    "birthDate": "dob",
    "person/gender": "gender",
    "contact/postalCode/home": "postcode",
    "contact/country/home": "country",
    "pref/language": "language",
    "pref/timezone": "timezone",
}
SREG_TO_AX = {sreg: ax for ax, sreg in AX_TO_SREG.items()}


def sreg_name(attribute: str) -> str:
    """Return the sreg name for an attribute given by sreg name or AX path."""
    return AX_TO_SREG.get(attribute, attribute)


def ax_path(attribute: str) -> str:
    """Return the AX schema path for an attribute given by sreg name or AX path."""
    return SREG_TO_AX.get(attribute, attribute)


def ax_alias(attribute: str) -> str:
    """Return the alias used for an attribute in AX requests."""
    path = ax_path(attribute)
    return AX_TO_SREG.get(path) or path.replace("/", "_")


def sreg_request(required: Iterable[str], optional: Iterable[str]) -> dict[str, str]:
    """Build the sreg parameters for an OpenID 1.1 Authentication Request.

    Returns:
        `openid.sreg.required` and `openid.sreg.optional`, as comma-separated lists, each one only
        if non-empty.

    """
    params = {}
    required = [sreg_name(attribute) for attribute in required]
    optional = [sreg_name(attribute) for attribute in optional]
    if required:
        params["openid.sreg.required"] = ",".join(required)
    if optional:
        params["openid.sreg.optional"] = ",".join(optional)
    return params


def ax_fetch_request(required: Iterable[str], optional: Iterable[str]) -> dict[str, str]:
    """Build the AX fetch request parameters for an OpenID 2.0 Authentication Request.

    Returns:
        the `openid.ns.ax` and `openid.ax.*` parameters, or an empty dict if no attribute is requested.

    """
    required = list(required)
    optional = list(optional)
    if not required and not optional:
        return {}

    params = {"openid.ns.ax": Namespaces.AX.value, "openid.ax.mode": "fetch_request"}
    for attribute in (*required, *optional):
        params[f"openid.ax.type.{ax_alias(attribute)}"] = AX_SCHEMA + ax_path(attribute)
    if required:
        params["openid.ax.required"] = ",".join(ax_alias(attribute) for attribute in required)
    if optional:
        params["openid.ax.if_available"] = ",".join(ax_alias(attribute) for attribute in optional)
    return params


def signed_attributes(assertion: Assertion) -> dict[str, str]:
    """Extract the signed sreg and AX attributes from an assertion.

    Only the values listed in `openid.signed` are returned. Attributes are keyed by sreg name, or by
    AX path for the attributes that have no sreg equivalent.

    """
    attributes = {}
    ax_aliases = {
        field[len("ns.") :]
        for field in assertion.signed
        if field.startswith("ns.") and assertion.get(field) == Namespaces.AX.value
    }
    if assertion.get("ns.ax") == Namespaces.AX.value:
        ax_aliases.add("ax")

    for field in assertion.signed:
        prefix, _, name = field.partition(".")
        if prefix == "sreg" and name:
            attributes[name] = assertion.get(field)
        elif prefix in ax_aliases and name.startswith("value."):
            type_uri = assertion.get(f"{prefix}.type.{name[len('value.') :]}")
            if not type_uri:
                continue
            path = type_uri[len(AX_SCHEMA) :] if type_uri.startswith(AX_SCHEMA) else type_uri
            attributes[sreg_name(path)] = assertion.get(field)
    return attributes
