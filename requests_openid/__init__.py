"""Main module for `requests_openid`.

You can import any class from any submodule directly from this main module.

"""

from .assertion import Assertion, AssertionVerifier
from .authentication_request import AuthenticationRequest
from .consumer import OpenIDConsumer
from .discovery import MAX_HOPS, DiscoveryResolver, Resolution, discover
from .enums import Modes, Namespaces, ProtocolVersion
from .exceptions import (
    AssertionRejected,
    DiscoveryError,
    EmptyIdentity,
    EndlessRedirection,
    InvalidAuthenticationRequest,
    MalformedCallback,
    MissingSignedField,
    NoProviderFound,
    OpenIDError,
    TransportFailure,
)
from .markup import html_tag
from .transport import Transport, TransportResponse
from .utils import compose_url, normalize_identity

__all__ = [
    "MAX_HOPS",
    "Assertion",
    "AssertionRejected",
    "AssertionVerifier",
    "AuthenticationRequest",
    "DiscoveryError",
    "DiscoveryResolver",
    "EmptyIdentity",
    "EndlessRedirection",
    "InvalidAuthenticationRequest",
    "MalformedCallback",
    "MissingSignedField",
    "Modes",
    "Namespaces",
    "NoProviderFound",
    "OpenIDConsumer",
    "OpenIDError",
    "ProtocolVersion",
    "Resolution",
    "Transport",
    "TransportFailure",
    "TransportResponse",
    "compose_url",
    "discover",
    "html_tag",
    "normalize_identity",
]
