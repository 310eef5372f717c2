"""This module contains all exception classes from `requests_openid`."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from requests_openid.assertion import Assertion


class OpenIDError(Exception):
    """Base class for all exceptions raised by `requests_openid`."""


class EmptyIdentity(OpenIDError, ValueError):
    """Raised when discovery is attempted without any identifier."""

    def __init__(self) -> None:
        super().__init__("No identity supplied.")


class DiscoveryError(OpenIDError):
    """Base class for errors raised when discovery cannot locate a provider.

    Args:
        identity: the identifier that was being discovered.

    """

    def __init__(self, message: str, identity: str) -> None:
        super().__init__(message)
        self.identity = identity


class EndlessRedirection(DiscoveryError):
    """Raised when discovery keeps being redirected past the maximum number of hops."""

    def __init__(self, identity: str, hops: int) -> None:
        super().__init__(f"Endless redirection while discovering '{identity}' (gave up after {hops} hops).", identity)
        self.hops = hops


class NoProviderFound(DiscoveryError):
    """Raised when neither Yadis nor HTML discovery return an OpenID provider endpoint."""

    def __init__(self, identity: str) -> None:
        super().__init__(f"No OpenID provider found for '{identity}'.", identity)


class TransportFailure(OpenIDError):
    """Raised when an HTTP request cannot be completed.

    The underlying `requests` exception is available as `__cause__`.

    Args:
        method: the HTTP method of the failed request
        url: the url of the failed request

    """

    def __init__(self, method: str, url: str, reason: str) -> None:
        super().__init__(f"{method} {url} failed: {reason}")
        self.method = method
        self.url = url
        self.reason = reason


class InvalidAuthenticationRequest(OpenIDError, ValueError):
    """Raised when a mandatory Authentication Request parameter is empty."""

    def __init__(self, param: str) -> None:
        super().__init__(f"Parameter '{param}' must not be empty.")
        self.param = param


class AssertionRejected(OpenIDError):
    """Raised when a callback assertion is rejected before asking the provider.

    [`AssertionVerifier.validate()`][requests_openid.assertion.AssertionVerifier.validate]
    turns those into a `False` return value.

    """

    def __init__(self, message: str, assertion: Assertion) -> None:
        super().__init__(message)
        self.assertion = assertion


class MalformedCallback(AssertionRejected):
    """Raised when a callback lacks the fields required for verification."""


class MissingSignedField(MalformedCallback):
    """Raised in strict mode, when a field listed in `openid.signed` is absent from the callback."""

    def __init__(self, field: str, assertion: Assertion) -> None:
        super().__init__(f"Signed field '{field}' is missing from the callback.", assertion)
        self.field = field
