"""`OpenIDConsumer` main module."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Mapping

from attrs import define, field, setters

from .assertion import Assertion, AssertionVerifier
from .authentication_request import AuthenticationRequest
from .discovery import DiscoveryResolver, Resolution
from .utils import normalize_identity, origin

if TYPE_CHECKING:
    from .enums import ProtocolVersion
    from .transport import Transport


def _forget_resolution(instance: OpenIDConsumer, attribute: Any, value: str | None) -> str | None:
    """Drop the cached discovery result when the identity changes."""
    if value != instance.identity:
        instance.resolution = None
    return value


@define(init=False)
class OpenIDConsumer:
    """An OpenID 1.1 and 2.0 relying party, in stateless ("dumb") mode.

    Signing in with OpenID is a two-step process. First, redirect the end-user to their provider:

    ```python
    from requests_openid import OpenIDConsumer

    consumer = OpenIDConsumer("https://rp.example/callback")
    consumer.identity = "alice.example"  # as supplied by the user
    redirect(consumer.auth_url())
    ```

    Then, once the provider sends the end-user back to the return url, verify the assertion:

    ```python
    consumer = OpenIDConsumer("https://rp.example/callback")
    if consumer.validate(request.args):
        print(f"Logged in as {consumer.identity}")
    ```

    The result of discovery is cached on the consumer, but never persisted: every verification
    rediscovers the provider endpoint for the claimed identity. A consumer must not be shared between
    concurrent end-user requests.

    Args:
        return_url: the url where the provider sends the end-user back after authentication.
        trust_root: the realm to present to the end-user. Defaults to the origin of `return_url`.
        realm: alias for `trust_root`.
        identity: the identifier supplied by the end-user. It is normalized with a default `http://`
            scheme.
        required: attributes that the provider must return, as sreg names or AX paths.
        optional: attributes that the provider may return.
        transport: the [Transport][requests_openid.transport.Transport] to use for HTTP requests.
        xrds_override: an optional `(pattern, xrds_url)` tuple, see
            [DiscoveryResolver][requests_openid.discovery.DiscoveryResolver].
        strict: if `True`, reject assertions where a signed field is missing.

    """

    return_url: str
    trust_root: str
    resolver: DiscoveryResolver
    identity: str | None = field(
        default=None,
        converter=normalize_identity,
        on_setattr=[setters.convert, _forget_resolution],
    )
    required: tuple[str, ...] = field(default=(), converter=tuple)
    optional: tuple[str, ...] = field(default=(), converter=tuple)
    strict: bool = False
    resolution: Resolution | None = None

    def __init__(
        self,
        return_url: str,
        trust_root: str | None = None,
        *,
        realm: str | None = None,
        identity: str | None = None,
        required: Iterable[str] = (),
        optional: Iterable[str] = (),
        transport: Transport | None = None,
        xrds_override: tuple[str, str] | None = None,
        strict: bool = False,
    ) -> None:
        trust_root = trust_root or realm or origin(return_url)
        self.__attrs_init__(
            return_url=return_url,
            trust_root=trust_root,
            resolver=DiscoveryResolver(transport, xrds_override=xrds_override),
            identity=identity,
            required=required,
            optional=optional,
            strict=strict,
        )

    @property
    def realm(self) -> str:
        """Alias for `trust_root`."""
        return self.trust_root

    @realm.setter
    def realm(self, value: str) -> None:
        self.trust_root = value

    @property
    def endpoint(self) -> str | None:
        """The discovered provider endpoint, if discovery already ran."""
        return self.resolution.endpoint if self.resolution else None

    @property
    def version(self) -> ProtocolVersion | None:
        """The protocol version of the discovered provider, if discovery already ran."""
        return self.resolution.version if self.resolution else None

    def discover(self, identity: str | None = None) -> str:
        """Run discovery and cache its result on this consumer.

        Args:
            identity: the identifier to discover. Defaults to `identity`.

        Returns:
            the provider endpoint url

        Raises:
            EmptyIdentity: if there is no identity to discover
            DiscoveryError: if no provider can be found
            TransportFailure: if any HTTP request fails

        """
        return self.resolve(identity).endpoint

    def resolve(self, identity: str | None = None) -> Resolution:
        """Run discovery, cache and return its complete result.

        Args:
            identity: the identifier to discover. Defaults to `identity`.

        """
        self.resolution = self.resolver.resolve(identity or self.identity)
        return self.resolution

    def authentication_request(
        self, *, identifier_select: bool = False, immediate: bool = False
    ) -> AuthenticationRequest:
        """Build the Authentication Request for the current identity.

        Discovery is triggered first, unless it already ran on this consumer.

        Args:
            identifier_select: for OpenID 2.0 providers, let the provider select the identity.
            immediate: use `checkid_immediate` mode instead of `checkid_setup`.

        """
        resolution = self.resolution or self.resolve()
        return AuthenticationRequest.from_resolution(
            resolution,
            return_to=self.return_url,
            trust_root=self.trust_root,
            required=self.required,
            optional=self.optional,
            identifier_select=identifier_select,
            immediate=immediate,
        )

    def auth_url(self, identifier_select: bool = False, *, immediate: bool = False) -> str:
        """Return the url where the end-user must be redirected to authenticate.

        Args:
            identifier_select: for OpenID 2.0 providers, let the provider select the identity.
                Has no effect on OpenID 1.1 providers.
            immediate: use `checkid_immediate` mode instead of `checkid_setup`.

        """
        return self.authentication_request(identifier_select=identifier_select, immediate=immediate).uri

    def validate(self, callback: Assertion | Mapping[str, Any] | str) -> bool:
        """Verify the assertion that a provider sent back to the return url.

        On success, `identity` is set to the verified claimed identity.

        Args:
            callback: the callback query parameters, or the full callback url.

        Returns:
            `True` if the provider confirmed the assertion, `False` otherwise.

        Raises:
            DiscoveryError: if the provider endpoint cannot be rediscovered.
            TransportFailure: if any HTTP request fails.

        """
        assertion = callback if isinstance(callback, Assertion) else Assertion(callback)
        is_valid = AssertionVerifier(self.resolver, strict=self.strict).validate(assertion)
        if is_valid:
            self.identity = assertion.claimed_identity
        return is_valid
