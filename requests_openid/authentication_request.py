"""Classes and utilities related to OpenID Authentication Requests."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable
from urllib.parse import urlencode

from attrs import field, frozen
from furl import furl  # type: ignore[import-untyped]

from .enums import Modes, Namespaces, ProtocolVersion
from .exceptions import InvalidAuthenticationRequest
from .extensions import ax_fetch_request, sreg_request
from .utils import compose_url, origin

if TYPE_CHECKING:
    from .discovery import Resolution


@frozen(init=False, repr=False)
class AuthenticationRequest:
    """Represent an OpenID Authentication Request.

    This builds the url of the provider endpoint where the end-user must be redirected to, with all the
    parameters that the protocol version spoken by that endpoint expects.

    - For OpenID 1.1: `openid.return_to`, `openid.mode`, `openid.identity`, `openid.trust_root`, and
      `openid.sreg.required` / `openid.sreg.optional` if some attributes are requested.
    - For OpenID 2.0: `openid.ns`, `openid.mode`, `openid.return_to`, `openid.realm`,
      `openid.identity`, `openid.claimed_id`, and an Attribute Exchange fetch request if some
      attributes are requested.

    Example:
        ```python
        from requests_openid import AuthenticationRequest

        request = AuthenticationRequest(
            "https://op.example/auth",
            version=2,
            identity="https://alice.example/",
            return_to="https://rp.example/callback",
        )
        print(request.uri)
        ```

    Args:
        endpoint: the provider endpoint url, as returned by discovery
        version: the protocol version of that endpoint
        identity: the identity to authenticate
        return_to: the url where the provider must send the end-user back
        trust_root: the realm (or trust root) to present to the end-user. Defaults to the origin of
            `return_to`.
        required: the attributes that the provider must return, as sreg names or AX paths
        optional: the attributes that the provider may return
        identifier_select: for OpenID 2.0, let the provider select the identity. Has no effect for
            OpenID 1.1.
        immediate: if `True`, use `checkid_immediate` mode instead of `checkid_setup`.

    Raises:
        InvalidAuthenticationRequest: if a mandatory parameter is empty.

    """

    endpoint: str
    version: ProtocolVersion = field(converter=ProtocolVersion)
    identity: str | None
    return_to: str
    trust_root: str
    required: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    identifier_select: bool = False
    immediate: bool = False

    def __init__(
        self,
        endpoint: str,
        *,
        version: int,
        identity: str | None,
        return_to: str,
        trust_root: str | None = None,
        required: Iterable[str] = (),
        optional: Iterable[str] = (),
        identifier_select: bool = False,
        immediate: bool = False,
    ) -> None:
        if not endpoint:
            raise InvalidAuthenticationRequest("endpoint")
        if not return_to:
            raise InvalidAuthenticationRequest("return_to")
        if trust_root is None:
            trust_root = origin(return_to)
        if not trust_root:
            raise InvalidAuthenticationRequest("trust_root")
        if not identity and not (identifier_select and version == ProtocolVersion.OPENID2):
            raise InvalidAuthenticationRequest("identity")

        self.__attrs_init__(
            endpoint=endpoint,
            version=version,
            identity=identity,
            return_to=return_to,
            trust_root=trust_root,
            required=tuple(required),
            optional=tuple(optional),
            identifier_select=identifier_select,
            immediate=immediate,
        )

    @classmethod
    def from_resolution(cls, resolution: Resolution, **kwargs: Any) -> AuthenticationRequest:
        """Initialize an `AuthenticationRequest` for the endpoint, version and identity from a discovery.

        Args:
            resolution: the result of discovery
            **kwargs: other parameters for `AuthenticationRequest`

        """
        return cls(resolution.endpoint, version=resolution.version, identity=resolution.identity, **kwargs)

    @property
    def realm(self) -> str:
        """Alias for `trust_root`."""
        return self.trust_root

    @property
    def mode(self) -> str:
        """The `openid.mode` for this request."""
        return Modes.CHECKID_IMMEDIATE.value if self.immediate else Modes.CHECKID_SETUP.value

    @property
    def args(self) -> dict[str, str]:
        """Return a dict with all the query parameters from this Authentication Request."""
        if self.version == ProtocolVersion.OPENID1:
            return self._args_v1()
        return self._args_v2()

    def _args_v1(self) -> dict[str, str]:
        params = {
            "openid.return_to": self.return_to,
            "openid.mode": self.mode,
            "openid.identity": self.identity or "",
            "openid.trust_root": self.trust_root,
        }
        params.update(sreg_request(self.required, self.optional))
        return params

    def _args_v2(self) -> dict[str, str]:
        params = {
            "openid.ns": Namespaces.OPENID2.value,
            "openid.mode": self.mode,
            "openid.return_to": self.return_to,
            "openid.realm": self.trust_root,
        }
        if self.identifier_select:
            params["openid.identity"] = params["openid.claimed_id"] = Namespaces.IDENTIFIER_SELECT.value
        else:
            params["openid.identity"] = params["openid.claimed_id"] = self.identity or ""
        params.update(ax_fetch_request(self.required, self.optional))
        return params

    @property
    def uri(self) -> str:
        """Return the Authentication Request URI, as a `str`.

        The parameters are appended to any query string that the endpoint url already contains.

        """
        return compose_url(self.endpoint, {"query": urlencode(self.args)})

    @property
    def furl(self) -> furl:
        """Return the Authentication Request URI, as a `furl`."""
        return furl(self.uri)

    def __repr__(self) -> str:
        """Return the Authentication Request URI, as a `str`."""
        return self.uri
