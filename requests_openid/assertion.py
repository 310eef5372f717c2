"""Classes related to provider assertions and their verification.

After authenticating the end-user, the provider redirects them back to the `return_to` url with a
signed assertion as query parameters. Since this library does not keep associations with providers,
assertions are verified by sending them back to the provider with `openid.mode=check_authentication`
(OpenID "dumb mode"), after rediscovering the provider endpoint for the claimed identity.

"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from attrs import frozen
from furl import Query, furl  # type: ignore[import-untyped]

from .discovery import DiscoveryResolver
from .enums import Modes, Namespaces
from .exceptions import AssertionRejected, MalformedCallback, MissingSignedField
from .extensions import signed_attributes
from .transport import Transport

logger = logging.getLogger(__name__)

IS_VALID_PATTERN = re.compile(r"is_valid\s*:\s*true", re.IGNORECASE)


@frozen(init=False)
class Assertion:
    """A read-only view on the callback parameters returned by a provider.

    Parameters can be passed either with their wire names (`openid.claimed_id`), or with the names
    that some web frameworks produce by replacing dots with underscores (`openid_claimed_id`). Fields
    are always accessed by their name without the `openid.` prefix.

    Example:
        ```python
        assertion = Assertion(request.args)
        assertion.mode  # "id_res"
        assertion.get("response_nonce")
        ```

    Args:
        params: the callback parameters, as a mapping, or as the full callback url or query string.

    """

    params: dict[str, str]

    def __init__(self, params: Mapping[str, Any] | str) -> None:
        if isinstance(params, str):
            query = furl(params).args if "?" in params else Query(params).params
            params = {key: query[key] for key in query}

        normalized = {}
        for key, val in params.items():
            value = (val[0] if val else "") if isinstance(val, (list, tuple)) else val
            normalized[key] = "" if value is None else str(value)
        self.__attrs_init__(params=normalized)

    def get(self, field: str, default: str | None = None) -> str | None:
        """Return the value of a callback field.

        Args:
            field: the field name, without the `openid.` prefix, like `claimed_id` or `sreg.email`.
            default: the value to return if the field is absent.

        """
        for key in (f"openid.{field}", f"openid_{field.replace('.', '_')}"):
            if key in self.params:
                return self.params[key]
        return default

    @property
    def mode(self) -> str | None:
        """The `openid.mode`."""
        return self.get("mode")

    @property
    def identity(self) -> str | None:
        """The `openid.identity`."""
        return self.get("identity")

    @property
    def claimed_id(self) -> str | None:
        """The `openid.claimed_id`. Only OpenID 2.0 providers return it."""
        return self.get("claimed_id")

    @property
    def claimed_identity(self) -> str | None:
        """The identity claimed by this assertion: `claimed_id` if present, else `identity`."""
        return self.claimed_id or self.identity

    @property
    def assoc_handle(self) -> str:
        """The `openid.assoc_handle`, or an empty string."""
        return self.get("assoc_handle") or ""

    @property
    def sig(self) -> str:
        """The `openid.sig`, or an empty string."""
        return self.get("sig") or ""

    @property
    def signed_list(self) -> str:
        """The raw, comma-separated `openid.signed` list, or an empty string."""
        return self.get("signed") or ""

    @property
    def signed(self) -> tuple[str, ...]:
        """The names of the signed fields."""
        return tuple(item for item in self.signed_list.split(",") if item)

    @property
    def op_endpoint(self) -> str | None:
        """The `openid.op_endpoint`. Only OpenID 2.0 providers return it."""
        return self.get("op_endpoint")

    @property
    def is_openid2(self) -> bool:
        """`True` if this assertion comes from an OpenID 2.0 provider."""
        return self.op_endpoint is not None

    def attributes(self) -> dict[str, str]:
        """Return the signed sreg and AX attributes from this assertion."""
        return signed_attributes(self)


@frozen(init=False)
class AssertionVerifier:
    """Verify assertions with a direct `check_authentication` request to the provider.

    The provider endpoint is never taken from the assertion itself: it is rediscovered from the
    claimed identity, so that an assertion cannot point to a rogue provider that would vouch for any
    identity.

    Args:
        resolver: the `DiscoveryResolver` to use to rediscover the provider endpoint.
        transport: the transport to use, if `resolver` is not provided.
        strict: if `True`, reject assertions where a field listed in `openid.signed` is missing.
            Otherwise, missing signed fields are sent to the provider with an empty value.

    """

    resolver: DiscoveryResolver
    strict: bool = False

    def __init__(
        self,
        resolver: DiscoveryResolver | None = None,
        *,
        transport: Transport | None = None,
        strict: bool = False,
    ) -> None:
        self.__attrs_init__(resolver=resolver or DiscoveryResolver(transport), strict=strict)

    @property
    def transport(self) -> Transport:
        """The transport used for discovery and verification."""
        return self.resolver.transport

    def check_authentication_params(self, assertion: Assertion) -> dict[str, str]:
        """Build the parameters of the `check_authentication` request for an assertion.

        Raises:
            MissingSignedField: in strict mode, if a signed field is missing from the assertion.

        """
        params = {
            "openid.assoc_handle": assertion.assoc_handle,
            "openid.signed": assertion.signed_list,
            "openid.sig": assertion.sig,
        }
        if assertion.is_openid2:
            params["openid.ns"] = Namespaces.OPENID2.value

        for item in assertion.signed:
            value = assertion.get(item)
            if value is None:
                if self.strict:
                    raise MissingSignedField(item, assertion)
                logger.debug("Signed field '%s' is missing, sending it empty", item)
                value = ""
            params[f"openid.{item}"] = value

        params["openid.mode"] = Modes.CHECK_AUTHENTICATION.value
        return params

    def check_authentication(self, assertion: Assertion) -> bool:
        """Ask the provider to confirm an assertion.

        Returns:
            `True` if the provider confirms the assertion, `False` otherwise.

        Raises:
            AssertionRejected: if the assertion is not a positive assertion.
            MalformedCallback: if the assertion does not contain any identity.
            DiscoveryError: if the provider endpoint cannot be rediscovered.
            TransportFailure: if any HTTP request fails.

        """
        if assertion.mode is None:
            raise MalformedCallback("The callback contains no 'openid.mode'.", assertion)
        if assertion.mode != Modes.ID_RES.value:
            raise AssertionRejected(f"Not a positive assertion (mode '{assertion.mode}').", assertion)
        claimed_identity = assertion.claimed_identity
        if not claimed_identity:
            raise MalformedCallback("The callback contains no identity.", assertion)

        params = self.check_authentication_params(assertion)

        resolution = self.resolver.resolve(claimed_identity)
        if assertion.op_endpoint and assertion.op_endpoint != resolution.endpoint:
            logger.debug(
                "Assertion op_endpoint '%s' differs from discovered '%s'", assertion.op_endpoint, resolution.endpoint
            )

        response = self.transport.post(resolution.endpoint, params)
        is_valid = IS_VALID_PATTERN.search(response.body) is not None
        logger.info(
            "Provider %s %s the assertion for '%s'",
            resolution.endpoint,
            "confirmed" if is_valid else "rejected",
            claimed_identity,
        )
        return is_valid

    def validate(self, callback: Assertion | Mapping[str, Any] | str) -> bool:
        """Verify the callback parameters returned by a provider.

        Args:
            callback: the callback parameters, the full callback url, or an `Assertion`.

        Returns:
            `True` if the provider confirms the assertion, `False` if it is rejected, either by the
            provider or because it is not a well-formed positive assertion.

        Raises:
            DiscoveryError: if the provider endpoint cannot be rediscovered.
            TransportFailure: if any HTTP request fails.

        """
        assertion = callback if isinstance(callback, Assertion) else Assertion(callback)
        try:
            return self.check_authentication(assertion)
        except AssertionRejected as exc:
            logger.warning("Assertion rejected: %s", exc)
            return False
