"""Implements OpenID discovery, with Yadis and HTML-based discovery.

Discovery resolves a user-supplied identifier to the OpenID provider endpoint that must be used for
that identifier, the protocol version this endpoint speaks, and possibly a delegated identity (an
`openid2.local_id` or `openid.delegate`) to use instead of the supplied identifier.

See [Yadis 1.0](https://openid.net/specs/yadis-v1.0.pdf) and [OpenID Authentication 2.0, section
7.3](https://openid.net/specs/openid-authentication-2_0.html#discovery).

"""

from __future__ import annotations

import logging
import re

from attrs import field, frozen

from .enums import XRDS_CONTENT_TYPE, XRDS_LOCATION_HEADER, Namespaces, ProtocolVersion
from .exceptions import EmptyIdentity, EndlessRedirection, NoProviderFound
from .markup import html_tag, xrds_element, xrds_service
from .transport import Transport
from .utils import compose_url, normalize_identity

logger = logging.getLogger(__name__)

MAX_HOPS = 5
"""Maximum number of documents that discovery goes through before giving up."""


@frozen
class Resolution:
    """The outcome of a successful discovery.

    Args:
        endpoint: the OpenID provider endpoint url
        version: the OpenID protocol version supported by that endpoint
        identity: the identity to assert. This is the delegated identity if discovery found one,
            otherwise the discovered identifier.

    """

    endpoint: str
    version: ProtocolVersion = field(converter=ProtocolVersion)
    identity: str


@frozen(init=False)
class DiscoveryResolver:
    """Resolve identifiers to OpenID provider endpoints.

    Yadis discovery is attempted first: a `HEAD` request is sent to the identifier, and an
    `X-XRDS-Location` header, an `application/xrds+xml` content type, or an `X-XRDS-Location` meta tag
    in the document body lead to an XRDS document that lists the provider endpoint. OpenID 2.0
    services from that document are preferred over OpenID 1.1 services. If the XRDS document does not
    contain any OpenID service, discovery starts over from the original identifier with HTML
    discovery, looking for `<link rel="openid2.provider">` and `<link rel="openid.server">` tags.

    At most `max_hops` documents are visited, to avoid endless redirections.

    Args:
        transport: the [Transport][requests_openid.transport.Transport] to use for HTTP requests.
        xrds_override: an optional `(pattern, xrds_url)` tuple. When an identifier matches the
            `pattern` regular expression, Yadis discovery starts from `xrds_url` instead of the
            identifier itself. This is required by some providers, like Google Apps domains.
        max_hops: the maximum number of hops.

    """

    transport: Transport = field(factory=Transport)
    xrds_override: tuple[str, str] | None = None
    max_hops: int = MAX_HOPS

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        xrds_override: tuple[str, str] | None = None,
        max_hops: int = MAX_HOPS,
    ) -> None:
        self.__attrs_init__(transport=transport or Transport(), xrds_override=xrds_override, max_hops=max_hops)

    def starting_url(self, identity: str) -> str:
        """Return the url where discovery starts for an `identity`, taking `xrds_override` into account."""
        if self.xrds_override:
            pattern, xrds_url = self.xrds_override
            if re.match(pattern, identity):
                logger.debug("Using XRDS override '%s' for '%s'", xrds_url, identity)
                return xrds_url
        return identity

    def resolve(self, identity: str | None) -> Resolution:  # noqa: C901
        """Discover the OpenID provider for an identifier.

        Args:
            identity: the user-supplied identifier. It is normalized first.

        Returns:
            the discovered endpoint, protocol version and identity

        Raises:
            EmptyIdentity: if `identity` is empty
            EndlessRedirection: if no provider is found after `max_hops` hops
            NoProviderFound: if discovery completes without finding a provider
            TransportFailure: if any HTTP request fails

        """
        identity = normalize_identity(identity)
        if not identity:
            raise EmptyIdentity

        # Discovery starts over from this url if the XRDS document has no OpenID services
        original_url = url = self.starting_url(identity)
        yadis = True
        content: str | None = None

        for hop in range(self.max_hops):
            if yadis:
                logger.debug("Yadis discovery, hop %d: %s", hop + 1, url)
                head = self.transport.head(url)

                next_hop = False
                for line in head.header_lines:
                    name, _, value = line.partition(":")
                    name, value = name.strip().lower(), value.strip()
                    if name == XRDS_LOCATION_HEADER.lower() and value:
                        url = compose_url(url, value)
                        next_hop = True

                    if name == "content-type" and value.lower().startswith(XRDS_CONTENT_TYPE):
                        content = self.transport.get(url).body
                        resolution = self.parse_xrds(content, identity)
                        if resolution is not None:
                            logger.info("Discovered %s via XRDS document %s", resolution, url)
                            return resolution

                        logger.debug("No OpenID service in XRDS document %s, falling back to HTML", url)
                        next_hop = True
                        yadis = False
                        url = original_url
                        content = None
                        break

                if next_hop:
                    continue

                content = self.transport.get(url).body
                location = html_tag(content, "meta", "http-equiv", XRDS_LOCATION_HEADER, "content") or html_tag(
                    content, "meta", "http-equiv", XRDS_LOCATION_HEADER, "value"
                )
                if location:
                    url = compose_url(url, location)
                    continue

            if content is None:
                content = self.transport.get(url).body

            resolution = self.parse_html(content, identity)
            if resolution is not None:
                logger.info("Discovered %s via HTML document %s", resolution, url)
                return resolution

            raise NoProviderFound(identity)

        raise EndlessRedirection(identity, self.max_hops)

    @staticmethod
    def parse_xrds(content: str, identity: str) -> Resolution | None:
        """Look for an OpenID service in an XRDS document.

        Args:
            content: the XRDS document
            identity: the identity being discovered, returned when the service has no delegate

        Returns:
            a `Resolution`, or `None` if the document contains no OpenID service.

        Raises:
            NoProviderFound: if an OpenID service is present but has no `<URI>`.

        """
        service = xrds_service(content, Namespaces.OPENID2.value)
        version, delegate_tag = ProtocolVersion.OPENID2, "LocalID"
        if service is None:
            service = xrds_service(content, Namespaces.OPENID11.value, exact=True)
            version, delegate_tag = ProtocolVersion.OPENID1, r"\w*Delegate"
        if service is None:
            return None

        endpoint = xrds_element(service, "URI")
        if not endpoint:
            raise NoProviderFound(identity)
        delegate = xrds_element(service, delegate_tag)
        return Resolution(endpoint=endpoint, version=version, identity=delegate or identity)

    @staticmethod
    def parse_html(content: str, identity: str) -> Resolution | None:
        """Look for OpenID `<link>` tags in an HTML document.

        OpenID 2.0 tags (`openid2.provider` and `openid2.local_id`) are preferred over OpenID 1.1 tags
        (`openid.server` and `openid.delegate`).

        Returns:
            a `Resolution`, or `None` if the document contains no provider link.

        """
        endpoint = html_tag(content, "link", "rel", "openid2.provider", "href")
        delegate = html_tag(content, "link", "rel", "openid2.local_id", "href")
        version = ProtocolVersion.OPENID2

        if not endpoint:
            endpoint = html_tag(content, "link", "rel", "openid.server", "href")
            delegate = html_tag(content, "link", "rel", "openid.delegate", "href")
            version = ProtocolVersion.OPENID1

        if not endpoint:
            return None
        return Resolution(endpoint=endpoint, version=version, identity=delegate or identity)


def discover(identity: str, transport: Transport | None = None) -> Resolution:
    """Discover the OpenID provider for `identity`, with a default `DiscoveryResolver`.

    Args:
        identity: the user-supplied identifier
        transport: the transport to use. A default one is used if not provided.

    Returns:
        the discovered endpoint, protocol version and identity

    """
    return DiscoveryResolver(transport).resolve(identity)
