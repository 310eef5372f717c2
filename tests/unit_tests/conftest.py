from __future__ import annotations

from typing import TYPE_CHECKING, Callable

import pytest
from requests_mock import Mocker

from requests_openid import AssertionVerifier, DiscoveryResolver, OpenIDConsumer, Transport

if TYPE_CHECKING:

    class RequestsMocker(Mocker):
        def reset_mock(self) -> None: ...

else:
    RequestsMocker = Mocker

XrdsFactory = Callable[..., str]


@pytest.fixture(scope="session")
def identity() -> str:
    return "http://alice.example/"


@pytest.fixture(scope="session")
def op_endpoint() -> str:
    return "https://op.example/openid"


@pytest.fixture(scope="session")
def return_url() -> str:
    return "https://rp.example/callback"


@pytest.fixture(scope="session")
def trust_root() -> str:
    return "https://rp.example"


@pytest.fixture(scope="session")
def xrds_url() -> str:
    return "http://alice.example/xrds"


@pytest.fixture
def transport() -> Transport:
    return Transport(timeout=5)


@pytest.fixture
def resolver(transport: Transport) -> DiscoveryResolver:
    return DiscoveryResolver(transport)


@pytest.fixture
def verifier(resolver: DiscoveryResolver) -> AssertionVerifier:
    return AssertionVerifier(resolver)


@pytest.fixture
def consumer(return_url: str, transport: Transport) -> OpenIDConsumer:
    return OpenIDConsumer(return_url, transport=transport)


@pytest.fixture(scope="session")
def xrds() -> XrdsFactory:
    def factory(*service_types: str, uri: str | None = None, extra: str = "") -> str:
        types = "".join(f"<Type>{service_type}</Type>" for service_type in service_types)
        uri_element = f"<URI>{uri}</URI>" if uri else ""
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<xrds:XRDS xmlns:xrds="xri://$xrds" xmlns="xri://$xrd*($v*2.0)" xmlns:openid="http://openid.net/xmlns/1.0">
  <XRD>
    <Service priority="0">
      {types}
      {uri_element}
      {extra}
    </Service>
  </XRD>
</xrds:XRDS>
"""

    return factory


@pytest.fixture(scope="session")
def html_page() -> Callable[[str], str]:
    def factory(head: str) -> str:
        return f"""<!DOCTYPE html>
<html>
  <head>
    <title>Alice</title>
    {head}
  </head>
  <body>Hello</body>
</html>
"""

    return factory


@pytest.fixture
def openid2_html(
    requests_mock: RequestsMocker, identity: str, op_endpoint: str, html_page: Callable[[str], str]
) -> None:
    """Make `identity` an HTML page with an OpenID 2.0 provider link."""
    requests_mock.head(identity, headers={"Content-Type": "text/html"})
    requests_mock.get(identity, text=html_page(f'<link rel="openid2.provider" href="{op_endpoint}">'))
