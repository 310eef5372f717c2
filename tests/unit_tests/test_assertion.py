from __future__ import annotations

from typing import Callable
from urllib.parse import parse_qs

import pytest
import requests

from requests_openid import (
    Assertion,
    AssertionRejected,
    AssertionVerifier,
    DiscoveryResolver,
    MalformedCallback,
    MissingSignedField,
    NoProviderFound,
    Transport,
    TransportFailure,
)
from tests.unit_tests.conftest import RequestsMocker

VALID = "ns:http://specs.openid.net/auth/2.0\nis_valid:true\n"
INVALID = "ns:http://specs.openid.net/auth/2.0\nis_valid:false\n"


@pytest.fixture
def callback(identity: str, op_endpoint: str) -> dict[str, str]:
    return {
        "openid.ns": "http://specs.openid.net/auth/2.0",
        "openid.mode": "id_res",
        "openid.op_endpoint": op_endpoint,
        "openid.claimed_id": identity,
        "openid.identity": identity,
        "openid.return_to": "https://rp.example/callback",
        "openid.response_nonce": "2024-01-01T00:00:00ZUNIQUE",
        "openid.assoc_handle": "handle",
        "openid.signed": "op_endpoint,claimed_id,identity,return_to,response_nonce,assoc_handle",
        "openid.sig": "c2lnbmF0dXJl",
    }


def sent_params(requests_mock: RequestsMocker) -> dict[str, str]:
    assert requests_mock.last_request is not None
    assert requests_mock.last_request.method == "POST"
    return {key: values[0] for key, values in parse_qs(requests_mock.last_request.text, keep_blank_values=True).items()}


def test_assertion_fields(callback: dict[str, str], identity: str, op_endpoint: str) -> None:
    assertion = Assertion(callback)
    assert assertion.mode == "id_res"
    assert assertion.claimed_identity == identity
    assert assertion.op_endpoint == op_endpoint
    assert assertion.is_openid2
    assert assertion.signed == ("op_endpoint", "claimed_id", "identity", "return_to", "response_nonce", "assoc_handle")
    assert assertion.get("response_nonce") == "2024-01-01T00:00:00ZUNIQUE"
    assert assertion.get("sreg.email") is None
    assert assertion.get("sreg.email", "") == ""


def test_assertion_underscore_names(identity: str) -> None:
    assertion = Assertion(
        {
            "openid_mode": "id_res",
            "openid_identity": identity,
            "openid_sreg_email": "alice@example.com",
            "openid_signed": "identity,sreg.email",
        }
    )
    assert assertion.mode == "id_res"
    assert assertion.identity == identity
    assert assertion.claimed_id is None
    assert assertion.claimed_identity == identity
    assert assertion.get("sreg.email") == "alice@example.com"
    assert not assertion.is_openid2


def test_assertion_from_url() -> None:
    assertion = Assertion(
        "https://rp.example/callback?openid.mode=id_res&openid.identity=http%3A%2F%2Falice.example%2F&openid.signed="
    )
    assert assertion.mode == "id_res"
    assert assertion.identity == "http://alice.example/"
    assert assertion.signed == ()

    assert Assertion("openid.mode=cancel").mode == "cancel"


def test_assertion_list_values() -> None:
    assertion = Assertion({"openid.mode": ["id_res", "cancel"], "openid.sig": [], "openid.assoc_handle": None})
    assert assertion.mode == "id_res"
    assert assertion.sig == ""
    assert assertion.assoc_handle == ""


def test_validate(
    requests_mock: RequestsMocker,
    openid2_html: None,
    verifier: AssertionVerifier,
    callback: dict[str, str],
    op_endpoint: str,
) -> None:
    requests_mock.post(op_endpoint, text=VALID)
    assert verifier.validate(callback) is True

    params = sent_params(requests_mock)
    assert params == {
        **callback,
        "openid.mode": "check_authentication",
    }
    assert requests_mock.last_request is not None
    assert requests_mock.last_request.url == op_endpoint

    # a validation has no side effect, so it can be repeated
    assert verifier.validate(callback) is True


def test_validate_rejected_by_provider(
    requests_mock: RequestsMocker,
    openid2_html: None,
    verifier: AssertionVerifier,
    callback: dict[str, str],
    op_endpoint: str,
) -> None:
    requests_mock.post(op_endpoint, text=INVALID)
    assert verifier.validate(callback) is False

    requests_mock.post(op_endpoint, text="")
    assert verifier.validate(callback) is False


def test_validate_is_valid_format(
    requests_mock: RequestsMocker,
    openid2_html: None,
    verifier: AssertionVerifier,
    callback: dict[str, str],
    op_endpoint: str,
) -> None:
    requests_mock.post(op_endpoint, text="IS_VALID : TRUE")
    assert verifier.validate(callback) is True


def test_validate_openid1(
    requests_mock: RequestsMocker,
    verifier: AssertionVerifier,
    identity: str,
    html_page: Callable[[str], str],
) -> None:
    requests_mock.head(identity, headers={"Content-Type": "text/html"})
    requests_mock.get(identity, text=html_page('<link rel="openid.server" href="http://op.example/server">'))
    requests_mock.post("http://op.example/server", text="is_valid:true")

    callback = {
        "openid_mode": "id_res",
        "openid_identity": identity,
        "openid_return_to": "https://rp.example/callback",
        "openid_assoc_handle": "handle",
        "openid_signed": "mode,identity,return_to",
        "openid_sig": "c2lnbmF0dXJl",
    }
    assert verifier.validate(callback) is True
    assert sent_params(requests_mock) == {
        "openid.assoc_handle": "handle",
        "openid.signed": "mode,identity,return_to",
        "openid.sig": "c2lnbmF0dXJl",
        "openid.identity": identity,
        "openid.return_to": "https://rp.example/callback",
        "openid.mode": "check_authentication",
    }


def test_validate_delegated_identity(
    requests_mock: RequestsMocker,
    verifier: AssertionVerifier,
    identity: str,
    op_endpoint: str,
    html_page: Callable[[str], str],
) -> None:
    local_id = "https://alice.op.example/"
    requests_mock.head(identity, headers={"Content-Type": "text/html"})
    requests_mock.get(
        identity,
        text=html_page(
            f'<link rel="openid2.provider" href="{op_endpoint}">'
            f'<link rel="openid2.local_id" href="{local_id}">'
        ),
    )
    requests_mock.post(op_endpoint, text=VALID)

    callback = {
        "openid.ns": "http://specs.openid.net/auth/2.0",
        "openid.mode": "id_res",
        "openid.op_endpoint": op_endpoint,
        "openid.claimed_id": identity,
        "openid.identity": local_id,
        "openid.assoc_handle": "handle",
        "openid.signed": "op_endpoint,claimed_id,identity",
        "openid.sig": "c2lnbmF0dXJl",
    }
    assertion = Assertion(callback)
    assert assertion.claimed_identity == identity

    assert verifier.validate(assertion) is True
    assert [(request.method, request.url) for request in requests_mock.request_history] == [
        ("HEAD", identity),
        ("GET", identity),
        ("POST", op_endpoint),
    ]
    assert sent_params(requests_mock)["openid.identity"] == local_id


def test_validate_uses_discovered_endpoint(
    requests_mock: RequestsMocker,
    openid2_html: None,
    verifier: AssertionVerifier,
    callback: dict[str, str],
    op_endpoint: str,
) -> None:
    callback["openid.op_endpoint"] = "https://rogue.example/openid"
    requests_mock.post(op_endpoint, text=VALID)
    rogue = requests_mock.post("https://rogue.example/openid", text=VALID)

    assert verifier.validate(callback) is True
    assert not rogue.called
    assert sent_params(requests_mock)["openid.op_endpoint"] == "https://rogue.example/openid"


def test_missing_signed_field(
    requests_mock: RequestsMocker,
    openid2_html: None,
    verifier: AssertionVerifier,
    callback: dict[str, str],
    op_endpoint: str,
) -> None:
    callback["openid.signed"] += ",sreg.email"
    requests_mock.post(op_endpoint, text=INVALID)

    assert verifier.validate(callback) is False
    params = sent_params(requests_mock)
    assert params["openid.sreg.email"] == ""
    assert params["openid.signed"].endswith(",sreg.email")


def test_missing_signed_field_strict(
    requests_mock: RequestsMocker,
    resolver: DiscoveryResolver,
    callback: dict[str, str],
) -> None:
    callback["openid.signed"] += ",sreg.email"
    verifier = AssertionVerifier(resolver, strict=True)

    with pytest.raises(MissingSignedField) as exc:
        verifier.check_authentication(Assertion(callback))
    assert exc.value.field == "sreg.email"
    assert verifier.validate(callback) is False
    assert requests_mock.call_count == 0


@pytest.mark.parametrize("mode", ["cancel", "setup_needed", "error", "checkid_setup"])
def test_negative_assertion(
    requests_mock: RequestsMocker, verifier: AssertionVerifier, callback: dict[str, str], mode: str
) -> None:
    callback["openid.mode"] = mode
    with pytest.raises(AssertionRejected, match=mode):
        verifier.check_authentication(Assertion(callback))
    assert verifier.validate(callback) is False
    assert requests_mock.call_count == 0


def test_malformed_callback(requests_mock: RequestsMocker, verifier: AssertionVerifier, identity: str) -> None:
    with pytest.raises(MalformedCallback, match="openid.mode"):
        verifier.check_authentication(Assertion({"openid.identity": identity}))
    with pytest.raises(MalformedCallback, match="identity"):
        verifier.check_authentication(Assertion({"openid.mode": "id_res"}))

    assert verifier.validate({}) is False
    assert verifier.validate({"openid.mode": "id_res", "openid.claimed_id": ""}) is False
    assert requests_mock.call_count == 0


def test_discovery_failure_propagates(
    requests_mock: RequestsMocker,
    verifier: AssertionVerifier,
    callback: dict[str, str],
    identity: str,
) -> None:
    requests_mock.head(identity, headers={"Content-Type": "text/html"})
    requests_mock.get(identity, text="<html></html>")
    with pytest.raises(NoProviderFound):
        verifier.validate(callback)


def test_transport_failure_propagates(
    requests_mock: RequestsMocker,
    openid2_html: None,
    verifier: AssertionVerifier,
    callback: dict[str, str],
    op_endpoint: str,
) -> None:
    requests_mock.post(op_endpoint, exc=requests.ConnectTimeout("timed out"))
    with pytest.raises(TransportFailure) as exc:
        verifier.validate(callback)
    assert exc.value.method == "POST"
    assert exc.value.url == op_endpoint


def test_verifier_defaults() -> None:
    transport = Transport(timeout=10)
    verifier = AssertionVerifier(transport=transport)
    assert verifier.transport is transport
    assert verifier.resolver.transport is transport
    assert verifier.strict is False

    assert isinstance(AssertionVerifier().transport, Transport)


def test_sreg_attributes(identity: str) -> None:
    assertion = Assertion(
        {
            "openid.mode": "id_res",
            "openid.identity": identity,
            "openid.sreg.email": "alice@example.com",
            "openid.sreg.nickname": "alice",
            "openid.sreg.fullname": "Mallory",
            "openid.signed": "identity,sreg.email,sreg.nickname",
        }
    )
    assert assertion.attributes() == {"email": "alice@example.com", "nickname": "alice"}


def test_ax_attributes(callback: dict[str, str]) -> None:
    callback.update(
        {
            "openid.ns.ext1": "http://openid.net/srv/ax/1.0",
            "openid.ext1.mode": "fetch_response",
            "openid.ext1.type.email": "http://axschema.org/contact/email",
            "openid.ext1.value.email": "alice@example.com",
            "openid.ext1.type.first": "http://axschema.org/namePerson/first",
            "openid.ext1.value.first": "Alice",
            "openid.ext1.type.country": "http://axschema.org/contact/country/home",
            "openid.ext1.value.country": "FR",
        }
    )
    callback["openid.signed"] += ",ns.ext1,ext1.mode,ext1.type.email,ext1.value.email,ext1.type.first,ext1.value.first"

    assert Assertion(callback).attributes() == {"email": "alice@example.com", "namePerson/first": "Alice"}


def test_no_attributes(callback: dict[str, str]) -> None:
    assert Assertion(callback).attributes() == {}
