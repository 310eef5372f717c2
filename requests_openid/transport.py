"""The HTTP transport used for discovery and verification requests."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests
from attrs import field, frozen
from typing_extensions import Literal

from .exceptions import TransportFailure

logger = logging.getLogger(__name__)


@frozen
class TransportResponse:
    """The raw outcome of an HTTP request.

    Args:
        status: the HTTP status code of the final response, after redirects.
        header_lines: all header lines, as `"Name: value"`, from every response in the redirect chain,
            in order.
        body: the decoded body of the final response. Always empty for `HEAD` requests.

    """

    status: int
    header_lines: tuple[str, ...]
    body: str

    @classmethod
    def from_response(cls, response: requests.Response) -> TransportResponse:
        """Initialize a `TransportResponse` from a `requests.Response`."""
        header_lines = tuple(
            f"{name}: {value}" for resp in (*response.history, response) for name, value in resp.headers.items()
        )
        body = "" if response.request.method == "HEAD" else response.text
        return cls(status=response.status_code, header_lines=header_lines, body=body)


@frozen(init=False)
class Transport:
    """A thin wrapper around [requests.Session][] for the few requests an OpenID consumer sends.

    Redirects are always followed and HTTP error statuses are not raised: only transport-level failures
    (connection errors, timeouts, TLS errors...) raise a
    [TransportFailure][requests_openid.exceptions.TransportFailure].

    Example:
        ```python
        from requests_openid import Transport

        transport = Transport(timeout=10)
        # or with a preconfigured session
        session = requests.Session()
        session.proxies = {"https": "https://localhost:3128"}
        transport = Transport(session=session)
        ```

    Args:
        timeout: the timeout, in seconds, for each request. Can be set to `None` to disable timeout.
        verify: whether TLS certificates are verified, or a path to a CA bundle. Defaults to `None`,
            which uses the `verify` setting of the session (itself `True` unless configured otherwise).
        session: a preconfigured `requests.Session` to use.
        **session_kwargs: additional kwargs to configure the underlying `requests.Session`.

    """

    timeout: int | None = 60
    verify: bool | str | None = None
    session: requests.Session = field(factory=requests.Session)

    def __init__(
        self,
        *,
        timeout: int | None = 60,
        verify: bool | str | None = None,
        session: requests.Session | None = None,
        **session_kwargs: Any,
    ) -> None:
        session = session or requests.Session()
        for key, val in session_kwargs.items():
            setattr(session, key, val)

        self.__attrs_init__(timeout=timeout, verify=verify, session=session)

    def request(
        self,
        method: Literal["GET", "HEAD", "POST"],
        url: str,
        data: Mapping[str, str] | None = None,
    ) -> TransportResponse:
        """Send a request and return its raw outcome.

        Args:
            method: the HTTP method
            url: the target url
            data: form parameters. Sent in the body for `POST`, or in the query string otherwise.

        Returns:
            the status, header lines and body of the response

        Raises:
            TransportFailure: if the request could not be completed.

        """
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                params=data if method != "POST" else None,
                data=data if method == "POST" else None,
                timeout=self.timeout,
                verify=self.session.verify if self.verify is None else self.verify,
                allow_redirects=True,
            )
        except requests.RequestException as exc:
            logger.debug("%s %s failed: %s", method, url, exc)
            raise TransportFailure(method, url, str(exc)) from exc
        return TransportResponse.from_response(response)

    def head(self, url: str) -> TransportResponse:
        """Send a `HEAD` request."""
        return self.request("HEAD", url)

    def get(self, url: str) -> TransportResponse:
        """Send a `GET` request."""
        return self.request("GET", url)

    def post(self, url: str, data: Mapping[str, str]) -> TransportResponse:
        """Send a `POST` request with form parameters."""
        return self.request("POST", url, data)
