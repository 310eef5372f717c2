"""Contains enumerations of standardised OpenID-related parameters and values."""

from __future__ import annotations

from enum import Enum, IntEnum


class ProtocolVersion(IntEnum):
    """OpenID protocol versions supported by this library."""

    OPENID1 = 1
    OPENID2 = 2


class Namespaces(str, Enum):
    """Namespace and type URIs used in discovery documents and protocol messages."""

    OPENID2 = "http://specs.openid.net/auth/2.0"
    OPENID2_SERVER = "http://specs.openid.net/auth/2.0/server"
    OPENID2_SIGNON = "http://specs.openid.net/auth/2.0/signon"
    OPENID11 = "http://openid.net/signon/1.1"
    IDENTIFIER_SELECT = "http://specs.openid.net/auth/2.0/identifier_select"
    SREG = "http://openid.net/sreg/1.0"
    SREG11 = "http://openid.net/extensions/sreg/1.1"
    AX = "http://openid.net/srv/ax/1.0"


class Modes(str, Enum):
    """All standardised `openid.mode` values."""

    CHECKID_SETUP = "checkid_setup"
    CHECKID_IMMEDIATE = "checkid_immediate"
    CHECK_AUTHENTICATION = "check_authentication"
    ID_RES = "id_res"
    CANCEL = "cancel"
    SETUP_NEEDED = "setup_needed"
    ERROR = "error"


XRDS_CONTENT_TYPE = "application/xrds+xml"
XRDS_LOCATION_HEADER = "X-XRDS-Location"
