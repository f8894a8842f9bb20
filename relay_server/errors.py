"""Errors raised along the relay path.

Each error carries the HTTP status the proxy endpoint answers with. The
message text becomes the plain-text response body.
"""


class RelayError(Exception):
    """Base class for failures that terminate a relay call."""

    status: int = 500


class DecodeError(RelayError):
    """Inbound body is not a valid relay request document."""

    status = 400


class ValidationError(RelayError):
    """Relay request is missing its method or URL."""

    status = 400


class RequestConstructionError(RelayError):
    """Outbound request could not be built from the given method and URL."""


class RelayExecutionError(RelayError):
    """Upstream could not be reached or did not answer."""


class BodyReadError(RelayError):
    """Upstream body could not be read to completion."""


class EncodingError(RelayError):
    """Relay summary could not be serialized."""
