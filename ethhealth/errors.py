"""
Error taxonomy for the node health check.

- TransportError: the endpoint could not be reached or did not answer in time.
  Retried up to the configured limit.
- ProtocolError: the endpoint answered but rejected the call (JSON-RPC error
  envelope) or answered with something that is not a JSON-RPC envelope.
- FormatError: the JSON-RPC result did not have the expected shape.
"""

from typing import Optional


class HealthCheckError(Exception):
    """Base class for every failure raised while probing a node."""

    def __init__(self, message: str, attempts: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.attempts = attempts


class TransportError(HealthCheckError):
    """Connection refused, timeout, DNS failure or HTTP error status."""


class ProtocolError(HealthCheckError):
    """JSON-RPC error envelope, malformed response body or unserializable request."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        attempts: Optional[int] = None
    ):
        super().__init__(message, attempts=attempts)
        self.code = code


class FormatError(HealthCheckError):
    """A decoded value did not match the type the probe expected."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        if field_name:
            message = f"{field_name}: {message}"
        super().__init__(message)
        self.field_name = field_name
