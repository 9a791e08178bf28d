"""
Error taxonomy for the validated fetch pipeline.

Every failure that reaches a caller is one of the ``WsdotApiError``
subclasses below. Library exceptions (requests, pydantic) and the internal
``SchemaValidationError`` / ``TemplateError`` are re-wrapped at the pipeline
boundary in ``wsdottie.http_client``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence


class ErrorKind(str, Enum):
    """Closed set of failure kinds exposed to callers."""

    INVALID_INPUT = "InvalidInput"
    INVALID_TEMPLATE = "InvalidTemplate"
    TRANSPORT_ERROR = "TransportError"
    MALFORMED_RESPONSE = "MalformedResponse"
    INVALID_RESPONSE = "InvalidResponse"
    DECODE_ERROR = "DecodeError"


@dataclass(frozen=True)
class Issue:
    """One validation problem: a locator into the value plus a message."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path or '<root>'}: {self.message}"


class WsdotApiError(Exception):
    """
    Base class for every error raised by fetch functions and hooks.

    Attributes:
        kind: Taxonomy kind of the failure
        message: Human-readable description
        endpoint: Function name of the endpoint being called, when known
        url: Resolved request URL, when resolution got that far
        status: HTTP status code for transport failures, when available
        issues: Validation issues for input/response validation failures
        stage: Pipeline stage that failed
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        url: Optional[str] = None,
        status: Optional[int] = None,
        issues: Optional[Sequence[Issue]] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.endpoint = endpoint
        self.url = url
        self.status = status
        self.issues: List[Issue] = list(issues or [])
        self.stage = stage

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.TRANSPORT_ERROR

    def __str__(self) -> str:
        prefix = f"[{self.endpoint}] " if self.endpoint else ""
        text = f"{prefix}{self.kind.value}: {self.message}"
        if self.issues:
            text += " (" + "; ".join(str(issue) for issue in self.issues) + ")"
        return text


class InvalidInputError(WsdotApiError):
    """Caller-supplied parameters failed the input schema."""

    kind = ErrorKind.INVALID_INPUT


class InvalidTemplateError(WsdotApiError):
    """The endpoint descriptor's URL template does not match its input schema."""

    kind = ErrorKind.INVALID_TEMPLATE


class TransportError(WsdotApiError):
    """Network failure or non-2xx HTTP status."""

    kind = ErrorKind.TRANSPORT_ERROR


class MalformedResponseError(WsdotApiError):
    """The response body is not valid JSON."""

    kind = ErrorKind.MALFORMED_RESPONSE


class InvalidResponseError(WsdotApiError):
    """The response parsed as JSON but failed the output schema."""

    kind = ErrorKind.INVALID_RESPONSE


class DecodeError(WsdotApiError, ValueError):
    """
    A wire value is present but is not a valid date encoding.

    Subclasses ``ValueError`` so that pydantic turns it into a validation
    issue when raised from inside a schema.
    """

    kind = ErrorKind.DECODE_ERROR


class SchemaValidationError(Exception):
    """Raised by ``wsdottie.validation.parse``; never escapes the pipeline."""

    def __init__(self, issues: Sequence[Issue]):
        self.issues = list(issues)
        super().__init__("; ".join(str(issue) for issue in self.issues))


class TemplateError(Exception):
    """Raised by ``wsdottie.urls.resolve_url``; never escapes the pipeline."""
