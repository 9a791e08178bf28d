"""
Validated fetch pipeline for WSDOT and WSF endpoints.

One call walks a fixed sequence of stages and either returns a validated
value or raises one of the ``wsdottie.errors`` kinds. Exactly one GET is
sent per successful input validation; retries and caching live in the query
layer (``wsdottie.query``).
"""

from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

import requests
from loguru import logger

from wsdottie.config import ClientSettings
from wsdottie.dates import decode_wire_dates
from wsdottie.descriptors import ApiDescriptor, EndpointDescriptor
from wsdottie.errors import (
    DecodeError,
    InvalidInputError,
    InvalidResponseError,
    InvalidTemplateError,
    MalformedResponseError,
    SchemaValidationError,
    TemplateError,
    TransportError,
)
from wsdottie.urls import resolve_url


class FetchStage(str, Enum):
    IDLE = "idle"
    VALIDATING_INPUT = "validating_input"
    RESOLVING_URL = "resolving_url"
    AWAITING_RESPONSE = "awaiting_response"
    PARSING_BODY = "parsing_body"
    VALIDATING_OUTPUT = "validating_output"
    DONE = "done"
    ERROR = "error"


def _as_ordered_params(validated: Any) -> Dict[str, Any]:
    """Validated input as a field-ordered dict (models keep declaration order)."""
    if hasattr(validated, "model_dump"):
        return validated.model_dump()
    if isinstance(validated, Mapping):
        return dict(validated)
    return {}


class WsdotHTTPClient:
    """
    HTTP client for WSDOT traffic and WSF ferry APIs.

    Adds the access code as a query parameter on every request, validates
    parameters before sending and validates responses before returning them.
    """

    def __init__(self, settings: Optional[ClientSettings] = None, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            settings: Access code, timeout and user agent (read from the
                      environment when None)
            session: Optional pre-configured requests session
        """
        self.settings = settings or ClientSettings.from_env()
        self.headers = {
            "User-Agent": self.settings.user_agent,
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
        }
        self.session = session or requests.Session()
        self.session.headers.update(self.headers)

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _access_params(self, api: ApiDescriptor) -> Optional[Dict[str, str]]:
        if not self.settings.access_token:
            return None
        return {api.access_code_param: self.settings.access_token}

    def _make_request(self, api: ApiDescriptor, descriptor: EndpointDescriptor, url: str) -> requests.Response:
        """
        Send a single GET request.

        Raises:
            TransportError: On network failure or a non-2xx status
        """
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, params=self._access_params(api), timeout=self.settings.timeout)
        except requests.RequestException as e:
            logger.warning(f"Request to {url} failed: {e}")
            raise TransportError(
                f"Request failed: {e}",
                endpoint=descriptor.function_name,
                url=url,
                stage=FetchStage.AWAITING_RESPONSE.value,
            ) from e

        if not 200 <= response.status_code < 300:
            logger.warning(f"HTTP {response.status_code} from {url}")
            raise TransportError(
                f"HTTP {response.status_code} {response.reason or ''}".strip(),
                endpoint=descriptor.function_name,
                url=url,
                status=response.status_code,
                stage=FetchStage.AWAITING_RESPONSE.value,
            )
        return response

    def fetch(
        self,
        api: ApiDescriptor,
        descriptor: EndpointDescriptor,
        params: Optional[Mapping[str, Any]] = None,
        on_stage: Optional[Callable[[FetchStage], None]] = None,
        validate: bool = True,
    ) -> Any:
        """
        Validate parameters, call the endpoint and validate the response.

        Args:
            api: API the endpoint belongs to (base URL, access code parameter)
            descriptor: Endpoint to call
            params: Caller parameters; None means no parameters
            on_stage: Optional callback notified of every stage transition,
                      ending with DONE or ERROR
            validate: When False, skip the output schema and return the raw
                      JSON with its wire dates decoded

        Returns:
            The validated, date-decoded response value (plain JSON values
            when ``validate`` is False)

        Raises:
            InvalidInputError: Parameters failed the input schema; nothing was sent
            InvalidTemplateError: The URL template could not be filled
            TransportError: Network failure or non-2xx status
            MalformedResponseError: The body is not JSON
            InvalidResponseError: The body failed the output schema (only when
                                  validating)
            DecodeError: A wire date could not be decoded
        """
        notify = on_stage or (lambda stage: None)
        try:
            result = self._run_stages(api, descriptor, params, notify, validate)
        except Exception:
            notify(FetchStage.ERROR)
            raise
        notify(FetchStage.DONE)
        return result

    def _run_stages(self, api, descriptor, params, notify, validate=True) -> Any:
        endpoint = descriptor.function_name

        notify(FetchStage.VALIDATING_INPUT)
        try:
            validated = descriptor.input_schema.parse(dict(params or {}))
        except SchemaValidationError as e:
            raise InvalidInputError(
                "Parameters failed validation",
                endpoint=endpoint,
                issues=e.issues,
                stage=FetchStage.VALIDATING_INPUT.value,
            ) from e

        notify(FetchStage.RESOLVING_URL)
        try:
            url = resolve_url(api.base_url, descriptor.url_template, _as_ordered_params(validated))
        except TemplateError as e:
            raise InvalidTemplateError(str(e), endpoint=endpoint, stage=FetchStage.RESOLVING_URL.value) from e

        notify(FetchStage.AWAITING_RESPONSE)
        response = self._make_request(api, descriptor, url)

        notify(FetchStage.PARSING_BODY)
        try:
            body = response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Response body is not valid JSON: {e}",
                endpoint=endpoint,
                url=url,
                status=response.status_code,
                stage=FetchStage.PARSING_BODY.value,
            ) from e

        if not validate:
            logger.debug(f"{endpoint} returned an unvalidated response")
            try:
                return decode_wire_dates(body)
            except DecodeError as e:
                raise DecodeError(e.message, endpoint=endpoint, url=url, stage=FetchStage.PARSING_BODY.value) from e

        notify(FetchStage.VALIDATING_OUTPUT)
        try:
            result = descriptor.output_schema.parse(body)
        except SchemaValidationError as e:
            logger.error(f"Invalid response from {endpoint} ({url}): {len(e.issues)} issue(s)")
            for issue in e.issues:
                logger.error(f"  {issue}")
            raise InvalidResponseError(
                "Response failed validation",
                endpoint=endpoint,
                url=url,
                issues=e.issues,
                stage=FetchStage.VALIDATING_OUTPUT.value,
            ) from e
        except DecodeError as e:
            raise DecodeError(e.message, endpoint=endpoint, url=url, stage=FetchStage.VALIDATING_OUTPUT.value) from e

        logger.debug(f"{endpoint} returned a valid response")
        return result


_default_client: Optional[WsdotHTTPClient] = None


def get_default_client() -> WsdotHTTPClient:
    """Shared client used by fetch functions created without one."""
    global _default_client
    if _default_client is None:
        _default_client = WsdotHTTPClient()
    return _default_client
