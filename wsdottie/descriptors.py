"""
Declarative endpoint descriptors.

``ApiDescriptor`` 1→N ``EndpointGroup`` 1→N ``EndpointDescriptor``. All three
are frozen and built once at import time by the modules in
``wsdottie.apis``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from wsdottie.cache import CACHE_FLUSH_GROUP, CacheStrategy
from wsdottie.urls import template_tokens
from wsdottie.validation import Schema

SampleParams = Union[Mapping[str, Any], Callable[[], Mapping[str, Any]]]


@dataclass(frozen=True)
class EndpointDescriptor:
    """
    One upstream endpoint.

    Attributes:
        function_name: Identifier, unique within its API (e.g. "get_fare_totals")
        url_template: Path relative to the API base URL, with ``{Name}`` tokens
        input_schema: Schema for the parameter object
        output_schema: Schema for the JSON response
        sample_params: Example parameters (or a callable producing them) used by
            documentation, the CLI and tests; never used for production calls
        cache_strategy: Overrides the group's strategy when set
        description: One-sentence description
    """

    function_name: str
    url_template: str
    input_schema: Schema
    output_schema: Schema
    sample_params: SampleParams = field(default_factory=dict)
    cache_strategy: Optional[CacheStrategy] = None
    description: str = ""

    def resolve_sample_params(self) -> Dict[str, Any]:
        params = self.sample_params() if callable(self.sample_params) else self.sample_params
        return dict(params)


@dataclass(frozen=True)
class EndpointGroup:
    """Related endpoints sharing a cache strategy and documentation."""

    name: str
    cache_strategy: CacheStrategy
    endpoints: Tuple[EndpointDescriptor, ...]
    summary: str = ""
    use_cases: Tuple[str, ...] = ()
    update_frequency: Optional[str] = None

    def strategy_for(self, descriptor: EndpointDescriptor) -> CacheStrategy:
        return descriptor.cache_strategy or self.cache_strategy


@dataclass(frozen=True)
class ApiDescriptor:
    """
    One upstream service family.

    Attributes:
        name: API name (e.g. "wsf-vessels")
        base_url: Base URL every endpoint template is relative to
        endpoint_groups: Groups in declaration order
        access_code_param: Query parameter carrying the access code
    """

    name: str
    base_url: str
    endpoint_groups: Tuple[EndpointGroup, ...]
    access_code_param: str = "AccessCode"

    def iter_endpoints(self) -> Iterator[Tuple[EndpointGroup, EndpointDescriptor]]:
        for group in self.endpoint_groups:
            for descriptor in group.endpoints:
                yield group, descriptor

    def find(self, function_name: str) -> Tuple[EndpointGroup, EndpointDescriptor]:
        for group, descriptor in self.iter_endpoints():
            if descriptor.function_name == function_name:
                return group, descriptor
        raise KeyError(f"{self.name} has no endpoint named {function_name}")

    @property
    def cache_flush_endpoint(self) -> Optional[Tuple[EndpointGroup, EndpointDescriptor]]:
        """The family's flush-date endpoint, if it publishes one."""
        for group in self.endpoint_groups:
            if group.name == CACHE_FLUSH_GROUP and group.endpoints:
                return group, group.endpoints[0]
        return None


def validate_descriptor(descriptor: EndpointDescriptor) -> List[str]:
    """
    Check a descriptor's URL template against its input schema.

    Every template token must name a required input field.

    Returns:
        A list of problems, empty when the descriptor is consistent
    """
    problems = []
    fields = set(descriptor.input_schema.field_names())
    required_names = getattr(descriptor.input_schema, "required_field_names", None)
    required = set(required_names()) if required_names else fields

    for token in template_tokens(descriptor.url_template):
        if token not in fields:
            problems.append(f"{descriptor.function_name}: template token {{{token}}} is not an input field")
        elif token not in required:
            problems.append(f"{descriptor.function_name}: template token {{{token}}} is an optional input field")
    return problems


def validate_api(api: ApiDescriptor) -> List[str]:
    """Validate every descriptor of an API plus function name uniqueness."""
    problems = []
    seen = set()
    for _group, descriptor in api.iter_endpoints():
        if descriptor.function_name in seen:
            problems.append(f"{api.name}: duplicate function name {descriptor.function_name}")
        seen.add(descriptor.function_name)
        problems.extend(validate_descriptor(descriptor))
    return problems
