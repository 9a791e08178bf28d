"""
URL template resolution.

Templates are relative to an API base URL and may carry ``{Name}`` tokens in
the path or in a query string, e.g.::

    /faretotals/{TripDate}/{DepartingTerminalID}
    /GetClearancesAsJson?Route={Route}

Fields consumed by a token are not repeated as query parameters; every other
non-None field is appended as a query parameter.
"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import quote, urlencode

from wsdottie.dates import encode_calendar_date
from wsdottie.errors import TemplateError

TOKEN_RE = re.compile(r"\{([^{}]+)\}")


def template_tokens(template: str) -> List[str]:
    """Return the ``{Name}`` tokens of a template in order of appearance."""
    return TOKEN_RE.findall(template)


def format_param_value(value: Any) -> str:
    """
    Format one parameter value for a URL.

    Dates use the calendar form, booleans are lower case, and lists are
    comma-joined (e.g. fare line item ID lists).
    """
    if isinstance(value, (date, datetime)):
        return encode_calendar_date(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return format_param_value(value.value)
    if isinstance(value, (list, tuple)):
        return ",".join(format_param_value(item) for item in value)
    return str(value)


def _substitute(template: str, params: Mapping[str, Any]) -> Tuple[str, set]:
    consumed = set()

    def replace(match: "re.Match") -> str:
        name = match.group(1)
        if name not in params:
            raise TemplateError(f"Template token {{{name}}} has no matching input field")
        value = params[name]
        if value is None:
            raise TemplateError(f"Template token {{{name}}} resolved to a null value")
        consumed.add(name)
        return quote(format_param_value(value), safe=",")

    return TOKEN_RE.sub(replace, template), consumed


def resolve_url(base_url: str, template: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a concrete request URL from a template and validated parameters.

    Args:
        base_url: API base URL, e.g. ``https://www.wsdot.wa.gov/ferries/api/fares/rest``
        template: Endpoint URL template relative to ``base_url``
        params: Validated parameters in declaration order

    Returns:
        The resolved URL; identical inputs always give identical output

    Raises:
        TemplateError: If a token has no field, or its field is None
    """
    params = dict(params or {})
    resolved, consumed = _substitute(template, params)

    query: Dict[str, str] = {
        name: format_param_value(value)
        for name, value in params.items()
        if name not in consumed and value is not None
    }

    url = base_url.rstrip("/") + "/" + resolved.lstrip("/")
    if query:
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}{urlencode(query, safe=',')}"
    return url
