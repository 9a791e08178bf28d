#!/usr/bin/env python3
"""
Command line access to the WSDOT and WSF APIs.

    wsdottie list [--api NAME]
    wsdottie fetch FUNCTION [PARAMS_JSON] [--api NAME] [--pretty] [--head N] [--csv PATH] [--no-validation]
    wsdottie check [--api NAME] [--live] [--no-validation]
"""

import argparse
import json
import sys
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd
from loguru import logger
from pydantic import TypeAdapter
from tqdm import tqdm

from wsdottie.apis import APIS, find_endpoint, get_api, iter_endpoints
from wsdottie.config import ENV_FILES, ClientSettings
from wsdottie.dates import CALENDAR_DATE_RE, decode_calendar_date
from wsdottie.descriptors import validate_api
from wsdottie.errors import WsdotApiError
from wsdottie.factory import create_fetch_function
from wsdottie.http_client import WsdotHTTPClient

_JSON = TypeAdapter(Any)


def configure_logging(quiet: bool = False, verbose: bool = False):
    level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level)


def _coerce_value(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if CALENDAR_DATE_RE.match(value):
        return decode_calendar_date(value)
    if "T" in value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return value
    return value


def parse_params(raw: str) -> Dict[str, Any]:
    """
    Parse a JSON object of endpoint parameters.

    ISO date strings ("2025-01-15") become dates and ISO timestamps become
    datetimes; everything else is passed through for the input schema to
    validate.

    Raises:
        ValueError: If ``raw`` is not a JSON object
    """
    try:
        params = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Parameters are not valid JSON: {e}")
    if not isinstance(params, dict):
        raise ValueError("Parameters must be a JSON object")
    return {name: _coerce_value(value) for name, value in params.items()}


def _selected_apis(api_name: Optional[str]):
    return [get_api(api_name)] if api_name else list(APIS)


def cmd_list(args) -> int:
    for api, group, descriptor in iter_endpoints(_selected_apis(args.api)):
        strategy = group.strategy_for(descriptor).value
        print(f"{api.name:<26} {descriptor.function_name:<44} {strategy:<9} {descriptor.description}")
    return 0


def cmd_fetch(args) -> int:
    api, group, descriptor = find_endpoint(args.function, args.api)
    if args.params:
        params = parse_params(args.params)
    else:
        params = descriptor.resolve_sample_params()
        logger.info(f"No parameters given, using sample parameters: {params}")

    with WsdotHTTPClient(ClientSettings.from_env(args.env)) as client:
        fetch = create_fetch_function(api, group, descriptor, client)
        result = _JSON.dump_python(fetch(params, validate=args.validate), mode="json")

    if args.head is not None and isinstance(result, list):
        logger.info(f"Showing {min(args.head, len(result))} of {len(result)} items")
        result = result[: args.head]

    if args.csv:
        df = pd.json_normalize(result if isinstance(result, list) else [result])
        df.to_csv(args.csv, index=False)
        logger.info(f"Wrote {len(df)} rows to {args.csv}")
    else:
        print(json.dumps(result, indent=2 if args.pretty else None))
    return 0


def cmd_check(args) -> int:
    apis = _selected_apis(args.api)
    problems: List[str] = []
    for api in apis:
        problems.extend(validate_api(api))
    for problem in problems:
        logger.error(problem)
    logger.info(f"Checked {sum(1 for _ in iter_endpoints(apis))} descriptors, {len(problems)} problem(s)")

    failures: Dict[str, List[str]] = defaultdict(list)
    if args.live:
        endpoints = list(iter_endpoints(apis))
        with WsdotHTTPClient(ClientSettings.from_env(args.env)) as client:
            for api, group, descriptor in tqdm(endpoints, desc="Calling endpoints", leave=False):
                fetch = create_fetch_function(api, group, descriptor, client)
                try:
                    fetch(descriptor.resolve_sample_params(), validate=args.validate)
                except WsdotApiError as e:
                    failures[e.kind.value].append(f"{api.name}.{descriptor.function_name}: {e}")

        for kind, messages in sorted(failures.items()):
            logger.warning(f"{kind}: {len(messages)} endpoint(s)")
            for message in messages:
                logger.warning(f"  {message}")
        failed = sum(len(messages) for messages in failures.values())
        logger.info(f"Live check: {len(endpoints) - failed}/{len(endpoints)} endpoints OK")

    return 1 if problems or failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Typed access to WSDOT traffic and WSF ferry APIs")
    parser.add_argument(
        "-e", "--env",
        type=str,
        choices=[name for name in ENV_FILES if name],
        help="Environment config to load (.env.dev or .env.prod, default: .env)",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log request URLs and cache activity")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List registered endpoints")
    list_parser.add_argument("--api", type=str, help="Only list endpoints of this API (e.g. wsf-fares)")
    list_parser.set_defaults(handler=cmd_list)

    fetch_parser = subparsers.add_parser("fetch", help="Call one endpoint and print the validated result")
    fetch_parser.add_argument("function", help="Endpoint function name (e.g. get_vessel_locations)")
    fetch_parser.add_argument("params", nargs="?", help='Parameters as a JSON object (default: sample parameters)')
    fetch_parser.add_argument("--api", type=str, help="API name, required when the function name is ambiguous")
    fetch_parser.add_argument("--pretty", action="store_true", help="Indent the JSON output")
    fetch_parser.add_argument("--head", type=int, help="Only output the first N items of a list result")
    fetch_parser.add_argument("--csv", type=str, help="Write the flattened result to a CSV file instead")
    fetch_parser.add_argument(
        "--no-validation",
        dest="validate",
        action="store_false",
        help="Skip the output schema and print the raw response with decoded dates",
    )
    fetch_parser.set_defaults(handler=cmd_fetch)

    check_parser = subparsers.add_parser("check", help="Validate descriptors and optionally call every endpoint")
    check_parser.add_argument("--api", type=str, help="Only check this API")
    check_parser.add_argument("--live", action="store_true", help="Call every endpoint with its sample parameters")
    check_parser.add_argument(
        "--no-validation",
        dest="validate",
        action="store_false",
        help="With --live, only check that endpoints answer, not their response schemas",
    )
    check_parser.set_defaults(handler=cmd_check)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    try:
        return args.handler(args)
    except WsdotApiError as e:
        logger.error(str(e))
        return 1
    except KeyError as e:
        logger.error(e.args[0] if e.args else e)
        return 2
    except ValueError as e:
        logger.error(str(e))
        return 2


if __name__ == "__main__":
    sys.exit(main())
