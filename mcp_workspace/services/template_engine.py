"""{{variable}} extraction, validation and substitution for request templates."""

import json
import re
from typing import Any, Dict, Iterator, List, Mapping, Optional

from mcp_workspace.models.request import RequestBody, RequestDescriptor

VAR_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def extract_variables(text: Optional[str]) -> Iterator[str]:
    """
    Yield the names of all {{name}} references in text.

    Names are yielded once, in order of first appearance.
    """
    if not text:
        return
    seen = set()
    for match in VAR_PATTERN.finditer(text):
        name = match.group(1)
        if name not in seen:
            seen.add(name)
            yield name


def collect_all_variables(descriptor: RequestDescriptor) -> List[str]:
    """
    Collect every variable referenced by a request descriptor.

    Scans the URL, every value of params/headers/cookies, and the body payload
    (as one string when raw, per value when a mapping). First-seen order.
    """
    found: Dict[str, None] = {}

    def collect_text(text: Optional[str]) -> None:
        for name in extract_variables(text):
            found.setdefault(name, None)

    def collect_record(record: Optional[Mapping[str, str]]) -> None:
        if not record:
            return
        for value in record.values():
            collect_text(value)

    collect_text(descriptor.url)
    collect_record(descriptor.params)
    collect_record(descriptor.headers)
    collect_record(descriptor.cookies)

    payload = descriptor.body.payload
    if isinstance(payload, str):
        collect_text(payload)
    else:
        collect_record(payload)

    return list(found)


def validate_variables(descriptor: RequestDescriptor, input_schema: Optional[Any]) -> List[str]:
    """
    Return referenced variables missing from input_schema["properties"].

    An absent or malformed schema declares nothing. An empty list means valid.
    """
    refs = collect_all_variables(descriptor)
    if not refs:
        return []

    properties: Mapping[str, Any] = {}
    if isinstance(input_schema, Mapping):
        candidate = input_schema.get("properties")
        if isinstance(candidate, Mapping):
            properties = candidate

    return [name for name in refs if name not in properties]


def _render(value: Any) -> str:
    if isinstance(value, str):
        return value
    # Numbers, booleans, null and nested values are inserted as JSON
    return json.dumps(value, ensure_ascii=False)


def substitute_string(text: str, values: Mapping[str, Any]) -> str:
    """Replace {{name}} with values[name]; unknown names are left as written."""
    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in values:
            return _render(values[name])
        return match.group(0)

    return VAR_PATTERN.sub(replace, text)


def substitute_record(
    record: Optional[Mapping[str, str]],
    values: Mapping[str, Any],
) -> Optional[Dict[str, str]]:
    if record is None:
        return None
    return {key: substitute_string(value, values) for key, value in record.items()}


def substitute_payload(descriptor: RequestDescriptor, values: Optional[Mapping[str, Any]]) -> RequestDescriptor:
    """Return a copy of descriptor with every template slot substituted."""
    values = values or {}
    payload = descriptor.body.payload
    if payload is None:
        body_payload = None
    elif isinstance(payload, str):
        body_payload = substitute_string(payload, values)
    else:
        body_payload = substitute_record(payload, values)

    return RequestDescriptor(
        url=substitute_string(descriptor.url, values),
        params=substitute_record(descriptor.params, values),
        headers=substitute_record(descriptor.headers, values),
        cookies=substitute_record(descriptor.cookies, values),
        body=RequestBody(type=descriptor.body.type, payload=body_payload),
    )
