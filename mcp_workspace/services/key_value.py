"""Projection of togglable key/value rows into plain mappings."""

from typing import Dict, Iterable, Optional

from mcp_workspace.models.tool import KeyValueItem


def kv_to_record(items: Optional[Iterable[KeyValueItem]]) -> Optional[Dict[str, str]]:
    """
    Convert key/value rows into a mapping.

    Only enabled rows whose key is non-blank contribute; a later row with the
    same key overwrites an earlier one. Returns None instead of an empty dict so
    callers can treat "no entries" and "field omitted" the same way.
    """
    result: Dict[str, str] = {}
    for item in items or ():
        if item.enabled and item.key.strip():
            result[item.key] = item.value
    return result or None
