"""Input validation for path identifiers."""

import re

# Workspace ids are client generated (UUIDs in practice), hashes are MD5 hex digests.
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]{1,255}$")
_HASH_PATTERN = re.compile(r"^[0-9a-fA-F]{32}$")


def validate_workspace_id(workspace_id: str) -> None:
    """
    Validate a workspace id taken from the URL path.

    Raises:
        ValueError: If validation fails
    """
    if not workspace_id:
        raise ValueError("workspace id cannot be empty")
    if not _IDENTIFIER_PATTERN.match(workspace_id):
        raise ValueError(f"Invalid workspace id: {workspace_id}")


def validate_workspace_hash(wid_hash: str) -> None:
    """
    Validate a workspace hash (MD5 hex digest) taken from an MCP URL.

    Raises:
        ValueError: If validation fails
    """
    if not wid_hash or not _HASH_PATTERN.match(wid_hash):
        raise ValueError(f"Invalid workspace hash: {wid_hash}")
