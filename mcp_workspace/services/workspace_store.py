"""Per-workspace persistence of service definitions.

Each workspace is one JSON document (the editor's list of services) stored
with full-replace, last-write-wins semantics.
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import ValidationError
from sqlalchemy import text

from mcp_workspace.infra.database import get_db_session
from mcp_workspace.models.tool import ServiceDefinition

logger = logging.getLogger(__name__)


def workspace_hash(workspace_id: str) -> str:
    """MD5 hex digest of a workspace id, used in MCP URLs instead of the id itself."""
    return hashlib.md5(workspace_id.encode("utf-8")).hexdigest()


def parse_services_blob(data: Optional[str]) -> List[Any]:
    """Stored JSON as a list; malformed or non-list documents count as no services."""
    if not data:
        return []
    try:
        parsed = json.loads(data)
    except json.JSONDecodeError as e:
        logger.warning(f"Stored workspace data is not valid JSON: {e}")
        return []
    if not isinstance(parsed, list):
        logger.warning(f"Stored workspace data is a {type(parsed).__name__}, expected a list")
        return []
    return parsed


def to_service_definitions(raw_services: List[Any]) -> List[ServiceDefinition]:
    """Validate raw entries, skipping the ones that do not describe a service."""
    services = []
    for index, raw in enumerate(raw_services):
        try:
            services.append(ServiceDefinition.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Skipping malformed service at index {index}: {e.error_count()} error(s)")
    return services


def load_raw_services(workspace_id: str) -> List[Any]:
    """Stored services exactly as the editor saved them."""
    with get_db_session() as session:
        row = session.execute(
            text("SELECT data FROM workspaces WHERE id = :id"),
            {"id": workspace_id}
        ).fetchone()
    if not row:
        return []
    return parse_services_blob(row.data)


def load_services(workspace_id: str) -> List[ServiceDefinition]:
    return to_service_definitions(load_raw_services(workspace_id))


def load_services_by_hash(wid_hash: str) -> List[ServiceDefinition]:
    """Services of the workspace whose id hashes to wid_hash."""
    with get_db_session() as session:
        row = session.execute(
            text("SELECT data FROM workspaces WHERE wid_hash = :wid_hash"),
            {"wid_hash": wid_hash}
        ).fetchone()
    if not row:
        return []
    return to_service_definitions(parse_services_blob(row.data))


def find_service(wid_hash: str, service_id: str) -> Optional[ServiceDefinition]:
    for service in load_services_by_hash(wid_hash):
        if service.id == service_id:
            return service
    return None


def save_services(workspace_id: str, services: List[Any], wid_hash: Optional[str] = None) -> List[Any]:
    """
    Replace the workspace document.

    Args:
        workspace_id: Workspace id
        services: Service list in editor format, stored verbatim
        wid_hash: Hash used in MCP URLs (defaults to workspace_hash(workspace_id))

    Returns:
        The stored service list
    """
    data = json.dumps(services, ensure_ascii=False)
    with get_db_session() as session:
        session.execute(
            text("""
                INSERT INTO workspaces (id, data, wid_hash, updated_at)
                VALUES (:id, :data, :wid_hash, :updated_at)
                ON CONFLICT (id) DO UPDATE SET
                    data = excluded.data,
                    wid_hash = excluded.wid_hash,
                    updated_at = excluded.updated_at
            """),
            {
                "id": workspace_id,
                "data": data,
                "wid_hash": wid_hash or workspace_hash(workspace_id),
                "updated_at": datetime.now(timezone.utc).isoformat(),
            }
        )
    logger.info(
        "Workspace saved",
        extra={"workspace_hash": wid_hash or workspace_hash(workspace_id), "service_count": len(services)},
    )
    return services
