"""
Audit logging service.
Append-only audit log with integrity hashing.
"""
import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from garage_api.config import get_settings
from garage_api.models.audit_log import AuditLog


def compute_integrity_hash(entry: Dict[str, Any], secret: str) -> str:
    # Canonical JSON: no None values, sorted keys
    canonical = {k: v for k, v in entry.items() if v is not None}
    canonical_json = json.dumps(canonical, sort_keys=True, default=str)
    return hashlib.sha256(f"{canonical_json}:{secret}".encode()).hexdigest()


async def create_audit_log(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    org_id: Optional[int] = None,
    target: Optional[Dict[str, Any]] = None,
    meta: Optional[Dict[str, Any]] = None,
    integrity_secret: Optional[str] = None,
) -> AuditLog:
    """
    Create an append-only audit log entry.

    Args:
        db: Database session
        action: Action tag, e.g. ``vehicle_image_generated``
        actor_id: User who performed the action
        org_id: Organization the action happened in
        target: What was acted on, ``{type, id, ...}``
        meta: Result details
        integrity_secret: Secret for the integrity hash (defaults to AUDIT_SECRET, then SECRET_KEY)

    Returns:
        Created AuditLog object
    """
    timestamp_utc = datetime.now(timezone.utc)
    if integrity_secret is None:
        settings = get_settings()
        integrity_secret = settings.audit_secret or settings.secret_key

    integrity_hash = None
    if integrity_secret:
        integrity_hash = compute_integrity_hash(
            {
                "action": action,
                "actor_id": actor_id,
                "org_id": org_id,
                "target": target,
                "meta": meta,
                "timestamp_utc": timestamp_utc.isoformat(),
            },
            integrity_secret,
        )

    audit_log = AuditLog(
        action=action,
        actor_id=actor_id,
        org_id=org_id,
        target=target,
        meta=meta,
        timestamp_utc=timestamp_utc,
        integrity_hash=integrity_hash,
    )
    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)
    return audit_log
