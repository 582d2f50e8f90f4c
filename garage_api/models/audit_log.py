"""
Audit log model for database.
"""
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String

from garage_api.database import Base


class AuditLog(Base):
    """Append-only audit trail of user actions."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    org_id = Column(Integer, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(64), nullable=False, index=True)
    target = Column(JSON, nullable=True)  # {type, id, ...descriptive fields}
    meta = Column(JSON, nullable=True)
    timestamp_utc = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    integrity_hash = Column(String(64), nullable=True)

    __table_args__ = (
        Index("idx_audit_actor", "actor_id", "timestamp_utc"),
        Index("idx_audit_org", "org_id", "timestamp_utc"),
    )
