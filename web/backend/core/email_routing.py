"""Local mirror of email routing rules created on Cloudflare.

Rows are written only after Cloudflare accepted the rule and removed
only after Cloudflare deleted it.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from shared.database import DatabaseService
from web.backend.core.errors import NotFoundError
from web.backend.core.storage import db_connection

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, zone_id, zone_name, alias_part, full_email, destination, rule_id, "
    "is_active, created_at, updated_at"
)


def build_full_email(alias_part: str, zone_name: str) -> str:
    return f"{alias_part}@{zone_name}"


@dataclass
class RoutingRecord:
    zone_id: str
    zone_name: str
    alias_part: str
    full_email: str
    destination: str
    rule_id: str
    is_active: bool = True
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "RoutingRecord":
        return cls(
            id=str(row["id"]),
            zone_id=row["zone_id"],
            zone_name=row["zone_name"],
            alias_part=row["alias_part"],
            full_email=row["full_email"],
            destination=row["destination"],
            rule_id=row["rule_id"],
            is_active=row["is_active"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "zoneId": self.zone_id,
            "zoneName": self.zone_name,
            "aliasPart": self.alias_part,
            "fullEmail": self.full_email,
            "destination": self.destination,
            "ruleId": self.rule_id,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


def _parse_id(record_id: str) -> Optional[UUID]:
    try:
        return UUID(str(record_id))
    except ValueError:
        return None


class RoutingRecordStore:
    """CRUD over the ``email_routing`` table."""

    def __init__(self, db: DatabaseService):
        self._db = db

    async def list(self) -> List[RoutingRecord]:
        """All records, newest first."""
        async with db_connection(self._db, "list email routing") as conn:
            rows = await conn.fetch(
                f"SELECT {_COLUMNS} FROM email_routing ORDER BY created_at DESC"
            )
        return [RoutingRecord.from_row(r) for r in rows]

    async def get(self, record_id: str) -> Optional[RoutingRecord]:
        uid = _parse_id(record_id)
        if uid is None:
            return None
        async with db_connection(self._db, "load email routing") as conn:
            row = await conn.fetchrow(
                f"SELECT {_COLUMNS} FROM email_routing WHERE id = $1", uid
            )
        return RoutingRecord.from_row(row) if row else None

    async def create(self, record: RoutingRecord) -> RoutingRecord:
        async with db_connection(self._db, "save email routing") as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO email_routing
                    (zone_id, zone_name, alias_part, full_email, destination, rule_id, is_active)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                RETURNING {_COLUMNS}
                """,
                record.zone_id,
                record.zone_name,
                record.alias_part,
                record.full_email,
                record.destination,
                record.rule_id,
                record.is_active,
            )
        created = RoutingRecord.from_row(row)
        logger.info("Email routing %s -> %s saved (rule %s)", created.full_email, created.destination, created.rule_id)
        return created

    async def delete_by_id(self, record_id: str) -> None:
        """Remove a record. Raises NotFoundError when it does not exist."""
        uid = _parse_id(record_id)
        if uid is None:
            raise NotFoundError("Email routing not found")
        async with db_connection(self._db, "delete email routing") as conn:
            result = await conn.execute("DELETE FROM email_routing WHERE id = $1", uid)
        if result == "DELETE 0":
            raise NotFoundError("Email routing not found")
        logger.info("Email routing %s deleted", record_id)
