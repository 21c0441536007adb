"""Cloudflare credential store.

Holds at most one row in ``cloudflare_config``. Saving replaces every
field of the stored record; there are no partial updates.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from shared.database import DatabaseService
from web.backend.core.errors import ValidationError
from web.backend.core.storage import db_connection, parse_json_list

logger = logging.getLogger(__name__)

SECRET_MASK = "***"

# Request key -> column
SECRET_FIELDS: Dict[str, str] = {
    "apiToken": "api_token",
    "accountId": "account_id",
    "d1Database": "d1_database",
    "workerApi": "worker_api",
    "kvStorage": "kv_storage",
}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def mask_secret(value: Optional[str]) -> str:
    """Return the fixed mask followed by the last four characters."""
    if not value:
        return ""
    return SECRET_MASK + value[-4:]


def normalize_destination_emails(emails: Optional[Iterable[str]]) -> List[str]:
    """Trim, lower-case and de-duplicate addresses, keeping first occurrence order.

    Raises ValidationError on a malformed address.
    """
    result: List[str] = []
    for raw in emails or ():
        email = str(raw).strip().lower()
        if not email:
            continue
        if not _EMAIL_RE.match(email):
            raise ValidationError(f"Invalid email address: {email}")
        if email not in result:
            result.append(email)
    return result


@dataclass
class CredentialRecord:
    api_token: str
    account_id: str
    d1_database: str
    worker_api: str
    kv_storage: str
    destination_emails: List[str] = field(default_factory=list)
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CredentialRecord":
        return cls(
            id=row["id"],
            api_token=row["api_token"],
            account_id=row["account_id"],
            d1_database=row["d1_database"],
            worker_api=row["worker_api"],
            kv_storage=row["kv_storage"],
            destination_emails=parse_json_list(row["destination_emails"]),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def full(self) -> Dict[str, Any]:
        """Unmasked values keyed the way the dashboard form sends them."""
        values = {key: getattr(self, column) for key, column in SECRET_FIELDS.items()}
        values["destinationEmails"] = list(self.destination_emails)
        return values

    def masked(self) -> Dict[str, Any]:
        values = {key: mask_secret(getattr(self, column)) for key, column in SECRET_FIELDS.items()}
        values["id"] = self.id
        values["destinationEmails"] = list(self.destination_emails)
        return values


class CredentialStore:
    """Access to the single Cloudflare credential record."""

    def __init__(self, db: DatabaseService):
        self._db = db

    async def get(self) -> Optional[CredentialRecord]:
        """Return the stored record, or None when nothing has been saved yet."""
        async with db_connection(self._db, "load config") as conn:
            row = await conn.fetchrow(
                "SELECT id, api_token, account_id, d1_database, worker_api, kv_storage, "
                "destination_emails, created_at, updated_at "
                "FROM cloudflare_config ORDER BY id LIMIT 1"
            )
        return CredentialRecord.from_row(row) if row else None

    async def upsert(self, fields: Mapping[str, Any]) -> CredentialRecord:
        """Create or fully overwrite the credential record.

        All five secret fields must be present and non-empty; otherwise
        ValidationError is raised before the database is touched.
        ``destinationEmails`` defaults to an empty list.
        """
        values = {}
        missing = []
        for key, column in SECRET_FIELDS.items():
            value = fields.get(key)
            value = value.strip() if isinstance(value, str) else value
            if not value:
                missing.append(key)
            values[column] = value
        if missing:
            raise ValidationError("Missing required fields: " + ", ".join(missing))

        emails = normalize_destination_emails(fields.get("destinationEmails"))

        async with db_connection(self._db, "save config") as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO cloudflare_config
                    (singleton, api_token, account_id, d1_database, worker_api, kv_storage,
                     destination_emails, created_at, updated_at)
                VALUES (TRUE, $1, $2, $3, $4, $5, $6::jsonb, NOW(), NOW())
                ON CONFLICT (singleton) DO UPDATE SET
                    api_token = EXCLUDED.api_token,
                    account_id = EXCLUDED.account_id,
                    d1_database = EXCLUDED.d1_database,
                    worker_api = EXCLUDED.worker_api,
                    kv_storage = EXCLUDED.kv_storage,
                    destination_emails = EXCLUDED.destination_emails,
                    updated_at = NOW()
                RETURNING id, api_token, account_id, d1_database, worker_api, kv_storage,
                          destination_emails, created_at, updated_at
                """,
                values["api_token"],
                values["account_id"],
                values["d1_database"],
                values["worker_api"],
                values["kv_storage"],
                json.dumps(emails),
            )

        logger.info("Cloudflare config saved (%d destination emails)", len(emails))
        return CredentialRecord.from_row(row)
