"""Initial schema: cloudflare_config and email_routing.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS cloudflare_config (
            id SERIAL PRIMARY KEY,
            singleton BOOLEAN NOT NULL DEFAULT TRUE UNIQUE CHECK (singleton),
            api_token TEXT NOT NULL,
            account_id TEXT NOT NULL,
            d1_database TEXT NOT NULL,
            worker_api TEXT NOT NULL,
            kv_storage TEXT NOT NULL,
            destination_emails JSONB NOT NULL DEFAULT '[]'::jsonb,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS email_routing (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            zone_id VARCHAR(64) NOT NULL,
            zone_name VARCHAR(255) NOT NULL,
            alias_part VARCHAR(255) NOT NULL,
            full_email VARCHAR(512) NOT NULL,
            destination VARCHAR(320) NOT NULL,
            rule_id VARCHAR(64) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_email_routing_created_at ON email_routing (created_at DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_email_routing_zone_id ON email_routing (zone_id)")


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS idx_email_routing_zone_id")
    op.execute("DROP INDEX IF EXISTS idx_email_routing_created_at")
    op.drop_table('email_routing')
    op.drop_table('cloudflare_config')
