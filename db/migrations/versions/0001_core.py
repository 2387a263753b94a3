from __future__ import annotations

from alembic import op

revision = "0001_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto;")

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(320) UNIQUE NOT NULL,
            hashed_password VARCHAR(1024) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            is_superuser BOOLEAN NOT NULL DEFAULT FALSE,
            is_verified BOOLEAN NOT NULL DEFAULT FALSE,
            display_name TEXT,
            photo_url TEXT,
            overspending_limit NUMERIC(18,2)
        );
        """
    )
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS categories (
            id VARCHAR(64) PRIMARY KEY,
            name TEXT NOT NULL,
            icon TEXT NOT NULL,
            color VARCHAR(16)
        );
        """
    )
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS expenses (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount NUMERIC(18,2) NOT NULL CHECK (amount > 0),
            merchant_name TEXT NOT NULL,
            reference_id TEXT NOT NULL DEFAULT '',
            transaction_date VARCHAR(32) NOT NULL,
            transaction_time VARCHAR(32),
            description TEXT NOT NULL DEFAULT '',
            category_id VARCHAR(64) NOT NULL DEFAULT 'other',
            location JSON,
            extracted_text TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_expenses_user_created ON expenses (user_id, created_at);")
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS budgets (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            category_id VARCHAR(64) NOT NULL,
            budget_type VARCHAR(16) NOT NULL CHECK (budget_type IN ('daily', 'weekly', 'monthly')),
            budget_amount NUMERIC(18,2) NOT NULL CHECK (budget_amount > 0),
            current_period VARCHAR(16) NOT NULL,
            current_spent NUMERIC(18,2) NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_budgets_user_category ON budgets (user_id, category_id);")
    # One active budget per (user, category, type)
    op.execute(
        """
        CREATE UNIQUE INDEX IF NOT EXISTS uq_budgets_active
        ON budgets (user_id, category_id, budget_type) WHERE is_active;
        """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS budgets;")
    op.execute("DROP TABLE IF EXISTS expenses;")
    op.execute("DROP TABLE IF EXISTS categories;")
    op.execute("DROP TABLE IF EXISTS users;")
