"""Marketplace core tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-12

Creates: companies, professionals, requirements, quotes, requirement_quotes,
         requirement_transitions, notifications, event_outbox, processed_events
Enums: servicetype, buildingtype, budgetrange, requirementstatus,
       requirementpriority, contactpreference, quotestatus, notificationtype,
       notificationpriority, eventstatus
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # ── 1. Create enum types ──────────────────────────────────────────────
    op.execute("""
        CREATE TYPE servicetype AS ENUM (
            'interior-design', 'construction', 'renovation', 'architecture', 'general'
        );
    """)
    op.execute("""
        CREATE TYPE buildingtype AS ENUM (
            'Apartment', 'Villa', 'Duplex', 'Triplex', 'Bungalow',
            'Commercial', 'Industrial', 'Institutional'
        );
    """)
    op.execute("""
        CREATE TYPE budgetrange AS ENUM (
            'Under ₹10L', '₹10L - ₹25L', '₹25L - ₹50L',
            '₹50L - ₹1Cr', '₹1Cr - ₹2Cr', 'Above ₹2Cr'
        );
    """)
    op.execute("""
        CREATE TYPE requirementstatus AS ENUM (
            'open', 'reviewing_quotes', 'company_selected',
            'in_progress', 'completed', 'cancelled'
        );
    """)
    op.execute("CREATE TYPE requirementpriority AS ENUM ('low', 'medium', 'high', 'urgent');")
    op.execute("CREATE TYPE contactpreference AS ENUM ('email', 'phone', 'whatsapp', 'chat');")
    op.execute("""
        CREATE TYPE quotestatus AS ENUM (
            'draft', 'submitted', 'under_review', 'accepted', 'rejected', 'withdrawn'
        );
    """)
    op.execute("""
        CREATE TYPE notificationtype AS ENUM (
            'quote_submitted', 'quote_accepted', 'quote_rejected', 'quote_withdrawn',
            'requirement_cancelled', 'requirement_status_changed'
        );
    """)
    op.execute("CREATE TYPE notificationpriority AS ENUM ('low', 'medium', 'high');")
    op.execute("CREATE TYPE eventstatus AS ENUM ('PENDING', 'PROCESSING', 'COMPLETED', 'FAILED');")

    # ── 2. Bidder profiles ────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE companies (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            description TEXT,
            admin_user_id UUID NOT NULL,
            location VARCHAR(255),
            logo VARCHAR(500),
            contact_email VARCHAR(255),
            contact_phone VARCHAR(50),
            rating NUMERIC(3, 2) NOT NULL DEFAULT 0,
            is_verified BOOLEAN NOT NULL DEFAULT false,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_companies_admin_user_id ON companies (admin_user_id);")

    op.execute("""
        CREATE TABLE professionals (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            email VARCHAR(255) NOT NULL UNIQUE,
            user_id UUID NOT NULL,
            description TEXT,
            logo VARCHAR(500),
            phone VARCHAR(50),
            rating NUMERIC(3, 2) NOT NULL DEFAULT 0,
            is_verified BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_professionals_user_id ON professionals (user_id);")
    op.execute("CREATE INDEX ix_professionals_is_verified ON professionals (is_verified);")

    # ── 3. Requirements ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE requirements (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            homeowner_id UUID NOT NULL,
            service_type servicetype NOT NULL DEFAULT 'general',
            title VARCHAR(200) NOT NULL,
            description VARCHAR(2000) NOT NULL,
            design_preferences VARCHAR(1000),
            budget NUMERIC(15, 2) NOT NULL,
            budget_range budgetrange,
            timeline_start_date TIMESTAMPTZ NOT NULL,
            timeline_end_date TIMESTAMPTZ NOT NULL,
            location VARCHAR(255) NOT NULL,
            building_type buildingtype NOT NULL,
            size INTEGER,
            bedrooms INTEGER,
            bathrooms INTEGER,
            features JSONB NOT NULL DEFAULT '[]',
            attachments JSONB NOT NULL DEFAULT '[]',
            status requirementstatus NOT NULL DEFAULT 'open',
            selected_quote_id UUID,
            is_active BOOLEAN NOT NULL DEFAULT true,
            priority requirementpriority NOT NULL DEFAULT 'medium',
            request_multiple_quotes BOOLEAN NOT NULL DEFAULT true,
            contact_preference contactpreference NOT NULL DEFAULT 'email',
            cancelled_at TIMESTAMPTZ,
            notes TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT ck_requirements_budget_non_negative CHECK (budget >= 0),
            CONSTRAINT ck_requirements_timeline_ordered
                CHECK (timeline_end_date >= timeline_start_date)
        );
    """)
    op.execute(
        "CREATE INDEX ix_requirements_homeowner_status "
        "ON requirements (homeowner_id, status, created_at);"
    )
    op.execute(
        "CREATE INDEX ix_requirements_status_active ON requirements (status, is_active, created_at);"
    )
    op.execute(
        "CREATE INDEX ix_requirements_building_location ON requirements (building_type, location);"
    )
    op.execute("CREATE INDEX ix_requirements_budget ON requirements (budget, budget_range);")
    op.execute(
        "CREATE INDEX ix_requirements_location_trgm ON requirements "
        "USING gin (lower(location) gin_trgm_ops);"
    )

    # ── 4. Quotes ─────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE quotes (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            requirement_id UUID NOT NULL REFERENCES requirements(id) ON DELETE CASCADE,
            company_id UUID REFERENCES companies(id) ON DELETE CASCADE,
            professional_id UUID REFERENCES professionals(id) ON DELETE CASCADE,
            design_proposal VARCHAR(2000) NOT NULL,
            estimated_budget NUMERIC(15, 2) NOT NULL,
            budget_breakdown JSONB NOT NULL DEFAULT '{}',
            timeline_start_date TIMESTAMPTZ NOT NULL,
            timeline_end_date TIMESTAMPTZ NOT NULL,
            milestones JSONB NOT NULL DEFAULT '[]',
            additional_notes VARCHAR(1000),
            attachments JSONB NOT NULL DEFAULT '[]',
            design_images JSONB NOT NULL DEFAULT '[]',
            specifications JSONB,
            terms JSONB,
            status quotestatus NOT NULL DEFAULT 'draft',
            valid_until TIMESTAMPTZ NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            submitted_at TIMESTAMPTZ,
            reviewed_at TIMESTAMPTZ,
            withdrawn_at TIMESTAMPTZ,
            response_message TEXT,
            rating INTEGER,
            feedback TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_quotes_requirement_company UNIQUE (requirement_id, company_id),
            CONSTRAINT uq_quotes_requirement_professional UNIQUE (requirement_id, professional_id),
            CONSTRAINT ck_quotes_single_bidder
                CHECK ((company_id IS NULL) <> (professional_id IS NULL)),
            CONSTRAINT ck_quotes_estimated_budget_non_negative CHECK (estimated_budget >= 0),
            CONSTRAINT ck_quotes_timeline_ordered
                CHECK (timeline_end_date >= timeline_start_date),
            CONSTRAINT ck_quotes_rating_range
                CHECK (rating IS NULL OR (rating >= 1 AND rating <= 5))
        );
    """)
    op.execute("CREATE INDEX ix_quotes_company_status ON quotes (company_id, status, created_at);")
    op.execute(
        "CREATE INDEX ix_quotes_professional_status ON quotes (professional_id, status, created_at);"
    )
    op.execute(
        "CREATE INDEX ix_quotes_requirement_status_budget "
        "ON quotes (requirement_id, status, estimated_budget);"
    )
    op.execute("CREATE INDEX ix_quotes_status_valid_until ON quotes (status, valid_until);")

    # ── 5. Requirement quote list and audit trail ─────────────────────────
    op.execute("""
        CREATE TABLE requirement_quotes (
            id BIGSERIAL PRIMARY KEY,
            requirement_id UUID NOT NULL REFERENCES requirements(id) ON DELETE CASCADE,
            quote_id UUID NOT NULL REFERENCES quotes(id) ON DELETE CASCADE,
            added_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_requirement_quotes_pair UNIQUE (requirement_id, quote_id)
        );
    """)

    op.execute("""
        CREATE TABLE requirement_transitions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            requirement_id UUID NOT NULL REFERENCES requirements(id) ON DELETE CASCADE,
            from_status requirementstatus,
            to_status requirementstatus NOT NULL,
            triggered_by UUID NOT NULL,
            reason TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute(
        "CREATE INDEX ix_requirement_transitions_requirement_id "
        "ON requirement_transitions (requirement_id);"
    )

    # ── 6. Notifications ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE notifications (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            recipient_id UUID NOT NULL,
            type notificationtype NOT NULL,
            title VARCHAR(255) NOT NULL,
            message VARCHAR(1000) NOT NULL,
            related_id UUID,
            related_model VARCHAR(50),
            priority notificationpriority NOT NULL DEFAULT 'medium',
            is_read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute(
        "CREATE INDEX ix_notifications_recipient_read "
        "ON notifications (recipient_id, is_read, created_at);"
    )

    # ── 7. Event outbox ───────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE event_outbox (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            event_type VARCHAR(100) NOT NULL,
            aggregate_type VARCHAR(50) NOT NULL,
            aggregate_id VARCHAR(64) NOT NULL,
            payload JSONB NOT NULL DEFAULT '{}',
            status eventstatus NOT NULL DEFAULT 'PENDING',
            retry_count INTEGER NOT NULL DEFAULT 0,
            max_retries INTEGER NOT NULL DEFAULT 3,
            last_error TEXT,
            processed_at TIMESTAMPTZ,
            schema_version INTEGER NOT NULL DEFAULT 1,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_event_outbox_status_created ON event_outbox (status, created_at);")
    op.execute("CREATE INDEX ix_event_outbox_aggregate ON event_outbox (aggregate_type, aggregate_id);")
    op.execute("CREATE INDEX ix_event_outbox_pending ON event_outbox (created_at) WHERE status = 'PENDING';")

    op.execute("""
        CREATE TABLE processed_events (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            event_id UUID NOT NULL,
            event_type VARCHAR(100) NOT NULL,
            handler_name VARCHAR(500) NOT NULL,
            processed_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            expires_at TIMESTAMPTZ NOT NULL,
            CONSTRAINT uq_processed_events_event_id UNIQUE (event_id)
        );
    """)
    op.execute("CREATE INDEX ix_processed_events_expires_at ON processed_events (expires_at);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS processed_events;")
    op.execute("DROP TABLE IF EXISTS event_outbox;")
    op.execute("DROP TABLE IF EXISTS notifications;")
    op.execute("DROP TABLE IF EXISTS requirement_transitions;")
    op.execute("DROP TABLE IF EXISTS requirement_quotes;")
    op.execute("DROP TABLE IF EXISTS quotes;")
    op.execute("DROP TABLE IF EXISTS requirements;")
    op.execute("DROP TABLE IF EXISTS professionals;")
    op.execute("DROP TABLE IF EXISTS companies;")

    op.execute("DROP TYPE IF EXISTS eventstatus;")
    op.execute("DROP TYPE IF EXISTS notificationpriority;")
    op.execute("DROP TYPE IF EXISTS notificationtype;")
    op.execute("DROP TYPE IF EXISTS quotestatus;")
    op.execute("DROP TYPE IF EXISTS contactpreference;")
    op.execute("DROP TYPE IF EXISTS requirementpriority;")
    op.execute("DROP TYPE IF EXISTS requirementstatus;")
    op.execute("DROP TYPE IF EXISTS budgetrange;")
    op.execute("DROP TYPE IF EXISTS buildingtype;")
    op.execute("DROP TYPE IF EXISTS servicetype;")
