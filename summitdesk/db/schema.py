"""
Database Schema
One table per submission kind plus the analytics event log.
Run once via `summitdesk init-db`; every statement is idempotent.
"""

import logging

from summitdesk.db.connection import get_db_cursor

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS registrations (
    id                  UUID PRIMARY KEY,
    full_name           VARCHAR(255) NOT NULL,
    email               VARCHAR(255) NOT NULL,
    phone               VARCHAR(20)  NOT NULL,
    profession          VARCHAR(255) NOT NULL,
    church              VARCHAR(255),
    workshop_preference VARCHAR(100) NOT NULL,
    payment_status      VARCHAR(20)  NOT NULL DEFAULT 'pending',
    payment_method      VARCHAR(50),
    payment_reference   VARCHAR(255),
    registration_date   TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
    reviewed_at         TIMESTAMPTZ,
    reviewed_by         VARCHAR(255),
    created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
    updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS questions (
    id          UUID PRIMARY KEY,
    name        VARCHAR(255) NOT NULL,
    question    TEXT         NOT NULL,
    category    VARCHAR(100),
    status      VARCHAR(20)  NOT NULL DEFAULT 'pending',
    is_answered BOOLEAN      NOT NULL DEFAULT FALSE,
    answered_at TIMESTAMPTZ,
    answered_by VARCHAR(255),
    upvotes     INTEGER      NOT NULL DEFAULT 0,
    reviewed_at TIMESTAMPTZ,
    reviewed_by VARCHAR(255),
    created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
    updated_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS partnerships (
    id                UUID PRIMARY KEY,
    organization_name VARCHAR(255) NOT NULL,
    contact_person    VARCHAR(255) NOT NULL,
    email             VARCHAR(255) NOT NULL UNIQUE,
    phone             VARCHAR(20)  NOT NULL,
    support_type      VARCHAR(100) NOT NULL,
    message           TEXT,
    status            VARCHAR(20)  NOT NULL DEFAULT 'pending',
    partnership_tier  VARCHAR(20),
    partnership_value INTEGER,
    follow_up_date    DATE,
    reviewed_at       TIMESTAMPTZ,
    reviewed_by       VARCHAR(255),
    created_at        TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
    updated_at        TIMESTAMPTZ  NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS exhibitors (
    id                 UUID PRIMARY KEY,
    full_name          VARCHAR(255) NOT NULL,
    email              VARCHAR(255) NOT NULL,
    phone              VARCHAR(20)  NOT NULL,
    company_name       VARCHAR(255),
    years_of_operation VARCHAR(50),
    website            VARCHAR(500),
    idea_title         VARCHAR(255) NOT NULL,
    category           VARCHAR(100) NOT NULL,
    field_of_focus     VARCHAR(255) NOT NULL,
    areas_of_interest  VARCHAR(500),
    uniqueness         TEXT         NOT NULL,
    summary            TEXT         NOT NULL,
    business_model     TEXT         NOT NULL,
    target_market      TEXT         NOT NULL,
    want_to_team_up    VARCHAR(3)   NOT NULL,
    looking_for        TEXT,
    sdg_alignment      TEXT         NOT NULL DEFAULT '[]',
    other_sdg          VARCHAR(500),
    status             VARCHAR(20)  NOT NULL DEFAULT 'pending',
    reviewed_at        TIMESTAMPTZ,
    reviewed_by        VARCHAR(255),
    created_at         TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
    updated_at         TIMESTAMPTZ  NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS feedback (
    id                      UUID PRIMARY KEY,
    full_name               VARCHAR(255) NOT NULL,
    email                   VARCHAR(255) NOT NULL,
    phone                   VARCHAR(20),
    day_attended            VARCHAR(10)  NOT NULL,
    overall_rating          SMALLINT     NOT NULL CHECK (overall_rating BETWEEN 1 AND 5),
    content_quality         SMALLINT     NOT NULL CHECK (content_quality BETWEEN 1 AND 5),
    speaker_quality         SMALLINT     NOT NULL CHECK (speaker_quality BETWEEN 1 AND 5),
    organization_rating     SMALLINT     NOT NULL CHECK (organization_rating BETWEEN 1 AND 5),
    venue_rating            SMALLINT     NOT NULL CHECK (venue_rating BETWEEN 1 AND 5),
    networking_rating       SMALLINT     NOT NULL CHECK (networking_rating BETWEEN 1 AND 5),
    most_valuable           TEXT         NOT NULL,
    improvements            TEXT         NOT NULL,
    future_topics           TEXT         NOT NULL,
    recommend_likelihood    VARCHAR(50),
    additional_comments     TEXT,
    workshop_feedback       TEXT,
    favorite_workshop       VARCHAR(255),
    favorite_workshop_other VARCHAR(255),
    speaker_suggestions     TEXT,
    speaker_specialization  VARCHAR(255),
    share_contact           VARCHAR(3),
    speaker_contact         VARCHAR(255),
    status                  VARCHAR(20)  NOT NULL DEFAULT 'pending',
    reviewed_at             TIMESTAMPTZ,
    reviewed_by             VARCHAR(255),
    created_at              TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
    updated_at              TIMESTAMPTZ  NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS event_analytics (
    id          UUID PRIMARY KEY,
    event_type  VARCHAR(50)  NOT NULL,
    ip_address  VARCHAR(45),
    user_agent  TEXT,
    referrer    VARCHAR(500),
    timestamp   TIMESTAMPTZ  NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_registrations_created_at ON registrations (created_at DESC);
CREATE INDEX IF NOT EXISTS idx_questions_created_at ON questions (created_at DESC);
CREATE INDEX IF NOT EXISTS idx_partnerships_created_at ON partnerships (created_at DESC);
CREATE INDEX IF NOT EXISTS idx_exhibitors_created_at ON exhibitors (created_at DESC);
CREATE INDEX IF NOT EXISTS idx_feedback_created_at ON feedback (created_at DESC);
CREATE INDEX IF NOT EXISTS idx_event_analytics_type_ts ON event_analytics (event_type, timestamp DESC);
"""


def init_schema() -> None:
    """Create all tables and indexes. Raises on database errors."""
    with get_db_cursor(dict_cursor=False) as cur:
        cur.execute(SCHEMA_SQL)
    logger.info("Database schema initialised")
