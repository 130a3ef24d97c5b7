"""
Submissions - kind-specific intake and review rules
Thin layer over engine/workflow.py: shapes validated form payloads into rows,
applies the per-kind business rules, and handles the question upvote.

Payloads arrive already validated (see summitdesk/validation.py); nothing
here re-checks field formats.
"""

import json
import logging
from typing import Any, Dict, Optional

import psycopg2

from summitdesk.db.connection import get_db_cursor
from summitdesk.engine import workflow
from summitdesk.engine.kinds import REGISTRATION, QUESTION, PARTNERSHIP, EXHIBITOR, FEEDBACK
from summitdesk.models import Result, RequestOrigin, FAILURE_NOT_FOUND
from summitdesk.bus.events import bus, EVENT_QUESTION_UPVOTED

logger = logging.getLogger(__name__)

ANONYMOUS_NAME = 'Anonymous'
DEFAULT_QUESTION_CATEGORY = 'general'
DUPLICATE_PARTNERSHIP_MESSAGE = 'A partnership inquiry from this email already exists. We will contact you soon.'


def _blank_to_none(values: Dict[str, Any]) -> Dict[str, Any]:
    """Empty strings from optional form fields are stored as NULL."""
    return {k: (None if isinstance(v, str) and not v.strip() else v) for k, v in values.items()}


def _pick(data: Dict[str, Any], columns) -> Dict[str, Any]:
    return {col: data.get(col) for col in columns}


# =============================================================================
# INTAKE
# =============================================================================

def create_registration(data: Dict[str, Any], origin: Optional[RequestOrigin] = None) -> Result:
    values = _blank_to_none(_pick(data, REGISTRATION.insert_columns))
    return workflow.create_record(REGISTRATION, values, origin=origin)


def create_question(data: Dict[str, Any], origin: Optional[RequestOrigin] = None) -> Result:
    """
    Anonymous submissions (or a blank name) are stored under 'Anonymous';
    a missing category becomes 'general'.
    """
    values = _blank_to_none(_pick(data, QUESTION.insert_columns))
    if data.get('is_anonymous') or not values.get('name'):
        values['name'] = ANONYMOUS_NAME
    values['category'] = values.get('category') or DEFAULT_QUESTION_CATEGORY
    return workflow.create_record(QUESTION, values, origin=origin)


def create_partnership(data: Dict[str, Any], origin: Optional[RequestOrigin] = None) -> Result:
    """
    One inquiry per contact email. The check and the insert are a single
    statement (INSERT ... ON CONFLICT (email) DO NOTHING) backed by the
    UNIQUE constraint on partnerships.email.
    """
    values = _blank_to_none(_pick(data, PARTNERSHIP.insert_columns))
    values['email'] = (values.get('email') or '').strip().lower()
    return workflow.create_record(
        PARTNERSHIP,
        values,
        origin=origin,
        unique_column='email',
        duplicate_message=DUPLICATE_PARTNERSHIP_MESSAGE,
    )


def create_exhibitor(data: Dict[str, Any], origin: Optional[RequestOrigin] = None) -> Result:
    """The SDG selection list is serialized to a JSON string column."""
    values = _blank_to_none(_pick(data, EXHIBITOR.insert_columns))
    values['sdg_alignment'] = json.dumps(list(data.get('sdg_alignment') or []))
    return workflow.create_record(EXHIBITOR, values, origin=origin)


def create_feedback(data: Dict[str, Any], origin: Optional[RequestOrigin] = None) -> Result:
    values = _blank_to_none(_pick(data, FEEDBACK.insert_columns))
    return workflow.create_record(FEEDBACK, values, origin=origin)


# =============================================================================
# QUESTION UPVOTES
# =============================================================================

def upvote_question(question_id) -> Result:
    """
    Add one upvote and mark the question 'reviewed'.

    The increment is relative (upvotes = upvotes + 1) so concurrent upvotes
    are serialized by the row lock and none is lost. The first upvote counts
    as leaving the initial status, so reviewed_at is stamped if still empty.
    """
    parsed = workflow.parse_record_id(question_id)
    if parsed is None:
        return Result.fail('Question not found', FAILURE_NOT_FOUND)

    try:
        with get_db_cursor() as cur:
            cur.execute("""
                UPDATE questions
                SET upvotes = upvotes + 1,
                    status = 'reviewed',
                    reviewed_at = COALESCE(reviewed_at, NOW()),
                    updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, (parsed,))
            row = cur.fetchone()
    except psycopg2.Error as e:
        logger.error(f"Failed to upvote question {parsed}: {e}")
        return Result.fail('Failed to upvote question.')

    if row is None:
        logger.warning(f"upvote_question: id={parsed} not found")
        return Result.fail('Question not found', FAILURE_NOT_FOUND)

    question = QUESTION.model(**row)
    logger.info(f"Upvoted question ID {parsed}: {question.upvotes} votes")
    bus.emit(EVENT_QUESTION_UPVOTED, {'kind': QUESTION.name, 'record_id': question.id, 'upvotes': question.upvotes})
    return Result.ok(question, 'Question upvoted successfully!')


# =============================================================================
# LOOKUPS
# =============================================================================

def find_registration_by_email(email: str) -> Result:
    """Most recent registration for an email; data is None when there is none."""
    try:
        with get_db_cursor() as cur:
            cur.execute("""
                SELECT * FROM registrations
                WHERE LOWER(email) = LOWER(%s)
                ORDER BY created_at DESC
                LIMIT 1
            """, (email.strip(),))
            row = cur.fetchone()
    except psycopg2.Error as e:
        logger.error(f"Failed to look up registration by email: {e}")
        return Result.fail('Failed to retrieve registration.')

    return Result.ok(REGISTRATION.model(**row) if row else None)

