"""
Submission Review Workflow - Core Database Operations
Generic intake / listing / transition / deletion / aggregation shared by every
submission kind. Kind-specific rules live in engine/kinds.py and
engine/submissions.py.

Every public function returns a Result and never lets a psycopg2 error escape:
storage failures are logged and converted into a generic failure message.
Events are emitted on the bus only after the write has committed.
"""

import logging
import uuid
from typing import Any, Dict, Optional

import psycopg2

from summitdesk.db.connection import get_db_cursor
from summitdesk.engine.kinds import EntityKind
from summitdesk.models import (
    Result, RequestOrigin,
    FAILURE_INVALID, FAILURE_DUPLICATE, FAILURE_NOT_FOUND,
)
from summitdesk.bus.events import (
    bus, EVENT_SUBMISSION_CREATED, EVENT_SUBMISSION_STATUS_CHANGED, EVENT_SUBMISSION_DELETED,
)

logger = logging.getLogger(__name__)


def _validate_columns(values: Dict[str, Any], allowed, entity: str) -> None:
    """Raise ValueError if any key in values is not an allowed column name."""
    invalid = set(values.keys()) - set(allowed)
    if invalid:
        raise ValueError(f"Invalid {entity} fields: {sorted(invalid)}")


def parse_record_id(record_id) -> Optional[str]:
    """Canonical UUID string, or None when record_id cannot be a row id."""
    try:
        return str(uuid.UUID(str(record_id)))
    except (ValueError, TypeError, AttributeError):
        return None


def _title(kind: EntityKind) -> str:
    return kind.label[:1].upper() + kind.label[1:]


def _invalid_status(kind: EntityKind, status) -> Result:
    logger.warning(f"Rejected {kind.name} status {status!r}")
    return Result.fail(
        f"Invalid status '{status}' for {kind.label}. Allowed: {', '.join(kind.statuses)}",
        FAILURE_INVALID,
    )


# =============================================================================
# INTAKE
# =============================================================================

def create_record(
    kind: EntityKind,
    values: Dict[str, Any],
    origin: Optional[RequestOrigin] = None,
    unique_column: Optional[str] = None,
    duplicate_message: Optional[str] = None,
) -> Result:
    """
    Insert a validated payload as a new record in the kind's initial status.

    Args:
        kind: Entity kind to write
        values: Column -> value for the kind's insert columns; absent optional
            columns are stored as NULL
        origin: Request metadata forwarded to bus listeners (analytics)
        unique_column: If set, the insert becomes INSERT ... ON CONFLICT (col)
            DO NOTHING and a conflict is reported as a duplicate failure
        duplicate_message: Error text for that duplicate failure
    Returns: Result with the created record
    """
    try:
        _validate_columns(values, kind.insert_columns, kind.name)
    except ValueError as e:
        logger.error(f"create_record: {e}")
        return Result.fail(str(e), FAILURE_INVALID)

    params = {col: values.get(col) for col in kind.insert_columns}
    params['id'] = str(uuid.uuid4())
    params['status'] = kind.initial_status

    columns = ', '.join(kind.insert_columns)
    placeholders = ', '.join(f"%({col})s" for col in kind.insert_columns)
    conflict_clause = f"ON CONFLICT ({unique_column}) DO NOTHING" if unique_column else ""

    try:
        with get_db_cursor() as cur:
            cur.execute(f"""
                INSERT INTO {kind.table} (
                    id, {columns}, {kind.status_column}, created_at, updated_at
                ) VALUES (
                    %(id)s, {placeholders}, %(status)s, NOW(), NOW()
                )
                {conflict_clause}
                RETURNING *
            """, params)
            row = cur.fetchone()
    except psycopg2.Error as e:
        logger.error(f"Failed to create {kind.name}: {e}")
        return Result.fail(f"Failed to submit {kind.label}. Please try again.")

    if row is None:
        logger.warning(f"{_title(kind)} intake rejected: duplicate {unique_column} {params.get(unique_column)}")
        return Result.fail(
            duplicate_message or f"A {kind.label} with this {unique_column} already exists.",
            FAILURE_DUPLICATE,
        )

    record = kind.model(**row)
    logger.info(f"Created {kind.name} ID {record.id}")

    bus.emit(EVENT_SUBMISSION_CREATED, {
        'kind': kind.name,
        'record_id': record.id,
        'record': record,
        'origin': origin,
    })

    return Result.ok(record, kind.created_message)


# =============================================================================
# LISTING
# =============================================================================

def list_records(
    kind: EntityKind,
    status: Optional[str] = None,
    filters: Optional[Dict[str, Any]] = None,
) -> Result:
    """
    All records of a kind, newest first. No pagination.

    Args:
        status: Optional status filter (must be one of the kind's statuses)
        filters: Optional equality filters on the kind's filter columns
    """
    filters = {k: v for k, v in (filters or {}).items() if v is not None}

    if status is not None and not kind.is_valid_status(status):
        return _invalid_status(kind, status)

    try:
        _validate_columns(filters, kind.filter_columns, kind.name)
    except ValueError as e:
        logger.warning(f"list_records: {e}")
        return Result.fail(str(e), FAILURE_INVALID)

    conditions = []
    params = dict(filters)

    if status is not None:
        conditions.append(f"{kind.status_column} = %(status)s")
        params['status'] = status

    for col in filters:
        conditions.append(f"{col} = %({col})s")

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

    try:
        with get_db_cursor() as cur:
            cur.execute(f"""
                SELECT * FROM {kind.table}
                {where_clause}
                ORDER BY created_at DESC
            """, params)
            rows = cur.fetchall()
    except psycopg2.Error as e:
        logger.error(f"Failed to list {kind.plural}: {e}")
        return Result.fail(f"Failed to retrieve {kind.plural}.")

    logger.debug(f"list_records: {len(rows)} {kind.plural} (status={status}, filters={filters})")
    return Result.ok([kind.model(**row) for row in rows])


def get_record(kind: EntityKind, record_id) -> Result:
    """Single record by id."""
    parsed = parse_record_id(record_id)
    if parsed is None:
        logger.debug(f"get_record: {kind.name} id={record_id!r} is not a UUID")
        return Result.fail(f"{_title(kind)} not found", FAILURE_NOT_FOUND)

    try:
        with get_db_cursor() as cur:
            cur.execute(f"SELECT * FROM {kind.table} WHERE id = %s", (parsed,))
            row = cur.fetchone()
    except psycopg2.Error as e:
        logger.error(f"Failed to fetch {kind.name} {parsed}: {e}")
        return Result.fail(f"Failed to fetch {kind.label}.")

    if row is None:
        logger.debug(f"get_record: {kind.name} id={parsed} not found")
        return Result.fail(f"{_title(kind)} not found", FAILURE_NOT_FOUND)
    return Result.ok(kind.model(**row))


# =============================================================================
# STATUS TRANSITION
# =============================================================================

def transition(
    kind: EntityKind,
    record_id,
    status: str,
    reviewed_by: Optional[str] = None,
    side_fields: Optional[Dict[str, Any]] = None,
) -> Result:
    """
    Overwrite a record's status. Any declared status may follow any other.

    Moving to a non-initial status stamps reviewed_at (and reviewed_by when
    given). Side fields are written only when provided (not None), and only
    if the kind declares them. Kind-specific extras for the target status
    (e.g. Question 'answered') are applied in the same UPDATE.
    """
    if not kind.is_valid_status(status):
        return _invalid_status(kind, status)

    side_fields = {k: v for k, v in (side_fields or {}).items() if v is not None}
    try:
        _validate_columns(side_fields, kind.side_fields, kind.name)
    except ValueError as e:
        logger.warning(f"transition: {e}")
        return Result.fail(str(e), FAILURE_INVALID)

    parsed = parse_record_id(record_id)
    if parsed is None:
        logger.warning(f"transition: {kind.name} id={record_id!r} is not a UUID")
        return Result.fail(f"{_title(kind)} not found", FAILURE_NOT_FOUND)

    set_clauses = [f"{kind.status_column} = %(status)s", "updated_at = NOW()"]
    if status != kind.initial_status:
        set_clauses.append("reviewed_at = NOW()")
        set_clauses.append("reviewed_by = COALESCE(%(reviewed_by)s, reviewed_by)")
    set_clauses.extend(f"{col} = %({col})s" for col in side_fields)
    set_clauses.extend(kind.status_side_effects.get(status, ()))

    params = dict(side_fields)
    params.update({'status': status, 'reviewed_by': reviewed_by, 'record_id': parsed})

    try:
        with get_db_cursor() as cur:
            cur.execute(f"""
                UPDATE {kind.table}
                SET {', '.join(set_clauses)}
                WHERE id = %(record_id)s
                RETURNING *
            """, params)
            row = cur.fetchone()
    except psycopg2.Error as e:
        logger.error(f"Failed to update {kind.name} {parsed} -> {status}: {e}")
        return Result.fail(f"Failed to update {kind.label} status.")

    if row is None:
        logger.warning(f"transition: {kind.name} id={parsed} not found")
        return Result.fail(f"{_title(kind)} not found", FAILURE_NOT_FOUND)

    record = kind.model(**row)
    logger.info(f"Updated {kind.name} ID {parsed}: status={status} by={reviewed_by or '-'} fields={sorted(side_fields)}")

    bus.emit(EVENT_SUBMISSION_STATUS_CHANGED, {
        'kind': kind.name,
        'record_id': record.id,
        'status': status,
        'reviewed_by': reviewed_by,
        'success_state': status in kind.success_states,
    })

    return Result.ok(record, f"{_title(kind)} status updated successfully")


# =============================================================================
# DELETION
# =============================================================================

def delete_record(kind: EntityKind, record_id) -> Result:
    """
    Hard delete. Deleting an id that does not exist succeeds: the row is
    gone either way.
    """
    success_message = f"{_title(kind)} deleted successfully"

    parsed = parse_record_id(record_id)
    if parsed is None:
        logger.debug(f"delete_record: {kind.name} id={record_id!r} is not a UUID, nothing to delete")
        return Result.ok(message=success_message)

    try:
        with get_db_cursor() as cur:
            cur.execute(f"DELETE FROM {kind.table} WHERE id = %s", (parsed,))
            deleted = cur.rowcount
    except psycopg2.Error as e:
        logger.error(f"Failed to delete {kind.name} {parsed}: {e}")
        return Result.fail(f"Failed to delete {kind.label}.")

    if deleted > 0:
        logger.info(f"Deleted {kind.name} ID {parsed}")
        bus.emit(EVENT_SUBMISSION_DELETED, {'kind': kind.name, 'record_id': parsed})
    else:
        logger.debug(f"delete_record: {kind.name} id={parsed} already absent")

    return Result.ok(message=success_message)


# =============================================================================
# AGGREGATION
# =============================================================================

def record_stats(kind: EntityKind) -> Result:
    """
    Per-status counts plus the unfiltered total, e.g.
    {'total': 7, 'pending': 4, 'paid': 2, 'failed': 1, 'refunded': 0}.
    Every declared status is present, zero when unused. A status listed in
    kind.flag_counts is counted from its boolean column instead, so a question
    answered and later archived still counts as answered.
    """
    try:
        with get_db_cursor() as cur:
            cur.execute(f"""
                SELECT {kind.status_column} AS status, COUNT(*) AS count
                FROM {kind.table}
                GROUP BY {kind.status_column}
            """)
            rows = cur.fetchall()
            flagged = {}
            for name, column in kind.flag_counts.items():
                cur.execute(f"SELECT COUNT(*) AS count FROM {kind.table} WHERE {column}")
                flagged[name] = int(cur.fetchone()['count'])
    except psycopg2.Error as e:
        logger.error(f"Failed to aggregate {kind.plural}: {e}")
        return Result.fail(f"Failed to retrieve {kind.label} statistics.")

    counts = {row['status']: int(row['count']) for row in rows}
    stats = {'total': sum(counts.values())}
    for status in kind.statuses:
        stats[status] = flagged.get(status, counts.get(status, 0))

    logger.debug(f"record_stats: {kind.plural} {stats}")
    return Result.ok(stats)
