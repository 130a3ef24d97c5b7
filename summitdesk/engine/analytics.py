"""
Event Analytics
Records where public submissions came from and summarises that log for the
admin dashboard.

The write is a bus listener on submission_created, so it runs after the
submission itself has committed, in its own transaction. If it fails the
event is lost and the submission stands; nothing is rolled back.
"""

import logging
import uuid
from typing import Optional

import psycopg2

from summitdesk.db.connection import get_db_cursor
from summitdesk.engine.kinds import ALL_KINDS, get_kind
from summitdesk.models import AnalyticsEvent, RequestOrigin, Result, FAILURE_INVALID
from summitdesk.bus.events import bus, EventBus, EVENT_SUBMISSION_CREATED

logger = logging.getLogger(__name__)

# Only kinds that declare an analytics event can ever write one
EVENT_TYPES = tuple(k.analytics_event for k in ALL_KINDS if k.analytics_event)

DEFAULT_DAILY_WINDOW_DAYS = 30


def record_event(event_type: str, origin: Optional[RequestOrigin] = None) -> AnalyticsEvent:
    """
    Insert one analytics row. Raises psycopg2.Error on failure; callers
    decide whether the event is worth failing over.
    """
    origin = origin or RequestOrigin()
    with get_db_cursor() as cur:
        cur.execute("""
            INSERT INTO event_analytics (id, event_type, ip_address, user_agent, referrer, timestamp)
            VALUES (%(id)s, %(event_type)s, %(ip_address)s, %(user_agent)s, %(referrer)s, NOW())
            RETURNING *
        """, {
            'id': str(uuid.uuid4()),
            'event_type': event_type,
            'ip_address': origin.ip_address,
            'user_agent': origin.user_agent,
            'referrer': origin.referrer,
        })
        row = cur.fetchone()

    logger.debug(f"Recorded analytics event {event_type} from {origin.ip_address or 'unknown'}")
    return AnalyticsEvent(**row)


def on_submission_created(event_data: dict) -> None:
    """Bus handler: log an analytics event for kinds that track one."""
    kind = get_kind(event_data['kind'])
    if not kind.analytics_event:
        return
    try:
        record_event(kind.analytics_event, event_data.get('origin'))
    except psycopg2.Error as e:
        logger.warning(f"Analytics event {kind.analytics_event} lost for {kind.name} {event_data.get('record_id')}: {e}")


def register_handlers(event_bus: EventBus = bus) -> None:
    """Subscribe the analytics listener. Safe to call more than once."""
    event_bus.on(EVENT_SUBMISSION_CREATED, on_submission_created)


# =============================================================================
# QUERIES
# =============================================================================

def list_events(event_type: Optional[str] = None) -> Result:
    """Analytics rows newest first, optionally for one event type."""
    if event_type is not None and event_type not in EVENT_TYPES:
        return Result.fail(f"Unknown event type '{event_type}'", FAILURE_INVALID)

    try:
        with get_db_cursor() as cur:
            if event_type:
                cur.execute("""
                    SELECT * FROM event_analytics
                    WHERE event_type = %s
                    ORDER BY timestamp DESC
                """, (event_type,))
            else:
                cur.execute("SELECT * FROM event_analytics ORDER BY timestamp DESC")
            rows = cur.fetchall()
    except psycopg2.Error as e:
        logger.error(f"Failed to list analytics events: {e}")
        return Result.fail('Failed to retrieve analytics.')

    return Result.ok([AnalyticsEvent(**row) for row in rows])


def event_type_counts() -> Result:
    """{'total': N, '<event_type>': n, ...} with every known type present."""
    try:
        with get_db_cursor() as cur:
            cur.execute("""
                SELECT event_type, COUNT(*) AS count
                FROM event_analytics
                GROUP BY event_type
            """)
            rows = cur.fetchall()
    except psycopg2.Error as e:
        logger.error(f"Failed to aggregate analytics events: {e}")
        return Result.fail('Failed to retrieve analytics statistics.')

    counts = {row['event_type']: int(row['count']) for row in rows}
    stats = {'total': sum(counts.values())}
    for event_type in EVENT_TYPES:
        stats[event_type] = counts.get(event_type, 0)
    return Result.ok(stats)


def daily_counts(days: int = DEFAULT_DAILY_WINDOW_DAYS) -> Result:
    """
    Per-day, per-type counts for the last `days` days, newest day first:
    [{'date': date, 'event_type': str, 'count': int}, ...]
    """
    if days < 1:
        return Result.fail('days must be at least 1', FAILURE_INVALID)

    try:
        with get_db_cursor() as cur:
            cur.execute("""
                SELECT DATE(timestamp) AS date, event_type, COUNT(*) AS count
                FROM event_analytics
                WHERE timestamp >= NOW() - make_interval(days => %s)
                GROUP BY DATE(timestamp), event_type
                ORDER BY DATE(timestamp) DESC, event_type
            """, (days,))
            rows = cur.fetchall()
    except psycopg2.Error as e:
        logger.error(f"Failed to compute daily analytics: {e}")
        return Result.fail('Failed to retrieve daily analytics.')

    return Result.ok([
        {'date': row['date'], 'event_type': row['event_type'], 'count': int(row['count'])}
        for row in rows
    ])
