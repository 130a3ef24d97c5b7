"""
Admin dashboard summary: every kind's status counts plus analytics totals.
"""

import logging

from summitdesk.engine import workflow, analytics
from summitdesk.engine.kinds import ALL_KINDS
from summitdesk.models import Result

logger = logging.getLogger(__name__)


def get_dashboard_stats() -> Result:
    """
    {'registrations': {...}, 'questions': {...}, 'partnerships': {...},
     'exhibitors': {...}, 'feedback': {...}, 'analytics': {...}}

    Fails as a whole if any part fails; the dashboard never shows a partial
    picture.
    """
    stats = {}
    for kind in ALL_KINDS:
        result = workflow.record_stats(kind)
        if not result.success:
            logger.error(f"Dashboard stats failed on {kind.plural}: {result.error}")
            return Result.fail('Failed to retrieve dashboard statistics.', result.failure)
        stats[kind.plural] = result.data

    result = analytics.event_type_counts()
    if not result.success:
        logger.error(f"Dashboard stats failed on analytics: {result.error}")
        return Result.fail('Failed to retrieve dashboard statistics.', result.failure)
    stats['analytics'] = result.data

    return Result.ok(stats)
