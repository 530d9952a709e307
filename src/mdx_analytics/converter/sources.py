"""Record-source contract and the per-category queries issued against it."""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Protocol, Sequence, Type

from pydantic import BaseModel

from mdx_analytics.aggregation import Category, Record
from .schemas import EventRow, PageViewRow, UserActivityRow


class RecordSource(Protocol):
    """Executes a parameterized query and returns rows as mappings."""

    def query(self, sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        ...


@dataclass(frozen=True)
class SourceQuery:
    """How one category is read from the record source."""
    category: Category
    label: str
    sql: str
    row_model: Type[BaseModel]
    to_record: Callable[[Any], Record]


def _page_view_record(row: PageViewRow) -> Record:
    return Record(
        timestamp=row.timestamp,
        value=1,
        metadata={
            "path": row.path,
            "userAgent": row.user_agent,
            "referrer": row.referrer,
            "sessionId": row.session_id
        }
    )


def _event_record(row: EventRow) -> Record:
    return Record(
        timestamp=row.timestamp,
        value=row.participants or 0,
        metadata={"eventId": row.event_id, "eventType": row.event_type, **row.metadata}
    )


def _user_activity_record(row: UserActivityRow) -> Record:
    return Record(
        timestamp=row.timestamp,
        value=1,
        metadata={"userId": row.user_id, "activityType": row.activity_type, **row.metadata}
    )


SOURCES: Dict[Category, SourceQuery] = {
    Category.PAGE_VIEWS: SourceQuery(
        category=Category.PAGE_VIEWS,
        label="page views",
        sql=(
            "SELECT id, path, timestamp, user_agent, referrer, session_id "
            "FROM page_views "
            "WHERE timestamp >= ? AND timestamp <= ? "
            "ORDER BY timestamp"
        ),
        row_model=PageViewRow,
        to_record=_page_view_record
    ),
    Category.EVENTS: SourceQuery(
        category=Category.EVENTS,
        label="event analytics",
        sql=(
            "SELECT e.id AS event_id, e.type AS event_type, e.start_time AS timestamp, "
            "e.current_participants AS participants, e.analytics_metadata AS metadata "
            "FROM event_details e "
            "WHERE e.start_time >= ? AND e.start_time <= ? "
            "ORDER BY e.start_time"
        ),
        row_model=EventRow,
        to_record=_event_record
    ),
    Category.USER_ACTIVITY: SourceQuery(
        category=Category.USER_ACTIVITY,
        label="user activity",
        sql=(
            "SELECT user_id, activity_type, timestamp, metadata "
            "FROM user_activities "
            "WHERE timestamp >= ? AND timestamp <= ? "
            "ORDER BY timestamp"
        ),
        row_model=UserActivityRow,
        to_record=_user_activity_record
    ),
}
