"""Per-category strategies: extras, merge rules and ranked items."""
from typing import Any, Dict, List, Sequence, Tuple

from mdx_analytics.utils import round_half_up
from .models import Category, Record

UNKNOWN = "unknown"
TOP_PATHS_LIMIT = 10


def _count_by(records: Sequence[Record], key: str) -> Dict[str, int]:
    """Count records per metadata value, mapping missing values to "unknown"."""
    counts: Dict[str, int] = {}
    for record in records:
        name = record.metadata.get(key) or UNKNOWN
        name = str(name)
        counts[name] = counts.get(name, 0) + 1
    return counts


def _distinct(records: Sequence[Record], key: str) -> int:
    return len({record.metadata.get(key) for record in records if record.metadata.get(key)})


def _add_counts(left: Any, right: Any) -> Dict[str, int]:
    merged: Dict[str, int] = {}
    for side in (left, right):
        if not isinstance(side, dict):
            continue
        for name, count in side.items():
            if isinstance(count, (int, float)) and not isinstance(count, bool):
                merged[str(name)] = merged.get(str(name), 0) + count
    return merged


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _rank(counts: Dict[str, int], limit: int) -> List[Tuple[str, int]]:
    # sorted() is stable, so equal counts keep first-seen order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]


class CategoryStrategy:
    """Category-specific behaviour used by the aggregator, codec and queries."""

    category: Category
    title: str
    metric_name: str
    breakdown_field: str
    dev_flush_threshold: int

    def extras(self, records: Sequence[Record]) -> Dict[str, Any]:
        """Compute category-specific header fields for a batch of records."""
        raise NotImplementedError

    def merge_extras(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        """Combine category-specific fields of a persisted and a new aggregate."""
        raise NotImplementedError

    def breakdown_items(self, header: Dict[str, Any]) -> List[Tuple[str, int]]:
        """Extract (name, count) pairs from a header's breakdown field."""
        raw = header.get(self.breakdown_field)
        if not isinstance(raw, dict):
            return []
        return [
            (str(name), count)
            for name, count in raw.items()
            if isinstance(count, (int, float)) and not isinstance(count, bool)
        ]


class PageViewStrategy(CategoryStrategy):
    category = Category.PAGE_VIEWS
    title = "Page Views"
    metric_name = "views"
    breakdown_field = "topPaths"
    dev_flush_threshold = 10

    def extras(self, records: Sequence[Record]) -> Dict[str, Any]:
        return {
            "uniquePaths": len({record.metadata.get("path") for record in records}),
            "uniqueSessions": _distinct(records, "sessionId"),
            "topPaths": self._top_paths(_count_by(records, "path")),
        }

    def merge_extras(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        counts = _add_counts(
            self._path_counts(existing.get("topPaths")),
            self._path_counts(incoming.get("topPaths"))
        )
        return {
            # identity sets are not persisted, so distinct counts are a lower bound
            "uniquePaths": max(_as_int(existing.get("uniquePaths")), _as_int(incoming.get("uniquePaths"))),
            "uniqueSessions": max(_as_int(existing.get("uniqueSessions")), _as_int(incoming.get("uniqueSessions"))),
            "topPaths": self._top_paths(counts),
        }

    def breakdown_items(self, header: Dict[str, Any]) -> List[Tuple[str, int]]:
        return list(self._path_counts(header.get("topPaths")).items())

    @staticmethod
    def _top_paths(counts: Dict[str, int]) -> List[Dict[str, Any]]:
        return [{"path": path, "count": count} for path, count in _rank(counts, TOP_PATHS_LIMIT)]

    @staticmethod
    def _path_counts(raw: Any) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        if not isinstance(raw, list):
            return counts
        for entry in raw:
            if not isinstance(entry, dict) or "path" not in entry:
                continue
            count = entry.get("count")
            if isinstance(count, bool) or not isinstance(count, (int, float)):
                continue
            path = str(entry["path"])
            counts[path] = counts.get(path, 0) + count
        return counts


class EventStrategy(CategoryStrategy):
    category = Category.EVENTS
    title = "Event Analytics"
    metric_name = "events"
    breakdown_field = "eventTypes"
    dev_flush_threshold = 5

    def extras(self, records: Sequence[Record]) -> Dict[str, Any]:
        total_events = len(records)
        total_participants = sum(record.value for record in records)
        return {
            "totalEvents": total_events,
            "totalParticipants": total_participants,
            "eventTypes": _count_by(records, "eventType"),
            "averageParticipants": self._average(total_participants, total_events),
        }

    def merge_extras(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        total_events = _as_int(existing.get("totalEvents")) + _as_int(incoming.get("totalEvents"))
        total_participants = (
            _number_or_zero(existing.get("totalParticipants"))
            + _number_or_zero(incoming.get("totalParticipants"))
        )
        return {
            "totalEvents": total_events,
            "totalParticipants": total_participants,
            "eventTypes": _add_counts(existing.get("eventTypes"), incoming.get("eventTypes")),
            "averageParticipants": self._average(total_participants, total_events),
        }

    @staticmethod
    def _average(participants, events: int) -> int:
        return round_half_up(participants / events) if events > 0 else 0


class UserActivityStrategy(CategoryStrategy):
    category = Category.USER_ACTIVITY
    title = "User Activity"
    metric_name = "activities"
    breakdown_field = "activityTypes"
    dev_flush_threshold = 10

    def extras(self, records: Sequence[Record]) -> Dict[str, Any]:
        unique_users = len({record.metadata.get("userId") for record in records})
        return {
            "uniqueUsers": unique_users,
            "activityTypes": _count_by(records, "activityType"),
            "averageActivitiesPerUser": self._average(len(records), unique_users),
        }

    def merge_extras(self, existing: Dict[str, Any], incoming: Dict[str, Any]) -> Dict[str, Any]:
        activity_types = _add_counts(existing.get("activityTypes"), incoming.get("activityTypes"))
        unique_users = max(_as_int(existing.get("uniqueUsers")), _as_int(incoming.get("uniqueUsers")))
        return {
            "uniqueUsers": unique_users,
            "activityTypes": activity_types,
            "averageActivitiesPerUser": self._average(sum(activity_types.values()), unique_users),
        }

    @staticmethod
    def _average(activities: int, users: int) -> int:
        return round_half_up(activities / users) if users > 0 else 0


def _number_or_zero(value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


STRATEGIES: Dict[Category, CategoryStrategy] = {
    Category.PAGE_VIEWS: PageViewStrategy(),
    Category.EVENTS: EventStrategy(),
    Category.USER_ACTIVITY: UserActivityStrategy(),
}


def strategy_for(category: "Category | str") -> CategoryStrategy:
    """Return the strategy object for a category."""
    return STRATEGIES[Category.parse(category)]
