"""
List Tasks Handler - admin view of all task submissions.
GET /admin/tasks?status=Pending,Approved&q=search
"""
from shared.config import config
from shared.dynamo import DynamoStore
from shared.errors import PersistenceError
from shared.logging import logger, log_event
from shared.models import TaskStatus
from shared.utils import format_response, error_response, get_query_param, require_admin, newest_first

store = DynamoStore()


def parse_status_filter(raw: str) -> list:
    """Split 'Pending,Approved' into known statuses. Empty means no filter."""
    if not raw:
        return []
    statuses = [s.strip() for s in raw.split(',') if s.strip()]
    unknown = [s for s in statuses if s not in TaskStatus.ALL]
    if unknown:
        raise ValueError(f"Unknown status: {', '.join(unknown)}")
    return statuses


def matches_search(item: dict, query: str) -> bool:
    """Case-insensitive match on submitter name, email, task type or id."""
    if not query:
        return True
    query = query.lower()
    users = item.get('users') or {}
    fields = [
        users.get('full_name'),
        users.get('email'),
        item.get('task_type'),
        item.get('id'),
    ]
    return any(query in str(value).lower() for value in fields if value)


def filter_tasks(items: list, statuses: list, query: str) -> list:
    return [
        item for item in items
        if (not statuses or item.get('status') in statuses) and matches_search(item, query)
    ]


def handler(event, context):
    log_event(event)

    denied = require_admin(event)
    if denied:
        return denied

    try:
        statuses = parse_status_filter(get_query_param(event, 'status', ''))
    except ValueError as e:
        return error_response(400, str(e))

    query = (get_query_param(event, 'q', '') or '').strip()

    try:
        items = store.scan(config.USERTASKS_TABLE)
    except PersistenceError as e:
        return error_response(502, f'Could not load tasks: {e}')

    tasks = newest_first(filter_tasks(items, statuses, query), 'submission_time')
    logger.info(f"Listing {len(tasks)} of {len(items)} tasks")

    return format_response(200, {'tasks': tasks, 'count': len(tasks)})
