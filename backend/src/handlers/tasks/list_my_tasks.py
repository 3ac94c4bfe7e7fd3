"""
Task History Handler - the signed-in user's own submissions.
GET /tasks/history
"""
from shared.auth import get_user_sub
from shared.config import config
from shared.dynamo import DynamoStore
from shared.errors import PersistenceError
from shared.logging import log_event
from shared.utils import format_response, error_response, newest_first

store = DynamoStore()


def handler(event, context):
    log_event(event)

    user_id = get_user_sub(event)
    if not user_id:
        return error_response(401, 'Unauthorized')

    try:
        items = store.query_by(config.USERTASKS_TABLE, config.USER_ID_INDEX, 'user_id', user_id)
    except PersistenceError as e:
        return error_response(502, f'Could not load task history: {e}')

    tasks = newest_first(items, 'submission_time')
    return format_response(200, {'tasks': tasks, 'count': len(tasks)})
