"""
Get Task Handler.
GET /admin/tasks/{taskId}
"""
from shared.config import config
from shared.dynamo import DynamoStore
from shared.errors import PersistenceError
from shared.logging import log_event
from shared.utils import format_response, error_response, get_path_param, require_admin

store = DynamoStore()


def handler(event, context):
    log_event(event)

    denied = require_admin(event)
    if denied:
        return denied

    task_id = get_path_param(event, 'taskId')
    if not task_id:
        return error_response(400, 'Missing taskId')

    try:
        item = store.get(config.USERTASKS_TABLE, {'id': task_id})
    except PersistenceError as e:
        return error_response(502, f'Could not load task: {e}')

    if not item:
        return error_response(404, 'Task not found')

    return format_response(200, {'task': item})
