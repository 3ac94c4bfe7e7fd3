"""
Review Task Handler - admin approves or rejects a task submission.
POST /admin/tasks/{taskId}/review
"""
from shared.config import config
from shared.dynamo import DynamoStore
from shared.errors import PersistenceError
from shared.logging import logger, log_event
from shared.models import TaskStatus, TaskSubmission
from shared.settlement import settle_review
from shared.utils import format_response, error_response, parse_body, get_path_param, require_admin

store = DynamoStore()


def handler(event, context):
    """
    POST /admin/tasks/{taskId}/review
    Body: { "status": "Approved" | "Rejected", "reason": "Optional note" }

    Approving a submission with a positive reward also credits the user's
    wallet with a task_reward entry.
    """
    log_event(event)

    denied = require_admin(event)
    if denied:
        return denied

    task_id = get_path_param(event, 'taskId')
    if not task_id:
        return error_response(400, 'Missing taskId')

    body = parse_body(event)
    status = body.get('status')
    reason = body.get('reason') or None

    if status not in TaskStatus.REVIEW_OUTCOMES:
        return error_response(400, 'Invalid status. Must be Approved or Rejected')

    if reason is not None and not isinstance(reason, str):
        return error_response(400, 'reason must be a string')

    try:
        item = store.get(config.USERTASKS_TABLE, {'id': task_id})
        if not item:
            return error_response(404, 'Task not found')

        outcome = settle_review(store, TaskSubmission.from_item(item), status, reason)

    except ValueError as e:
        return error_response(400, str(e))
    except PersistenceError as e:
        return error_response(502, f'Review failed: {e}')
    except Exception as e:
        logger.exception(f"Error reviewing task {task_id}: {e}")
        return error_response(500, 'Internal Server Error')

    return format_response(200, outcome.to_dict())
