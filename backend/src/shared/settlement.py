"""
Task review and reward settlement.

Reviewing a submission is two separate writes: the status change on
usertasks, then (approvals with a positive reward only) a task_reward entry
in wallet_history. The store gives no transaction across them, so a failed
ledger insert leaves the task Approved with nothing credited. The prior
status is not checked; reviewing the same submission twice credits twice.
"""
from decimal import Decimal
from typing import Any, Dict, Optional

from .config import config
from .errors import PersistenceError
from .logging import logger
from .models import (
    APPROVAL_NOTE,
    REJECTION_REASON,
    LedgerEntryStatus,
    LedgerEntryType,
    SettlementOutcome,
    TaskStatus,
    TaskSubmission,
)


def build_status_patch(task: TaskSubmission, status: str, reason: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the usertasks patch for a review decision.

    The reason lands in submission_data.metadata as rejection_reason or
    approval_note. Existing metadata keys and the rest of submission_data
    are carried over.

    Raises:
        ValueError: status is not Approved or Rejected
    """
    if status not in TaskStatus.REVIEW_OUTCOMES:
        raise ValueError(f"Invalid status '{status}'. Must be one of {', '.join(TaskStatus.REVIEW_OUTCOMES)}")

    metadata = dict(task.metadata)
    if reason:
        if status == TaskStatus.REJECTED:
            metadata[REJECTION_REASON] = reason
        else:
            metadata[APPROVAL_NOTE] = reason

    submission_data = dict(task.submission_data or {})
    submission_data['metadata'] = metadata

    return {
        'status': status,
        'submission_data': submission_data,
    }


def mutate_task_status(store, task: TaskSubmission, status: str, reason: Optional[str] = None) -> Dict[str, Any]:
    """Apply a review decision to one submission. PersistenceError propagates."""
    patch = build_status_patch(task, status, reason)
    store.update(config.USERTASKS_TABLE, {'id': task.id}, patch)
    logger.info(f"Task {task.id} marked {status}")
    return patch


def write_ledger_entry(store, user_id: str, amount: Decimal, description: str) -> Dict[str, Any]:
    """
    Append a completed task_reward entry to a user's wallet history.

    Not idempotent: every call inserts a new entry.
    """
    entry = store.insert(config.WALLET_HISTORY_TABLE, {
        'user_id': user_id,
        'amount': amount,
        'type': LedgerEntryType.TASK_REWARD,
        'status': LedgerEntryStatus.COMPLETED,
        'description': description,
    })
    logger.info(f"Credited {amount} to {user_id} ({description})")
    return entry


def settle_review(store, task: TaskSubmission, status: str, reason: Optional[str] = None) -> SettlementOutcome:
    """
    Review a submission and credit its reward when approved.

    Order is fixed: status first, reward second. A failing status update
    aborts before any ledger write. A failing ledger write is re-raised
    after the status change has already been stored.

    Args:
        store: Data store exposing update() and insert()
        task: The submission under review
        status: 'Approved' or 'Rejected'
        reason: Optional note stored in the submission metadata

    Returns:
        SettlementOutcome describing what was written
    """
    mutate_task_status(store, task, status, reason)

    if status != TaskStatus.APPROVED or task.reward <= 0:
        return SettlementOutcome(task_id=task.id, status=status)

    try:
        entry = write_ledger_entry(
            store,
            task.user_id,
            task.reward,
            f'Reward for task: {task.task_type}',
        )
    except PersistenceError:
        logger.error(
            f"Task {task.id} is Approved but reward {task.reward} was not credited to {task.user_id}"
        )
        raise

    return SettlementOutcome(
        task_id=task.id,
        status=status,
        credited=task.reward,
        ledger_entry_id=entry.get('id'),
    )
