"""
Data models and status constants for CookieMail.
Task submission lifecycle: Pending → Approved (reward credited) | Rejected
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional


class TaskStatus:
    """Task submission review statuses."""
    PENDING = 'Pending'
    APPROVED = 'Approved'
    REJECTED = 'Rejected'

    ALL = (PENDING, APPROVED, REJECTED)
    REVIEW_OUTCOMES = (APPROVED, REJECTED)


class LedgerEntryType:
    """Wallet history entry types."""
    TASK_REWARD = 'task_reward'
    REFERRAL_BONUS = 'referral_bonus'
    SPIN_REWARD = 'spin_reward'
    SCRATCH_REWARD = 'scratch_reward'
    WITHDRAWAL_PENDING = 'withdrawal_pending'
    WITHDRAWAL_REFUND = 'withdrawal_refund'


class LedgerEntryStatus:
    """Wallet history entry statuses."""
    PENDING = 'Pending'
    COMPLETED = 'Completed'
    CANCELLED = 'Cancelled'


# Keys of the documented part of submission_data['metadata']
REJECTION_REASON = 'rejection_reason'
APPROVAL_NOTE = 'approval_note'


def to_decimal(value: Any) -> Decimal:
    """Coerce a DynamoDB/JSON number into Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    if value is None or value == '':
        return Decimal('0')
    return Decimal(str(value))


@dataclass
class TaskSubmission:
    """
    A user's claimed completion of a rewarded task.

    submission_data is opaque apart from its 'metadata' map, which holds
    reviewer notes (rejection_reason / approval_note).
    """
    id: str
    user_id: str
    task_type: str
    reward: Decimal = Decimal('0')
    status: str = TaskStatus.PENDING
    submission_time: Optional[str] = None
    submission_data: Dict[str, Any] = field(default_factory=dict)
    users: Optional[Dict[str, Optional[str]]] = None

    @property
    def metadata(self) -> Dict[str, Any]:
        return (self.submission_data or {}).get('metadata') or {}

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'TaskSubmission':
        """Build from a usertasks item; raises KeyError if id is missing."""
        return cls(
            id=item['id'],
            user_id=item.get('user_id', ''),
            task_type=item.get('task_type', ''),
            reward=to_decimal(item.get('reward')),
            status=item.get('status', TaskStatus.PENDING),
            submission_time=item.get('submission_time'),
            submission_data=item.get('submission_data') or {},
            users=item.get('users'),
        )


@dataclass(frozen=True)
class SettlementOutcome:
    """Result of a review that completed without error."""
    task_id: str
    status: str
    credited: Decimal = Decimal('0')
    ledger_entry_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'taskId': self.task_id,
            'status': self.status,
            'credited': self.credited,
            'ledgerEntryId': self.ledger_entry_id,
        }
