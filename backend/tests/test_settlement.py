"""
Tests for task review and reward settlement.
"""
import pytest
from decimal import Decimal
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.dirname(__file__))

from fakes import InMemoryStore
from shared.config import config
from shared.errors import PersistenceError
from shared.models import TaskSubmission, TaskStatus
from shared.settlement import build_status_patch, mutate_task_status, write_ledger_entry, settle_review

TASKS = config.USERTASKS_TABLE
LEDGER = config.WALLET_HISTORY_TABLE


def make_item(**overrides):
    item = {
        'id': 't1',
        'user_id': 'u1',
        'task_type': 'gmail',
        'reward': Decimal('50'),
        'status': TaskStatus.PENDING,
        'submission_time': '2026-10-01T10:00:00+00:00',
        'submission_data': {'email': 'fresh@example.com'},
        'users': {'full_name': 'Asha Rao', 'email': 'asha@example.com'},
    }
    item.update(overrides)
    return item


def seeded_store(item=None, fail_on=()):
    store = InMemoryStore(fail_on=fail_on)
    store.seed(TASKS, item or make_item())
    return store


class TestStatusPatch:
    """Tests for build_status_patch metadata merging."""

    def test_rejection_reason_merged_with_existing_metadata(self):
        task = TaskSubmission.from_item(make_item(submission_data={'metadata': {'a': 1}}))

        patch = build_status_patch(task, TaskStatus.REJECTED, 'bad link')

        assert patch['status'] == 'Rejected'
        assert patch['submission_data']['metadata'] == {'a': 1, 'rejection_reason': 'bad link'}

    def test_approval_note_and_payload_preserved(self):
        task = TaskSubmission.from_item(make_item(
            submission_data={'email': 'x@example.com', 'metadata': {'device': 'android'}}
        ))

        patch = build_status_patch(task, TaskStatus.APPROVED, 'looks good')

        assert patch['submission_data'] == {
            'email': 'x@example.com',
            'metadata': {'device': 'android', 'approval_note': 'looks good'},
        }

    def test_same_key_is_overwritten(self):
        task = TaskSubmission.from_item(make_item(
            submission_data={'metadata': {'rejection_reason': 'old'}}
        ))

        patch = build_status_patch(task, TaskStatus.REJECTED, 'new')

        assert patch['submission_data']['metadata'] == {'rejection_reason': 'new'}

    def test_no_reason_adds_no_keys(self):
        task = TaskSubmission.from_item(make_item(submission_data={}))

        patch = build_status_patch(task, TaskStatus.APPROVED)

        assert patch['submission_data'] == {'metadata': {}}

    def test_task_is_not_modified(self):
        task = TaskSubmission.from_item(make_item(submission_data={'metadata': {'a': 1}}))

        build_status_patch(task, TaskStatus.REJECTED, 'bad link')

        assert task.submission_data == {'metadata': {'a': 1}}

    def test_invalid_status_rejected(self):
        task = TaskSubmission.from_item(make_item())

        with pytest.raises(ValueError):
            build_status_patch(task, TaskStatus.PENDING)


class TestLedgerEntryWriter:
    """Tests for write_ledger_entry."""

    def test_inserts_completed_task_reward(self):
        store = InMemoryStore()

        entry = write_ledger_entry(store, 'u1', Decimal('12.5'), 'Reward for task: gmail')

        assert store.calls_for('insert') == [('insert', LEDGER, {
            'user_id': 'u1',
            'amount': Decimal('12.5'),
            'type': 'task_reward',
            'status': 'Completed',
            'description': 'Reward for task: gmail',
        })]
        assert entry['id']

    def test_not_idempotent(self):
        store = InMemoryStore()

        write_ledger_entry(store, 'u1', Decimal('5'), 'Reward for task: gmail')
        write_ledger_entry(store, 'u1', Decimal('5'), 'Reward for task: gmail')

        assert len(store.tables[LEDGER]) == 2

    def test_failure_propagates(self):
        store = InMemoryStore(fail_on={'insert'})

        with pytest.raises(PersistenceError):
            write_ledger_entry(store, 'u1', Decimal('5'), 'Reward for task: gmail')


class TestTaskStatusMutator:
    """Tests for mutate_task_status."""

    def test_single_update_by_id(self):
        store = seeded_store()
        task = TaskSubmission.from_item(make_item())

        mutate_task_status(store, task, TaskStatus.REJECTED, 'invalid proof')

        updates = store.calls_for('update')
        assert len(updates) == 1
        assert updates[0][1] == TASKS
        assert updates[0][2] == {'id': 't1'}

    def test_missing_record_raises(self):
        store = InMemoryStore()
        task = TaskSubmission.from_item(make_item(id='ghost'))

        with pytest.raises(PersistenceError):
            mutate_task_status(store, task, TaskStatus.APPROVED)


class TestSettleReview:
    """Tests for the settle_review coordinator."""

    @pytest.mark.parametrize('reason', [None, 'invalid proof'])
    def test_rejected_never_credits(self, reason):
        store = seeded_store()
        task = TaskSubmission.from_item(make_item())

        outcome = settle_review(store, task, TaskStatus.REJECTED, reason)

        assert len(store.calls_for('update')) == 1
        assert store.calls_for('insert') == []
        assert outcome.credited == 0
        assert outcome.ledger_entry_id is None

    def test_approved_zero_reward_not_credited(self):
        store = seeded_store(make_item(reward=Decimal('0')))
        task = TaskSubmission.from_item(make_item(reward=Decimal('0')))

        outcome = settle_review(store, task, TaskStatus.APPROVED)

        assert len(store.calls_for('update')) == 1
        assert store.calls_for('insert') == []
        assert outcome.status == 'Approved'

    def test_approved_scenario(self):
        """t1 with reward 50 approved with a note: one update then one insert."""
        store = seeded_store()
        task = TaskSubmission.from_item(make_item())

        outcome = settle_review(store, task, TaskStatus.APPROVED, 'looks good')

        assert [call[0] for call in store.calls] == ['update', 'insert']
        _, _, key, patch = store.calls[0]
        assert key == {'id': 't1'}
        assert patch['status'] == 'Approved'
        assert patch['submission_data']['metadata']['approval_note'] == 'looks good'

        _, collection, record = store.calls[1]
        assert collection == LEDGER
        assert record == {
            'user_id': 'u1',
            'amount': Decimal('50'),
            'type': 'task_reward',
            'status': 'Completed',
            'description': 'Reward for task: gmail',
        }
        assert outcome.credited == Decimal('50')
        assert outcome.ledger_entry_id in store.tables[LEDGER]

    def test_rejected_scenario(self):
        store = seeded_store()
        task = TaskSubmission.from_item(make_item())

        settle_review(store, task, TaskStatus.REJECTED, 'invalid proof')

        _, _, _, patch = store.calls_for('update')[0]
        assert patch['status'] == 'Rejected'
        assert patch['submission_data']['metadata']['rejection_reason'] == 'invalid proof'
        assert store.calls_for('insert') == []
        assert store.tables[TASKS]['t1']['status'] == 'Rejected'

    def test_status_failure_skips_ledger(self):
        store = seeded_store(fail_on={'update'})
        task = TaskSubmission.from_item(make_item())

        with pytest.raises(PersistenceError):
            settle_review(store, task, TaskStatus.APPROVED, 'looks good')

        assert len(store.calls_for('insert')) == 0
        assert store.tables[TASKS]['t1']['status'] == 'Pending'

    def test_ledger_failure_leaves_task_approved(self):
        store = seeded_store(fail_on={'insert'})
        task = TaskSubmission.from_item(make_item())

        with pytest.raises(PersistenceError) as exc_info:
            settle_review(store, task, TaskStatus.APPROVED)

        assert exc_info.value.operation == 'insert'
        assert store.get(TASKS, {'id': 't1'})['status'] == 'Approved'
        assert LEDGER not in store.tables

    def test_second_approval_credits_again(self):
        """No prior-status check: re-approving credits twice."""
        store = seeded_store()
        task = TaskSubmission.from_item(make_item())

        settle_review(store, task, TaskStatus.APPROVED)
        settle_review(store, task, TaskStatus.APPROVED)

        assert len(store.tables[LEDGER]) == 2

    def test_invalid_status_makes_no_calls(self):
        store = seeded_store()
        task = TaskSubmission.from_item(make_item())

        with pytest.raises(ValueError):
            settle_review(store, task, 'Paid')

        assert store.calls == []


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
