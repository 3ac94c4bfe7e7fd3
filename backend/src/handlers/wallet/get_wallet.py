from decimal import Decimal
from shared.auth import get_user_sub
from shared.config import config
from shared.dynamo import DynamoStore
from shared.errors import PersistenceError
from shared.logging import logger
from shared.models import LedgerEntryStatus, to_decimal
from shared.utils import format_response, error_response, newest_first

store = DynamoStore()


def summarize_history(entries: list) -> dict:
    """Sum signed amounts of Completed entries (balance) and Pending entries (pending)."""
    balance = Decimal('0')
    pending = Decimal('0')
    for entry in entries:
        status = entry.get('status')
        if status == LedgerEntryStatus.COMPLETED:
            balance += to_decimal(entry.get('amount'))
        elif status == LedgerEntryStatus.PENDING:
            pending += to_decimal(entry.get('amount'))
    return {'balance': balance, 'pending': pending}


def handler(event, context):
    """
    Handler to get the current user's wallet history and balance.
    GET /wallet
    """
    user_id = get_user_sub(event)
    if not user_id:
        return error_response(401, 'Unauthorized')

    try:
        entries = store.query_by(config.WALLET_HISTORY_TABLE, config.USER_ID_INDEX, 'user_id', user_id)
    except PersistenceError as e:
        logger.error(f"Error getting wallet for {user_id}: {e}")
        return error_response(502, 'Could not load wallet')

    totals = summarize_history(entries)

    return format_response(200, {
        'userId': user_id,
        'balance': totals['balance'],
        'pending': totals['pending'],
        'history': newest_first(entries, 'created_at'),
    })
