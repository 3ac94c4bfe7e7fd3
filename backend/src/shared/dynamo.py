"""
DynamoDB data store used by handlers and the settlement flow.

Collections are table names. Every remote failure surfaces as
PersistenceError; nothing here retries.
"""
import uuid
from datetime import datetime, timezone
from typing import List, Dict, Any, Optional

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from .config import config
from .errors import PersistenceError
from .logging import logger

PRIMARY_KEY = 'id'


def build_update_params(key: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build update_item parameters for a partial update.

    Every field goes through an attribute-name placeholder so reserved words
    like 'status' are safe. The condition makes the update fail instead of
    creating a new item when the key does not exist.

    Args:
        key: Primary key of the item, e.g. {'id': 't1'}
        patch: Fields to set

    Returns:
        Keyword arguments for Table.update_item
    """
    if not patch:
        raise ValueError('Update patch must not be empty')

    names = {}
    values = {}
    assignments = []
    for i, (field, value) in enumerate(patch.items()):
        names[f'#f{i}'] = field
        values[f':v{i}'] = value
        assignments.append(f'#f{i} = :v{i}')

    key_names = []
    for i, key_field in enumerate(key):
        names[f'#k{i}'] = key_field
        key_names.append(f'attribute_exists(#k{i})')

    return {
        'Key': key,
        'UpdateExpression': 'SET ' + ', '.join(assignments),
        'ConditionExpression': ' AND '.join(key_names),
        'ExpressionAttributeNames': names,
        'ExpressionAttributeValues': values,
    }


def _error_message(e: Exception) -> str:
    if isinstance(e, ClientError):
        error = e.response.get('Error', {})
        if error.get('Code') == 'ConditionalCheckFailedException':
            return 'Record not found'
        return f"{error.get('Code', 'ClientError')}: {error.get('Message', str(e))}"
    return str(e)


class DynamoStore:
    """Thin wrapper over the DynamoDB resource API."""

    def __init__(self, resource=None):
        self.dynamodb = resource or boto3.resource('dynamodb', region_name=config.AWS_REGION)

    def _fail(self, collection: str, operation: str, e: Exception):
        message = _error_message(e)
        logger.error(f"Error on {operation} in {collection}: {message}")
        raise PersistenceError(message, collection=collection, operation=operation) from e

    def get(self, collection: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Get a single item, or None if it does not exist."""
        try:
            response = self.dynamodb.Table(collection).get_item(Key=key)
        except (ClientError, BotoCoreError) as e:
            self._fail(collection, 'get', e)
        return response.get('Item')

    def update(self, collection: str, key: Dict[str, Any], patch: Dict[str, Any]) -> None:
        """Set the fields in patch on the item matching key."""
        params = build_update_params(key, patch)
        try:
            self.dynamodb.Table(collection).update_item(**params)
        except (ClientError, BotoCoreError) as e:
            self._fail(collection, 'update', e)
        logger.info(f"Updated {key} in {collection}: {sorted(patch)}")

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert a new record. The store assigns 'id' and 'created_at'.

        Returns:
            The record as written, including the assigned fields
        """
        item = dict(record)
        item[PRIMARY_KEY] = str(uuid.uuid4())
        item['created_at'] = datetime.now(timezone.utc).isoformat()
        try:
            self.dynamodb.Table(collection).put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            self._fail(collection, 'insert', e)
        logger.info(f"Inserted {item[PRIMARY_KEY]} into {collection}")
        return item

    def scan(self, collection: str) -> List[Dict[str, Any]]:
        """Read every item of a collection, following pagination."""
        table = self.dynamodb.Table(collection)
        items = []
        params = {}
        try:
            while True:
                response = table.scan(**params)
                items.extend(response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                params['ExclusiveStartKey'] = last_key
        except (ClientError, BotoCoreError) as e:
            self._fail(collection, 'scan', e)
        return items

    def query_by(
        self,
        collection: str,
        index_name: str,
        attribute: str,
        value: Any
    ) -> List[Dict[str, Any]]:
        """
        Query a GSI for items whose attribute equals value.

        Args:
            collection: Table name
            index_name: GSI partitioned on attribute
            attribute: Partition key attribute of the index
            value: Value to match

        Returns:
            All matching items, across pages
        """
        table = self.dynamodb.Table(collection)
        items = []
        params = {
            'IndexName': index_name,
            'KeyConditionExpression': Key(attribute).eq(value),
        }
        try:
            while True:
                response = table.query(**params)
                items.extend(response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                params['ExclusiveStartKey'] = last_key
        except (ClientError, BotoCoreError) as e:
            self._fail(collection, 'query', e)
        return items
