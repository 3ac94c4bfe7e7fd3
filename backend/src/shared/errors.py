"""
Exceptions shared by the data layer and the settlement flow.
"""
from typing import Optional


class PersistenceError(Exception):
    """
    Raised when the remote data store reports a failure.

    Covers network errors, permission denials, validation failures and
    updates targeting a record that does not exist.
    """

    def __init__(self, message: str, collection: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.collection = collection
        self.operation = operation
