"""
Configuration module for Lambda handlers.
Loads all environment variables needed by the CookieMail backend.
"""
import os


class Config:
    """Centralized configuration from environment variables."""

    # AWS Region
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # DynamoDB Tables
    USERTASKS_TABLE = os.environ.get('USERTASKS_TABLE', 'usertasks')
    WALLET_HISTORY_TABLE = os.environ.get('WALLET_HISTORY_TABLE', 'wallet_history')

    # GSI on user_id, present on both tables
    USER_ID_INDEX = os.environ.get('USER_ID_INDEX', 'UserIdIndex')

    # Cognito group allowed to use /admin routes
    ADMIN_GROUP = os.environ.get('ADMIN_GROUP', 'admin')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


config = Config()
