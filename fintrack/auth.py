"""Request authentication.

Sign-in and sessions are handled by the identity provider in front of this
service; by the time a request arrives here the provider's proxy has
verified the session and forwarded the user id in a trusted header.
"""

from fastapi import Depends, Request

from fintrack.config import settings
from fintrack.db.sqlite import Database, UserTransactions, get_database
from fintrack.errors import AuthenticationError


def get_current_user(request: Request) -> str:
    """Get the authenticated user's id, or fail with 401."""
    user_id = request.headers.get(settings.auth_user_header, "").strip()
    if not user_id:
        raise AuthenticationError()
    return user_id


def get_user_transactions(
    user_id: str = Depends(get_current_user),
    database: Database = Depends(get_database),
) -> UserTransactions:
    """Get the transaction accessor scoped to the authenticated user."""
    return database.for_user(user_id)
