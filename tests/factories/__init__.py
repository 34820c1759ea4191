"""
Data factories for test data generation.

Factories use factory-boy to create realistic test data with sensible defaults.
All factories support async creation via create_async().

Usage:
    from tests.factories import UserFactory, ContentFactory

    user = await UserFactory.create_async(db_session, email="custom@test.com")
    item = await ContentFactory.create_async(db_session, owner_id=user.id, status="approved")
"""

from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.factories.content import ContentFactory
from tests.factories.discussion import AnswerFactory, CommentFactory
from tests.factories.chat import ChatMessageFactory

__all__ = [
    "DEFAULT_PASSWORD",
    "UserFactory",
    "ContentFactory",
    "AnswerFactory",
    "CommentFactory",
    "ChatMessageFactory",
]
