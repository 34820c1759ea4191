"""
User factory for test data generation.
"""

import factory

from studyhub.core.security import get_password_hash
from studyhub.models.user import User, new_id
from tests.factories.base import AsyncFactory

DEFAULT_PASSWORD = "Password123"


class UserFactory(AsyncFactory):
    """
    Factory for User model.

    Default password: "Password123" (hashed)
    """

    class Meta:
        model = User

    id = factory.LazyFunction(new_id)
    username = factory.Sequence(lambda n: f"student{n}")
    email = factory.Sequence(lambda n: f"student{n}@example.com")
    password_hash = factory.LazyFunction(lambda: get_password_hash(DEFAULT_PASSWORD))
    profile_image = None
