"""
Content factory for test data generation.
"""

from datetime import datetime, timedelta, timezone

import factory

from studyhub.models.content import Content
from studyhub.models.user import new_id
from tests.factories.base import AsyncFactory

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class ContentFactory(AsyncFactory):
    """
    Factory for Content model.

    Defaults to a pending reference link. Each instance is one minute newer
    than the previous one, so "newest first" ordering is deterministic.
    """

    class Meta:
        model = Content

    id = factory.LazyFunction(new_id)
    kind = "reference_link"
    owner_id = None
    status = "pending"
    payload = factory.Sequence(lambda n: {
        "title": f"Reference {n}",
        "url": f"https://example.com/reference/{n}",
    })
    created_at = factory.Sequence(lambda n: BASE_TIME + timedelta(minutes=n))
    updated_at = factory.SelfAttribute("created_at")
