import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from pipelines.identity import InMemoryIdentityProvider, UserRecord


@pytest.fixture
def identity():
    return InMemoryIdentityProvider(
        [
            UserRecord("admin1", "admin@example.org"),
            UserRecord("parent1", "parent@example.org", {"familyId": "fam1", "familyRole": "primary_guardian"}),
        ]
    )


@pytest.fixture
def make_client(identity, settings, clock):
    def _make(store) -> TestClient:
        return TestClient(create_app(store=store, identity=identity, settings=settings, clock=clock))

    return _make
