from unittest.mock import patch

import pytest

from common.errors import PersistenceError
from connectors.firebase.client import FirebaseHttpError
from connectors.firebase.config import FirebaseConfig
from pipelines.identity import (
    FirebaseIdentityProvider,
    InMemoryIdentityProvider,
    UserRecord,
    get_identity_provider,
)


def _config() -> FirebaseConfig:
    return FirebaseConfig(
        database_url="https://demo.firebaseio.com", auth_token="", project_id="demo", access_token="tok"
    )


def test_in_memory_lookup_by_uid_and_email():
    provider = InMemoryIdentityProvider([UserRecord("u1", "Parent@Example.org", {"familyId": "fam1"})])
    assert provider.lookup(uid="u1").custom_claims == {"familyId": "fam1"}
    assert provider.lookup(email="parent@example.org").uid == "u1"
    assert provider.lookup(uid="ghost") is None


def test_in_memory_lookup_returns_copies():
    provider = InMemoryIdentityProvider([UserRecord("u1", "p@example.org", {"familyId": "fam1"})])
    provider.lookup(uid="u1").custom_claims["familyId"] = "other"
    assert provider.lookup(uid="u1").custom_claims == {"familyId": "fam1"}


def test_in_memory_claims_and_revocations():
    provider = InMemoryIdentityProvider()
    provider.add_user(UserRecord("u1", "p@example.org", {"familyId": "fam1", "isStaff": True}))
    provider.set_custom_claims("u1", {"isStaff": True})
    provider.revoke_sessions("u1", 1700000000)
    assert provider.lookup(uid="u1").custom_claims == {"isStaff": True}
    assert provider.revocations == [("u1", 1700000000)]


def test_firebase_provider_maps_account():
    provider = FirebaseIdentityProvider(_config())
    raw = {"localId": "u1", "email": "p@example.org", "customAttributes": '{"familyRole": "primary_guardian"}'}
    with patch("pipelines.identity.lookup_account", return_value=raw) as lookup:
        user = provider.lookup(email="p@example.org")
    lookup.assert_called_once_with(provider._config, uid=None, email="p@example.org")
    assert user == UserRecord("u1", "p@example.org", {"familyRole": "primary_guardian"})


def test_firebase_provider_wraps_errors():
    provider = FirebaseIdentityProvider(_config())
    with patch("pipelines.identity.set_custom_claims", side_effect=FirebaseHttpError(500, "down")):
        with pytest.raises(PersistenceError):
            provider.set_custom_claims("u1", {})
    with patch("pipelines.identity.revoke_refresh_tokens", side_effect=FirebaseHttpError(500, "down")):
        with pytest.raises(PersistenceError):
            provider.revoke_sessions("u1", 1)


def test_get_identity_provider_by_name():
    assert isinstance(get_identity_provider("memory"), InMemoryIdentityProvider)
    with pytest.raises(ValueError):
        get_identity_provider("ldap")
