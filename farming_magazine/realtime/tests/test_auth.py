import pytest
from rest_framework_simplejwt.tokens import AccessToken
from rest_framework_simplejwt.tokens import RefreshToken

from farming_magazine.realtime.auth import authenticate
from farming_magazine.realtime.auth import extract_token

pytestmark = pytest.mark.django_db


class TestExtractToken:
    def test_reads_token_query_parameter(self):
        scope = {"query_string": b"token=abc.def.ghi&lang=en"}
        assert extract_token(scope) == "abc.def.ghi"

    def test_missing_token(self):
        assert extract_token({"query_string": b"lang=en"}) is None
        assert extract_token({}) is None

    def test_empty_token(self):
        assert extract_token({"query_string": b"token="}) is None


class TestAuthenticate:
    def test_valid_access_token(self, admin_role_user):
        token = str(AccessToken.for_user(admin_role_user))

        identity = authenticate(token)

        assert identity is not None
        assert identity.user_id == admin_role_user.pk
        assert identity.role == "admin"

    def test_missing_token(self):
        assert authenticate(None) is None
        assert authenticate("") is None

    def test_garbage_token(self):
        assert authenticate("not-a-jwt") is None

    def test_refresh_token_is_not_accepted(self, user):
        token = str(RefreshToken.for_user(user))
        assert authenticate(token) is None

    def test_inactive_user_rejected(self, user):
        token = str(AccessToken.for_user(user))
        user.is_active = False
        user.save(update_fields=["is_active"])

        assert authenticate(token) is None

    def test_deleted_user_rejected(self, user):
        token = str(AccessToken.for_user(user))
        user.delete()

        assert authenticate(token) is None
