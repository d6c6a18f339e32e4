from __future__ import annotations

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from farming_magazine.realtime import registry as registry_module
from farming_magazine.realtime.registry import ConnectionRegistry
from tests.permissions.factories import RoleContext
from tests.permissions.factories import create_user_with_role

User = get_user_model()

ROLE_ADMIN = User.Role.ADMIN
ROLE_EDITOR = User.Role.EDITOR
ROLE_SUBSCRIBER = User.Role.SUBSCRIBER
ROLE_STAFF = "staff"


class RoleAPITestCase(APITestCase):
    """Base test case to streamline role fixtures and helpers."""

    def setUp(self):
        super().setUp()
        self.roles: dict[str, RoleContext] = {
            ROLE_ADMIN: create_user_with_role("admin", role=ROLE_ADMIN),
            ROLE_EDITOR: create_user_with_role("editor", role=ROLE_EDITOR),
            ROLE_SUBSCRIBER: create_user_with_role("subscriber"),
            # Django staff without the admin role still counts as an admin.
            ROLE_STAFF: create_user_with_role("staff", is_staff=True),
        }
        self.registry = ConnectionRegistry()
        original = registry_module._registry  # noqa: SLF001
        registry_module._registry = self.registry  # noqa: SLF001
        self.addCleanup(setattr, registry_module, "_registry", original)

    # Utilities -------------------------------------------------------------
    def user(self, role: str):
        return self.roles[role].user

    def authenticate(self, role: str):
        self.client.force_authenticate(user=self.roles[role].user)

    def assert_http_status(self, response, expected_status: int):
        msg = getattr(response, "data", response)
        assert response.status_code == expected_status, msg

    def get(self, url_name: str, *, role: str, reverse_kwargs=None, **kwargs):
        self.authenticate(role)
        url = reverse(url_name, kwargs=reverse_kwargs)
        return self.client.get(url, **kwargs)

    def post(
        self, url_name: str, *, role: str, payload=None, reverse_kwargs=None, **kwargs
    ):
        self.authenticate(role)
        url = reverse(url_name, kwargs=reverse_kwargs)
        return self.client.post(url, data=payload or {}, format="json", **kwargs)

    def assert_allowed(self, response):
        assert response.status_code in (
            status.HTTP_200_OK,
            status.HTTP_201_CREATED,
            status.HTTP_204_NO_CONTENT,
        ), response.data

    def assert_denied(self, response, code=status.HTTP_403_FORBIDDEN):
        assert response.status_code == code, response.data
