import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from app.platform.modules.definitions import configuration
from app.platform.modules.models import MasterModule
from app.platform.modules.services import CatalogService, InstallationService
from app.platform.modules.tenancy import Actor

WORKSPACE = "ws-1"
OTHER_WORKSPACE = "ws-2"


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_module(db):
    def _make(module_code, dependencies=(), conflicts_with=(), **fields):
        fields.setdefault("name", module_code.replace("-", " ").title())
        fields.setdefault("description", f"The {module_code} module")
        return MasterModule.objects.create(
            module_code=module_code,
            configuration=configuration(dependencies=dependencies, conflicts_with=conflicts_with),
            **fields,
        )
    return _make


@pytest.fixture
def actor():
    return Actor(user_id="42", name="Ada Admin", email="ada@example.com")


@pytest.fixture
def installer():
    return InstallationService()


@pytest.fixture
def catalog():
    return CatalogService()


@pytest.fixture
def user(django_user_model):
    return django_user_model.objects.create_user(
        username="member", password="pw-member-123", first_name="Grace", last_name="Hopper", email="grace@example.com"
    )


@pytest.fixture
def admin_user(django_user_model):
    return django_user_model.objects.create_user(
        username="root", password="pw-root-123", is_staff=True, email="root@example.com"
    )


@pytest.fixture
def client_for():
    def _client(user, workspace_id=WORKSPACE):
        client = APIClient()
        client.force_authenticate(user=user)
        if workspace_id:
            client.credentials(HTTP_X_WORKSPACE_ID=workspace_id)
        return client
    return _client
