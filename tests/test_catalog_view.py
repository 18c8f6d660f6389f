import pytest

from app.platform.modules.models import WorkspaceModule
from app.platform.modules.services import get_catalog_view
from app.platform.modules.services.catalog_view import empty_view

from .conftest import OTHER_WORKSPACE, WORKSPACE

pytestmark = pytest.mark.django_db


def _codes(entries):
    return [e["module_code"] for e in entries]


def _actions(entry):
    return [a["action_type"] for a in entry["available_actions"]]


def _by_code(entries, code):
    return next(e for e in entries if e["module_code"] == code)


def test_without_tenant_the_view_is_empty(make_module):
    make_module("crm")

    assert get_catalog_view(None) == empty_view()
    assert get_catalog_view("") == empty_view()


def test_fresh_workspace_sees_installable_catalog(make_module):
    make_module("crm", display_order=2)
    make_module("ledger", display_order=1)
    make_module("draft", status="DRAFT")
    make_module("hidden", active=False)

    view = get_catalog_view(WORKSPACE)

    assert view["installed"] == []
    assert _codes(view["available"]) == ["ledger", "crm"]
    entry = view["available"][0]
    assert _actions(entry) == ["INSTALL"]
    assert entry["permissions"]["can_install"]
    assert entry["installation_status"]["is_installed"] is False


def test_installed_modules_never_appear_as_available(make_module, installer):
    make_module("crm")
    make_module("ledger")
    make_module("stock")
    installer.install(WORKSPACE, "crm")
    installer.install(WORKSPACE, "ledger")
    installer.set_enabled(WORKSPACE, "ledger", False)

    view = get_catalog_view(WORKSPACE)

    assert _codes(view["installed"]) == ["crm"]
    assert _codes(view["available"]) == ["stock"]

    with_disabled = get_catalog_view(WORKSPACE, include_disabled=True)
    assert _codes(with_disabled["installed"]) == ["crm", "ledger"]
    assert _codes(with_disabled["available"]) == ["stock"]


def test_other_workspaces_do_not_leak(make_module, installer):
    make_module("crm")
    installer.install(OTHER_WORKSPACE, "crm")

    view = get_catalog_view(WORKSPACE)

    assert view["installed"] == []
    assert _codes(view["available"]) == ["crm"]


def test_actions_for_installed_modules(make_module, installer):
    make_module("orders")
    make_module("invoices", dependencies=["orders"])
    installer.install(WORKSPACE, "orders")
    installer.install(WORKSPACE, "invoices")

    view = get_catalog_view(WORKSPACE)
    orders = _by_code(view["installed"], "orders")
    invoices = _by_code(view["installed"], "invoices")

    assert _actions(orders) == ["CONFIGURE", "DISABLE"]
    assert not orders["permissions"]["can_uninstall"]
    assert _actions(invoices) == ["UNINSTALL", "CONFIGURE", "DISABLE"]
    uninstall = invoices["available_actions"][0]
    assert uninstall["requires_confirmation"]
    assert "Invoices" in uninstall["confirmation_message"]


def test_disabled_module_offers_enable(make_module, installer):
    make_module("crm")
    installer.install(WORKSPACE, "crm")
    installer.set_enabled(WORKSPACE, "crm", False)

    entry = get_catalog_view(WORKSPACE, include_disabled=True)["installed"][0]

    assert _actions(entry) == ["UNINSTALL", "CONFIGURE", "ENABLE"]
    assert entry["permissions"]["can_enable"]
    assert not entry["permissions"]["can_disable"]
    assert entry["installation_status"]["status"] == "DISABLED"


def test_error_record_offers_no_enable_action(make_module, installer):
    make_module("crm")
    installer.install(WORKSPACE, "crm")
    WorkspaceModule.objects.filter(workspace_id=WORKSPACE).update(status="ERROR", enabled=False)

    entry = get_catalog_view(WORKSPACE, include_disabled=True)["installed"][0]

    assert _actions(entry) == ["UNINSTALL", "CONFIGURE"]
    assert not entry["permissions"]["can_enable"]
    assert not entry["permissions"]["can_disable"]


def test_update_action_when_catalog_version_is_newer(make_module, installer):
    module = make_module("crm", version="1.0.0")
    installer.install(WORKSPACE, "crm")
    module.version = "1.2.0"
    module.save()

    entry = get_catalog_view(WORKSPACE)["installed"][0]

    assert _actions(entry)[-1] == "UPDATE"
    update = entry["available_actions"][-1]
    assert update["confirmation_message"] == "Update Crm to version 1.2.0?"
    assert entry["permissions"]["can_update"]
    assert entry["installation_status"]["installed_version"] == "1.0.0"


def test_statistics_and_attention(make_module, installer):
    make_module("orders")
    make_module("invoices", dependencies=["orders"])
    make_module("crm")
    make_module("stock")
    installer.install(WORKSPACE, "orders")
    installer.install(WORKSPACE, "invoices")
    installer.install(WORKSPACE, "crm")
    installer.set_enabled(WORKSPACE, "orders", False)

    view = get_catalog_view(WORKSPACE)

    assert view["statistics"] == {
        "total_installed": 3,
        "total_available": 1,
        "enabled_modules": 2,
        "disabled_modules": 1,
        "modules_needing_attention": 2,
    }
    invoices = _by_code(view["installed"], "invoices")
    assert invoices["installation_status"]["needs_attention"]
    crm = _by_code(view["installed"], "crm")
    assert not crm["installation_status"]["needs_attention"]
    assert crm["installation_status"]["health_score"] == 1.0


def test_category_filter_and_categories(make_module, installer):
    make_module("crm", category="CUSTOMER_MANAGEMENT")
    make_module("ledger", category="FINANCIAL_MANAGEMENT")
    make_module("tax", category="FINANCIAL_MANAGEMENT")
    installer.install(WORKSPACE, "ledger")

    view = get_catalog_view(WORKSPACE, category="FINANCIAL_MANAGEMENT")

    assert _codes(view["installed"]) == ["ledger"]
    assert _codes(view["available"]) == ["tax"]
    assert view["categories"] == [{
        "code": "FINANCIAL_MANAGEMENT",
        "display_name": "Financial Management",
        "description": "Invoicing, billing and tax compliance",
        "icon": "account_balance",
    }]


def test_workspace_overrides_are_shown(make_module, installer):
    make_module("crm", category="CUSTOMER_MANAGEMENT")
    installer.install(WORKSPACE, "crm")
    installer.configure(WORKSPACE, "crm", {"custom_name": "Clients"})

    entry = get_catalog_view(WORKSPACE)["installed"][0]

    assert entry["name"] == "Clients"
    assert entry["module_code"] == "crm"


def test_statistics_follow_the_category_filter(make_module, installer):
    make_module("crm", category="CUSTOMER_MANAGEMENT")
    make_module("ledger", category="FINANCIAL_MANAGEMENT")
    make_module("tax", category="FINANCIAL_MANAGEMENT")
    make_module("invoices", category="FINANCIAL_MANAGEMENT")
    installer.install(WORKSPACE, "crm")
    installer.install(WORKSPACE, "ledger")
    installer.install(WORKSPACE, "tax")
    installer.set_enabled(WORKSPACE, "tax", False)

    view = get_catalog_view(WORKSPACE, category="FINANCIAL_MANAGEMENT")

    assert _codes(view["installed"]) == ["ledger"]
    assert view["statistics"] == {
        "total_installed": 2,
        "total_available": 1,
        "enabled_modules": 1,
        "disabled_modules": 1,
        "modules_needing_attention": 1,
    }

    empty = get_catalog_view(WORKSPACE, category="COMMUNICATION")
    assert empty["installed"] == []
    assert empty["statistics"]["total_installed"] == 0
