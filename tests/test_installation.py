import uuid

import pytest

from app.core.models import AuditLog
from app.platform.modules import signals
from app.platform.modules.errors import ModuleError, ModuleErrorCode
from app.platform.modules.models import MasterModule, WorkspaceModule
from app.platform.modules.services import InstallationService

from .conftest import OTHER_WORKSPACE, WORKSPACE

pytestmark = pytest.mark.django_db


def _error(excinfo) -> ModuleError:
    return excinfo.value


def test_dependency_scenario_end_to_end(make_module, installer, actor):
    make_module("mod-a")
    make_module("mod-b", dependencies=["mod-a"])

    with pytest.raises(ModuleError) as excinfo:
        installer.install(WORKSPACE, "mod-b", actor)
    assert _error(excinfo).code == ModuleErrorCode.MISSING_DEPENDENCIES
    assert _error(excinfo).details == ["mod-a"]

    assert installer.install(WORKSPACE, "mod-a", actor).success
    assert installer.install(WORKSPACE, "mod-b", actor).success

    with pytest.raises(ModuleError) as excinfo:
        installer.uninstall(WORKSPACE, "mod-a", actor)
    assert _error(excinfo).code == ModuleErrorCode.HAS_DEPENDENTS
    assert _error(excinfo).details == ["Mod B"]

    assert installer.uninstall(WORKSPACE, "mod-b", actor).success
    assert installer.uninstall(WORKSPACE, "mod-a", actor).success
    assert WorkspaceModule.objects.filter(workspace_id=WORKSPACE).count() == 0


def test_install_is_idempotent(make_module, installer, actor):
    module = make_module("crm")

    first = installer.install(WORKSPACE, "crm", actor)
    second = installer.install(WORKSPACE, "crm", actor)

    assert first.success and second.success
    assert not first.already_installed
    assert second.already_installed
    assert second.module_id == first.module_id
    assert WorkspaceModule.objects.filter(workspace_id=WORKSPACE).count() == 1
    module.refresh_from_db()
    assert module.install_count == 1


def test_concurrent_duplicate_insert_returns_winning_record(make_module, installer, actor, monkeypatch):
    module = make_module("crm")
    winner = installer.install(WORKSPACE, "crm", actor)

    # Simulate a second request that passed the existence check before the winner committed.
    monkeypatch.setattr(installer.installations, "get_by_code", lambda workspace_id, module_code: None)
    loser = installer.install(WORKSPACE, "crm", actor)

    assert loser.success
    assert loser.already_installed
    assert loser.module_id == winner.module_id
    assert WorkspaceModule.objects.filter(workspace_id=WORKSPACE).count() == 1
    module.refresh_from_db()
    assert module.install_count == 1


def test_new_installation_fields(make_module, installer, actor):
    make_module("crm", version="2.3.0")

    result = installer.install(WORKSPACE, "crm", actor)

    record = WorkspaceModule.objects.get(pk=result.module_id)
    assert record.status == "ACTIVE"
    assert record.enabled is True
    assert record.installed_version == "2.3.0"
    assert record.installed_by == "42"
    assert record.display_order == 10


def test_display_order_is_appended_in_steps_of_ten(make_module, installer):
    for code in ("a", "b", "c"):
        make_module(code)
        installer.install(WORKSPACE, code)

    orders = list(
        WorkspaceModule.objects.filter(workspace_id=WORKSPACE)
        .order_by("display_order")
        .values_list("display_order", flat=True)
    )
    assert orders == [10, 20, 30]


def test_install_unknown_module(installer):
    with pytest.raises(ModuleError) as excinfo:
        installer.install(WORKSPACE, "does-not-exist")
    assert _error(excinfo).code == ModuleErrorCode.MODULE_NOT_FOUND


@pytest.mark.parametrize("fields", [{"status": "DRAFT"}, {"status": "DEPRECATED"}, {"active": False}])
def test_install_requires_production_ready_module(make_module, installer, fields):
    make_module("beta", **fields)

    with pytest.raises(ModuleError) as excinfo:
        installer.install(WORKSPACE, "beta")
    assert _error(excinfo).code == ModuleErrorCode.MODULE_NOT_PRODUCTION_READY
    assert not WorkspaceModule.objects.exists()


def test_conflict_gate_only_counts_enabled_modules(make_module, installer):
    make_module("full-crm")
    make_module("lite-crm", conflicts_with=["full-crm"])
    installer.install(WORKSPACE, "full-crm")

    with pytest.raises(ModuleError) as excinfo:
        installer.install(WORKSPACE, "lite-crm")
    assert _error(excinfo).code == ModuleErrorCode.MODULE_CONFLICT
    assert _error(excinfo).details == ["full-crm"]

    installer.set_enabled(WORKSPACE, "full-crm", False)
    assert installer.install(WORKSPACE, "lite-crm").success


def test_disabled_dependency_does_not_satisfy_install(make_module, installer):
    make_module("orders")
    make_module("invoices", dependencies=["orders"])
    installer.install(WORKSPACE, "orders")
    installer.set_enabled(WORKSPACE, "orders", False)

    with pytest.raises(ModuleError) as excinfo:
        installer.install(WORKSPACE, "invoices")
    assert _error(excinfo).code == ModuleErrorCode.MISSING_DEPENDENCIES


def test_dependencies_are_per_workspace(make_module, installer):
    make_module("orders")
    make_module("invoices", dependencies=["orders"])
    installer.install(OTHER_WORKSPACE, "orders")

    with pytest.raises(ModuleError):
        installer.install(WORKSPACE, "invoices")


def test_disabled_dependent_does_not_block_uninstall(make_module, installer):
    make_module("orders")
    make_module("invoices", dependencies=["orders"])
    installer.install(WORKSPACE, "orders")
    installer.install(WORKSPACE, "invoices")
    installer.set_enabled(WORKSPACE, "invoices", False)

    result = installer.uninstall(WORKSPACE, "orders")

    assert result.success
    assert result.module_code == "orders"


def test_uninstall_by_installation_id(make_module, installer):
    make_module("crm")
    installed = installer.install(WORKSPACE, "crm")

    result = installer.uninstall(WORKSPACE, installed.module_id)

    assert result.module_id == installed.module_id
    assert not WorkspaceModule.objects.filter(pk=installed.module_id).exists()


def test_uninstall_of_other_workspace_record_is_not_installed(make_module, installer):
    make_module("crm")
    installed = installer.install(OTHER_WORKSPACE, "crm")

    with pytest.raises(ModuleError) as excinfo:
        installer.uninstall(WORKSPACE, installed.module_id)
    assert _error(excinfo).code == ModuleErrorCode.MODULE_NOT_INSTALLED


def test_install_count_tracks_installs_across_workspaces(make_module, installer):
    module = make_module("crm")
    workspaces = [f"ws-{i}" for i in range(5)]
    for workspace_id in workspaces:
        installer.install(workspace_id, "crm")

    module.refresh_from_db()
    assert module.install_count == 5

    for workspace_id in workspaces[:2]:
        installer.uninstall(workspace_id, "crm")

    module.refresh_from_db()
    assert module.install_count == 3


def test_second_uninstall_with_stale_read_does_not_decrement(make_module, installer, monkeypatch):
    module = make_module("crm")
    installer.install(WORKSPACE, "crm")
    installer.install(OTHER_WORKSPACE, "crm")
    stale = installer.installations.resolve(WORKSPACE, "crm")

    installer.uninstall(WORKSPACE, "crm")
    # A concurrent request that read the row before it was deleted.
    monkeypatch.setattr(installer.installations, "resolve", lambda workspace_id, id_or_code: stale)

    with pytest.raises(ModuleError) as excinfo:
        installer.uninstall(WORKSPACE, "crm")

    assert _error(excinfo).code == ModuleErrorCode.MODULE_NOT_INSTALLED
    module.refresh_from_db()
    assert module.install_count == 1
    assert WorkspaceModule.objects.filter(master_module=module).count() == 1


def test_install_count_never_goes_negative(make_module, installer):
    module = make_module("crm")
    installer.install(WORKSPACE, "crm")
    MasterModule.objects.filter(pk=module.pk).update(install_count=0)

    installer.uninstall(WORKSPACE, "crm")

    module.refresh_from_db()
    assert module.install_count == 0


def test_failed_activation_leaves_error_record(make_module, installer):
    module = make_module("crm")

    def explode(sender, installation, master_module, **kwargs):
        raise RuntimeError("provisioning backend down")

    signals.module_activating.connect(explode)
    try:
        result = installer.install(WORKSPACE, "crm")
    finally:
        signals.module_activating.disconnect(explode)

    assert not result.success
    assert result.status == "ERROR"
    record = WorkspaceModule.objects.get(pk=result.module_id)
    assert record.status == "ERROR"
    module.refresh_from_db()
    assert module.install_count == 1

    with pytest.raises(ModuleError) as excinfo:
        installer.set_enabled(WORKSPACE, "crm", True)
    assert _error(excinfo).code == ModuleErrorCode.MODULE_NOT_ACTIVATABLE

    # A retried install reports the existing record instead of activating again.
    retry = installer.install(WORKSPACE, "crm")
    assert retry.already_installed and retry.status == "ERROR"

    assert installer.uninstall(WORKSPACE, "crm").success
    module.refresh_from_db()
    assert module.install_count == 0


def test_set_enabled_follows_state_machine(make_module, installer):
    make_module("crm")
    installer.install(WORKSPACE, "crm")

    disabled = installer.set_enabled(WORKSPACE, "crm", False)
    assert (disabled.enabled, disabled.status) == (False, "DISABLED")

    again = installer.set_enabled(WORKSPACE, "crm", False)
    assert (again.enabled, again.status) == (False, "DISABLED")

    enabled = installer.set_enabled(WORKSPACE, "crm", True)
    assert (enabled.enabled, enabled.status) == (True, "ACTIVE")

    actions = list(AuditLog.objects.filter(workspace_id=WORKSPACE).values_list("action", flat=True))
    assert actions.count("module.disable") == 1
    assert actions.count("module.enable") == 1


def test_disabling_a_dependency_does_not_cascade(make_module, installer):
    make_module("orders")
    make_module("invoices", dependencies=["orders"])
    installer.install(WORKSPACE, "orders")
    installer.install(WORKSPACE, "invoices")

    installer.set_enabled(WORKSPACE, "orders", False)

    invoices = installer.get_installed_module(WORKSPACE, "invoices")
    assert invoices.status == "ACTIVE"
    assert invoices.enabled
    assert invoices.needs_attention(enabled_codes={"invoices"})


def test_reorder_applies_all_orders(make_module, installer):
    ids = {}
    for code in ("a", "b", "c"):
        make_module(code)
        ids[code] = installer.install(WORKSPACE, code).module_id

    records = installer.reorder(WORKSPACE, [(ids["c"], 5), (ids["a"], 15), (ids["b"], 25)])

    assert [r.module_code for r in records] == ["c", "a", "b"]
    stored = dict(WorkspaceModule.objects.values_list("master_module__module_code", "display_order"))
    assert stored == {"c": 5, "a": 15, "b": 25}


def test_reorder_is_all_or_nothing(make_module, installer):
    make_module("a")
    make_module("b")
    a = installer.install(WORKSPACE, "a").module_id
    foreign = installer.install(OTHER_WORKSPACE, "b").module_id
    unknown = str(uuid.uuid4())

    with pytest.raises(ModuleError) as excinfo:
        installer.reorder(WORKSPACE, [(a, 99), (foreign, 1), (unknown, 2)])

    assert _error(excinfo).code == ModuleErrorCode.PARTIAL_NOT_FOUND
    assert set(_error(excinfo).details) == {foreign, unknown}
    assert WorkspaceModule.objects.get(pk=a).display_order == 10


def test_update_module_moves_to_catalog_version(make_module, installer):
    module = make_module("crm", version="1.0.0")
    installer.install(WORKSPACE, "crm")

    with pytest.raises(ModuleError) as excinfo:
        installer.update_module(WORKSPACE, "crm")
    assert _error(excinfo).code == ModuleErrorCode.UPDATE_NOT_AVAILABLE

    module.version = "1.1.0"
    module.save()
    record = installer.update_module(WORKSPACE, "crm")

    assert record.installed_version == "1.1.0"
    assert not record.can_be_updated()


def test_configure_merges_settings(make_module, installer):
    make_module("crm")
    installer.install(WORKSPACE, "crm")

    installer.configure(WORKSPACE, "crm", {"custom_name": "Clients", "page_size": 50})
    record = installer.configure(WORKSPACE, "crm", {"page_size": None, "theme": "dark"})

    assert record.settings == {"custom_name": "Clients", "theme": "dark"}
    assert record.effective_name == "Clients"


def test_usage_metrics_drive_health(make_module, installer):
    make_module("crm")
    installer.install(WORKSPACE, "crm")

    installer.record_access(WORKSPACE, "crm")
    installer.record_access(WORKSPACE, "crm")
    installer.record_error(WORKSPACE, "crm")

    record = installer.get_installed_module(WORKSPACE, "crm")
    assert record.usage_metrics["total_accesses"] == 2
    assert record.usage_metrics["error_count"] == 1
    assert record.health_score() == pytest.approx(0.85)
    assert record.needs_attention()


def test_health_of_disabled_module(make_module, installer):
    make_module("crm")
    installer.install(WORKSPACE, "crm")
    record = installer.set_enabled(WORKSPACE, "crm", False)

    assert record.health_score() == pytest.approx(0.6)
    assert record.needs_attention()


def test_missing_tenant(make_module, installer):
    make_module("crm")

    with pytest.raises(ModuleError) as excinfo:
        installer.install(None, "crm")
    assert _error(excinfo).code == ModuleErrorCode.TENANT_CONTEXT_MISSING

    with pytest.raises(ModuleError):
        installer.reorder("", [])

    assert installer.list_installed(None) == []
    assert installer.get_installed_module(None, "crm") is None


def test_installed_by_name_uses_user_details(make_module, actor):
    class Directory:
        def get_user_detail(self, user_id):
            return {"first_name": "Ada", "last_name": "Lovelace", "email": "ada@example.com"}

    make_module("crm")
    result = InstallationService(user_details=Directory()).install(WORKSPACE, "crm", actor)

    assert WorkspaceModule.objects.get(pk=result.module_id).installed_by_name == "Ada Lovelace"


def test_failing_user_details_fall_back_to_actor(make_module, actor):
    class BrokenDirectory:
        def get_user_detail(self, user_id):
            raise ConnectionError("directory unavailable")

    make_module("crm")
    result = InstallationService(user_details=BrokenDirectory()).install(WORKSPACE, "crm", actor)

    assert result.success
    assert WorkspaceModule.objects.get(pk=result.module_id).installed_by_name == "Ada Admin"


def test_lifecycle_is_audited(make_module, installer, actor):
    make_module("crm")
    installer.install(WORKSPACE, "crm", actor)
    installer.uninstall(WORKSPACE, "crm", actor)

    logs = AuditLog.objects.filter(workspace_id=WORKSPACE).order_by("created_at")
    assert [log.action for log in logs] == ["module.install", "module.uninstall"]
    assert all(log.actor_id == "42" for log in logs)
    assert logs[0].metadata["module_code"] == "crm"


def test_installed_signal_fires_after_commit(make_module, installer, django_capture_on_commit_callbacks):
    make_module("crm")
    received = []

    def on_installed(sender, installation, **kwargs):
        received.append(installation.module_code)

    signals.module_installed.connect(on_installed)
    try:
        with django_capture_on_commit_callbacks(execute=True):
            installer.install(WORKSPACE, "crm")
    finally:
        signals.module_installed.disconnect(on_installed)

    assert received == ["crm"]
