import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from app.platform.modules.apps import seed_catalog_after_migrate
from app.platform.modules.definitions import DEFAULT_MASTER_MODULES, configuration
from app.platform.modules.models import MasterModule
from app.platform.modules.seeding import reconcile_catalog

from .conftest import WORKSPACE

pytestmark = pytest.mark.django_db


def _definition(module_code, **fields):
    return {"module_code": module_code, "name": module_code.title(), **fields}


def test_default_catalog_seeds_and_is_idempotent():
    first = reconcile_catalog(DEFAULT_MASTER_MODULES)
    second = reconcile_catalog(DEFAULT_MASTER_MODULES)

    assert len(first.created) == 11
    assert first.ok
    assert second.created == []
    assert len(second.updated) == 11
    assert MasterModule.objects.count() == 11

    orders = MasterModule.objects.get(module_code="order-management")
    # Forward references are stored as declared.
    assert orders.dependencies == {"customer-management", "product-catalog"}


def test_reseeding_overwrites_content_but_keeps_usage(installer):
    reconcile_catalog(DEFAULT_MASTER_MODULES)
    installer.install(WORKSPACE, "business-profile")
    MasterModule.objects.filter(module_code="business-profile").update(
        name="Edited by hand", version="0.1.0", rating=4.5, rating_count=12
    )

    report = reconcile_catalog(DEFAULT_MASTER_MODULES)

    module = MasterModule.objects.get(module_code="business-profile")
    assert "business-profile" in report.updated
    assert module.name == "Business Profile"
    assert module.version == "1.0.0"
    assert module.install_count == 1
    assert (module.rating, module.rating_count) == (4.5, 12)
    assert module.installations.filter(workspace_id=WORKSPACE).exists()


def test_fields_left_out_of_a_definition_are_reset(make_module):
    make_module("crm", featured=True, tagline="Old tagline", size_mb=40)

    reconcile_catalog([_definition("crm", description="Customer records")])

    module = MasterModule.objects.get(module_code="crm")
    assert module.featured is False
    assert module.tagline == ""
    assert module.size_mb == 0
    assert module.description == "Customer records"


def test_failing_definitions_are_skipped():
    definitions = [
        _definition("alpha"),
        _definition("loop", configuration=configuration(dependencies=["loop"])),
        _definition("bad-category", category="GAMES"),
        _definition("typo", colour="red"),
        {"name": "Nameless"},
        _definition("omega"),
    ]

    report = reconcile_catalog(definitions)

    assert report.created == ["alpha", "omega"]
    assert report.failed == ["loop", "bad-category", "typo", "Nameless"]
    assert not report.ok
    assert set(MasterModule.objects.values_list("module_code", flat=True)) == {"alpha", "omega"}


def test_seed_modules_command(capsys):
    call_command("seed_modules")
    call_command("seed_modules", "--only", "business-profile", "user-management")

    out = capsys.readouterr().out
    assert "Summary: 11 created, 0 updated, 0 failed" in out
    assert "Summary: 0 created, 2 updated, 0 failed" in out


def test_seed_modules_command_rejects_unknown_codes():
    with pytest.raises(CommandError):
        call_command("seed_modules", "--only", "nope")


def test_post_migrate_hook_honours_setting(settings):
    settings.MODULE_REGISTRY = {"SEED_ON_MIGRATE": False}
    seed_catalog_after_migrate(sender=None)
    assert MasterModule.objects.count() == 0

    settings.MODULE_REGISTRY = {"SEED_ON_MIGRATE": True}
    seed_catalog_after_migrate(sender=None)
    assert MasterModule.objects.count() == 11
