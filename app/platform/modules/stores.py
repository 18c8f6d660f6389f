"""
Data access for the module registry.

``CatalogStore`` owns ``master_modules``; ``InstallationStore`` owns
``workspace_modules``. Install counters are only ever changed with a single
``UPDATE ... SET install_count = install_count +/- 1``.
"""
import logging
import uuid
from typing import Iterable, Optional, Set

from django.db.models import F, Max

from .constants import DISPLAY_ORDER_STEP, ModuleStatus
from .models import MasterModule, WorkspaceModule
from .resolver import find_dependents

logger = logging.getLogger(__name__)


def parse_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


class CatalogStore:

    def queryset(self):
        return MasterModule.objects.all()

    def get_by_id(self, module_id) -> Optional[MasterModule]:
        pk = parse_uuid(module_id)
        if pk is None:
            return None
        return MasterModule.objects.filter(pk=pk).first()

    def get_by_code(self, module_code: str) -> Optional[MasterModule]:
        return MasterModule.objects.filter(module_code=module_code).first()

    def get_many(self, module_ids: Iterable) -> dict:
        """Map of ``str(id) -> MasterModule`` for the ids that exist."""
        pks = [pk for pk in (parse_uuid(i) for i in module_ids) if pk is not None]
        return {str(m.pk): m for m in MasterModule.objects.filter(pk__in=pks)}

    def installable(self):
        """Modules a workspace may install: catalog-active and flagged active."""
        return MasterModule.objects.filter(active=True, status=ModuleStatus.ACTIVE.value)

    def increment_install_count(self, module_id) -> None:
        MasterModule.objects.filter(pk=module_id).update(install_count=F("install_count") + 1)

    def decrement_install_count(self, module_id) -> None:
        # Floor at zero inside the same statement.
        MasterModule.objects.filter(pk=module_id, install_count__gt=0).update(
            install_count=F("install_count") - 1
        )

    def upsert(self, module_code: str, fields: dict):
        """
        Insert or fully overwrite the catalog entry for ``module_code``.
        ``install_count`` is never written here.
        """
        fields = {k: v for k, v in fields.items() if k not in ("module_code", "install_count", "id")}
        module = MasterModule.objects.select_for_update().filter(module_code=module_code).first()
        if module is None:
            module = MasterModule(module_code=module_code, **fields)
            module.full_clean()
            module.save()
            return module, True

        for name, value in fields.items():
            setattr(module, name, value)
        module.full_clean()
        module.save(update_fields=list(fields.keys()) + ["updated_at"])
        return module, False


class InstallationStore:

    def for_workspace(self, workspace_id: str):
        return WorkspaceModule.objects.filter(workspace_id=workspace_id).select_related("master_module")

    def enabled_for_workspace(self, workspace_id: str):
        return self.for_workspace(workspace_id).filter(enabled=True)

    def enabled_codes(self, workspace_id: str) -> Set[str]:
        return set(
            WorkspaceModule.objects.filter(workspace_id=workspace_id, enabled=True)
            .values_list("master_module__module_code", flat=True)
        )

    def get(self, workspace_id: str, installation_id) -> Optional[WorkspaceModule]:
        pk = parse_uuid(installation_id)
        if pk is None:
            return None
        return self.for_workspace(workspace_id).filter(pk=pk).first()

    def get_by_code(self, workspace_id: str, module_code: str) -> Optional[WorkspaceModule]:
        return self.for_workspace(workspace_id).filter(master_module__module_code=module_code).first()

    def get_by_master(self, workspace_id: str, master_module_id) -> Optional[WorkspaceModule]:
        return self.for_workspace(workspace_id).filter(master_module_id=master_module_id).first()

    def resolve(self, workspace_id: str, id_or_code) -> Optional[WorkspaceModule]:
        """Look up by installation id first, then by module code."""
        return self.get(workspace_id, id_or_code) or self.get_by_code(workspace_id, str(id_or_code))

    def next_display_order(self, workspace_id: str) -> int:
        current = WorkspaceModule.objects.filter(workspace_id=workspace_id).aggregate(
            highest=Max("display_order")
        )["highest"]
        return (current or 0) + DISPLAY_ORDER_STEP

    def dependents(self, workspace_id: str, module_code: str):
        return find_dependents(module_code, self.enabled_for_workspace(workspace_id))

    def get_many(self, workspace_id: str, installation_ids: Iterable) -> dict:
        pks = [pk for pk in (parse_uuid(i) for i in installation_ids) if pk is not None]
        return {str(m.pk): m for m in self.for_workspace(workspace_id).filter(pk__in=pks)}
