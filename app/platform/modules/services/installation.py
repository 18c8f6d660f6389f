"""
Per-workspace module lifecycle: install, uninstall, enable/disable,
reorder, version update and tenant configuration.

State machine of one (workspace, module) pair::

    [absent] --install--> INSTALLING --activation--> ACTIVE <--> DISABLED
                               |                        |
                               +--activation fails--> ERROR     uninstall --> [absent]
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from django.db import IntegrityError, transaction
from django.utils import timezone

from app.core.services.audit import record_audit
from app.platform.modules import signals
from app.platform.modules.constants import (
    AUDIT_CONFIGURE,
    AUDIT_DISABLE,
    AUDIT_ENABLE,
    AUDIT_INSTALL,
    AUDIT_REORDER,
    AUDIT_UNINSTALL,
    AUDIT_UPDATE,
    WorkspaceModuleStatus,
)
from app.platform.modules.errors import ModuleError, ModuleErrorCode
from app.platform.modules.models import WorkspaceModule
from app.platform.modules.resolver import conflicts, missing_dependencies
from app.platform.modules.stores import CatalogStore, InstallationStore, parse_uuid
from app.platform.modules.tenancy import (
    Actor,
    DjangoUserDetailProvider,
    UserDetailProvider,
    require_tenant,
    resolve_actor_name,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    success: bool
    module_id: Optional[str]
    module_code: str
    workspace_id: str
    message: str
    status: Optional[str] = None
    already_installed: bool = False
    installed_at: Optional[datetime] = None


@dataclass
class UninstallResult:
    success: bool
    module_id: str
    module_code: str
    workspace_id: str
    message: str
    uninstalled_at: datetime = field(default_factory=timezone.now)


class InstallationService:

    def __init__(
        self,
        catalog_store: Optional[CatalogStore] = None,
        installation_store: Optional[InstallationStore] = None,
        user_details: Optional[UserDetailProvider] = None,
    ):
        self.catalog = catalog_store or CatalogStore()
        self.installations = installation_store or InstallationStore()
        self.user_details = user_details if user_details is not None else DjangoUserDetailProvider()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_installed(self, workspace_id: Optional[str], include_disabled: bool = False) -> List[WorkspaceModule]:
        if not workspace_id:
            return []
        qs = self.installations.for_workspace(workspace_id)
        if not include_disabled:
            qs = qs.filter(enabled=True, status=WorkspaceModuleStatus.ACTIVE.value)
        return list(qs.order_by("display_order", "installed_at"))

    def get_installed_module(self, workspace_id: Optional[str], id_or_code) -> Optional[WorkspaceModule]:
        if not workspace_id:
            return None
        return self.installations.resolve(workspace_id, id_or_code)

    # ------------------------------------------------------------------
    # Install / uninstall
    # ------------------------------------------------------------------
    @transaction.atomic
    def install(self, workspace_id: Optional[str], module_code: str, actor: Optional[Actor] = None) -> InstallResult:
        workspace_id = require_tenant(workspace_id)

        existing = self.installations.get_by_code(workspace_id, module_code)
        if existing is not None:
            logger.info("Module %s already installed in workspace %s", module_code, workspace_id)
            return self._existing_result(existing)

        master = self.catalog.get_by_code(module_code)
        if master is None:
            raise ModuleError(ModuleErrorCode.MODULE_NOT_FOUND, f"Module '{module_code}' does not exist in the catalog")
        if not master.is_production_ready():
            raise ModuleError(
                ModuleErrorCode.MODULE_NOT_PRODUCTION_READY,
                f"Module '{module_code}' is not available for installation (status {master.status})",
            )

        installed_codes = self.installations.enabled_codes(workspace_id)
        missing = missing_dependencies(installed_codes, master)
        if missing:
            logger.warning("Install of %s in %s blocked, missing dependencies: %s", module_code, workspace_id, sorted(missing))
            raise ModuleError(
                ModuleErrorCode.MISSING_DEPENDENCIES,
                f"Install the required modules before '{module_code}'",
                details=missing,
            )
        conflicting = conflicts(installed_codes, master)
        if conflicting:
            logger.warning("Install of %s in %s blocked, conflicts with: %s", module_code, workspace_id, sorted(conflicting))
            raise ModuleError(
                ModuleErrorCode.MODULE_CONFLICT,
                f"Module '{module_code}' conflicts with installed modules",
                details=conflicting,
            )

        try:
            with transaction.atomic():
                installation = WorkspaceModule.objects.create(
                    workspace_id=workspace_id,
                    master_module=master,
                    status=WorkspaceModuleStatus.INSTALLING.value,
                    enabled=True,
                    installed_version=master.version,
                    installed_at=timezone.now(),
                    installed_by=actor.user_id if actor else "",
                    installed_by_name=resolve_actor_name(actor, self.user_details),
                    display_order=self.installations.next_display_order(workspace_id),
                )
        except IntegrityError:
            # Lost a concurrent install race for the same pair: the winner's record is the result.
            winner = self.installations.get_by_master(workspace_id, master.pk)
            if winner is None:
                raise
            logger.info("Duplicate install of %s in %s resolved to %s", module_code, workspace_id, winner.pk)
            return self._existing_result(winner)

        self.catalog.increment_install_count(master.pk)

        if not self._activate(installation):
            record_audit(
                actor=actor,
                workspace_id=workspace_id,
                obj=installation,
                action=AUDIT_INSTALL,
                description=f"Activation of {master.name} failed",
                metadata={"module_code": module_code, "status": installation.status},
            )
            return InstallResult(
                success=False,
                module_id=str(installation.pk),
                module_code=module_code,
                workspace_id=workspace_id,
                message=f"Module {master.name} was installed but failed to activate",
                status=installation.status,
                installed_at=installation.installed_at,
            )

        record_audit(
            actor=actor,
            workspace_id=workspace_id,
            obj=installation,
            action=AUDIT_INSTALL,
            description=f"Installed {master.name} {master.version}",
            metadata={"module_code": module_code, "version": master.version},
        )
        transaction.on_commit(
            lambda: signals.module_installed.send(sender=WorkspaceModule, installation=installation, actor=actor)
        )
        logger.info("Installed module %s in workspace %s (%s)", module_code, workspace_id, installation.pk)
        return InstallResult(
            success=True,
            module_id=str(installation.pk),
            module_code=module_code,
            workspace_id=workspace_id,
            message=f"Module {master.name} installed successfully",
            status=installation.status,
            installed_at=installation.installed_at,
        )

    @transaction.atomic
    def uninstall(self, workspace_id: Optional[str], module_id, actor: Optional[Actor] = None) -> UninstallResult:
        """``module_id`` may be the installation id or the module code."""
        workspace_id = require_tenant(workspace_id)
        installation = self._lock_installation(workspace_id, module_id)
        module_code = installation.module_code

        dependents = self.installations.dependents(workspace_id, module_code)
        if dependents:
            names = [d.effective_name for d in dependents]
            logger.warning("Uninstall of %s in %s blocked by dependents: %s", module_code, workspace_id, names)
            raise ModuleError(
                ModuleErrorCode.HAS_DEPENDENTS,
                f"Other modules depend on '{module_code}'; uninstall them first",
                details=names,
            )

        name = installation.effective_name
        installation_id = str(installation.pk)
        record_audit(
            actor=actor,
            workspace_id=workspace_id,
            obj=installation,
            action=AUDIT_UNINSTALL,
            description=f"Uninstalled {name}",
            metadata={"module_code": module_code, "status": installation.status},
        )
        # Only the request whose delete removed the row may touch the counter.
        deleted, _ = WorkspaceModule.objects.filter(pk=installation.pk).delete()
        if not deleted:
            logger.info("Uninstall of %s in %s lost to a concurrent uninstall", module_code, workspace_id)
            raise ModuleError(
                ModuleErrorCode.MODULE_NOT_INSTALLED,
                f"Module '{module_id}' is not installed in this workspace",
            )
        self.catalog.decrement_install_count(installation.master_module_id)

        transaction.on_commit(
            lambda: signals.module_uninstalled.send(
                sender=WorkspaceModule, workspace_id=workspace_id, module_code=module_code, actor=actor
            )
        )
        logger.info("Uninstalled module %s from workspace %s", module_code, workspace_id)
        return UninstallResult(
            success=True,
            module_id=installation_id,
            module_code=module_code,
            workspace_id=workspace_id,
            message=f"Module {name} uninstalled successfully",
        )

    # ------------------------------------------------------------------
    # Toggles and tenant-local changes
    # ------------------------------------------------------------------
    @transaction.atomic
    def set_enabled(self, workspace_id: Optional[str], module_id, enabled: bool, actor: Optional[Actor] = None) -> WorkspaceModule:
        """
        Enable or disable an installation. Dependencies and conflicts are not
        re-checked, and dependents of a disabled module are left as they are.
        """
        workspace_id = require_tenant(workspace_id)
        installation = self._require_installation(workspace_id, module_id)

        if enabled and installation.status == WorkspaceModuleStatus.ERROR.value:
            raise ModuleError(
                ModuleErrorCode.MODULE_NOT_ACTIVATABLE,
                f"Module '{installation.module_code}' failed to activate and needs repair before it can be enabled",
            )

        status = installation.status
        if enabled and status == WorkspaceModuleStatus.DISABLED.value:
            status = WorkspaceModuleStatus.ACTIVE.value
        elif not enabled and status == WorkspaceModuleStatus.ACTIVE.value:
            status = WorkspaceModuleStatus.DISABLED.value

        if installation.enabled == enabled and installation.status == status:
            return installation

        installation.enabled = enabled
        installation.status = status
        installation.last_updated_at = timezone.now()
        installation.last_updated_by = actor.user_id if actor else ""
        installation.save(update_fields=["enabled", "status", "last_updated_at", "last_updated_by", "updated_at"])

        record_audit(
            actor=actor,
            workspace_id=workspace_id,
            obj=installation,
            action=AUDIT_ENABLE if enabled else AUDIT_DISABLE,
            description=f"{'Enabled' if enabled else 'Disabled'} {installation.effective_name}",
            metadata={"module_code": installation.module_code},
        )
        signal = signals.module_enabled if enabled else signals.module_disabled
        transaction.on_commit(lambda: signal.send(sender=WorkspaceModule, installation=installation))
        logger.info(
            "Module %s %s in workspace %s",
            installation.module_code, "enabled" if enabled else "disabled", workspace_id,
        )
        return installation

    @transaction.atomic
    def reorder(self, workspace_id: Optional[str], ordered_pairs: Iterable[Tuple[str, int]], actor: Optional[Actor] = None) -> List[WorkspaceModule]:
        """Apply all display orders or none of them."""
        workspace_id = require_tenant(workspace_id)
        pairs = []
        for module_id, order in ordered_pairs:
            pk = parse_uuid(module_id)
            pairs.append((str(pk) if pk else str(module_id), int(order)))

        found = self.installations.get_many(workspace_id, [module_id for module_id, _ in pairs])
        missing = [module_id for module_id, _ in pairs if module_id not in found]
        if missing:
            raise ModuleError(
                ModuleErrorCode.PARTIAL_NOT_FOUND,
                "Some modules are not installed in this workspace",
                details=missing,
            )

        now = timezone.now()
        for module_id, order in pairs:
            found[module_id].display_order = order
            found[module_id].updated_at = now
        records = list(found.values())
        WorkspaceModule.objects.bulk_update(records, ["display_order", "updated_at"])

        record_audit(
            actor=actor,
            workspace_id=workspace_id,
            action=AUDIT_REORDER,
            description=f"Reordered {len(records)} modules",
            metadata={"orders": {module_id: order for module_id, order in pairs}},
        )
        logger.info("Reordered %d modules in workspace %s", len(records), workspace_id)
        return sorted(records, key=lambda r: (r.display_order, r.installed_at))

    @transaction.atomic
    def update_module(self, workspace_id: Optional[str], module_id, actor: Optional[Actor] = None) -> WorkspaceModule:
        """Move an installation to the catalog's current version."""
        workspace_id = require_tenant(workspace_id)
        installation = self._require_installation(workspace_id, module_id)
        if not installation.can_be_updated():
            raise ModuleError(
                ModuleErrorCode.UPDATE_NOT_AVAILABLE,
                f"Module '{installation.module_code}' is already at the latest version",
            )

        previous_version = installation.installed_version
        installation.installed_version = installation.master_module.version
        installation.last_updated_at = timezone.now()
        installation.last_updated_by = actor.user_id if actor else ""
        installation.save(update_fields=["installed_version", "last_updated_at", "last_updated_by", "updated_at"])

        record_audit(
            actor=actor,
            workspace_id=workspace_id,
            obj=installation,
            action=AUDIT_UPDATE,
            description=f"Updated {installation.effective_name} {previous_version} -> {installation.installed_version}",
            metadata={"module_code": installation.module_code, "from": previous_version, "to": installation.installed_version},
        )
        transaction.on_commit(
            lambda: signals.module_updated.send(
                sender=WorkspaceModule, installation=installation, previous_version=previous_version
            )
        )
        return installation

    @transaction.atomic
    def configure(self, workspace_id: Optional[str], module_id, settings: dict, actor: Optional[Actor] = None) -> WorkspaceModule:
        """Shallow-merge tenant overrides into the installation settings; a None value removes a key."""
        workspace_id = require_tenant(workspace_id)
        installation = self._require_installation(workspace_id, module_id)

        merged = dict(installation.settings or {})
        for key, value in (settings or {}).items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = value
        installation.settings = merged
        installation.last_updated_at = timezone.now()
        installation.last_updated_by = actor.user_id if actor else ""
        installation.save(update_fields=["settings", "last_updated_at", "last_updated_by", "updated_at"])

        record_audit(
            actor=actor,
            workspace_id=workspace_id,
            obj=installation,
            action=AUDIT_CONFIGURE,
            description=f"Configured {installation.effective_name}",
            metadata={"module_code": installation.module_code, "keys": sorted((settings or {}).keys())},
        )
        return installation

    # ------------------------------------------------------------------
    # Usage metrics (write-only from here; read by analytics)
    # ------------------------------------------------------------------
    @transaction.atomic
    def record_access(self, workspace_id: Optional[str], module_id) -> None:
        installation = self._lock_installation(require_tenant(workspace_id), module_id)
        metrics = dict(installation.usage_metrics or {})
        metrics["total_accesses"] = (metrics.get("total_accesses") or 0) + 1
        metrics["last_accessed_at"] = timezone.now().isoformat()
        installation.usage_metrics = metrics
        installation.save(update_fields=["usage_metrics", "updated_at"])

    @transaction.atomic
    def record_error(self, workspace_id: Optional[str], module_id) -> None:
        installation = self._lock_installation(require_tenant(workspace_id), module_id)
        metrics = dict(installation.usage_metrics or {})
        metrics["error_count"] = (metrics.get("error_count") or 0) + 1
        metrics["last_error_at"] = timezone.now().isoformat()
        installation.usage_metrics = metrics
        installation.save(update_fields=["usage_metrics", "updated_at"])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _activate(self, installation: WorkspaceModule) -> bool:
        """Run activation receivers and flip INSTALLING -> ACTIVE, or leave ERROR."""
        try:
            with transaction.atomic():
                signals.module_activating.send(
                    sender=WorkspaceModule,
                    installation=installation,
                    master_module=installation.master_module,
                )
                installation.status = WorkspaceModuleStatus.ACTIVE.value
                installation.save(update_fields=["status", "updated_at"])
        except Exception:
            logger.exception(
                "Activation of %s in workspace %s failed; leaving installation in ERROR",
                installation.module_code, installation.workspace_id,
            )
            installation.status = WorkspaceModuleStatus.ERROR.value
            WorkspaceModule.objects.filter(pk=installation.pk).update(status=installation.status)
            return False
        return True

    def _require_installation(self, workspace_id: str, module_id) -> WorkspaceModule:
        installation = self.installations.resolve(workspace_id, module_id)
        if installation is None:
            raise ModuleError(
                ModuleErrorCode.MODULE_NOT_INSTALLED,
                f"Module '{module_id}' is not installed in this workspace",
            )
        return installation

    def _lock_installation(self, workspace_id: str, module_id) -> WorkspaceModule:
        installation = self._require_installation(workspace_id, module_id)
        locked = WorkspaceModule.objects.select_for_update().select_related("master_module").filter(pk=installation.pk).first()
        if locked is None:
            raise ModuleError(
                ModuleErrorCode.MODULE_NOT_INSTALLED,
                f"Module '{module_id}' is not installed in this workspace",
            )
        return locked

    def _existing_result(self, installation: WorkspaceModule) -> InstallResult:
        return InstallResult(
            success=True,
            module_id=str(installation.pk),
            module_code=installation.module_code,
            workspace_id=installation.workspace_id,
            message=f"Module {installation.master_module.name} is already installed",
            status=installation.status,
            already_installed=True,
            installed_at=installation.installed_at,
        )
