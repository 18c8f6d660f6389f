"""
Marketplace view of the catalog for one workspace.

Read-only composition of the catalog and the workspace's installations:
what is installed (with the actions an administrator may take on it) and
what is still available to install.
"""
import logging
from typing import List, Optional

from app.platform.modules.constants import (
    ACTION_METADATA,
    CATEGORY_METADATA,
    ModuleActionType,
    ModuleCategory,
    WorkspaceModuleStatus,
)
from app.platform.modules.models import MasterModule, WorkspaceModule
from app.platform.modules.resolver import find_dependents
from app.platform.modules.stores import CatalogStore, InstallationStore

logger = logging.getLogger(__name__)


def _action(action_type: ModuleActionType, name: str = "", version: str = "") -> dict:
    meta = ACTION_METADATA[action_type]
    message = meta.get("confirmation_message")
    return {
        "action_type": action_type.value,
        "label": meta["label"],
        "description": meta["description"].format(name=name, version=version),
        "requires_confirmation": meta["requires_confirmation"],
        "confirmation_message": message.format(name=name, version=version) if message else None,
    }


def _category_entry(code: str) -> dict:
    try:
        meta = CATEGORY_METADATA[ModuleCategory(code)]
    except ValueError:
        meta = {"display_name": code.replace("_", " ").title(), "description": "", "icon": "apps"}
    return {"code": code, **meta}


def empty_view() -> dict:
    return {
        "installed": [],
        "available": [],
        "categories": [],
        "statistics": {
            "total_installed": 0,
            "total_available": 0,
            "enabled_modules": 0,
            "disabled_modules": 0,
            "modules_needing_attention": 0,
        },
    }


class CatalogViewBuilder:

    def __init__(self, catalog_store: Optional[CatalogStore] = None, installation_store: Optional[InstallationStore] = None):
        self.catalog = catalog_store or CatalogStore()
        self.installations = installation_store or InstallationStore()

    def build(self, workspace_id: Optional[str], category: Optional[str] = None, include_disabled: bool = False) -> dict:
        if not workspace_id:
            return empty_view()

        records = list(self.installations.for_workspace(workspace_id).order_by("display_order", "installed_at"))
        enabled_records = [r for r in records if r.enabled]
        enabled_codes = {r.module_code for r in enabled_records}

        # Every record counts for dedupe, whatever the request flags.
        installed_codes = {r.module_code for r in records}
        installed_master_ids = {r.master_module_id for r in records}

        # Statistics describe the same category as the lists, disabled records included.
        scoped = [r for r in records if r.effective_category == category] if category else records
        scoped_enabled = [r for r in scoped if r.enabled]

        visible = scoped
        if not include_disabled:
            visible = [r for r in scoped if r.enabled and r.status == WorkspaceModuleStatus.ACTIVE.value]

        available_qs = (
            self.catalog.installable()
            .exclude(module_code__in=installed_codes)
            .exclude(pk__in=installed_master_ids)
            .order_by("display_order", "name")
        )
        if category:
            available_qs = available_qs.filter(category=category)
        available = list(available_qs)

        installed_entries = [self._installed_entry(r, enabled_records, enabled_codes) for r in visible]
        available_entries = [self._available_entry(m) for m in available]

        category_codes = dict.fromkeys(
            [e["category"] for e in installed_entries] + [e["category"] for e in available_entries]
        )
        attention = sum(1 for r in scoped if r.needs_attention(enabled_codes))

        logger.debug(
            "Catalog view for %s: %d installed, %d available", workspace_id, len(installed_entries), len(available_entries)
        )
        return {
            "installed": installed_entries,
            "available": available_entries,
            "categories": [_category_entry(code) for code in category_codes],
            "statistics": {
                "total_installed": len(scoped),
                "total_available": len(available_entries),
                "enabled_modules": len(scoped_enabled),
                "disabled_modules": len(scoped) - len(scoped_enabled),
                "modules_needing_attention": attention,
            },
        }

    def _base_entry(self, master: MasterModule) -> dict:
        return {
            "module_code": master.module_code,
            "name": master.name,
            "description": master.description,
            "tagline": master.tagline,
            "category": master.category,
            "version": master.version,
            "icon": master.display_icon,
            "primary_color": master.primary_color,
            "featured": master.featured,
            "rating": master.rating,
            "install_count": master.install_count,
            "complexity": master.complexity,
            "size_mb": master.size_mb,
            "required_tier": master.required_tier,
        }

    def _available_entry(self, master: MasterModule) -> dict:
        entry = self._base_entry(master)
        entry.update({
            "master_module_id": str(master.pk),
            "installation_status": {
                "is_installed": False,
                "workspace_module_id": None,
                "status": None,
                "enabled": False,
                "installed_at": None,
                "installed_version": None,
                "health_score": None,
                "needs_attention": False,
            },
            "available_actions": [_action(ModuleActionType.INSTALL, master.name, master.version)],
            "permissions": {
                "can_install": True,
                "can_uninstall": False,
                "can_configure": False,
                "can_enable": False,
                "can_disable": False,
                "can_update": False,
            },
        })
        return entry

    def _installed_entry(self, record: WorkspaceModule, enabled_records: List[WorkspaceModule], enabled_codes) -> dict:
        master = record.master_module
        name = record.effective_name
        has_dependents = bool(find_dependents(record.module_code, enabled_records))
        can_update = record.can_be_updated()
        can_enable = not record.enabled and record.status != WorkspaceModuleStatus.ERROR.value

        actions = []
        if not has_dependents:
            actions.append(_action(ModuleActionType.UNINSTALL, name, master.version))
        actions.append(_action(ModuleActionType.CONFIGURE, name, master.version))
        if record.enabled:
            actions.append(_action(ModuleActionType.DISABLE, name, master.version))
        elif can_enable:
            actions.append(_action(ModuleActionType.ENABLE, name, master.version))
        if can_update:
            actions.append(_action(ModuleActionType.UPDATE, name, master.version))

        entry = self._base_entry(master)
        entry.update({
            "name": name,
            "description": record.effective_description,
            "category": record.effective_category,
            "icon": record.effective_icon,
            "primary_color": record.effective_color,
            "master_module_id": str(master.pk),
            "display_order": record.display_order,
            "installation_status": {
                "is_installed": True,
                "workspace_module_id": str(record.pk),
                "status": record.status,
                "enabled": record.enabled,
                "installed_at": record.installed_at,
                "installed_version": record.installed_version,
                "health_score": record.health_score(),
                "needs_attention": record.needs_attention(enabled_codes),
            },
            "available_actions": actions,
            "permissions": {
                "can_install": False,
                "can_uninstall": not has_dependents,
                "can_configure": True,
                "can_enable": can_enable,
                "can_disable": record.enabled,
                "can_update": can_update,
            },
        })
        return entry


def get_catalog_view(workspace_id: Optional[str], category: Optional[str] = None, include_disabled: bool = False) -> dict:
    return CatalogViewBuilder().build(workspace_id, category=category, include_disabled=include_disabled)
