"""
Catalog administration: listing, search, CRUD, bulk status and ordering of
master modules.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from django.core.cache import cache
from django.core.exceptions import ValidationError
from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from app.platform.modules.conf import registry_setting
from app.platform.modules.constants import ModuleCategory, ModuleStatus
from app.platform.modules.errors import ModuleError, ModuleErrorCode
from app.platform.modules.models import MasterModule
from app.platform.modules.stores import CatalogStore, parse_uuid

logger = logging.getLogger(__name__)

STATISTICS_CACHE_KEY = "modules:catalog:statistics"

# Fields an administrator may never write directly.
PROTECTED_FIELDS = {"id", "module_code", "install_count", "created_at", "updated_at"}

FILTER_FIELDS = {
    "category": "category",
    "status": "status",
    "complexity": "complexity",
    "tier": "required_tier",
    "featured": "featured",
    "active": "active",
}


def invalidate_catalog_cache() -> None:
    cache.delete(STATISTICS_CACHE_KEY)


def _normalize_id(module_id) -> str:
    pk = parse_uuid(module_id)
    return str(pk) if pk is not None else str(module_id)


def _validation_message(exc: ValidationError) -> str:
    if hasattr(exc, "message_dict"):
        return "; ".join(f"{field}: {', '.join(msgs)}" for field, msgs in exc.message_dict.items())
    return "; ".join(exc.messages)


class CatalogService:

    def __init__(self, store: Optional[CatalogStore] = None):
        self.store = store or CatalogStore()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def list_catalog(self, filters: Optional[dict] = None, page: int = 1, page_size: Optional[int] = None):
        """
        Paginated catalog listing. ``filters`` keys: category, status,
        complexity, tier, featured, active; ``None`` values are ignored.
        Returns a ``django.core.paginator.Page``.
        """
        qs = self.store.queryset()
        for key, value in (filters or {}).items():
            if value is None or key not in FILTER_FIELDS:
                continue
            qs = qs.filter(**{FILTER_FIELDS[key]: value})

        page_size = page_size or registry_setting("CATALOG_PAGE_SIZE")
        page_size = max(1, min(int(page_size), registry_setting("MAX_PAGE_SIZE")))
        paginator = Paginator(qs.order_by("display_order", "name"), page_size)
        return paginator.get_page(page)

    def search_catalog(self, keyword: str) -> List[MasterModule]:
        """Case-insensitive substring match over name and description of active modules."""
        keyword = (keyword or "").strip()
        if not keyword:
            return []
        return list(
            self.store.queryset()
            .filter(active=True)
            .filter(Q(name__icontains=keyword) | Q(description__icontains=keyword))
            .order_by("display_order", "name")
        )

    def get_module(self, module_id) -> MasterModule:
        module = self.store.get_by_id(module_id)
        if module is None:
            raise ModuleError(ModuleErrorCode.MODULE_NOT_FOUND, f"Master module not found with ID: {module_id}")
        return module

    def get_module_by_code(self, module_code: str) -> MasterModule:
        module = self.store.get_by_code(module_code)
        if module is None:
            raise ModuleError(ModuleErrorCode.MODULE_NOT_FOUND, f"Master module not found with code: {module_code}")
        return module

    def statistics(self) -> dict:
        cached = cache.get(STATISTICS_CACHE_KEY)
        if cached is not None:
            return cached

        qs = self.store.queryset()
        category_counts = {c.value: 0 for c in ModuleCategory}
        for row in qs.filter(active=True).values("category").annotate(total=Count("id")):
            category_counts[row["category"]] = row["total"]
        status_counts = {s.value: 0 for s in ModuleStatus}
        for row in qs.values("status").annotate(total=Count("id")):
            status_counts[row["status"]] = row["total"]

        stats = {
            "total_modules": qs.count(),
            "active_modules": qs.filter(active=True).count(),
            "featured_modules": qs.filter(active=True, featured=True).count(),
            "category_counts": category_counts,
            "status_counts": status_counts,
        }
        cache.set(STATISTICS_CACHE_KEY, stats, registry_setting("STATISTICS_CACHE_TTL"))
        return stats

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    @transaction.atomic
    def create_module(self, data: dict) -> MasterModule:
        module_code = (data.get("module_code") or "").strip()
        logger.info("Creating master module: %s", module_code)
        if not module_code:
            raise ModuleError(ModuleErrorCode.INVALID_MODULE_DEFINITION, "module_code is required.")
        if self.store.get_by_code(module_code) is not None:
            raise ModuleError(
                ModuleErrorCode.MODULE_CODE_EXISTS,
                f"Module with code '{module_code}' already exists",
            )

        fields = {k: v for k, v in data.items() if k not in PROTECTED_FIELDS}
        module = MasterModule(module_code=module_code, **fields)
        module.last_updated_at = timezone.now()
        self._validate(module)
        module.save()
        invalidate_catalog_cache()
        logger.info("Created master module %s with ID %s", module.module_code, module.pk)
        return module

    @transaction.atomic
    def update_module(self, module_id, data: dict) -> MasterModule:
        logger.info("Updating master module: %s", module_id)
        module = self.get_module(module_id)
        for name, value in data.items():
            if name in PROTECTED_FIELDS:
                continue
            setattr(module, name, value)
        module.last_updated_at = timezone.now()
        self._validate(module)
        module.save()
        invalidate_catalog_cache()
        logger.info("Updated master module: %s", module.module_code)
        return module

    @transaction.atomic
    def delete_module(self, module_id) -> None:
        module = self.get_module(module_id)
        module.refresh_from_db(fields=["install_count"])
        if module.install_count > 0 or module.installations.exists():
            raise ModuleError(
                ModuleErrorCode.MODULE_IN_USE,
                f"Cannot delete module '{module.module_code}' as it is installed in "
                f"{module.install_count} workspaces",
            )
        module.delete()
        invalidate_catalog_cache()
        logger.info("Deleted master module: %s", module.module_code)

    @transaction.atomic
    def bulk_set_status(self, module_ids: Sequence, status: str) -> List[MasterModule]:
        """All-or-nothing status change; any unknown id fails the whole call."""
        if status not in {s.value for s in ModuleStatus}:
            raise ModuleError(ModuleErrorCode.INVALID_MODULE_DEFINITION, f"Unknown module status: {status}")

        modules = self._resolve_all(module_ids)
        now = timezone.now()
        for module in modules:
            module.status = status
            module.last_updated_at = now
            module.updated_at = now
        MasterModule.objects.bulk_update(modules, ["status", "last_updated_at", "updated_at"])
        invalidate_catalog_cache()
        logger.info("Bulk updated status to %s for %d modules", status, len(modules))
        return modules

    @transaction.atomic
    def reorder(self, updates: Iterable[Tuple[str, int]]) -> List[MasterModule]:
        """Set catalog ``display_order`` for several modules in one transaction."""
        updates = [(_normalize_id(module_id), int(order)) for module_id, order in updates]
        modules = self._resolve_all([module_id for module_id, _ in updates])
        by_id = {str(m.pk): m for m in modules}
        now = timezone.now()
        for module_id, order in updates:
            by_id[module_id].display_order = order
            by_id[module_id].last_updated_at = now
            by_id[module_id].updated_at = now
        MasterModule.objects.bulk_update(modules, ["display_order", "last_updated_at", "updated_at"])
        invalidate_catalog_cache()
        logger.info("Updated catalog display order for %d modules", len(modules))
        return sorted(modules, key=lambda m: (m.display_order, m.name))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _resolve_all(self, module_ids: Sequence) -> List[MasterModule]:
        ids = [_normalize_id(module_id) for module_id in module_ids]
        found = self.store.get_many(ids)
        missing = [module_id for module_id in ids if module_id not in found]
        if missing:
            raise ModuleError(
                ModuleErrorCode.PARTIAL_NOT_FOUND,
                "Some modules not found",
                details=missing,
            )
        # Preserve caller order, drop repeated ids.
        return [found[module_id] for module_id in dict.fromkeys(ids)]

    def _validate(self, module: MasterModule) -> None:
        try:
            module.full_clean()
        except ValidationError as exc:
            raise ModuleError(ModuleErrorCode.INVALID_MODULE_DEFINITION, _validation_message(exc)) from exc
