"""
Catalog reconciliation.

``reconcile_catalog`` makes the catalog match a list of module definitions:
unknown codes are inserted, known codes are overwritten field by field.
Install counts, ratings and every workspace installation are left alone.
"""
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.db.models.fields import NOT_PROVIDED
from django.utils import timezone

from . import signals
from .models import MasterModule
from .services.catalog import invalidate_catalog_cache
from .stores import CatalogStore

logger = logging.getLogger(__name__)

# Catalog fields that belong to usage rather than to the definition.
PRESERVED_FIELDS = {"id", "module_code", "install_count", "rating", "rating_count", "created_at", "updated_at"}


@dataclass
class SeedReport:
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def __str__(self):
        return f"{len(self.created)} created, {len(self.updated)} updated, {len(self.failed)} failed"


def _field_default(model_field):
    if model_field.default is NOT_PROVIDED:
        return "" if not model_field.null else None
    return model_field.default() if callable(model_field.default) else model_field.default


def definition_fields(definition: dict) -> dict:
    """
    Full field set for one definition. Fields the definition leaves out are
    reset to the model default, so removing a key from the list also removes
    it from the catalog.
    """
    unknown = set(definition) - {f.name for f in MasterModule._meta.concrete_fields}
    if unknown:
        raise ValueError(f"Unknown catalog fields: {', '.join(sorted(unknown))}")

    fields = {}
    for model_field in MasterModule._meta.concrete_fields:
        if model_field.name in PRESERVED_FIELDS:
            continue
        if model_field.name in definition:
            fields[model_field.name] = definition[model_field.name]
        else:
            fields[model_field.name] = _field_default(model_field)
    fields["last_updated_at"] = timezone.now()
    return fields


def reconcile_catalog(definitions: Iterable[dict], store: Optional[CatalogStore] = None) -> SeedReport:
    """
    Upsert every definition in its own savepoint. A definition that fails
    validation or hits a database error is logged and skipped.
    """
    store = store or CatalogStore()
    report = SeedReport()
    logger.info("Starting master module seeding")

    for definition in definitions:
        module_code = (definition.get("module_code") or "").strip()
        if not module_code:
            logger.error("Skipping module definition without module_code: %r", definition.get("name"))
            report.failed.append(definition.get("name") or "<unnamed>")
            continue
        try:
            with transaction.atomic():
                _, created = store.upsert(module_code, definition_fields(definition))
        except (ValidationError, DatabaseError, ValueError, TypeError):
            logger.exception("Failed to seed master module %s", module_code)
            report.failed.append(module_code)
            continue

        if created:
            logger.info("Seeded new master module: %s", module_code)
            report.created.append(module_code)
        else:
            logger.debug("Updated existing master module: %s", module_code)
            report.updated.append(module_code)

    invalidate_catalog_cache()

    logger.info("Master module seeding completed: %s", report)
    signals.catalog_seeded.send(sender=MasterModule, report=report)
    return report


def seed_default_catalog() -> SeedReport:
    from .definitions import DEFAULT_MASTER_MODULES
    return reconcile_catalog(DEFAULT_MASTER_MODULES)
