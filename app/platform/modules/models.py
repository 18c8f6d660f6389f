"""
Module registry models.

``MasterModule`` is the global catalog entry, ``WorkspaceModule`` the
installation of one catalog entry inside one workspace (tenant).
"""
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from app.core.models import CoreBaseModel
from .conf import registry_setting
from .constants import (
    ModuleCategory,
    ModuleComplexity,
    ModuleStatus,
    SubscriptionTier,
    UserRole,
    WorkspaceModuleStatus,
)
from .resolver import is_newer_version


def default_configuration():
    return {
        "required_permissions": [],
        "optional_permissions": [],
        "dependencies": [],
        "conflicts_with": [],
        "default_enabled": True,
        "custom_settings": {},
    }


def default_ui_metadata():
    return {
        "icon": "apps",
        "primary_color": "#6750A4",
        "tags": [],
        "keywords": [],
    }


def default_usage_metrics():
    return {
        "total_accesses": 0,
        "unique_users": 0,
        "daily_active_users": 0,
        "error_count": 0,
        "last_accessed_at": None,
        "last_error_at": None,
    }


class MasterModule(CoreBaseModel):
    """A catalog-level definition of an installable feature module."""

    module_code = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    tagline = models.CharField(max_length=500, blank=True)

    category = models.CharField(
        max_length=50,
        choices=[(c.value, c.value) for c in ModuleCategory],
        default=ModuleCategory.ADMINISTRATION.value,
    )
    status = models.CharField(
        max_length=20,
        choices=[(s.value, s.value) for s in ModuleStatus],
        default=ModuleStatus.ACTIVE.value,
    )
    required_tier = models.CharField(
        max_length=20,
        choices=[(t.value, t.value) for t in SubscriptionTier],
        default=SubscriptionTier.FREE.value,
    )
    required_role = models.CharField(
        max_length=20,
        choices=[(r.value, r.value) for r in UserRole],
        default=UserRole.EMPLOYEE.value,
    )
    complexity = models.CharField(
        max_length=20,
        choices=[(c.value, c.value) for c in ModuleComplexity],
        default=ModuleComplexity.STANDARD.value,
    )
    version = models.CharField(max_length=50, default="1.0.0")

    configuration = models.JSONField(default=default_configuration, blank=True)
    business_relevance = models.JSONField(default=list, blank=True)
    ui_metadata = models.JSONField(default=default_ui_metadata, blank=True)
    route_info = models.JSONField(default=dict, blank=True)

    provider = models.CharField(max_length=255, default="Ampairs")
    support_email = models.EmailField(blank=True)
    documentation_url = models.URLField(max_length=500, blank=True)
    size_mb = models.PositiveIntegerField(default=0)

    install_count = models.PositiveIntegerField(default=0)
    rating = models.FloatField(default=0.0)
    rating_count = models.PositiveIntegerField(default=0)

    featured = models.BooleanField(default=False)
    display_order = models.IntegerField(default=0)
    active = models.BooleanField(default=True)
    release_notes = models.TextField(blank=True)
    last_updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "master_modules"
        ordering = ["display_order", "name"]
        indexes = [
            models.Index(fields=["category"], name="idx_master_module_category"),
            models.Index(fields=["status"], name="idx_master_module_status"),
            models.Index(fields=["required_tier"], name="idx_master_module_tier"),
            models.Index(fields=["active", "featured"], name="idx_master_module_featured"),
        ]

    def __str__(self):
        return f"{self.name} ({self.module_code})"

    # ------------------------------------------------------------------
    # Configuration accessors
    # ------------------------------------------------------------------
    @property
    def dependencies(self) -> set:
        return set((self.configuration or {}).get("dependencies") or [])

    @property
    def conflicts_with(self) -> set:
        return set((self.configuration or {}).get("conflicts_with") or [])

    @property
    def required_permissions(self) -> set:
        return set((self.configuration or {}).get("required_permissions") or [])

    def clean(self):
        super().clean()
        if self.module_code in self.dependencies:
            raise ValidationError({"configuration": "A module cannot depend on itself."})
        if self.module_code in self.conflicts_with:
            raise ValidationError({"configuration": "A module cannot conflict with itself."})

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------
    def is_production_ready(self) -> bool:
        return self.status == ModuleStatus.ACTIVE.value and self.active

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------
    @property
    def display_icon(self) -> str:
        return (self.ui_metadata or {}).get("icon") or "apps"

    @property
    def primary_color(self) -> str:
        return (self.ui_metadata or {}).get("primary_color") or "#6750A4"


class WorkspaceModule(CoreBaseModel):
    """
    Installation of a master module inside one workspace.

    ``status`` and ``enabled`` are kept as two fields: ``status`` follows the
    install lifecycle, ``enabled`` is the administrative switch.
    """

    workspace_id = models.CharField(max_length=64)
    master_module = models.ForeignKey(
        MasterModule,
        on_delete=models.PROTECT,
        related_name="installations",
    )

    status = models.CharField(
        max_length=20,
        choices=[(s.value, s.value) for s in WorkspaceModuleStatus],
        default=WorkspaceModuleStatus.INSTALLING.value,
    )
    enabled = models.BooleanField(default=True)

    installed_version = models.CharField(max_length=50)
    installed_at = models.DateTimeField(default=timezone.now)
    installed_by = models.CharField(max_length=64, blank=True)
    installed_by_name = models.CharField(max_length=255, blank=True)
    last_updated_at = models.DateTimeField(null=True, blank=True)
    last_updated_by = models.CharField(max_length=64, blank=True)

    category_override = models.CharField(max_length=100, blank=True)
    display_order = models.IntegerField(default=0)

    settings = models.JSONField(default=dict, blank=True)
    usage_metrics = models.JSONField(default=default_usage_metrics, blank=True)

    class Meta:
        db_table = "workspace_modules"
        ordering = ["display_order", "installed_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["workspace_id", "master_module"],
                name="uniq_workspace_master_module",
            ),
        ]
        indexes = [
            models.Index(fields=["workspace_id"], name="idx_workspace_module_ws"),
            models.Index(fields=["workspace_id", "enabled"], name="idx_workspace_module_enabled"),
        ]

    def __str__(self):
        return f"{self.workspace_id}:{self.master_module.module_code} [{self.status}]"

    @property
    def module_code(self) -> str:
        return self.master_module.module_code

    # ------------------------------------------------------------------
    # Effective (tenant-overridable) presentation
    # ------------------------------------------------------------------
    @property
    def effective_name(self) -> str:
        return (self.settings or {}).get("custom_name") or self.master_module.name

    @property
    def effective_description(self) -> str:
        return (self.settings or {}).get("custom_description") or self.master_module.description

    @property
    def effective_icon(self) -> str:
        return (self.settings or {}).get("custom_icon") or self.master_module.display_icon

    @property
    def effective_color(self) -> str:
        return (self.settings or {}).get("custom_color") or self.master_module.primary_color

    @property
    def effective_category(self) -> str:
        return self.category_override or self.master_module.category

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------
    def is_operational(self) -> bool:
        return self.enabled and self.status == WorkspaceModuleStatus.ACTIVE.value

    def can_be_updated(self) -> bool:
        return (
            self.master_module.is_production_ready()
            and is_newer_version(self.master_module.version, self.installed_version)
        )

    def health_score(self) -> float:
        metrics = self.usage_metrics or {}
        score = 1.0

        accesses = metrics.get("total_accesses") or 0
        if accesses > 0:
            error_rate = (metrics.get("error_count") or 0) / accesses
            score -= min(error_rate, 1.0) * 0.3

        if self.can_be_updated():
            score -= 0.1

        if not self.is_operational():
            score -= 0.4

        return round(max(0.0, score), 4)

    def missing_dependencies(self, enabled_codes) -> set:
        return self.master_module.dependencies - set(enabled_codes)

    def needs_attention(self, enabled_codes=None) -> bool:
        """
        True when the installation is not ACTIVE, has recorded errors, has a
        health score under ``HEALTH_ATTENTION_THRESHOLD`` or, when the
        workspace's enabled codes are given, depends on a module that is no
        longer enabled.
        """
        if self.status != WorkspaceModuleStatus.ACTIVE.value:
            return True
        if (self.usage_metrics or {}).get("error_count"):
            return True
        if self.health_score() < registry_setting("HEALTH_ATTENTION_THRESHOLD"):
            return True
        if enabled_codes is not None and self.missing_dependencies(enabled_codes):
            return True
        return False
