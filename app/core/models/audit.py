"""Audit logging primitives."""
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models
from django.utils import timezone

from .base import CoreBaseModel


class AuditLog(CoreBaseModel):
    """Tracks administrative actions taken inside a workspace."""

    actor_id = models.CharField(max_length=64, blank=True)
    actor_name = models.CharField(max_length=255, blank=True)
    workspace_id = models.CharField(max_length=64, null=True, blank=True)

    content_type = models.ForeignKey(ContentType, on_delete=models.SET_NULL, null=True)
    object_id = models.UUIDField(null=True, blank=True)
    content_object = GenericForeignKey("content_type", "object_id")

    action = models.CharField(max_length=64)
    description = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = "core_audit_logs"
        indexes = [
            models.Index(fields=["workspace_id", "action"]),
            models.Index(fields=["created_at"]),
        ]
        ordering = ["-created_at"]

    def __str__(self):
        ts = self.created_at.astimezone(timezone.utc) if self.created_at else ""
        actor = self.actor_name or self.actor_id or "system"
        return f"[{ts}] {actor} -> {self.action}"
