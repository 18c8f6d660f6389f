"""Helper functions for writing audit logs."""
from typing import Optional, Mapping, Any

from django.contrib.contenttypes.models import ContentType

from app.core.models import AuditLog


def record_audit(*, actor=None, workspace_id=None, obj=None, action: str, description: str = "", metadata: Optional[Mapping[str, Any]] = None) -> AuditLog:
    """
    Persist one audit row. ``actor`` is anything exposing ``user_id`` and
    ``display_name`` (see ``app.platform.modules.tenancy.Actor``) or None for
    system actions.
    """
    metadata = dict(metadata or {})
    content_type = None
    object_id = None
    if obj is not None:
        content_type = ContentType.objects.get_for_model(obj.__class__)
        object_id = getattr(obj, "pk", None)
    return AuditLog.objects.create(
        actor_id=str(getattr(actor, "user_id", "") or ""),
        actor_name=getattr(actor, "display_name", "") or "",
        workspace_id=workspace_id,
        content_type=content_type,
        object_id=object_id,
        action=action,
        description=description,
        metadata=metadata,
    )
