"""
Tenant context, acting user and user-detail enrichment.

The registry never guesses a workspace: reads with no tenant return empty
results, writes fail with TENANT_CONTEXT_MISSING.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from django.contrib.auth import get_user_model

from .conf import registry_setting
from .errors import ModuleError, ModuleErrorCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who is performing a lifecycle operation."""
    user_id: str = ""
    name: str = ""
    email: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.user_id

    @classmethod
    def from_user(cls, user) -> "Actor":
        if user is None or not getattr(user, "is_authenticated", False):
            return cls()
        full_name = ""
        if hasattr(user, "get_full_name"):
            full_name = user.get_full_name() or ""
        return cls(
            user_id=str(getattr(user, "pk", "") or getattr(user, "id", "") or ""),
            name=full_name,
            email=getattr(user, "email", "") or "",
        )


class TenantContext(Protocol):
    def current_tenant(self) -> Optional[str]:
        ...


class UserDetailProvider(Protocol):
    def get_user_detail(self, user_id: str) -> Optional[dict]:
        ...


class RequestTenantContext:
    """
    Resolves the workspace for a DRF/Django request.

    The ``workspace_id`` claim of a simplejwt token (``request.auth``) is
    authoritative. An ``X-Workspace-ID`` header is only honoured when the
    token carries no claim, or when it names the same workspace; a header
    that disagrees with the claim raises WORKSPACE_MISMATCH.
    """

    def __init__(self, request):
        self.request = request

    def current_tenant(self) -> Optional[str]:
        header = (self.request.META.get(registry_setting("TENANT_HEADER")) or "").strip()
        claim = self._token_claim()
        if claim:
            if header and header != claim:
                logger.warning("Workspace header %s rejected; token is bound to %s", header, claim)
                raise ModuleError(
                    ModuleErrorCode.WORKSPACE_MISMATCH,
                    "The requested workspace does not match the authenticated workspace.",
                )
            return claim
        return header or None

    def _token_claim(self) -> Optional[str]:
        token = getattr(self.request, "auth", None)
        if token is None:
            return None
        try:
            claim = token.get(registry_setting("TENANT_CLAIM"))
        except AttributeError:
            return None
        return str(claim).strip() if claim else None


class DjangoUserDetailProvider:
    """Reads first/last name and email from the configured user model."""

    def get_user_detail(self, user_id: str) -> Optional[dict]:
        User = get_user_model()
        user = User.objects.filter(pk=user_id).first()
        if user is None:
            return None
        return {
            "first_name": getattr(user, "first_name", "") or "",
            "last_name": getattr(user, "last_name", "") or "",
            "email": getattr(user, "email", "") or "",
            "avatar_url": getattr(user, "avatar_url", "") or "",
        }


def require_tenant(workspace_id: Optional[str]) -> str:
    if not workspace_id:
        raise ModuleError(
            ModuleErrorCode.TENANT_CONTEXT_MISSING,
            "No active workspace could be resolved for this request.",
        )
    return str(workspace_id)


def resolve_actor_name(actor: Optional[Actor], provider: Optional[UserDetailProvider]) -> str:
    """
    Human-facing name for ``actor``. The provider is best effort: when it
    returns nothing or fails, the actor's own name/email is used.
    """
    if actor is None:
        return ""
    if provider is not None and actor.user_id:
        try:
            detail = provider.get_user_detail(actor.user_id)
        except Exception:
            logger.warning("User detail lookup failed for %s; using local name", actor.user_id, exc_info=True)
            detail = None
        if detail:
            full_name = f"{detail.get('first_name') or ''} {detail.get('last_name') or ''}".strip()
            if full_name:
                return full_name
            if detail.get("email"):
                return detail["email"]
    return actor.display_name
