"""Access to the ``MODULE_REGISTRY`` settings dict with defaults."""
from django.conf import settings

DEFAULTS = {
    "SEED_ON_MIGRATE": True,
    "TENANT_HEADER": "HTTP_X_WORKSPACE_ID",
    "TENANT_CLAIM": "workspace_id",
    "CATALOG_PAGE_SIZE": 20,
    "MAX_PAGE_SIZE": 100,
    "HEALTH_ATTENTION_THRESHOLD": 0.7,
    "STATISTICS_CACHE_TTL": 300,
}


def registry_setting(name: str):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown MODULE_REGISTRY setting: {name}")
    overrides = getattr(settings, "MODULE_REGISTRY", {}) or {}
    return overrides.get(name, DEFAULTS[name])
