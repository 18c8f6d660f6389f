import logging

from django.apps import AppConfig
from django.db.models.signals import post_migrate

logger = logging.getLogger(__name__)


def seed_catalog_after_migrate(sender, **kwargs):
    from .conf import registry_setting
    from .seeding import seed_default_catalog

    if not registry_setting("SEED_ON_MIGRATE"):
        return
    report = seed_default_catalog()
    if report.failed:
        logger.warning("Catalog seeding skipped %d definitions: %s", len(report.failed), report.failed)


class ModulesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'app.platform.modules'
    label = 'modules'
    verbose_name = 'Module Registry'

    def ready(self):
        post_migrate.connect(seed_catalog_after_migrate, sender=self, dispatch_uid="modules.seed_catalog")
