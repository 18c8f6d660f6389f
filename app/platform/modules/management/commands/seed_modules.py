"""
Reconcile the master module catalog with the default definitions.
Run: python manage.py seed_modules
"""

from django.core.management.base import BaseCommand, CommandError

from app.platform.modules.definitions import DEFAULT_MASTER_MODULES
from app.platform.modules.seeding import reconcile_catalog


class Command(BaseCommand):
    help = 'Create or overwrite the master module catalog from the default definitions'

    def add_arguments(self, parser):
        parser.add_argument(
            '--only',
            nargs='+',
            metavar='MODULE_CODE',
            help='Reconcile only these module codes',
        )
        parser.add_argument(
            '--strict',
            action='store_true',
            help='Exit with an error if any definition fails',
        )

    def handle(self, *args, **options):
        definitions = DEFAULT_MASTER_MODULES
        if options['only']:
            wanted = set(options['only'])
            definitions = [d for d in definitions if d['module_code'] in wanted]
            unknown = wanted - {d['module_code'] for d in definitions}
            if unknown:
                raise CommandError(f"Unknown module codes: {', '.join(sorted(unknown))}")

        self.stdout.write(self.style.SUCCESS('Seeding master modules...'))
        report = reconcile_catalog(definitions)

        for code in report.created:
            self.stdout.write(f'  Created module: {code}')
        for code in report.updated:
            self.stdout.write(f'  Updated module: {code}')
        for code in report.failed:
            self.stdout.write(self.style.ERROR(f'  Failed module: {code}'))

        self.stdout.write(self.style.SUCCESS(f'\nSummary: {report}'))
        if options['strict'] and report.failed:
            raise CommandError(f'{len(report.failed)} module definitions failed to seed')
