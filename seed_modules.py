#!/usr/bin/env python3
"""
Seed the master module catalog outside of migrations
"""
import os
import sys
import django

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')
django.setup()

from app.platform.modules.seeding import seed_default_catalog


def seed_modules():
    """Create or overwrite catalog entries from the default definitions"""
    report = seed_default_catalog()

    for code in report.created:
        print(f"✓ Created module: {code}")
    for code in report.updated:
        print(f"↻ Updated module: {code}")
    for code in report.failed:
        print(f"✗ Failed module: {code}")

    print(f"\nSummary: {report}")
    return len(report.failed) == 0


if __name__ == "__main__":
    print("Seeding master modules...")
    ok = seed_modules()
    print("Done!")
    sys.exit(0 if ok else 1)
