"""
HealthHub seed command - loads reproducible development data.

Usage:
    python manage.py seed           # seed all apps
    python manage.py seed --flush   # clear seed-owned rows first, then seed

Patients, visits, reports and payouts are never touched.
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from healthhub_backend.core.seeders import seed_core
from healthhub_backend.doctors.seeders import seed_doctors
from healthhub_backend.lab.seeders import seed_lab


class Command(BaseCommand):
    help = "Seed database with branches, users, doctors and the lab catalogue"

    def add_arguments(self, parser):
        parser.add_argument(
            "--flush",
            action="store_true",
            help="Delete seed-owned rows (audit logs, seed users, report configuration) before seeding.",
        )

    def handle(self, *args, **options):
        flush = options.get("flush", False)

        self.stdout.write("=" * 80)
        self.stdout.write("  HealthHub Seed")
        self.stdout.write("=" * 80)

        try:
            with transaction.atomic():
                stats = {}

                self.stdout.write("\n[1/3] Seeding Core (Roles, Branches, Users)...")
                core_stats = seed_core(flush=flush)
                stats.update(core_stats)
                self._print_stats(core_stats)

                self.stdout.write("\n[2/3] Seeding Doctors (Clinic, Referral)...")
                doctor_stats = seed_doctors(flush=flush)
                stats.update(doctor_stats)
                self._print_stats(doctor_stats)

                self.stdout.write("\n[3/3] Seeding Lab (Tests, Departments, Panels, Signing, Interpretations)...")
                lab_stats = seed_lab(flush=flush)
                stats.update(lab_stats)
                self._print_stats(lab_stats)

                self.stdout.write("\n" + "=" * 80)
                self.stdout.write(self.style.SUCCESS("  Seeding completed"))
                self.stdout.write("=" * 80)
                self._print_summary(stats)

        except Exception as e:
            self.stderr.write(f"\nSeeding failed: {e}")
            raise

    def _print_stats(self, stats):
        for key, value in stats.items():
            self.stdout.write(f"  - {key}: {value}")

    def _print_summary(self, stats):
        self.stdout.write("\nRecords (total):")
        for key, value in sorted(stats.items()):
            self.stdout.write(f"  - {key}: {value}")
