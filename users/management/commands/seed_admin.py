import os

from django.core.management.base import BaseCommand

from users import identity


class Command(BaseCommand):
    help = "Create the platform admin from ADMIN_NAME / ADMIN_EMAIL / ADMIN_PASSWORD if it does not exist"

    def add_arguments(self, parser):
        parser.add_argument("--name", default=os.environ.get("ADMIN_NAME"))
        parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL"))
        parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD"))

    def handle(self, *args, **options):
        name, email, password = options["name"], options["email"], options["password"]

        if not (name and email and password):
            self.stdout.write(self.style.WARNING("Admin credentials not configured, skipping admin seeding"))
            return

        user, created = identity.ensure_admin(name, email, password)
        if created:
            self.stdout.write(self.style.SUCCESS(f"Admin user created: {user.email}"))
        else:
            self.stdout.write(f"Admin user already exists: {user.email}")
