"""Provision an Administrator account outside the API."""

import getpass
import logging

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = (
        "Create an Administrator account. Administrators cannot be created or "
        "promoted through the API; this command is the only way in."
    )

    def add_arguments(self, parser):
        parser.add_argument("email")
        parser.add_argument("--name", default="Administrator")
        parser.add_argument("--employee-id", default="")
        parser.add_argument(
            "--password",
            help="Password for the new account. Prompted for when omitted.",
        )

    def handle(self, *args, **options):
        User = get_user_model()
        email = User.objects.normalize_email(options["email"])
        if User.objects.filter(email__iexact=email).exists():
            raise CommandError(f"An account with email {email} already exists.")

        password = options.get("password")
        if not password:
            password = getpass.getpass("Password: ")
            if password != getpass.getpass("Password (again): "):
                raise CommandError("Passwords do not match.")
        if not password:
            raise CommandError("Password must not be empty.")

        user = User.objects.create_superuser(
            email,
            password,
            name=options["name"],
            employee_id=options["employee_id"],
        )
        logger.info("Administrator %s provisioned from the command line", user.id)
        self.stdout.write(self.style.SUCCESS(f"Administrator {user.email} created."))
