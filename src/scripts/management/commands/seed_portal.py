"""Seed default categories, demo accounts, and sample articles."""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from access_control.roles import Role
from articles.models import Article, Category
from articles.states import Approved, Pending

DEFAULT_CATEGORIES = [
    ("HR", "hr", "People processes, onboarding and policies."),
    ("IT", "it", "Infrastructure, accounts and tooling."),
    ("Development", "dev", "Engineering practices and guides."),
]

DEMO_ACCOUNTS = [
    # email, password, name, role
    ("admin@example.com", "adminpass", "Admin", Role.ADMINISTRATOR),
    ("contributor@example.com", "contributorpass", "Contributor", Role.CONTRIBUTOR),
    ("consumer@example.com", "consumerpass", "Consumer", Role.CONSUMER),
]


def create_seed_categories() -> dict[str, Category]:
    """Create the default categories if missing and return a slug->Category map."""
    categories = {}
    for name, slug, description in DEFAULT_CATEGORIES:
        category, _ = Category.objects.get_or_create(
            slug=slug, defaults={"name": name, "description": description}
        )
        categories[slug] = category
    return categories


def create_demo_accounts() -> dict[str, object]:
    """Create one account per role if missing and return a role->User map."""
    User = get_user_model()
    accounts = {}
    for email, password, name, role in DEMO_ACCOUNTS:
        user = User.objects.filter(email=email).first()
        if user is None:
            if role == Role.ADMINISTRATOR:
                user = User.objects.create_superuser(email, password, name=name)
            else:
                user = User.objects.create_user(email, password, name=name, role=role)
        accounts[role] = user
    return accounts


def create_sample_articles(author, categories) -> None:
    """Give the demo contributor one approved and one pending article."""
    samples = [
        ("Onboarding checklist", "First-week steps for new hires.", "hr", Approved(at=timezone.now())),
        ("VPN setup", "Connecting to the office network from home.", "it", Pending()),
    ]
    for title, summary, slug, state in samples:
        if Article.objects.filter(title=title, author=author).exists():
            continue
        article = Article(title=title, summary=summary, category=categories[slug], author=author)
        article.apply_state(state)
        article.save()


class Command(BaseCommand):
    help = (
        "Seed default categories (HR, IT, Development), one demo account per role "
        "and a couple of sample articles. Use --reset to clear previously seeded data first."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the demo accounts (with their articles) and unused default categories first.",
        )

    def handle(self, *args, **options):
        with transaction.atomic():
            if options.get("reset"):
                self._reset_seeded_data()

            self.stdout.write("Seeding portal data...")
            categories = create_seed_categories()
            accounts = create_demo_accounts()
            create_sample_articles(accounts[Role.CONTRIBUTOR], categories)
        self.stdout.write(self.style.SUCCESS("Portal seed completed."))

    def _reset_seeded_data(self) -> None:
        """Remove demo accounts and the default categories they were using.

        Categories still referenced by other articles are kept.
        """
        self.stdout.write("Resetting previously seeded data...")
        User = get_user_model()

        # Articles and comments cascade with their authors.
        User.objects.filter(email__in=[email for email, *_ in DEMO_ACCOUNTS]).delete()

        slugs = [slug for _, slug, _ in DEFAULT_CATEGORIES]
        Category.objects.filter(slug__in=slugs, articles__isnull=True).delete()

        self.stdout.write(self.style.WARNING("Seeded data cleared."))
