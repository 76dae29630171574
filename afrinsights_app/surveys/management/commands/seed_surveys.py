"""
Management command to create a starter set of market research surveys.

Surveys are matched by title, so running the command again does not create
duplicates.

Usage:
    python manage.py seed_surveys
    python manage.py seed_surveys --dry-run
"""

import logging

from django.core.management.base import BaseCommand
from django.db import transaction

from afrinsights_app.surveys.models import Survey
from afrinsights_app.surveys.questions import Question, validate_questions

logger = logging.getLogger(__name__)

YES_NO = ("Yes", "No")

SEED_SURVEYS = [
    {
        "title": "Mobile Money Usage",
        "description": "How people send, receive and save money on their phones.",
        "category": Survey.Category.ECONOMIC,
        "questions": [
            Question("q1", "Do you use mobile money at least once a week?", YES_NO),
            Question(
                "q2",
                "What do you mostly use mobile money for?",
                ("Paying bills", "Sending money", "Saving", "Shopping"),
            ),
        ],
    },
    {
        "title": "Internet Access",
        "description": "Where and how people get online.",
        "category": Survey.Category.TECHNOLOGY,
        "questions": [
            Question(
                "q1",
                "How do you usually access the internet?",
                ("Smartphone", "Computer", "Internet cafe", "I don't"),
            ),
            Question("q2", "Is mobile data affordable where you live?", YES_NO),
        ],
    },
    {
        "title": "Healthcare Access",
        "description": "Distance to care and use of health insurance.",
        "category": Survey.Category.HEALTH,
        "questions": [
            Question(
                "q1",
                "How long does it take you to reach the nearest clinic?",
                ("Under 30 minutes", "30-60 minutes", "Over an hour"),
            ),
            Question("q2", "Do you have health insurance?", YES_NO),
        ],
    },
    {
        "title": "Daily Commute",
        "description": "How people travel to work or school.",
        "category": Survey.Category.TRANSPORT,
        "questions": [
            Question(
                "q1",
                "How do you usually travel to work or school?",
                ("Walking", "Minibus", "Motorbike taxi", "Private car"),
            ),
        ],
    },
    {
        "title": "Skills and Training",
        "description": "Interest in further education and vocational training.",
        "category": Survey.Category.EDUCATION,
        "questions": [
            Question("q1", "Would you pay for an online course?", YES_NO),
            Question(
                "q2",
                "Which skill would you most like to learn?",
                ("Digital skills", "A trade", "Business", "Languages"),
            ),
        ],
    },
]


class Command(BaseCommand):
    help = "Create a starter set of active surveys across categories"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be created without writing to the database",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        created_count = 0
        existing_count = 0

        with transaction.atomic():
            for config in SEED_SURVEYS:
                title = config["title"]
                validate_questions(config["questions"])

                if Survey.objects.filter(title=title).exists():
                    existing_count += 1
                    self.stdout.write(f"Survey exists: {title}")
                    continue

                created_count += 1
                if dry_run:
                    self.stdout.write(f"Would create survey: {title}")
                    continue

                survey = Survey(
                    title=title,
                    description=config["description"],
                    category=config["category"],
                )
                survey.set_questions(config["questions"])
                survey.save()
                self.stdout.write(self.style.SUCCESS(f"Created survey: {title}"))

        verb = "Would create" if dry_run else "Created"
        self.stdout.write(
            self.style.SUCCESS(
                f"{verb} {created_count} surveys ({existing_count} already present)"
            )
        )
        if not dry_run:
            logger.info(f"Seeded {created_count} surveys")
