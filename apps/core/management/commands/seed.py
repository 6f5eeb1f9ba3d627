# apps/core/management/commands/seed.py

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.core.auth_service import auth_service
from apps.core.models import Account, Project, Task

DEMO_EMAIL = 'demo@taskboard.local'
DEMO_PASSWORD = 'demo-password'
DEMO_PROJECT = 'Demo project'

DEMO_TASKS = [
    ('To Do', 'Write the release notes', 'Summarise the changes of this sprint.'),
    ('To Do', 'Review open inquiries', None),
    ('In Progress', 'Design the onboarding flow', 'First sign-in experience for new members.'),
    ('Done', 'Set up the project board', None),
]


class Command(BaseCommand):
    help = 'Creates a demo account, project, states and tasks (safe to run again)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            default=DEMO_PASSWORD,
            help='Password for the demo account'
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write('Seeding demo data...')

        account = self._demo_account(options['password'])
        member = auth_service.ensure_member(account)
        project = self._demo_project()

        created = self._demo_tasks(project, member)

        self.stdout.write(
            self.style.SUCCESS(
                f'\nDemo data ready.\n'
                f'  Account: {account.email} / {options["password"]}\n'
                f'  Project: {project.project_name} '
                f'({project.statuses.count()} states, {project.tasks.count()} tasks, {created} new)\n'
            )
        )

    def _demo_account(self, password):
        account, created = Account.objects.get_or_create(
            email=DEMO_EMAIL,
            defaults={'username': 'demo', 'first_name': 'Demo', 'last_name': 'User'}
        )
        if created:
            account.set_password(password)
            account.save()
            self.stdout.write(f'  Account created: {account.email}')
        else:
            self.stdout.write(f'  Account exists: {account.email}')
        return account

    def _demo_project(self):
        # Default states come from the post_save signal
        project, created = Project.objects.get_or_create(project_name=DEMO_PROJECT)
        if created:
            self.stdout.write(f'  Project created: {project.project_name}')
        project.create_default_statuses()
        return project

    def _demo_tasks(self, project, member):
        statuses = {s.status_name: s for s in project.ordered_statuses()}
        created = 0

        for status_name, title, description in DEMO_TASKS:
            status = statuses.get(status_name)
            if status is None:
                continue

            _, was_created = Task.objects.get_or_create(
                project=project,
                title=title,
                defaults={
                    'status': status,
                    'description': description,
                    'creator': member,
                    'assignee': member,
                }
            )
            created += int(was_created)

        return created
