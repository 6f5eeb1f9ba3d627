"""
Test utilities and factories for creating test data
"""
import random
import string

from apps.core.models import Account, Member, Project, Status, Task


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_account(username=None, email=None, password='testpass123', **extra):
        """Create an account; the post_save signal adds its Member"""
        if not username:
            username = f'user_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return Account.objects.create_user(
            username=username,
            email=email,
            password=password,
            **extra
        )

    @staticmethod
    def member_for(account):
        return Member.objects.get(login_id=account.email)

    @staticmethod
    def create_project(name=None, with_defaults=True):
        """Create a project; without defaults its states are removed"""
        project = Project.objects.create(
            project_name=name or f'Project {TestDataFactory.random_string(6)}'
        )
        if not with_defaults:
            project.statuses.all().delete()
        return project

    @staticmethod
    def create_status(project, name=None, color='#3B82F6', order_index=None):
        return Status.objects.create(
            project=project,
            status_name=name or f'State {TestDataFactory.random_string(4)}',
            status_color=color,
            order_index=order_index if order_index is not None else project.next_order_index()
        )

    @staticmethod
    def create_task(status, creator, title=None, assignee=None, description=None):
        return Task.objects.create(
            title=title or f'Task {TestDataFactory.random_string(6)}',
            description=description,
            status=status,
            project=status.project,
            creator=creator,
            assignee=assignee
        )
