# apps/core/models.py

import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator
from django.db import models, transaction
from django.db.models import F, Max

hex_color_validator = RegexValidator(
    regex=r'^#[0-9A-Fa-f]{6}$',
    message='Use a hex colour such as #3B82F6.'
)


class Account(AbstractUser):
    """
    Authentication identity.

    Password sign-in and Discord sign-in both resolve to an Account.
    Application data never points at it directly: it goes through the
    Member with the same login id (email).
    """

    email = models.EmailField('email address', unique=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'account'

    def display_name(self):
        return self.get_full_name() or self.username or self.email

    def __str__(self):
        return self.email or self.username


class MemberManager(models.Manager):

    def for_login(self, login_id):
        """Member whose login id matches the account email, or None"""
        if not login_id:
            return None
        return self.filter(login_id=login_id).first()


class Member(models.Model):
    """
    Application user record keyed by login identity.

    Tasks reference members as creator and assignee.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    login_id = models.CharField(max_length=254, unique=True)
    name = models.CharField(max_length=150)
    nickname = models.CharField(max_length=150, blank=True, null=True)
    project = models.ForeignKey(
        'Project',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='members'
    )
    created_at = models.DateTimeField(auto_now_add=True, null=True)
    updated_at = models.DateTimeField(auto_now=True, null=True)

    objects = MemberManager()

    class Meta:
        db_table = 'member'
        ordering = ['name']

    def __str__(self):
        return self.name


class Project(models.Model):
    """Named workspace containing states and tasks"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project_name = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True, null=True)
    updated_at = models.DateTimeField(auto_now=True, null=True)

    class Meta:
        db_table = 'projects'
        ordering = ['project_name']

    def __str__(self):
        return self.project_name

    def ordered_statuses(self):
        return self.statuses.order_by(F('order_index').asc(nulls_last=True), 'created_at')

    def next_order_index(self):
        """Index that appends a new state after the current last one"""
        current = self.statuses.aggregate(top=Max('order_index'))['top']
        return max(current or 0, 0) + 1

    def create_default_statuses(self):
        """Creates the configured default states when the project has none"""
        if self.statuses.exists():
            return []

        created = []
        for idx, (name, color) in enumerate(settings.TASKBOARD_DEFAULT_STATUSES, start=1):
            created.append(Status.objects.create(
                project=self,
                status_name=name,
                status_color=color,
                order_index=idx
            ))
        return created

    @transaction.atomic
    def reorder_status(self, status, direction):
        """
        Moves a state one position up or down and renumbers every
        state of the project 1..n.

        Returns False when the move is out of range.
        """
        statuses = list(self.ordered_statuses())
        ids = [s.id for s in statuses]
        if status.id not in ids:
            return False

        current = ids.index(status.id)
        if direction == 'up':
            target = current - 1
        elif direction == 'down':
            target = current + 1
        else:
            return False

        if target < 0 or target >= len(statuses):
            return False

        moved = statuses.pop(current)
        statuses.insert(target, moved)

        for idx, item in enumerate(statuses, start=1):
            if item.order_index != idx:
                item.order_index = idx
                item.save(update_fields=['order_index', 'updated_at'])
        return True


class Status(models.Model):
    """Ordered workflow column of a project"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='statuses'
    )
    status_name = models.CharField(max_length=100)
    status_color = models.CharField(
        max_length=7,
        blank=True,
        null=True,
        validators=[hex_color_validator]
    )
    order_index = models.IntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, null=True)
    updated_at = models.DateTimeField(auto_now=True, null=True)

    class Meta:
        db_table = 'status'
        ordering = [F('order_index').asc(nulls_last=True), 'created_at']
        verbose_name_plural = 'statuses'

    def __str__(self):
        return self.status_name

    @property
    def display_color(self):
        return self.status_color or '#6b7280'


class Task(models.Model):
    """Work item placed in a state"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, null=True)
    assignee = models.ForeignKey(
        Member,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='assigned_tasks'
    )
    creator = models.ForeignKey(
        Member,
        on_delete=models.PROTECT,
        related_name='created_tasks'
    )
    project = models.ForeignKey(
        Project,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='tasks'
    )
    # A state cannot be deleted while tasks still sit in it, unless the
    # whole project goes with it.
    status = models.ForeignKey(
        Status,
        on_delete=models.RESTRICT,
        null=True,
        blank=True,
        related_name='tasks'
    )
    created_at = models.DateTimeField(auto_now_add=True, null=True)
    updated_at = models.DateTimeField(auto_now=True, null=True)

    class Meta:
        db_table = 'tasks'
        ordering = ['created_at']

    def __str__(self):
        return self.title

    def move_to(self, status):
        """Places the task in another state. False when nothing changed"""
        if self.status_id == status.id:
            return False

        self.status = status
        if status.project_id:
            self.project_id = status.project_id
        self.save(update_fields=['status', 'project', 'updated_at'])
        return True
