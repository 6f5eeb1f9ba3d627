# apps/core/signals.py

import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from .models import Account, Project, Task

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Account)
def create_member_for_account(sender, instance, created, **kwargs):
    """New accounts get the Member that application data points at"""
    if created and instance.email:
        from .auth_service import auth_service
        auth_service.ensure_member(instance)


@receiver(post_save, sender=Project)
def create_default_statuses(sender, instance, created, **kwargs):
    """New projects start with the configured default states"""
    if created and not kwargs.get('raw', False):
        instance.create_default_statuses()


@receiver(pre_save, sender=Task)
def log_status_change(sender, instance, **kwargs):
    """Logs tasks that change state"""
    if not instance.pk or kwargs.get('raw', False):
        return

    previous = sender.objects.filter(pk=instance.pk).values_list('status_id', flat=True).first()
    if previous is not None and previous != instance.status_id:
        logger.info("Task '%s' moved from state %s to %s", instance.title, previous, instance.status_id)
