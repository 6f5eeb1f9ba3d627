# apps/inquiry/models.py

from django.db import models
from django.utils import timezone


class Inquiry(models.Model):
    """Message sent through the contact form"""

    CATEGORY_CHOICES = [
        ('general', 'General inquiry'),
        ('technical', 'Technical issue'),
        ('feature', 'Feature request'),
        ('billing', 'Billing'),
        ('other', 'Other'),
    ]

    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='general')
    subject = models.CharField(max_length=200)
    message = models.TextField()
    member = models.ForeignKey(
        'core.Member',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='inquiries'
    )
    user_email = models.CharField(max_length=254)
    user_name = models.CharField(max_length=150)
    submitted_at = models.DateTimeField(default=timezone.now)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    webhook_sent = models.BooleanField(default=False)

    class Meta:
        db_table = 'inquiries'
        ordering = ['-submitted_at']
        verbose_name_plural = 'inquiries'

    def __str__(self):
        return f'{self.subject} ({self.user_email})'

    def as_payload(self):
        """Body accepted by the webhook relay"""
        return {
            'category': self.category,
            'subject': self.subject,
            'message': self.message,
            'user_id': str(self.member_id) if self.member_id else None,
            'user_email': self.user_email,
            'user_name': self.user_name,
            'submitted_at': self.submitted_at.isoformat(),
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
        }
