# apps/inquiry/apps.py

from django.apps import AppConfig


class InquiryConfig(AppConfig):
    """Inquiry app configuration"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.inquiry'
    verbose_name = 'Inquiries'
