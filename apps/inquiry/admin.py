# apps/inquiry/admin.py

from django.contrib import admin
from .models import Inquiry


@admin.register(Inquiry)
class InquiryAdmin(admin.ModelAdmin):
    """Admin for received inquiries"""

    list_display = ['subject', 'category', 'user_name', 'user_email', 'submitted_at', 'webhook_sent']
    list_filter = ['category', 'webhook_sent', 'submitted_at']
    search_fields = ['subject', 'message', 'user_email', 'user_name']
    readonly_fields = ['submitted_at', 'ip_address', 'user_agent']
    date_hierarchy = 'submitted_at'
