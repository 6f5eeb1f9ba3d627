# apps/core/admin.py

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.html import format_html
from .models import Account, Member, Project, Status, Task


@admin.register(Account)
class AccountAdmin(BaseUserAdmin):
    """Admin for sign-in accounts"""

    list_display = ['email', 'username', 'get_full_name', 'is_active', 'date_joined']
    list_filter = ['is_staff', 'is_active', 'date_joined']
    search_fields = ['username', 'first_name', 'last_name', 'email']
    ordering = ['-date_joined']


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):

    list_display = ['name', 'nickname', 'login_id', 'project', 'created_at']
    search_fields = ['name', 'nickname', 'login_id']
    list_filter = ['project']


class StatusInline(admin.TabularInline):
    model = Status
    extra = 0
    fields = ['status_name', 'status_color', 'order_index']
    ordering = ['order_index']


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """Admin for projects, with their states inline"""

    list_display = ['project_name', 'statuses_count', 'tasks_count', 'created_at']
    search_fields = ['project_name']
    inlines = [StatusInline]

    def statuses_count(self, obj):
        return obj.statuses.count()

    statuses_count.short_description = 'States'

    def tasks_count(self, obj):
        return obj.tasks.count()

    tasks_count.short_description = 'Tasks'


@admin.register(Status)
class StatusAdmin(admin.ModelAdmin):

    list_display = ['status_name', 'project', 'order_index', 'color_preview', 'tasks_count']
    list_filter = ['project']
    ordering = ['project', 'order_index']

    def color_preview(self, obj):
        """Colour swatch of the state"""
        return format_html(
            '<div style="width: 20px; height: 20px; background-color: {}; '
            'border-radius: 3px; display: inline-block;"></div>',
            obj.display_color
        )

    color_preview.short_description = 'Colour'

    def tasks_count(self, obj):
        return obj.tasks.count()

    tasks_count.short_description = 'Tasks'


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):

    list_display = ['title', 'project', 'status', 'assignee', 'creator', 'created_at']
    list_filter = ['project', 'status']
    search_fields = ['title', 'description']
    raw_id_fields = ['assignee', 'creator']
    date_hierarchy = 'created_at'
