# apps/board/urls.py

from django.urls import path
from . import views

app_name = 'board'

urlpatterns = [
    # Kanban
    path('dashboard/', views.dashboard, name='dashboard'),

    # Task creation (form / HTMX)
    path('dashboard/tasks/create/', views.create_task, name='create_task'),

    # AJAX - drag-and-drop
    path('dashboard/tasks/move/', views.move_task, name='move_task'),

    # Board state for re-sync after a drop
    path('dashboard/<uuid:project_id>/state/', views.board_state, name='board_state'),
]
