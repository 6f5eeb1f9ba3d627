# apps/core/urls.py

from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    # === AUTHENTICATION ===
    path('', views.home, name='home'),
    path('login/', views.home, name='login'),
    path('logout/', views.logout_view, name='logout'),

    # Discord OAuth
    path('auth/discord/', views.oauth_start, name='oauth_start'),
    path('auth/callback/', views.auth_callback, name='auth_callback'),
    path('auth/auth-code-error/', views.auth_code_error, name='auth_code_error'),

    # === MY PAGE ===
    path('mypage/', views.mypage, name='mypage'),

    # === PROJECTS ===
    path('projects/', views.projects, name='projects'),
    path('projects/create/', views.create_project, name='create_project'),
    path('projects/<uuid:project_id>/rename/', views.rename_project, name='rename_project'),
    path('projects/<uuid:project_id>/delete/', views.delete_project, name='delete_project'),

    # States of a project
    path('projects/<uuid:project_id>/statuses/create/', views.create_status, name='create_status'),
    path('statuses/<uuid:status_id>/update/', views.update_status, name='update_status'),
    path('statuses/<uuid:status_id>/delete/', views.delete_status, name='delete_status'),
    path('statuses/<uuid:status_id>/move/<str:direction>/', views.move_status, name='move_status'),

    # === MONITORING ===
    path('health/', views.health_check, name='health'),
]
