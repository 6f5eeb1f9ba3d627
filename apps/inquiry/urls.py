# apps/inquiry/urls.py

from django.urls import path
from . import views

app_name = 'inquiry'

urlpatterns = [
    path('inquiry/', views.inquiry, name='inquiry'),
    path('inquiry/thanks/', views.thanks, name='thanks'),

    # Webhook relay API
    path('api/send-webhook/', views.send_webhook, name='send_webhook'),
]
