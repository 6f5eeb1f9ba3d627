# config/urls.py

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.views.generic import RedirectView

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Applications
    path('', include('apps.core.urls')),
    path('', include('apps.board.urls')),
    path('', include('apps.inquiry.urls')),

    # Legacy page names
    path('Dashboard/', RedirectView.as_view(pattern_name='board:dashboard', permanent=False)),
]

if settings.DEBUG:
    try:
        import debug_toolbar

        urlpatterns = [
                          path('__debug__/', include(debug_toolbar.urls)),
                      ] + urlpatterns
    except ImportError:
        pass

admin.site.site_header = 'Taskboard Admin'
admin.site.site_title = 'Taskboard'
admin.site.index_title = 'Administration'
