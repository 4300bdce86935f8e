"""
Core app URL configuration for maintenance triggers.
"""

from django.urls import path

from apps.core.views import TriggerCleanupView

urlpatterns = [
    path(
        'maintenance/cleanup-trash',
        TriggerCleanupView.as_view(),
        name='cleanup-trash',
    ),
]
