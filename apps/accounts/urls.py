"""
Member URL configuration.
"""

from django.urls import path

from apps.accounts.views import (
    BorrowerListCreateView,
    MeView,
    RegisterMemberView,
)

urlpatterns = [
    path('register', RegisterMemberView.as_view(), name='register'),
    path('me', MeView.as_view(), name='me'),
    path('borrowers', BorrowerListCreateView.as_view(), name='borrowers'),
]
