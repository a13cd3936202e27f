# apps/sync/urls.py
from django.urls import path

from .views import RevisionsView, SnapshotView

urlpatterns = [
    path('revisions/', RevisionsView.as_view(), name='sync-revisions'),
    path('snapshot/<str:resource>/', SnapshotView.as_view(), name='sync-snapshot'),
]
