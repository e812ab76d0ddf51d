# audit/urls.py

from django.urls import path

from audit.views import AuditEventListView

app_name = "audit"

urlpatterns = [
    path("events/", AuditEventListView.as_view(), name="event-list"),
]
