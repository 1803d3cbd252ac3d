"""Patients App URLs.

Prefix: /api/
Routes:
    GET/POST    /api/patients/              - Recent patients / register
    GET         /api/patients/search/       - Match by phone, email or name
    GET         /api/patients/check/        - Does a phone/email exist?
    GET/PATCH   /api/patients/<pk>/         - Retrieve / update with change_reason
    GET         /api/patients/<pk>/360/     - Cross-branch visit and billing overview
    GET         /api/patients/<pk>/history/ - Change log
"""

from django.urls import path

from healthhub_backend.patients.views import (
    Patient360View,
    PatientCheckView,
    PatientDetailView,
    PatientHistoryView,
    PatientListCreateView,
    PatientSearchView,
)

app_name = 'patients'

urlpatterns = [
    path('patients/', PatientListCreateView.as_view(), name='list'),
    path('patients/search/', PatientSearchView.as_view(), name='search'),
    path('patients/check/', PatientCheckView.as_view(), name='check'),
    path('patients/<int:pk>/', PatientDetailView.as_view(), name='detail'),
    path('patients/<int:pk>/360/', Patient360View.as_view(), name='360'),
    path('patients/<int:pk>/history/', PatientHistoryView.as_view(), name='history'),
]
