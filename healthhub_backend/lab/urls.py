"""Lab App URLs.

Prefix: /api/
Routes:
    GET/POST            /api/lab-tests/         - Active top-level tests with sub-tests / create
    GET/PATCH/DELETE    /api/lab-tests/<pk>/    - Retrieve / update / deactivate
"""

from django.urls import path

from healthhub_backend.lab.views import LabTestDetailView, LabTestListCreateView

app_name = 'lab'

urlpatterns = [
    path('lab-tests/', LabTestListCreateView.as_view(), name='lab-test-list'),
    path('lab-tests/<int:pk>/', LabTestDetailView.as_view(), name='lab-test-detail'),
]
