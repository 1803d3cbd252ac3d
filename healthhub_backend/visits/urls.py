"""Visits App URLs.

Prefix: /api/
Routes:
    GET/POST         /api/visits/diagnostic/                          - Branch visits / register
    GET/PATCH        /api/visits/diagnostic/<pk>/                     - Detail / status and payment
    POST             /api/visits/diagnostic/<pk>/tests/               - Order more tests
    DELETE           /api/visits/diagnostic/<pk>/tests/<order_id>/    - Remove a test order
    GET/POST         /api/visits/clinic/                              - Branch consultations / register
    GET/PATCH/DELETE /api/visits/clinic/<pk>/                         - Detail / update / cancel
    GET              /api/bills/<domain>/<visit_id>/                  - Printable bill
"""

from django.urls import path

from healthhub_backend.visits.views import (
    BillPrintView,
    ClinicVisitDetailView,
    ClinicVisitListCreateView,
    DiagnosticVisitDetailView,
    DiagnosticVisitListCreateView,
    DiagnosticVisitTestDetailView,
    DiagnosticVisitTestsView,
)

app_name = 'visits'

urlpatterns = [
    path('visits/diagnostic/', DiagnosticVisitListCreateView.as_view(), name='diagnostic-list'),
    path('visits/diagnostic/<int:pk>/', DiagnosticVisitDetailView.as_view(), name='diagnostic-detail'),
    path('visits/diagnostic/<int:pk>/tests/', DiagnosticVisitTestsView.as_view(), name='diagnostic-tests'),
    path(
        'visits/diagnostic/<int:pk>/tests/<int:order_id>/',
        DiagnosticVisitTestDetailView.as_view(),
        name='diagnostic-test-detail',
    ),

    path('visits/clinic/', ClinicVisitListCreateView.as_view(), name='clinic-list'),
    path('visits/clinic/<int:pk>/', ClinicVisitDetailView.as_view(), name='clinic-detail'),

    path('bills/<str:domain>/<int:visit_id>/', BillPrintView.as_view(), name='bill-print'),
]
