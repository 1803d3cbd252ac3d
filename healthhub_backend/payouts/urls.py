"""Payouts App URLs.

Prefix: /api/
Routes:
    GET   /api/payouts/                       - Branch ledger (?doctor_type=&is_paid=&start_date=&end_date=)
    POST  /api/payouts/derive/                - Derive for doctor + period (owner)
    GET   /api/payouts/<pk>/                  - Ledger row with line items
    POST  /api/payouts/<pk>/mark-paid/        - Record payment
    GET   /api/payouts/doctors/referral/      - Active referral doctors
    GET   /api/payouts/doctors/clinic/        - Active clinic doctors
"""

from django.urls import path

from healthhub_backend.payouts.views import (
    PayoutClinicDoctorsView,
    PayoutDeriveView,
    PayoutDetailView,
    PayoutListView,
    PayoutMarkPaidView,
    PayoutReferralDoctorsView,
)

app_name = 'payouts'

urlpatterns = [
    path('payouts/', PayoutListView.as_view(), name='list'),
    path('payouts/derive/', PayoutDeriveView.as_view(), name='derive'),
    path('payouts/doctors/referral/', PayoutReferralDoctorsView.as_view(), name='referral-doctors'),
    path('payouts/doctors/clinic/', PayoutClinicDoctorsView.as_view(), name='clinic-doctors'),
    path('payouts/<int:pk>/', PayoutDetailView.as_view(), name='detail'),
    path('payouts/<int:pk>/mark-paid/', PayoutMarkPaidView.as_view(), name='mark-paid'),
]
