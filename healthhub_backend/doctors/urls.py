"""Doctors App URLs.

Prefix: /api/
Routes:
    GET/POST            /api/referral-doctors/             - List (?include_inactive=) / create
    GET/PATCH/DELETE    /api/referral-doctors/<pk>/        - Retrieve / update / deactivate
    GET/POST            /api/clinic-doctors/               - List / create
    GET/PATCH/DELETE    /api/clinic-doctors/<pk>/          - Retrieve / update / deactivate
    GET                 /api/doctors/search-by-contact/    - Lookup by phone/email
"""

from django.urls import path

from healthhub_backend.doctors.views import (
    ClinicDoctorDetailView,
    ClinicDoctorListCreateView,
    DoctorContactSearchView,
    ReferralDoctorDetailView,
    ReferralDoctorListCreateView,
)

app_name = 'doctors'

urlpatterns = [
    path('referral-doctors/', ReferralDoctorListCreateView.as_view(), name='referral-list'),
    path('referral-doctors/<int:pk>/', ReferralDoctorDetailView.as_view(), name='referral-detail'),
    path('clinic-doctors/', ClinicDoctorListCreateView.as_view(), name='clinic-list'),
    path('clinic-doctors/<int:pk>/', ClinicDoctorDetailView.as_view(), name='clinic-detail'),
    path('doctors/search-by-contact/', DoctorContactSearchView.as_view(), name='search-by-contact'),
]
