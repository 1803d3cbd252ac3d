"""HealthHub URL Configuration.

API routes:
    /api/auth/, /api/branches/, /api/audit-logs/  - core
    /api/patients/                                - patients
    /api/referral-doctors/, /api/clinic-doctors/  - doctors
    /api/lab-tests/                               - lab catalogue
    /api/visits/, /api/bills/                     - visits and billing
    /api/visits/diagnostic/<pk>/..., /api/reports/ - report lifecycle
    /api/payouts/                                 - doctor payouts

Public:
    /r/<token>/                                   - patient report pages
"""

from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path


def root(request):
    return HttpResponse("HealthHub backend is running.")


urlpatterns = [
    path("", root, name="root"),
    path("admin/", admin.site.urls),

    path("api/", include("healthhub_backend.core.urls")),
    path("api/", include("healthhub_backend.patients.urls")),
    path("api/", include("healthhub_backend.doctors.urls")),
    path("api/", include("healthhub_backend.lab.urls")),
    path("api/", include("healthhub_backend.reports.urls")),
    path("api/", include("healthhub_backend.visits.urls")),
    path("api/", include("healthhub_backend.payouts.urls")),

    path("r/", include("healthhub_backend.reports.public_urls")),
]
