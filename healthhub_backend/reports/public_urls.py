"""Public report links (no auth).

Prefix: /r/
Routes:
    GET  /r/<token>/           - Screen HTML with print/PDF actions
    GET  /r/<token>/print/     - Print HTML
    GET  /r/<token>/pdf/       - PDF download
    GET  /r/<token>/preview/   - Screen HTML without actions
"""

from django.urls import path

from healthhub_backend.reports.views import (
    public_report_pdf,
    public_report_preview,
    public_report_print,
    public_report_view,
)

app_name = 'public_reports'

urlpatterns = [
    path('<str:token>/', public_report_view, name='view'),
    path('<str:token>/print/', public_report_print, name='print'),
    path('<str:token>/pdf/', public_report_pdf, name='pdf'),
    path('<str:token>/preview/', public_report_preview, name='preview'),
]
