"""Reports App URLs.

Prefix: /api/
Routes:
    POST  /api/visits/diagnostic/<pk>/results/          - Save draft results
    POST  /api/visits/diagnostic/<pk>/finalize/         - Finalize the draft
    POST  /api/visits/diagnostic/<pk>/amend/            - Open an amendment draft
    GET   /api/visits/diagnostic/<pk>/report/           - All versions with results
    GET   /api/reports/versions/<id>/html/?mode=        - Rendered HTML (staff)
    GET   /api/reports/versions/<id>/pdf/               - PDF download (staff)
    POST  /api/reports/versions/<id>/access-token/      - Create/reuse link token
    GET   /api/reports/versions/<id>/access-stats/      - Access statistics
    POST  /api/reports/generate-token/                  - Signed view token
    GET   /api/reports/view/?token=                     - Public JSON view (signed token)
"""

from django.urls import path

from healthhub_backend.reports.views import (
    GenerateViewTokenView,
    ReportAccessStatsView,
    ReportAccessTokenView,
    ReportAmendView,
    ReportFinalizeView,
    ReportResultsView,
    ReportVersionHtmlView,
    ReportVersionPdfView,
    ReportViewByJwtView,
    VisitReportView,
)

app_name = 'reports'

urlpatterns = [
    path('visits/diagnostic/<int:pk>/results/', ReportResultsView.as_view(), name='results'),
    path('visits/diagnostic/<int:pk>/finalize/', ReportFinalizeView.as_view(), name='finalize'),
    path('visits/diagnostic/<int:pk>/amend/', ReportAmendView.as_view(), name='amend'),
    path('visits/diagnostic/<int:pk>/report/', VisitReportView.as_view(), name='visit-report'),

    path('reports/versions/<int:version_id>/html/', ReportVersionHtmlView.as_view(), name='version-html'),
    path('reports/versions/<int:version_id>/pdf/', ReportVersionPdfView.as_view(), name='version-pdf'),
    path(
        'reports/versions/<int:version_id>/access-token/',
        ReportAccessTokenView.as_view(),
        name='version-access-token',
    ),
    path(
        'reports/versions/<int:version_id>/access-stats/',
        ReportAccessStatsView.as_view(),
        name='version-access-stats',
    ),
    path('reports/generate-token/', GenerateViewTokenView.as_view(), name='generate-token'),
    path('reports/view/', ReportViewByJwtView.as_view(), name='view'),
]
