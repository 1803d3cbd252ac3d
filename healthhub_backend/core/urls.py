"""Core App URLs - Authentication, Branches, Audit & Health.

Prefix: /api/
Routes:
    GET  /api/health/                                 - Health check (no auth)
    POST /api/auth/login/                             - JWT token obtain with user/role info
    POST /api/auth/refresh/                           - JWT token refresh
    GET  /api/auth/me/                                - Current user info
    POST /api/auth/register/                          - Create user (admin)
    POST /api/auth/switch-branch/                     - Change active branch
    GET  /api/branches/                               - Active branches
    GET  /api/audit-logs/                             - Audit trail (owner)
    GET  /api/audit-logs/<entity_type>/<entity_id>/   - Entity history (owner)
"""

from django.urls import path

from healthhub_backend.core.views import (
    health,
    AuditLogEntityHistoryView,
    AuditLogListView,
    BranchListView,
    LoginView,
    MeView,
    RefreshView,
    RegisterView,
    SwitchBranchView,
)

app_name = 'core'

urlpatterns = [
    path('health/', health, name='health'),

    # JWT Authentication
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/refresh/', RefreshView.as_view(), name='refresh'),
    path('auth/me/', MeView.as_view(), name='me'),
    path('auth/register/', RegisterView.as_view(), name='register'),
    path('auth/switch-branch/', SwitchBranchView.as_view(), name='switch-branch'),

    path('branches/', BranchListView.as_view(), name='branches'),

    path('audit-logs/', AuditLogListView.as_view(), name='audit-logs'),
    path(
        'audit-logs/<str:entity_type>/<str:entity_id>/',
        AuditLogEntityHistoryView.as_view(),
        name='audit-log-history',
    ),
]
