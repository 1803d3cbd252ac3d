"""
Report views.

Staff (JWT, branch-scoped):
- ReportResultsView / ReportFinalizeView / ReportAmendView / VisitReportView
- ReportVersionHtmlView / ReportVersionPdfView: render and log STAFF_PORTAL access
- ReportAccessTokenView / ReportAccessStatsView
- GenerateViewTokenView: signed short-lived view token

Public (no auth):
- ReportViewByJwtView: /api/reports/view/?token=
- public_report_* function views behind /r/<token>/
"""

import logging

from django.conf import settings
from django.http import HttpResponse
from django.views.decorators.http import require_GET
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from healthhub_backend.core.exceptions import ServiceError
from healthhub_backend.core.mixins import BranchContextMixin, error_response
from healthhub_backend.reports.exceptions import NotFinalized
from healthhub_backend.reports.models import ReportAccessLog
from healthhub_backend.reports.permissions import ReportPermission
from healthhub_backend.reports.serializers import (
    AccessTokenCreateSerializer,
    AccessTokenSerializer,
    GenerateViewTokenSerializer,
    ReportVersionSerializer,
    ReportVersionSummarySerializer,
    SaveResultsSerializer,
)
from healthhub_backend.reports.services import access, amendment, finalization, results
from healthhub_backend.reports.services.pdf import render_report_pdf
from healthhub_backend.reports.services.rendering import render_error_html, render_report_html
from healthhub_backend.reports.services.snapshot import get_report_snapshot
from healthhub_backend.visits.services.diagnostic import get_diagnostic_visit

logger = logging.getLogger(__name__)


def report_base_url():
    return settings.HEALTHHUB['REPORT_BASE_URL'].rstrip('/')


def pdf_response(content: bytes, bill_number: str, *, inline=False) -> HttpResponse:
    response = HttpResponse(content, content_type='application/pdf')
    disposition = 'inline' if inline else 'attachment'
    response['Content-Disposition'] = f'{disposition}; filename="report-{bill_number}.pdf"'
    return response


def finalized_snapshot(version):
    snapshot = get_report_snapshot(version)
    if snapshot is None:
        raise NotFinalized('Report version is not finalized')
    return snapshot


class _VisitReportView(BranchContextMixin, APIView):
    permission_classes = [ReportPermission]

    def get_visit(self, pk):
        return get_diagnostic_visit(branch=self.get_branch(), visit_id=pk)


class ReportResultsView(_VisitReportView):
    """POST /api/visits/diagnostic/<pk>/results/"""

    def post(self, request, pk, *args, **kwargs):
        serializer = SaveResultsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            visit = self.get_visit(pk)
            saved = results.save_draft_results(
                visit=visit,
                results=serializer.validated_data['results'],
                user=request.user,
            )
            draft = results.get_draft_version(visit)
        except ServiceError as e:
            return error_response(e)
        return Response({
            'saved_count': saved,
            'report_version': ReportVersionSerializer(
                results.get_versions(visit).get(pk=draft.pk)
            ).data,
        })


class ReportFinalizeView(_VisitReportView):
    """POST /api/visits/diagnostic/<pk>/finalize/"""

    def post(self, request, pk, *args, **kwargs):
        try:
            version, token = finalization.finalize_report(
                visit=self.get_visit(pk),
                user=request.user,
                request=request,
            )
        except ServiceError as e:
            return error_response(e)
        return Response({
            'report_version': ReportVersionSummarySerializer(version).data,
            'access_token': AccessTokenSerializer(token, context={'base_url': report_base_url()}).data,
        })


class ReportAmendView(_VisitReportView):
    """POST /api/visits/diagnostic/<pk>/amend/"""

    def post(self, request, pk, *args, **kwargs):
        try:
            version = amendment.create_amendment(
                visit=self.get_visit(pk), user=request.user, request=request,
            )
        except ServiceError as e:
            return error_response(e)
        return Response(ReportVersionSummarySerializer(version).data, status=status.HTTP_201_CREATED)


class VisitReportView(_VisitReportView):
    """GET /api/visits/diagnostic/<pk>/report/ - all versions with results."""

    def get(self, request, pk, *args, **kwargs):
        try:
            visit = self.get_visit(pk)
        except ServiceError as e:
            return error_response(e)
        versions = results.get_versions(visit)
        return Response({
            'visit_id': visit.pk,
            'bill_number': visit.bill_number,
            'versions': ReportVersionSerializer(versions, many=True).data,
        })


class _ReportVersionView(BranchContextMixin, APIView):
    permission_classes = [ReportPermission]

    def get_version(self, version_id):
        return results.get_report_version(branch=self.get_branch(), version_id=version_id)


class ReportVersionHtmlView(_ReportVersionView):
    """GET /api/reports/versions/<id>/html/?mode=screen|print"""

    def get(self, request, version_id, *args, **kwargs):
        try:
            version = self.get_version(version_id)
            snapshot = finalized_snapshot(version)
        except ServiceError as e:
            return error_response(e)

        mode = request.query_params.get('mode') or 'screen'
        token = access.current_access_token(version)
        html = render_report_html(
            snapshot,
            mode=mode,
            base_url=report_base_url(),
            report_token=token.token if token else '',
        )
        access.record_access(
            report_version=version,
            access_type=ReportAccessLog.TYPE_PRINT if mode == 'print' else ReportAccessLog.TYPE_VIEW,
            accessed_via=ReportAccessLog.VIA_STAFF_PORTAL,
            request=request,
            user=request.user,
        )
        return HttpResponse(html, content_type='text/html; charset=utf-8')


class ReportVersionPdfView(_ReportVersionView):
    """GET /api/reports/versions/<id>/pdf/"""

    def get(self, request, version_id, *args, **kwargs):
        try:
            version = self.get_version(version_id)
            snapshot = finalized_snapshot(version)
        except ServiceError as e:
            return error_response(e)

        content = render_report_pdf(snapshot)
        access.record_access(
            report_version=version,
            access_type=ReportAccessLog.TYPE_DOWNLOAD,
            accessed_via=ReportAccessLog.VIA_STAFF_PORTAL,
            request=request,
            user=request.user,
        )
        return pdf_response(content, snapshot['visit'].get('bill_number', version.pk))


class ReportAccessTokenView(_ReportVersionView):
    """POST /api/reports/versions/<id>/access-token/"""

    def post(self, request, version_id, *args, **kwargs):
        serializer = AccessTokenCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        expires_in_days = serializer.validated_data.get('expires_in_days')
        if expires_in_days is None:
            expires_in_days = settings.HEALTHHUB.get('REPORT_TOKEN_EXPIRY_DAYS')
        try:
            token = access.create_access_token(
                report_version=self.get_version(version_id),
                expires_in_days=expires_in_days,
            )
        except ServiceError as e:
            return error_response(e)
        return Response(
            AccessTokenSerializer(token, context={'base_url': report_base_url()}).data,
            status=status.HTTP_201_CREATED,
        )


class ReportAccessStatsView(_ReportVersionView):
    """GET /api/reports/versions/<id>/access-stats/"""

    def get(self, request, version_id, *args, **kwargs):
        try:
            version = self.get_version(version_id)
        except ServiceError as e:
            return error_response(e)
        return Response(access.get_access_stats(version))


class GenerateViewTokenView(_ReportVersionView):
    """POST /api/reports/generate-token/ {report_version_id}"""

    def post(self, request, *args, **kwargs):
        serializer = GenerateViewTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            version = self.get_version(serializer.validated_data['report_version_id'])
            token, expires_at = access.issue_report_view_token(report_version=version)
        except ServiceError as e:
            return error_response(e)
        return Response({
            'token': token,
            'expires_at': expires_at,
            'view_url': f'{report_base_url()}/api/reports/view/?token={token}',
        })


class ReportViewByJwtView(APIView):
    """GET /api/reports/view/?token=<signed view token>"""

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        token = request.query_params.get('token')
        if not token:
            return Response(
                {'error': 'VALIDATION_ERROR', 'detail': 'Token is required'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            version = access.decode_report_view_token(token)
            snapshot = finalized_snapshot(version)
        except ServiceError as e:
            return error_response(e)

        access.record_access(
            report_version=version,
            access_type=ReportAccessLog.TYPE_VIEW,
            accessed_via=ReportAccessLog.VIA_TOKEN,
            request=request,
        )
        return Response({
            'report_version': ReportVersionSummarySerializer(version).data,
            'report': snapshot,
        })


# Public /r/<token>/ pages

def _error_page(message, status_code=404):
    return HttpResponse(
        render_error_html(message),
        status=status_code,
        content_type='text/html; charset=utf-8',
    )


def _resolve_public(token):
    version = access.validate_token(token)
    if version is None:
        return None, None
    return version, get_report_snapshot(version)


def _public_html(request, token, *, mode, hide_actions, access_type):
    version, snapshot = _resolve_public(token)
    if version is None:
        return _error_page('This report link is invalid or has expired.')
    if snapshot is None:
        return _error_page('This report is not available.')

    html = render_report_html(
        snapshot,
        mode=mode,
        base_url=report_base_url(),
        report_token=token,
        hide_actions=hide_actions,
    )
    access.record_access(
        report_version=version,
        access_type=access_type,
        accessed_via=ReportAccessLog.VIA_TOKEN,
        request=request,
        token=token,
    )
    return HttpResponse(html, content_type='text/html; charset=utf-8')


@require_GET
def public_report_view(request, token):
    return _public_html(request, token, mode='screen', hide_actions=False, access_type=ReportAccessLog.TYPE_VIEW)


@require_GET
def public_report_print(request, token):
    return _public_html(request, token, mode='print', hide_actions=True, access_type=ReportAccessLog.TYPE_PRINT)


@require_GET
def public_report_preview(request, token):
    return _public_html(request, token, mode='screen', hide_actions=True, access_type=ReportAccessLog.TYPE_VIEW)


@require_GET
def public_report_pdf(request, token):
    version, snapshot = _resolve_public(token)
    if version is None:
        return _error_page('This report link is invalid or has expired.')
    if snapshot is None:
        return _error_page('This report is not available.')

    try:
        content = render_report_pdf(snapshot)
    except Exception:
        logger.exception('PDF rendering failed for report version %s', version.pk)
        return _error_page('Failed to generate the PDF. Please try again later.', status_code=500)

    access.record_access(
        report_version=version,
        access_type=ReportAccessLog.TYPE_DOWNLOAD,
        accessed_via=ReportAccessLog.VIA_TOKEN,
        request=request,
        token=token,
    )
    return pdf_response(content, snapshot['visit'].get('bill_number', version.pk))
