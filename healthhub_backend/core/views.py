"""Core app views.

Contains:
- health: Health check endpoint
- LoginView / RefreshView / MeView: JWT authentication
- RegisterView: admin-only user creation
- SwitchBranchView / BranchListView: branch context
- AuditLogListView / AuditLogEntityHistoryView: owner-only audit trail
"""

from django.db import connection
from django.http import JsonResponse
from django.utils.dateparse import parse_date

from rest_framework import generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from rest_framework_simplejwt.tokens import RefreshToken

from healthhub_backend.core.mixins import BranchContextMixin
from healthhub_backend.core.models import AuditLog, Branch
from healthhub_backend.core.permissions import AnyRolePermission, IsAdmin, IsOwner
from healthhub_backend.core.serializers import (
    AuditLogSerializer,
    BranchSerializer,
    LoginSerializer,
    RefreshSerializer,
    SwitchBranchSerializer,
    UserCreateSerializer,
    UserSerializer,
)
from healthhub_backend.core.utils import log_action

AUDIT_DEFAULT_LIMIT = 50
AUDIT_MAX_LIMIT = 100


def health(request):
    """Health check endpoint - no authentication required."""
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1;')
    except Exception as exc:
        return JsonResponse({'status': 'error', 'detail': str(exc)}, status=503)

    return JsonResponse({'status': 'ok'})


class LoginView(APIView):
    """Obtain JWT access and refresh tokens.

    POST /api/auth/login/
    Body: {"username": "...", "password": "..."}
    Returns: {"user": {...}, "access": "...", "refresh": "..."}
    """

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = serializer.validated_data['user']

        refresh = RefreshToken.for_user(user)
        role = getattr(user, 'role', None)
        refresh['role'] = role.name if role else None
        refresh['branch_id'] = user.active_branch_id

        return Response(
            {
                'user': UserSerializer(user).data,
                'access': str(refresh.access_token),
                'refresh': str(refresh),
            },
            status=status.HTTP_200_OK,
        )


class RefreshView(APIView):
    """Refresh JWT access token.

    POST /api/auth/refresh/
    Body: {"refresh": "..."}
    Returns: {"access": "..."}
    """

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = RefreshSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        refresh = RefreshToken(serializer.validated_data['refresh'])
        return Response({'access': str(refresh.access_token)}, status=status.HTTP_200_OK)


class MeView(APIView):
    """Current authenticated user with role and active branch.

    GET /api/auth/me/
    """

    permission_classes = [IsAuthenticated]

    def get(self, request, *args, **kwargs):
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)


class RegisterView(generics.CreateAPIView):
    """Create a user account.

    POST /api/auth/register/  (admin only)
    """

    permission_classes = [IsAdmin]
    serializer_class = UserCreateSerializer

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()
        log_action(
            user=request.user,
            branch=request.user.active_branch,
            action_type=AuditLog.ACTION_CREATE,
            entity_type='User',
            entity_id=user.pk,
            new_values={'username': user.username, 'role': user.role.name if user.role else None},
            request=request,
        )
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class SwitchBranchView(APIView):
    """Change the branch context of the current user.

    POST /api/auth/switch-branch/
    Body: {"branch_id": 1}
    """

    permission_classes = [AnyRolePermission]

    def post(self, request, *args, **kwargs):
        serializer = SwitchBranchSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        branch = serializer.validated_data['branch_id']

        user = request.user
        user.active_branch = branch
        user.save(using='default', update_fields=['active_branch'])
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)


class BranchListView(generics.ListAPIView):
    """GET /api/branches/ - active branches."""

    permission_classes = [IsAuthenticated]
    serializer_class = BranchSerializer

    def get_queryset(self):
        return Branch.objects.using('default').filter(is_active=True)


def _parse_limit_offset(request):
    try:
        limit = int(request.query_params.get('limit', AUDIT_DEFAULT_LIMIT))
        offset = int(request.query_params.get('offset', 0))
    except (TypeError, ValueError):
        return AUDIT_DEFAULT_LIMIT, 0
    return max(1, min(limit, AUDIT_MAX_LIMIT)), max(0, offset)


class AuditLogListView(BranchContextMixin, APIView):
    """Branch-scoped audit trail with limit/offset pagination.

    GET /api/audit-logs/?action_type=&entity_type=&user_id=&start_date=&end_date=&limit=&offset=
    """

    permission_classes = [IsOwner]

    def get(self, request, *args, **kwargs):
        branch = self.get_branch()
        qs = AuditLog.objects.using('default').filter(branch=branch).select_related('user')

        params = request.query_params
        if params.get('action_type'):
            qs = qs.filter(action_type=params['action_type'])
        if params.get('entity_type'):
            qs = qs.filter(entity_type=params['entity_type'])
        if params.get('user_id'):
            qs = qs.filter(user_id=params['user_id'])

        start_date = parse_date(params.get('start_date', '') or '')
        end_date = parse_date(params.get('end_date', '') or '')
        if start_date:
            qs = qs.filter(timestamp__date__gte=start_date)
        if end_date:
            qs = qs.filter(timestamp__date__lte=end_date)

        limit, offset = _parse_limit_offset(request)
        total = qs.count()
        page = qs[offset:offset + limit]

        return Response(
            {
                'results': AuditLogSerializer(page, many=True).data,
                'total': total,
                'limit': limit,
                'offset': offset,
            },
            status=status.HTTP_200_OK,
        )


class AuditLogEntityHistoryView(BranchContextMixin, generics.ListAPIView):
    """Full history of one entity, oldest first.

    GET /api/audit-logs/<entity_type>/<entity_id>/
    """

    permission_classes = [IsOwner]
    serializer_class = AuditLogSerializer

    def get_queryset(self):
        branch = self.get_branch()
        return (
            AuditLog.objects.using('default')
            .filter(
                branch=branch,
                entity_type=self.kwargs['entity_type'],
                entity_id=self.kwargs['entity_id'],
            )
            .select_related('user')
            .order_by('timestamp', 'id')
        )
