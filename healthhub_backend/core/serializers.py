"""Serializers for the core app.

Contains serializers for User, Role, Branch and AuditLog models.
Follows the Read/Write serializer pattern.
"""

from rest_framework import serializers

from healthhub_backend.core.models import AuditLog, Branch, Role, User


# -----------------------------------------------------------------------------
# Role / Branch Serializers
# -----------------------------------------------------------------------------


class RoleSerializer(serializers.ModelSerializer):
    """Read-only serializer for Role model."""

    class Meta:
        model = Role
        fields = ['id', 'name', 'label']
        read_only_fields = fields


class BranchSerializer(serializers.ModelSerializer):
    """Read-only serializer for Branch model."""

    class Meta:
        model = Branch
        fields = ['id', 'name', 'code', 'address', 'phone', 'is_active']
        read_only_fields = fields


# -----------------------------------------------------------------------------
# User Serializers
# -----------------------------------------------------------------------------


class UserSerializer(serializers.ModelSerializer):
    """Read-only serializer for User model with nested role."""

    role = RoleSerializer(read_only=True)
    active_branch = BranchSerializer(read_only=True)

    class Meta:
        model = User
        fields = [
            'id',
            'username',
            'email',
            'first_name',
            'last_name',
            'phone',
            'is_active',
            'role',
            'active_branch',
            'date_joined',
            'last_login',
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.ModelSerializer):
    """Serializer for registering new users (admin only)."""

    role = serializers.SlugRelatedField(
        slug_field='name',
        queryset=Role.objects.using('default').all(),
    )
    active_branch = serializers.PrimaryKeyRelatedField(
        queryset=Branch.objects.using('default').filter(is_active=True),
        required=False,
        allow_null=True,
    )
    password = serializers.CharField(write_only=True, required=True, min_length=8)

    class Meta:
        model = User
        fields = [
            'username',
            'email',
            'first_name',
            'last_name',
            'phone',
            'password',
            'role',
            'active_branch',
        ]

    def validate_email(self, value):
        """Ensure email is unique."""
        if value and User.objects.using('default').filter(email__iexact=value).exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value.lower() if value else value

    def create(self, validated_data):
        """Create user with hashed password."""
        password = validated_data.pop('password')
        return User.objects.db_manager('default').create_user(
            password=password,
            **validated_data,
        )


class SwitchBranchSerializer(serializers.Serializer):
    branch_id = serializers.PrimaryKeyRelatedField(
        queryset=Branch.objects.using('default').filter(is_active=True),
    )


# -----------------------------------------------------------------------------
# AuditLog Serializers
# -----------------------------------------------------------------------------


class AuditLogSerializer(serializers.ModelSerializer):
    """Read-only serializer for AuditLog model."""

    user_display = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'branch',
            'user',
            'user_display',
            'role_name',
            'action_type',
            'entity_type',
            'entity_id',
            'old_values',
            'new_values',
            'ip_address',
            'user_agent',
            'timestamp',
        ]
        read_only_fields = fields

    def get_user_display(self, obj):
        """Return username or 'System' if no user."""
        user = getattr(obj, 'user', None)
        if user is None:
            return 'System'
        return getattr(user, 'username', 'Unknown')


# -----------------------------------------------------------------------------
# Authentication Serializers
# -----------------------------------------------------------------------------


class LoginSerializer(serializers.Serializer):
    """Serializer for user login.

    Validates credentials and returns user with role info.
    """

    username = serializers.CharField(required=True)
    password = serializers.CharField(required=True, write_only=True)

    def validate(self, attrs):
        from django.contrib.auth import authenticate

        username = attrs.get('username')
        password = attrs.get('password')

        if not username or not password:
            raise serializers.ValidationError('Username and password are required.')

        user = authenticate(username=username, password=password)

        if user is None:
            raise serializers.ValidationError('Invalid credentials.')

        if not user.is_active:
            raise serializers.ValidationError('User account is disabled.')

        attrs['user'] = user
        return attrs


class RefreshSerializer(serializers.Serializer):
    """Serializer for token refresh.

    Validates refresh token and returns new access token.
    """

    refresh = serializers.CharField(required=True)

    def validate_refresh(self, value):
        from rest_framework_simplejwt.exceptions import TokenError
        from rest_framework_simplejwt.tokens import RefreshToken

        try:
            RefreshToken(value)
        except TokenError as e:
            raise serializers.ValidationError(f'Invalid or expired refresh token: {e}')
        return value
