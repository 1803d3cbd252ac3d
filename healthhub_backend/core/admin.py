"""
HealthHub admin registrations for core models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import AuditLog, Branch, NumberSequence, Role, User


@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("name", "label", "user_count")
    search_fields = ("name", "label")
    ordering = ("name",)

    def user_count(self, obj):
        return obj.users.count()
    user_count.short_description = "Users"


@admin.register(Branch)
class BranchAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "phone", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ("username", "email", "role", "active_branch", "is_active")
    list_filter = ("role", "active_branch", "is_active", "is_superuser")
    search_fields = ("username", "email", "first_name", "last_name")
    ordering = ("username",)

    fieldsets = DjangoUserAdmin.fieldsets + (
        ("HealthHub", {"fields": ("phone", "role", "active_branch")}),
    )
    add_fieldsets = DjangoUserAdmin.add_fieldsets + (
        ("HealthHub", {"fields": ("email", "role", "active_branch")}),
    )


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Audit log is insert-only; the admin view is read-only."""

    list_display = ("id", "timestamp", "user", "role_name", "action_type", "entity_type", "entity_id", "branch")
    list_filter = ("action_type", "entity_type", "branch")
    search_fields = ("user__username", "entity_type", "entity_id")
    ordering = ("-timestamp", "-id")
    date_hierarchy = "timestamp"
    readonly_fields = [f.name for f in AuditLog._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(NumberSequence)
class NumberSequenceAdmin(admin.ModelAdmin):
    list_display = ("id", "prefix", "last_value", "updated_at")
    readonly_fields = ("id", "prefix", "last_value", "updated_at")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
