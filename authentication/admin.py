from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from authentication.models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ("email", "username", "role", "account_status", "rating", "total_sales", "is_active")
    list_filter = ("role", "account_status", "is_active", "is_staff")
    search_fields = ("email", "username", "first_name", "last_name")
    ordering = ("email",)
    readonly_fields = ("rating", "total_sales", "date_joined")
    fieldsets = UserAdmin.fieldsets + (
        ("Marketplace", {"fields": ("role", "account_status", "phone", "rating", "total_sales")}),
    )
