from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "first_name", "last_name",
                    "role", "status", "staff_id", "department")
    search_fields = ("username", "email", "staff_id", "mobile")
    list_filter = ("role", "status", "department")
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Crimewatch", {"fields": ("role", "status", "mobile", "address",
                                   "department", "staff_id")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Crimewatch", {"fields": ("email", "first_name", "last_name",
                                   "role", "department")}),
    )
