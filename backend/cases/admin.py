from django.contrib import admin

from .models import Case, CaseStatusHistory, EvidenceFile


class CaseStatusHistoryInline(admin.TabularInline):
    model = CaseStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ("status", "timestamp", "changed_by", "note")

    def has_add_permission(self, request, obj=None):
        return False


class EvidenceFileInline(admin.TabularInline):
    model = EvidenceFile
    extra = 0
    fields = ("original_name", "content_type", "size", "evidence_type",
              "uploaded_by", "uploaded_at")
    readonly_fields = fields


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ("case_number", "title", "status", "priority",
                    "crime_type", "assigned_staff", "is_overdue", "created_at")
    list_filter = ("status", "priority", "crime_type", "is_overdue")
    search_fields = ("case_number", "title", "description", "address")
    readonly_fields = ("case_number", "status", "completed_at",
                       "is_overdue", "overdue_by_hours", "last_sla_check")
    inlines = [CaseStatusHistoryInline, EvidenceFileInline]


@admin.register(CaseStatusHistory)
class CaseStatusHistoryAdmin(admin.ModelAdmin):
    list_display = ("case", "status", "timestamp", "changed_by")
    list_filter = ("status",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
