from django.contrib import admin

from .models import Investigation, InvestigationAttachment


class InvestigationAttachmentInline(admin.TabularInline):
    model = InvestigationAttachment
    extra = 0
    fields = ("original_name", "content_type", "size", "description", "uploaded_at")
    readonly_fields = fields


@admin.register(Investigation)
class InvestigationAdmin(admin.ModelAdmin):
    list_display = ("title", "case", "author", "investigation_type",
                    "status_update", "hours_spent", "created_at")
    list_filter = ("investigation_type",)
    search_fields = ("title", "notes", "case__case_number")
    inlines = [InvestigationAttachmentInline]
