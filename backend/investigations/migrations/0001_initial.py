import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("cases", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Investigation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("notes", models.TextField(max_length=2000, verbose_name="Notes")),
                ("investigation_type", models.CharField(choices=[("initial_assessment", "Initial Assessment"), ("evidence_collection", "Evidence Collection"), ("witness_interview", "Witness Interview"), ("scene_investigation", "Scene Investigation"), ("suspect_investigation", "Suspect Investigation"), ("follow_up", "Follow-up"), ("final_report", "Final Report")], db_index=True, max_length=32, verbose_name="Investigation Type")),
                ("status_update", models.CharField(blank=True, choices=[("filed", "Filed"), ("assigned", "Assigned"), ("under_investigation", "Under Investigation"), ("evidence_collected", "Evidence Collected"), ("suspect_identified", "Suspect Identified"), ("report_submitted", "Report Submitted"), ("completed", "Completed"), ("closed", "Closed"), ("rejected", "Rejected")], default="", help_text="Case status requested when this report was filed.", max_length=32, verbose_name="Status Update")),
                ("hours_spent", models.FloatField(default=0, validators=[django.core.validators.MinValueValidator(0)], verbose_name="Hours Spent")),
                ("map_markers", models.JSONField(blank=True, default=list, verbose_name="Map Markers")),
                ("next_actions", models.JSONField(blank=True, default=list, verbose_name="Next Actions")),
                ("witnesses", models.JSONField(blank=True, default=list, verbose_name="Witnesses")),
                ("suspects", models.JSONField(blank=True, default=list, verbose_name="Suspects")),
                ("author", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="investigations", to=settings.AUTH_USER_MODEL, verbose_name="Author")),
                ("case", models.ForeignKey(db_column="case_number", on_delete=django.db.models.deletion.CASCADE, related_name="investigations", to="cases.case", to_field="case_number", verbose_name="Case")),
            ],
            options={
                "verbose_name": "Investigation",
                "verbose_name_plural": "Investigations",
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="InvestigationAttachment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("filename", models.CharField(max_length=255, unique=True, verbose_name="Stored Filename")),
                ("original_name", models.CharField(max_length=255, verbose_name="Original Filename")),
                ("content_type", models.CharField(default="application/octet-stream", max_length=100, verbose_name="Media Type")),
                ("size", models.PositiveBigIntegerField(verbose_name="Size (bytes)")),
                ("data", models.BinaryField(verbose_name="File Data")),
                ("description", models.CharField(blank=True, default="", max_length=500, verbose_name="Description")),
                ("uploaded_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Uploaded At")),
                ("investigation", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attachments", to="investigations.investigation", verbose_name="Investigation")),
            ],
            options={
                "verbose_name": "Investigation Attachment",
                "verbose_name_plural": "Investigation Attachments",
                "ordering": ["uploaded_at", "id"],
            },
        ),
    ]
