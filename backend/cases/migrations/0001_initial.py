import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ("filed", "Filed"),
    ("assigned", "Assigned"),
    ("under_investigation", "Under Investigation"),
    ("evidence_collected", "Evidence Collected"),
    ("suspect_identified", "Suspect Identified"),
    ("report_submitted", "Report Submitted"),
    ("completed", "Completed"),
    ("closed", "Closed"),
    ("rejected", "Rejected"),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Case",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("case_number", models.CharField(editable=False, max_length=20, unique=True, verbose_name="Case Number")),
                ("title", models.CharField(max_length=200, verbose_name="Title")),
                ("description", models.TextField(max_length=2000, verbose_name="Description")),
                ("crime_type", models.CharField(choices=[("theft_robbery", "Theft/Robbery"), ("assault", "Assault"), ("fraud", "Fraud"), ("cybercrime", "Cybercrime"), ("domestic_violence", "Domestic Violence"), ("drug_related", "Drug Related"), ("property_crime", "Property Crime"), ("traffic_violation", "Traffic Violation"), ("missing_person", "Missing Person"), ("other", "Other")], db_index=True, max_length=32, verbose_name="Crime Type")),
                ("status", models.CharField(choices=STATUS_CHOICES, db_index=True, default="filed", max_length=32, verbose_name="Current Status")),
                ("priority", models.CharField(choices=[("low", "Low"), ("medium", "Medium"), ("high", "High"), ("critical", "Critical")], db_index=True, default="medium", max_length=16, verbose_name="Priority")),
                ("latitude", models.FloatField(validators=[django.core.validators.MinValueValidator(-90), django.core.validators.MaxValueValidator(90)], verbose_name="Latitude")),
                ("longitude", models.FloatField(validators=[django.core.validators.MinValueValidator(-180), django.core.validators.MaxValueValidator(180)], verbose_name="Longitude")),
                ("address", models.CharField(max_length=500, verbose_name="Address")),
                ("is_anonymous", models.BooleanField(default=False, verbose_name="Anonymous")),
                ("tags", models.JSONField(blank=True, default=list, verbose_name="Tags")),
                ("contact_info", models.CharField(blank=True, default="", help_text="Optional contact details supplied with an anonymous tip.", max_length=200, verbose_name="Contact Info")),
                ("assignment_date", models.DateTimeField(blank=True, null=True, verbose_name="Assignment Date")),
                ("completed_at", models.DateTimeField(blank=True, null=True, verbose_name="Completed At")),
                ("is_overdue", models.BooleanField(db_index=True, default=False, verbose_name="Overdue")),
                ("overdue_by_hours", models.FloatField(default=0, verbose_name="Overdue By (hours)")),
                ("last_sla_check", models.DateTimeField(blank=True, null=True, verbose_name="Last SLA Check")),
                ("assigned_staff", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="assigned_cases", to=settings.AUTH_USER_MODEL, verbose_name="Assigned Staff")),
                ("reporter", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="reported_cases", to=settings.AUTH_USER_MODEL, verbose_name="Reporter")),
            ],
            options={
                "verbose_name": "Case",
                "verbose_name_plural": "Cases",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["status", "priority"], name="cases_case_status_3b1a2c_idx"),
                    models.Index(fields=["latitude", "longitude"], name="cases_case_latitud_8d4e0f_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="CaseStatusHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=STATUS_CHOICES, max_length=32, verbose_name="Status")),
                ("timestamp", models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name="Timestamp")),
                ("note", models.TextField(blank=True, default="", verbose_name="Note")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="status_history", to="cases.case", verbose_name="Case")),
                ("changed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="case_status_changes", to=settings.AUTH_USER_MODEL, verbose_name="Changed By")),
            ],
            options={
                "verbose_name": "Case Status History Entry",
                "verbose_name_plural": "Case Status History",
                "ordering": ["timestamp", "id"],
            },
        ),
        migrations.CreateModel(
            name="EvidenceFile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("filename", models.CharField(max_length=255, unique=True, verbose_name="Stored Filename")),
                ("original_name", models.CharField(max_length=255, verbose_name="Original Filename")),
                ("content_type", models.CharField(default="application/octet-stream", max_length=100, verbose_name="Media Type")),
                ("size", models.PositiveBigIntegerField(verbose_name="Size (bytes)")),
                ("data", models.BinaryField(verbose_name="File Data")),
                ("description", models.CharField(blank=True, default="", max_length=500, verbose_name="Description")),
                ("evidence_type", models.CharField(choices=[("photo", "Photo"), ("video", "Video"), ("document", "Document"), ("audio", "Audio"), ("other", "Other")], default="other", max_length=16, verbose_name="Evidence Type")),
                ("uploaded_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Uploaded At")),
                ("case", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="evidence_files", to="cases.case", verbose_name="Case")),
                ("uploaded_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="uploaded_evidence", to=settings.AUTH_USER_MODEL, verbose_name="Uploaded By")),
            ],
            options={
                "verbose_name": "Evidence File",
                "verbose_name_plural": "Evidence Files",
                "ordering": ["uploaded_at", "id"],
            },
        ),
    ]
