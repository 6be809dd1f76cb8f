from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ReviewCase",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("case_id", models.CharField(max_length=32, primary_key=True, serialize=False, verbose_name="Case ID")),
                ("case_type", models.CharField(choices=[("award", "Award"), ("punishment", "Punishment"), ("appeal", "Appeal"), ("status_change", "Status Change"), ("leave_school", "Leave School")], db_index=True, max_length=30, verbose_name="Case Type")),
                ("subject_id", models.CharField(db_index=True, max_length=64, verbose_name="Student ID")),
                ("stages", models.JSONField(default=dict, verbose_name="Stage Statuses")),
                ("overall_status", models.CharField(choices=[("in_progress", "In Progress"), ("approved", "Approved"), ("rejected", "Rejected")], db_index=True, default="in_progress", max_length=20, verbose_name="Overall Status")),
                ("reviewers", models.JSONField(blank=True, default=dict, help_text="Stage name → ID of the reviewer who recorded its status.", verbose_name="Reviewer IDs")),
                ("payload", models.JSONField(blank=True, default=dict, help_text="Award name, punishment type, reasons, dates and opinions.", verbose_name="Case Details")),
                ("version", models.PositiveIntegerField(default=1, verbose_name="Version")),
            ],
            options={
                "verbose_name": "Review Case",
                "verbose_name_plural": "Review Cases",
                "ordering": ["-created_at"],
                "indexes": [models.Index(fields=["case_type", "overall_status"], name="reviewcase_type_status_idx")],
            },
        ),
    ]
