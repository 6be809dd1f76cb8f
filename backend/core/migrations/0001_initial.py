from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="Created At")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="Updated At")),
                ("notice_id", models.CharField(help_text="N<timestamp><sequence><random hex>, assigned at dispatch.", max_length=32, unique=True, verbose_name="Notice ID")),
                ("recipient_id", models.CharField(db_index=True, max_length=64, verbose_name="Recipient")),
                ("title", models.CharField(max_length=255, verbose_name="Title")),
                ("message", models.TextField(verbose_name="Message")),
                ("category", models.CharField(max_length=50, verbose_name="Category")),
                ("priority", models.CharField(max_length=20, verbose_name="Priority")),
                ("publisher", models.CharField(help_text="Reviewing office, or 'System' for final outcomes.", max_length=100, verbose_name="Publisher")),
                ("source_actor", models.CharField(help_text="Reviewer ID, or 'system' for final outcomes.", max_length=64, verbose_name="Source Actor")),
                ("case_id", models.CharField(blank=True, default="", max_length=32, verbose_name="Case ID")),
                ("case_type", models.CharField(blank=True, default="", max_length=30, verbose_name="Case Type")),
                ("published_at", models.DateTimeField(verbose_name="Published At")),
                ("is_read", models.BooleanField(default=False, verbose_name="Read")),
                ("read_at", models.DateTimeField(blank=True, null=True, verbose_name="Read At")),
            ],
            options={
                "verbose_name": "Notification",
                "verbose_name_plural": "Notifications",
                "ordering": ["-published_at", "-id"],
                "indexes": [models.Index(fields=["recipient_id", "is_read"], name="notif_recipient_read_idx")],
            },
        ),
    ]
