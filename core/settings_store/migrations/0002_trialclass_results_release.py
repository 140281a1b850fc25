from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("settings_store", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="trialclass",
            name="results_released_by",
            field=models.CharField(blank=True, default="", max_length=255),
        ),
        migrations.AddField(
            model_name="trialclass",
            name="results_released_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
    ]
