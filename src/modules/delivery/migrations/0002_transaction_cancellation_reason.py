from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("delivery", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="transaction",
            name="cancellation_reason",
            field=models.CharField(blank=True, max_length=500),
        ),
    ]
