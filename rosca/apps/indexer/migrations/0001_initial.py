from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="IndexerCursor",
            fields=[
                ("name", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("last_block", models.BigIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="WatchedContract",
            fields=[
                ("address", models.CharField(max_length=42, primary_key=True, serialize=False)),
                (
                    "kind",
                    models.CharField(
                        choices=[("factory", "Factory"), ("pool", "Pool")], max_length=16
                    ),
                ),
                ("discovered_at_block", models.BigIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["discovered_at_block", "address"],
            },
        ),
    ]
