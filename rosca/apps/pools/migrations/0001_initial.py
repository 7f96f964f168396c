import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Pool",
            fields=[
                ("id", models.CharField(max_length=42, primary_key=True, serialize=False)),
                ("creator", models.CharField(db_index=True, max_length=42)),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("max_members", models.PositiveSmallIntegerField()),
                ("contribution_per_period", models.BigIntegerField()),
                ("period_duration", models.BigIntegerField()),
                ("yield_bonus_split", models.PositiveSmallIntegerField()),
                (
                    "state",
                    models.CharField(
                        choices=[("Open", "Open"), ("Active", "Active"), ("Completed", "Completed")],
                        db_index=True,
                        default="Open",
                        max_length=16,
                    ),
                ),
                ("current_cycle", models.PositiveIntegerField(default=0)),
                ("total_cycles", models.PositiveIntegerField()),
                ("cycle_start_time", models.BigIntegerField(default=0)),
                ("created_at_block", models.BigIntegerField()),
                ("created_at_timestamp", models.BigIntegerField()),
            ],
            options={"ordering": ["created_at_block", "id"]},
        ),
        migrations.CreateModel(
            name="Member",
            fields=[
                ("id", models.CharField(max_length=96, primary_key=True, serialize=False)),
                ("address", models.CharField(db_index=True, max_length=42)),
                ("contribution", models.BigIntegerField()),
                ("joined_at_block", models.BigIntegerField()),
                ("joined_at_timestamp", models.BigIntegerField()),
                (
                    "pool",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="pools.pool",
                    ),
                ),
            ],
            options={"ordering": ["joined_at_block", "id"]},
        ),
        migrations.CreateModel(
            name="Cycle",
            fields=[
                ("id", models.CharField(max_length=64, primary_key=True, serialize=False)),
                ("index", models.PositiveIntegerField()),
                ("winner", models.CharField(db_index=True, max_length=42)),
                ("prize", models.BigIntegerField()),
                ("yield_bonus", models.BigIntegerField(default=0)),
                ("compounded", models.BigIntegerField(default=0)),
                ("timestamp", models.BigIntegerField()),
                (
                    "pool",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cycles",
                        to="pools.pool",
                    ),
                ),
            ],
            options={"ordering": ["pool_id", "index"]},
        ),
        migrations.CreateModel(
            name="CycleContribution",
            fields=[
                ("id", models.CharField(max_length=112, primary_key=True, serialize=False)),
                ("cycle_index", models.PositiveIntegerField()),
                ("member_address", models.CharField(db_index=True, max_length=42)),
                ("amount", models.BigIntegerField()),
                ("is_liquidated", models.BooleanField(default=False)),
                ("timestamp", models.BigIntegerField()),
                (
                    "pool",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cycle_contributions",
                        to="pools.pool",
                    ),
                ),
            ],
            options={
                "ordering": ["pool_id", "cycle_index", "member_address"],
                "indexes": [
                    models.Index(fields=["pool", "cycle_index"], name="contrib_pool_cycle_idx")
                ],
            },
        ),
        migrations.AddConstraint(
            model_name="cycle",
            constraint=models.UniqueConstraint(
                fields=("pool", "index"), name="uniq_cycle_pool_index"
            ),
        ),
    ]
