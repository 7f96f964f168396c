from django.db import migrations, models


def uint256(**kwargs):
    return models.DecimalField(decimal_places=0, max_digits=78, **kwargs)


class Migration(migrations.Migration):

    dependencies = [
        ("pools", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="pool", name="contribution_per_period", field=uint256()
        ),
        migrations.AlterField(model_name="pool", name="period_duration", field=uint256()),
        migrations.AlterField(model_name="member", name="contribution", field=uint256()),
        migrations.AlterField(model_name="cycle", name="prize", field=uint256()),
        migrations.AlterField(
            model_name="cycle", name="yield_bonus", field=uint256(default=0)
        ),
        migrations.AlterField(
            model_name="cycle", name="compounded", field=uint256(default=0)
        ),
        migrations.AlterField(
            model_name="cyclecontribution", name="amount", field=uint256()
        ),
    ]
