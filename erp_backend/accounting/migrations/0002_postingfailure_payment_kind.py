from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("accounting", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="postingfailure",
            name="kind",
            field=models.CharField(
                choices=[
                    ("ar", "Accounts Receivable"),
                    ("cogs", "Cost of Goods Sold"),
                    ("commission", "Sales Commission"),
                    ("payment", "Customer Payment"),
                ],
                max_length=20,
            ),
        ),
    ]
