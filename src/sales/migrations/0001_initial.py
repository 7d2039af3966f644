import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("org", "0001_initial"),
        ("catalog", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="SoldProduct",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("date_sold", models.DateField(db_index=True, verbose_name="date sold")),
                (
                    "premium",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0"))],
                        verbose_name="premium",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("WRITTEN", "Written"),
                            ("ISSUED", "Issued"),
                            ("PAID", "Paid"),
                            ("STATUS_CHECK", "Status check"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        db_index=True,
                        default="WRITTEN",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                ("policy_number", models.CharField(blank=True, max_length=60, verbose_name="policy number")),
                ("is_value_health", models.BooleanField(default=False, verbose_name="value health policy")),
                ("is_value_life", models.BooleanField(default=False, verbose_name="value life policy")),
                ("notes", models.TextField(blank=True, default="", verbose_name="notes")),
                (
                    "agency",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sold_products",
                        to="org.agency",
                        verbose_name="agency",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales",
                        to="catalog.product",
                        verbose_name="product",
                    ),
                ),
                (
                    "sold_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sold_products",
                        to="org.person",
                        verbose_name="sold by",
                    ),
                ),
            ],
            options={
                "verbose_name": "sold product",
                "verbose_name_plural": "sold products",
                "ordering": ["-date_sold", "-created_at"],
                "indexes": [models.Index(fields=["sold_by", "date_sold"], name="sold_person_date_idx")],
            },
        ),
    ]
