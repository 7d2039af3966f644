import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("org", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="LineOfBusiness",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("name", models.CharField(max_length=120, verbose_name="name")),
                (
                    "premium_category",
                    models.CharField(
                        choices=[
                            ("PC", "Property & casualty"),
                            ("FS", "Financial services"),
                            ("IPS", "Investment products"),
                        ],
                        default="PC",
                        max_length=5,
                        verbose_name="premium category",
                    ),
                ),
                (
                    "agency",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="lines_of_business",
                        to="org.agency",
                        verbose_name="agency",
                    ),
                ),
            ],
            options={
                "verbose_name": "line of business",
                "verbose_name_plural": "lines of business",
                "ordering": ["name"],
                "unique_together": {("agency", "name")},
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("name", models.CharField(max_length=120, verbose_name="name")),
                (
                    "product_type",
                    models.CharField(
                        choices=[("PERSONAL", "Personal"), ("BUSINESS", "Business")],
                        default="PERSONAL",
                        max_length=10,
                        verbose_name="product type",
                    ),
                ),
                ("is_active", models.BooleanField(default=True, verbose_name="active")),
                (
                    "line_of_business",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="products",
                        to="catalog.lineofbusiness",
                        verbose_name="line of business",
                    ),
                ),
            ],
            options={
                "verbose_name": "product",
                "verbose_name_plural": "products",
                "ordering": ["line_of_business__name", "name"],
                "unique_together": {("line_of_business", "name")},
            },
        ),
        migrations.CreateModel(
            name="PremiumBucket",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                ("key", models.SlugField(max_length=80, verbose_name="key")),
                ("name", models.CharField(max_length=120, verbose_name="name")),
                (
                    "measure",
                    models.CharField(
                        choices=[("PREMIUM", "Premium sum"), ("APPS", "Application count")],
                        default="PREMIUM",
                        max_length=10,
                        verbose_name="measure",
                    ),
                ),
                ("includes_lobs", models.JSONField(blank=True, default=list, verbose_name="included lines of business")),
                ("includes_products", models.JSONField(blank=True, default=list, verbose_name="included products")),
                ("excludes_lobs", models.JSONField(blank=True, default=list, verbose_name="excluded lines of business")),
                ("excludes_products", models.JSONField(blank=True, default=list, verbose_name="excluded products")),
                ("description", models.TextField(blank=True, default="", verbose_name="description")),
                (
                    "agency",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="premium_buckets",
                        to="org.agency",
                        verbose_name="agency",
                    ),
                ),
            ],
            options={
                "verbose_name": "premium bucket",
                "verbose_name_plural": "premium buckets",
                "ordering": ["key"],
                "unique_together": {("agency", "key")},
            },
        ),
    ]
