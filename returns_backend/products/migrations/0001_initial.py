import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sku", models.CharField(db_index=True, max_length=128, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "is_serialized",
                    models.BooleanField(
                        default=False,
                        help_text="Tracked per unit via serial numbers instead of a counter.",
                    ),
                ),
                ("stock_quantity", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["sku"], name="products_pr_sku_ca0cdc_idx"),
                    models.Index(fields=["name"], name="products_pr_name_9ff0a3_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SerialUnit",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("serial_number", models.CharField(max_length=128)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("in_stock", "In Stock"),
                            ("sold", "Sold"),
                            ("returned", "Returned (awaiting inspection)"),
                            ("damaged", "Damaged"),
                        ],
                        db_index=True,
                        default="in_stock",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="serial_units",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["serial_number"],
                "indexes": [
                    models.Index(fields=["product", "status"], name="products_se_product_5d1c2e_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("product", "serial_number"),
                        name="uniq_serial_per_product",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("return", "Customer Return"),
                            ("restock-from-return", "Restock From Return"),
                        ],
                        max_length=32,
                    ),
                ),
                ("quantity", models.PositiveIntegerField()),
                ("reason", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_movements",
                        to="products.product",
                    ),
                ),
                (
                    "serial_unit",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_movements",
                        to="products.serialunit",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="products_st_created_6b3f1a_idx"),
                    models.Index(fields=["transaction_type"], name="products_st_transac_2e7c4d_idx"),
                    models.Index(fields=["product", "created_at"], name="products_st_product_8a9b0c_idx"),
                ],
            },
        ),
    ]
