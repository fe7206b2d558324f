import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [
    ("pending", "Pending"),
    ("approved", "Approved"),
    ("rejected", "Rejected"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
]

REFUND_METHOD_CHOICES = [
    ("cash", "Cash"),
    ("card", "Card"),
    ("store_credit", "Store Credit"),
    ("exchange", "Exchange"),
]


def _user_fk(related_name):
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name=related_name,
        to=settings.AUTH_USER_MODEL,
    )


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
        ("sales", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Return",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("return_number", models.CharField(blank=True, max_length=64, unique=True)),
                ("reason", models.TextField()),
                (
                    "refund_method",
                    models.CharField(choices=REFUND_METHOD_CHOICES, default="cash", max_length=16),
                ),
                ("return_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("refund_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("store_credit_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("processing_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("restocking_fee", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                (
                    "status",
                    models.CharField(choices=STATUS_CHOICES, db_index=True, default="pending", max_length=16),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("rejection_reason", models.TextField(blank=True, default="")),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "sale",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="returns",
                        to="sales.sale",
                    ),
                ),
                ("created_by", _user_fk("returns_created")),
                ("approved_by", _user_fk("returns_approved")),
                ("rejected_by", _user_fk("returns_rejected")),
                ("cancelled_by", _user_fk("returns_cancelled")),
                ("completed_by", _user_fk("returns_completed")),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="returns_ret_status_1f2e3d_idx"),
                    models.Index(fields=["sale", "status"], name="returns_ret_sale_id_4c5b6a_idx"),
                    models.Index(fields=["refund_method"], name="returns_ret_refund__7d8e9f_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReturnItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quantity_returned", models.PositiveIntegerField()),
                ("quantity_original", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "condition",
                    models.CharField(
                        choices=[
                            ("new", "New / Unopened"),
                            ("used", "Used"),
                            ("damaged", "Damaged"),
                            ("defective", "Defective"),
                        ],
                        default="new",
                        max_length=16,
                    ),
                ),
                ("restockable", models.BooleanField(default=True)),
                ("is_serialized", models.BooleanField(default=False)),
                ("reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_items",
                        to="products.product",
                    ),
                ),
                (
                    "return_request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="returns.return",
                    ),
                ),
                (
                    "sale_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_items",
                        to="sales.saleitem",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["sale_item"], name="returns_ret_sale_it_0a1b2c_idx"),
                    models.Index(fields=["product"], name="returns_ret_product_3d4e5f_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReturnItemSerial",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("serial_number", models.CharField(max_length=128)),
                ("marked_returned", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "return_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="serials",
                        to="returns.returnitem",
                    ),
                ),
            ],
            options={
                "ordering": ["serial_number"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("return_item", "serial_number"),
                        name="uniq_serial_per_return_item",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RefundTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("refund", "Refund"),
                            ("store_credit", "Store Credit"),
                            ("exchange", "Exchange"),
                        ],
                        max_length=16,
                    ),
                ),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("payment_method", models.CharField(choices=REFUND_METHOD_CHOICES, max_length=16)),
                ("reference_number", models.CharField(blank=True, default="", max_length=64)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                        ],
                        default="completed",
                        max_length=16,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("created_by", _user_fk("refund_transactions")),
                (
                    "return_request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refund_transactions",
                        to="returns.return",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["return_request", "created_at"], name="returns_ref_return__6a7b8c_idx"),
                    models.Index(fields=["transaction_type"], name="returns_ref_transac_9d0e1f_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ReturnActivity",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("created", "Created"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        max_length=16,
                    ),
                ),
                ("from_status", models.CharField(blank=True, default="", max_length=16)),
                ("to_status", models.CharField(max_length=16)),
                ("note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("actor", _user_fk("return_activities")),
                (
                    "return_request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="activities",
                        to="returns.return",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["return_request", "created_at"], name="returns_act_return__2a3b4c_idx"),
                ],
            },
        ),
    ]
