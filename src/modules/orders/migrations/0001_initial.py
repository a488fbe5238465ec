import decimal

import django.db.models.deletion
import django.utils.timezone
import uuid6
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "deleted_at",
                    models.DateTimeField(
                        blank=True, db_index=True, default=None, null=True
                    ),
                ),
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                (
                    "order_number",
                    models.CharField(editable=False, max_length=20, unique=True),
                ),
                ("date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "total_amount",
                    models.DecimalField(
                        decimal_places=2, default=decimal.Decimal("0.00"), max_digits=12
                    ),
                ),
                (
                    "execution_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pendente"),
                            ("in_progress", "Em Andamento"),
                            ("returned", "Devolvida"),
                            ("completed", "Concluída"),
                            ("canceled", "Cancelada"),
                            ("corrected", "Corrigida Aguardando Operacional"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                (
                    "financial_status",
                    models.CharField(
                        choices=[("unpaid", "Não pago"), ("paid", "Pago")],
                        default="unpaid",
                        max_length=10,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("return_reason", models.TextField(blank=True, default="")),
                ("version", models.PositiveIntegerField(default=0)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="catalog.customer",
                    ),
                ),
                (
                    "payment_method",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="catalog.paymentmethod",
                    ),
                ),
                (
                    "responsible_financial",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="settled_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "responsible_operational",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="operated_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "seller",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sold_orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "service_providers",
                    models.ManyToManyField(
                        blank=True, related_name="orders", to="catalog.serviceprovider"
                    ),
                ),
                (
                    "service_type",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="catalog.servicetype",
                    ),
                ),
            ],
            options={
                "db_table": "orders",
                "ordering": ["-date", "id"],
                "indexes": [
                    models.Index(
                        fields=["execution_status"], name="orders_exec_status_idx"
                    ),
                    models.Index(fields=["-date"], name="orders_date_idx"),
                    models.Index(
                        fields=["seller", "-date"], name="orders_seller_date_idx"
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("financial_status", "paid"), _negated=True
                        )
                        | models.Q(("execution_status", "completed")),
                        name="orders_paid_requires_completed",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="OrderStatusHistory",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid6.uuid7,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("sequence", models.PositiveIntegerField()),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("start_execution", "Iniciar execução"),
                            ("complete_execution", "Concluir execução"),
                            ("return", "Devolver"),
                            ("correct", "Corrigir"),
                            ("resend", "Reenviar"),
                            ("mark_paid", "Confirmar pagamento"),
                            ("cancel", "Cancelar"),
                        ],
                        max_length=30,
                    ),
                ),
                (
                    "from_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pendente"),
                            ("in_progress", "Em Andamento"),
                            ("returned", "Devolvida"),
                            ("completed", "Concluída"),
                            ("canceled", "Cancelada"),
                            ("corrected", "Corrigida Aguardando Operacional"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "to_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pendente"),
                            ("in_progress", "Em Andamento"),
                            ("returned", "Devolvida"),
                            ("completed", "Concluída"),
                            ("canceled", "Cancelada"),
                            ("corrected", "Corrigida Aguardando Operacional"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "from_financial_status",
                    models.CharField(
                        choices=[("unpaid", "Não pago"), ("paid", "Pago")],
                        max_length=10,
                    ),
                ),
                (
                    "to_financial_status",
                    models.CharField(
                        choices=[("unpaid", "Não pago"), ("paid", "Pago")],
                        max_length=10,
                    ),
                ),
                (
                    "actor_role",
                    models.CharField(
                        choices=[
                            ("seller", "Vendedor"),
                            ("operator", "Operacional"),
                            ("supervisor", "Supervisor"),
                            ("finance", "Financeiro"),
                            ("admin", "Administrador"),
                        ],
                        max_length=20,
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                (
                    "actor",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="status_history",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "db_table": "order_status_history",
                "ordering": ["sequence"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("order", "sequence"), name="osh_order_sequence_uniq"
                    ),
                ],
            },
        ),
    ]
