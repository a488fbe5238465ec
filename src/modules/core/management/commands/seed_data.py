from __future__ import annotations

import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.accounts.actors import Actor
from modules.accounts.constants import Role
from modules.accounts.models import Profile
from modules.catalog.models import (
    Customer,
    DocumentType,
    PaymentMethod,
    ServiceProvider,
    ServiceType,
)
from modules.orders.constants import TransitionAction
from modules.orders.exceptions import OrderError
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.state_machine import TransitionRequest

# Lifecycle paths applied to seeded orders, as (action, role) steps.
LIFECYCLES = [
    [],
    [(TransitionAction.START_EXECUTION, Role.OPERATOR)],
    [
        (TransitionAction.START_EXECUTION, Role.OPERATOR),
        (TransitionAction.COMPLETE_EXECUTION, Role.OPERATOR),
    ],
    [
        (TransitionAction.START_EXECUTION, Role.OPERATOR),
        (TransitionAction.COMPLETE_EXECUTION, Role.OPERATOR),
        (TransitionAction.MARK_PAID, Role.FINANCE),
    ],
    [(TransitionAction.RETURN, Role.OPERATOR)],
    [
        (TransitionAction.RETURN, Role.SUPERVISOR),
        (TransitionAction.CORRECT, Role.SELLER),
    ],
    [(TransitionAction.CANCEL, Role.ADMIN)],
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=40)

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users()
        customers = self._seed_customers()
        payment_methods = self._seed_payment_methods()
        service_types = self._seed_service_types()
        providers = self._seed_providers()
        orders_created = self._seed_orders(
            options["orders"], users, customers, payment_methods, service_types, providers
        )

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"customers={len(customers)}, "
                f"service_types={len(service_types)}, "
                f"providers={len(providers)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> dict[str, list]:
        User = get_user_model()
        seed_users = [
            ("admin", Role.ADMIN),
            ("supervisor", Role.SUPERVISOR),
            ("operacional", Role.OPERATOR),
            ("financeiro", Role.FINANCE),
            ("vendedor1", Role.SELLER),
            ("vendedor2", Role.SELLER),
        ]
        users: dict[str, list] = {}
        for username, role in seed_users:
            user = User.objects.filter(username=username).first()
            if user is None:
                user = User.objects.create_user(username, password=f"{username}123")
            Profile.objects.update_or_create(user=user, defaults={"role": role})
            users.setdefault(role, []).append(user)
        return users

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        seed_customers = [
            ("Ana Souza", "39053344705", DocumentType.CPF, "ana@example.com"),
            ("Bruno Lima", "11222333000181", DocumentType.CNPJ, "bruno@example.com"),
            ("Carla Mendes", "52998224725", DocumentType.CPF, "carla@example.com"),
            ("Daniel Costa", "11144477735", DocumentType.CPF, "daniel@example.com"),
            ("Eduardo Alves", "45997418000153", DocumentType.CNPJ, "eduardo@example.com"),
        ]
        customers: list[Customer] = []
        for name, document, doc_type, email in seed_customers:
            customer, _ = Customer.objects.get_or_create(
                document=document,
                defaults={"name": name, "document_type": doc_type, "email": email},
            )
            customers.append(customer)
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_payment_methods(self) -> list[PaymentMethod]:
        return [
            PaymentMethod.objects.get_or_create(name=name)[0]
            for name in ("PIX", "Boleto", "Cartão de Crédito", "Transferência")
        ]

    def _seed_service_types(self) -> list[ServiceType]:
        seed_types = [
            ("Emplacamento", False),
            ("Transferência de Veículo", False),
            ("Sindicato", True),
        ]
        return [
            ServiceType.objects.get_or_create(
                name=name, defaults={"requires_partner_providers": requires}
            )[0]
            for name, requires in seed_types
        ]

    def _seed_providers(self) -> list[ServiceProvider]:
        return [
            ServiceProvider.objects.get_or_create(name=name)[0]
            for name in ("Despachante Central", "Parceiro Norte", "Parceiro Sul")
        ]

    def _seed_orders(
        self,
        count: int,
        users: dict[str, list],
        customers: list[Customer],
        payment_methods: list[PaymentMethod],
        service_types: list[ServiceType],
        providers: list[ServiceProvider],
    ) -> int:
        self.stdout.write("Creating orders...")
        repository = OrderDjangoRepository()
        actors = {role: Actor.from_user(members[0]) for role, members in users.items()}
        sellers = [Actor.from_user(user) for user in users[Role.SELLER]]
        today = timezone.localdate()

        created = 0
        for i in range(count):
            seller = random.choice(sellers)
            service_type = random.choice(service_types)
            provider_ids = (
                [random.choice(providers).pk]
                if service_type.requires_partner_providers
                else None
            )
            order = repository.create(
                {
                    "customer_id": random.choice(customers).pk,
                    "payment_method_id": random.choice(payment_methods).pk,
                    "total_amount": Decimal(random.randint(5000, 250000)) / 100,
                    "date": today - timedelta(days=random.randint(0, 60)),
                    "notes": f"Seed order {i + 1}",
                    "service_type_id": service_type.pk,
                    "provider_ids": provider_ids,
                },
                seller,
            )
            created += 1

            for action, role in random.choice(LIFECYCLES):
                actor = seller if role == Role.SELLER else actors[role]
                request = TransitionRequest(
                    action=action,
                    reason="Documentação incompleta" if action == TransitionAction.RETURN else "",
                    service_type_id=str(service_type.pk)
                    if action == TransitionAction.CORRECT
                    else None,
                    provider_ids=tuple(str(pk) for pk in provider_ids or ())
                    if action == TransitionAction.CORRECT
                    else None,
                )
                try:
                    repository.apply_transition(order.pk, request, actor)
                except OrderError as exc:
                    self.stdout.write(
                        self.style.WARNING(f"Order {order.pk}: {action} skipped ({exc.detail})")
                    )
                    break

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
