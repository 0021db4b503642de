from __future__ import annotations

import random
import uuid
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.delivery.constants import DeliveryMethod, TransactionStatus
from modules.delivery.models import Transaction

SEED_NAMESPACE = uuid.UUID("6f1c2a9e-3b4d-4e8a-9c51-2d7f0b8e4a13")

# (title, unit price, destination city, lat, lng)
CATALOG = [
    ("Sobras de Plástico PET", Decimal("2.50"), "Rio de Janeiro, RJ", -22.9068, -43.1729),
    ("Madeira de Demolição", Decimal("150.00"), "Curitiba, PR", -25.4284, -49.2733),
    ("Papel Offset Branco", Decimal("1.80"), "Campinas, SP", -22.9099, -47.0626),
    ("Alumínio Recuperado", Decimal("4.20"), "Santos, SP", -23.9608, -46.3336),
    ("Tecido de Algodão", Decimal("8.00"), "Porto Alegre, RS", -30.0346, -51.2177),
    ("Componentes Eletrônicos", Decimal("12.50"), "Guarulhos, SP", -23.4543, -46.5337),
    ("Restos Orgânicos Compostáveis", Decimal("0.50"), "São Paulo, SP", -23.5614, -46.6559),
    ("Cobre Recuperado", Decimal("18.00"), "Belo Horizonte, MG", -19.9167, -43.9345),
]


class Command(BaseCommand):
    help = "Seed database with demo marketplace transactions."

    def add_arguments(self, parser):
        parser.add_argument(
            "--count",
            type=int,
            default=24,
            help="Number of transactions to create (default: 24).",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        transactions_created = self._seed_transactions(options["count"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"transactions={transactions_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user("user", password="user123")
            created += 1
        return created

    def _seed_transactions(self, count: int) -> int:
        self.stdout.write("Creating transactions...")
        sellers = [uuid.uuid5(SEED_NAMESPACE, f"seller-{n}") for n in range(3)]
        buyers = [uuid.uuid5(SEED_NAMESPACE, f"buyer-{n}") for n in range(5)]
        statuses = [
            TransactionStatus.PENDING,
            TransactionStatus.CONFIRMED,
            TransactionStatus.CONFIRMED,
            TransactionStatus.IN_TRANSIT,
            TransactionStatus.DELIVERED,
            TransactionStatus.CANCELLED,
        ]
        now = timezone.now()
        created = 0

        for index in range(count):
            title, unit_price, city, lat, lng = CATALOG[index % len(CATALOG)]
            item_id = uuid.uuid5(SEED_NAMESPACE, f"item-{index}")
            if Transaction.objects.filter(item_id=item_id).exists():
                continue

            quantity = random.randint(1, 50)
            status = random.choice(statuses)
            created_at = now - timedelta(minutes=random.randint(5, 60 * 72))
            Transaction.objects.create(
                buyer_id=random.choice(buyers),
                seller_id=random.choice(sellers),
                item_id=item_id,
                item_title=title,
                quantity=quantity,
                total_price=unit_price * quantity,
                status=status,
                delivery_method=random.choice(list(DeliveryMethod)),
                delivery_address=city,
                destination_lat=lat,
                destination_lng=lng,
                created_at=created_at,
                completed_at=(
                    created_at + timedelta(hours=3)
                    if status == TransactionStatus.DELIVERED
                    else None
                ),
            )
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating transactions... Done!"))
        return created
