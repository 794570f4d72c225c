"""Seed the database with a demo team, catalog and leads."""
import random
from decimal import Decimal

from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Seed database with floors, team members, products and sample leads"

    DEMO_USERS = [
        {"email": "admin@jewellery.test", "first_name": "Anita", "last_name": "Rao", "role": "ADMIN", "floor": None, "password": "admin123!"},
        {"email": "manager1@jewellery.test", "first_name": "Vikram", "last_name": "Mehta", "role": "FLOOR_MANAGER", "floor": 1, "password": "manager123!"},
        {"email": "manager2@jewellery.test", "first_name": "Kavya", "last_name": "Iyer", "role": "FLOOR_MANAGER", "floor": 2, "password": "manager123!"},
        {"email": "sales1@jewellery.test", "first_name": "Rohan", "last_name": "Gupta", "role": "SALES_ASSOCIATE", "floor": 1, "password": "sales123!"},
        {"email": "sales2@jewellery.test", "first_name": "Sneha", "last_name": "Nair", "role": "SALES_ASSOCIATE", "floor": 1, "password": "sales123!"},
        {"email": "sales3@jewellery.test", "first_name": "Arjun", "last_name": "Das", "role": "INHOUSE_SALES", "floor": 2, "password": "sales123!"},
    ]

    PRODUCTS = [
        ("Rings", "Solitaire Diamond Ring", "RNG-001", Decimal("85000.00")),
        ("Rings", "Gold Band 22K", "RNG-002", Decimal("32000.00")),
        ("Necklaces", "Kundan Necklace Set", "NCK-001", Decimal("145000.00")),
        ("Necklaces", "Pearl Strand", "NCK-002", Decimal("50000.00")),
        ("Bangles", "Temple Bangles (pair)", "BNG-001", Decimal("68000.00")),
        ("Earrings", "Jhumka Earrings", "EAR-001", Decimal("24000.00")),
    ]

    CUSTOMERS = [
        ("Priya Sharma", "+91 98765 43210"),
        ("Rahul Verma", "+91 98111 22334"),
        ("Meera Joshi", "+91 99887 66554"),
        ("Amit Patel", "+91 97654 32109"),
        ("Divya Reddy", "+91 90000 11223"),
        ("Karan Singh", "+91 93456 78901"),
    ]

    def add_arguments(self, parser):
        parser.add_argument("--flush", action="store_true", help="Delete existing demo data first")
        parser.add_argument("--leads", type=int, default=12, help="Number of sample leads per floor")
        parser.add_argument(
            "--reset-passwords",
            action="store_true",
            help="Reset demo users passwords to default values (useful when the DB already contains these users).",
        )

    def handle(self, *args, **options):
        if options["flush"]:
            self.stdout.write("Flushing existing data...")
            self._flush()

        self.stdout.write("Seeding data...")
        users = self._create_users(reset_passwords=options["reset_passwords"])
        products = self._create_products()
        leads = self._create_leads(users, products, per_floor=options["leads"])

        self.stdout.write(self.style.SUCCESS(
            f"Seed complete: {len(users)} users, {len(products)} products, {leads} leads"
        ))

    def _flush(self):
        from accounts.models import User
        from catalog.models import Category, Product
        from core.models import AuditLog
        from leads.models import Lead
        from reports.models import SalesReport

        for model in [SalesReport, Lead, Product, Category, AuditLog]:
            model.objects.all().delete()
        User.objects.filter(email__in=[u["email"] for u in self.DEMO_USERS]).delete()

    def _create_users(self, *, reset_passwords=False):
        from accounts.models import User

        users = []
        for ud in self.DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=ud["email"],
                defaults={
                    "first_name": ud["first_name"],
                    "last_name": ud["last_name"],
                    "role": ud["role"],
                    "floor": ud["floor"],
                    "is_staff": ud["role"] == "ADMIN",
                    "is_superuser": ud["role"] == "ADMIN",
                },
            )
            if created or reset_passwords:
                user.set_password(ud["password"])
                user.save(update_fields=["password"])
                self.stdout.write(f"  User: {user.email} ({ud['role']})")
            users.append(user)
        return users

    def _create_products(self):
        from catalog.models import Category, Product

        products = []
        for category_name, name, sku, price in self.PRODUCTS:
            category, _ = Category.objects.get_or_create(name=category_name)
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={"name": name, "price": price, "category": category},
            )
            products.append(product)
        return products

    def _create_leads(self, users, products, *, per_floor):
        from leads import services
        from leads.models import Lead, Stage

        rng = random.Random(42)
        stages = list(Stage.values)
        admin = next(u for u in users if u.role == "ADMIN")
        created = 0
        for floor in (1, 2):
            if Lead.objects.filter(floor=floor).exists():
                continue
            sales = [u for u in users if u.floor == floor and u.is_sales]
            for _ in range(per_floor):
                name, phone = rng.choice(self.CUSTOMERS)
                lead = services.create_lead(
                    floor=floor,
                    customer_name=name,
                    customer_phone=phone,
                    product=rng.choice(products),
                    actor=admin,
                )
                if sales:
                    services.assign_lead(lead.pk, rng.choice(sales).pk, actor=admin)
                target = rng.choice(stages)
                if target != Stage.POTENTIAL:
                    services.transition_stage(lead.pk, target, actor=admin)
                created += 1
        return created
