import uuid

from django.contrib.auth.models import (
    AbstractBaseUser,
    BaseUserManager,
    PermissionsMixin,
)
from django.db import models
from django.utils import timezone


class UserManager(BaseUserManager):
    """Custom manager for the User model that uses email as the unique identifier."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("An email address is required.")
        email = self.normalize_email(email)
        extra_fields.setdefault("is_active", True)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("role", User.Role.ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Team member of the jewellery business.

    Uses email as the unique identifier instead of a username. The role
    decides what the member may do; ``floor`` ties floor managers and
    salespeople to the sales floor they work on.
    """

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Business admin"
        FLOOR_MANAGER = "FLOOR_MANAGER", "Floor manager"
        SALES_ASSOCIATE = "SALES_ASSOCIATE", "Sales associate"
        INHOUSE_SALES = "INHOUSE_SALES", "In-house sales"
        SUPPORT_STAFF = "SUPPORT_STAFF", "Support staff"

    SALES_ROLES = (Role.SALES_ASSOCIATE, Role.INHOUSE_SALES)

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    email = models.EmailField(
        "email address",
        unique=True,
        error_messages={
            "unique": "A user with this email address already exists.",
        },
    )
    first_name = models.CharField("first name", max_length=150)
    last_name = models.CharField("last name", max_length=150, blank=True, default="")
    phone = models.CharField("phone", max_length=30, blank=True, default="")
    role = models.CharField(
        "role",
        max_length=20,
        choices=Role.choices,
        default=Role.SALES_ASSOCIATE,
        db_index=True,
    )
    floor = models.PositiveSmallIntegerField("floor", null=True, blank=True, db_index=True)
    is_active = models.BooleanField("active", default=True, db_index=True)
    is_staff = models.BooleanField("staff status", default=False)
    date_joined = models.DateTimeField("date joined", default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["first_name"]

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["first_name", "last_name"]

    def __str__(self):
        return self.get_full_name() or self.email

    def get_full_name(self):
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name

    def get_short_name(self):
        return self.first_name

    # ------------------------------------------------------------------
    # Role helper properties
    # ------------------------------------------------------------------

    @property
    def is_admin(self):
        return self.is_superuser or self.role == self.Role.ADMIN

    @property
    def is_floor_manager(self):
        return self.role == self.Role.FLOOR_MANAGER

    @property
    def is_sales(self):
        return self.role in self.SALES_ROLES

    @property
    def role_display(self):
        return self.get_role_display()
