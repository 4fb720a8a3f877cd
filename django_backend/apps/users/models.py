from django.contrib.auth.models import AbstractUser
from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models

username_validator = RegexValidator(
    r"^[a-zA-Z0-9_]+$",
    "Username must contain only letters, numbers, and underscores",
)


class User(AbstractUser):
    username = models.CharField(
        max_length=50,
        unique=True,
        validators=[MinLengthValidator(3), username_validator],
        error_messages={"unique": "Username already exists"},
    )
    display_name = models.CharField(max_length=100)
    email = models.EmailField(unique=True, error_messages={"unique": "Email already exists"})
    avatar_url = models.URLField(blank=True, null=True)

    REQUIRED_FIELDS = ["email"]

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.username
