import uuid

from django.contrib.auth import get_user_model
from django.db import models
from django.utils import timezone

from .countries import COUNTRY_CHOICES

User = get_user_model()


class UserVerification(models.Model):
    """
    A user's identity and locale claim, confirmed by a one-time code.

    A user may start verification several times; only the most recent record
    can be confirmed, and only with the code issued for it. The verification
    fields are snapshotted onto every survey response the user submits.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User, on_delete=models.CASCADE, related_name="verifications"
    )
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    phone_number = models.CharField(max_length=32)
    country = models.CharField(max_length=64, choices=COUNTRY_CHOICES)
    verification_code = models.CharField(max_length=12, editable=False)
    is_verified = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)
    verified_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        get_latest_by = "created_at"
        indexes = [
            models.Index(
                fields=["user", "created_at"], name="core_userve_user_id_8c1f2a_idx"
            ),
            models.Index(
                fields=["user", "is_verified"], name="core_userve_user_id_4b7e9d_idx"
            ),
        ]

    def __str__(self) -> str:
        status = "verified" if self.is_verified else "pending"
        return f"{self.first_name} {self.last_name} ({self.country}, {status})"

    def mark_verified(self) -> None:
        """Record a successful code confirmation."""
        self.is_verified = True
        self.verified_at = timezone.now()
        self.save(update_fields=["is_verified", "verified_at"])

    def snapshot(self) -> dict:
        """Verification fields copied onto survey responses."""
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
            "country": self.country,
            "is_verified": self.is_verified,
        }
