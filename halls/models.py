# halls/models.py
from django.core.validators import MinValueValidator
from django.db import models


class Hall(models.Model):
    """
    A bookable campus hall. Owned by facilities; after creation only the
    seating capacity (and descriptive text) may be corrected.
    """
    name = models.CharField(max_length=255, unique=True)
    location = models.CharField(max_length=255)
    seating_capacity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["seating_capacity", "id"]
        indexes = [
            models.Index(fields=["is_active", "seating_capacity"], name="hall_active_capacity_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.seating_capacity})"
