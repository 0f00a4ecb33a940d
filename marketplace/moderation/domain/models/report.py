from django.contrib.auth import get_user_model
from django.db import models

User = get_user_model()


class Report(models.Model):
    TYPE_USER = "User"
    TYPE_LISTING = "Listing"

    TYPE_CHOICES = [
        (TYPE_USER, "User"),
        (TYPE_LISTING, "Listing"),
    ]

    STATUS_PENDING = "pending"
    STATUS_RESOLVED = "resolved"
    STATUS_DISMISSED = "dismissed"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_RESOLVED, "Resolved"),
        (STATUS_DISMISSED, "Dismissed"),
    ]

    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    # UUID of the reported user or product, depending on type
    item_id = models.UUIDField(db_index=True)
    reported_by = models.ForeignKey(User, on_delete=models.CASCADE, related_name="reports_filed")
    reason = models.TextField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        constraints = [
            models.UniqueConstraint(fields=["reported_by", "type", "item_id"], name="unique_report_per_item"),
        ]

    def __str__(self):
        return f"{self.type} report on {self.item_id} ({self.status})"
