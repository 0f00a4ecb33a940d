from django.contrib.auth import get_user_model
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from marketplace.catalog.domain.models.catalog import Product

User = get_user_model()


class Review(models.Model):
    RATING_CHOICES = [(i, str(i)) for i in range(1, 6)]

    reviewer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="reviews_written")
    seller = models.ForeignKey(User, on_delete=models.CASCADE, related_name="reviews_received")
    product = models.ForeignKey(Product, on_delete=models.SET_NULL, null=True, blank=True, related_name="reviews")
    rating = models.PositiveSmallIntegerField(
        choices=RATING_CHOICES, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    comment = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        app_label = "marketplace"
        constraints = [
            models.UniqueConstraint(
                fields=["reviewer", "product"],
                condition=models.Q(product__isnull=False),
                name="unique_review_per_reviewer_product",
            ),
        ]

    def __str__(self):
        return f"{self.rating}/5 for {self.seller_id} by {self.reviewer_id}"
