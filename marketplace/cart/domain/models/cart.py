from django.contrib.auth import get_user_model
from django.core.validators import MinValueValidator
from django.db import models

from marketplace.catalog.domain.models.catalog import Product

User = get_user_model()


class CartItem(models.Model):
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="cart_items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="cart_items")
    quantity = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    added_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-added_at"]
        app_label = "marketplace"
        constraints = [
            models.UniqueConstraint(fields=["user", "product"], name="unique_cart_item_per_user"),
        ]

    def __str__(self):
        return f"{self.quantity}x {self.product.name} in cart of {self.user_id}"

    @property
    def line_total(self):
        return self.product.price * self.quantity
