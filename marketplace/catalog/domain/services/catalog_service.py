"""
CatalogService - product listings and the availability ledger.

Product.status is the single source of truth for whether a listing can be
carted or ordered. The view and interested counters are best-effort metrics:
they are bumped with F() expressions outside any correctness transaction and
failures are logged, never propagated.
"""

from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, ExpressionWrapper, F, FloatField, Q

from marketplace.catalog.domain.models import Product
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, paginate, service_err, service_ok

CONDITIONS = [value for value, _ in Product.CONDITION_CHOICES]
MAX_PRICE = Decimal("100000")


def parse_price(raw, allow_zero: bool = False, ceiling: Optional[Decimal] = None):
    """Return ``(price, None)`` for a usable amount or ``(None, reason)``."""
    try:
        price = Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None, "Price must be a number"
    if not price.is_finite():
        return None, "Price must be a finite number"
    if price < 0 or (price == 0 and not allow_zero):
        return None, "Price must be greater than zero"
    if ceiling is not None and price > ceiling:
        return None, f"Price cannot exceed {ceiling}"
    return price, None


class CatalogService(BaseService):
    def __init__(self, settings_service):
        super().__init__()
        self.settings_service = settings_service

    # ---- ledger primitives -------------------------------------------------

    def is_available(self, product: Product) -> bool:
        return product.status == Product.STATUS_ACTIVE

    def mark_sold(self, product_ids: Iterable) -> int:
        """Flip the given products to sold. Caller owns the transaction."""
        return Product.objects.filter(id__in=list(product_ids)).update(status=Product.STATUS_SOLD)

    def restore_to_active(self, product_ids: Iterable) -> int:
        """
        Put products back on sale after an order is cancelled.

        Every product is restored regardless of its current status.
        """
        product_ids = list(product_ids)
        drifted = list(
            Product.objects.filter(id__in=product_ids)
            .exclude(status=Product.STATUS_SOLD)
            .values_list("id", "status")
        )
        if drifted:
            self.logger.warning(f"Restoring products that were no longer sold: {drifted}")
        return Product.objects.filter(id__in=product_ids).update(status=Product.STATUS_ACTIVE)

    def suspend(self, product_id) -> int:
        return Product.objects.filter(id=product_id).update(status=Product.STATUS_SUSPENDED)

    def increment_interested(self, product_id) -> None:
        try:
            Product.objects.filter(id=product_id).update(interested=F("interested") + 1)
        except Exception as e:
            self.logger.warning(f"Could not bump interested counter for product {product_id}: {e}")

    def increment_views(self, product_id) -> None:
        try:
            Product.objects.filter(id=product_id).update(views=F("views") + 1)
        except Exception as e:
            self.logger.warning(f"Could not bump view counter for product {product_id}: {e}")

    # ---- listings ----------------------------------------------------------

    @BaseService.log_performance
    def create_product(self, seller, data: Dict) -> ServiceResult[Product]:
        """
        Create a listing owned by ``seller``.

        The listing starts ``pending`` when the platform requires admin
        approval, otherwise it goes live immediately.
        """
        try:
            if not seller.can_sell_products():
                return service_err(ErrorCodes.PERMISSION_DENIED, "Your account cannot list products")

            name = (data.get("name") or "").strip()
            if not name:
                return service_err(ErrorCodes.INVALID_PRODUCT_DATA, "Product name is required")

            price, problem = parse_price(data.get("price"), ceiling=MAX_PRICE)
            if problem:
                return service_err(ErrorCodes.INVALID_PRODUCT_DATA, problem)
            condition = data.get("condition") or "good"
            if condition not in CONDITIONS:
                return service_err(
                    ErrorCodes.INVALID_PRODUCT_DATA, f"Condition must be one of: {', '.join(CONDITIONS)}"
                )

            status = Product.STATUS_PENDING if self.settings_service.requires_admin_approval() else Product.STATUS_ACTIVE

            product = Product.objects.create(
                seller=seller,
                name=name,
                description=data.get("description", ""),
                category=data.get("category", ""),
                price=price,
                condition=condition,
                location=data.get("location", ""),
                status=status,
            )
            self.logger.info(f"Product {product.id} created by {seller.id} with status {status}")
            return service_ok(product)
        except Exception as e:
            return self.internal_error("creating product", e)

    @BaseService.log_performance
    def get_product(self, product_id, viewer=None, count_view: bool = True) -> ServiceResult[Product]:
        """
        Fetch a product. Listings that are not public are only visible to
        their seller and admins.
        """
        try:
            product = Product.objects.select_related("seller").filter(id=product_id).first()
            if product is None:
                return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")

            public = product.status in (Product.STATUS_ACTIVE, Product.STATUS_SOLD)
            if not public:
                is_owner = viewer is not None and viewer.is_authenticated and viewer.id == product.seller_id
                is_admin = viewer is not None and viewer.is_authenticated and viewer.is_admin()
                if not (is_owner or is_admin):
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")

            if count_view and (viewer is None or viewer.id != product.seller_id):
                self.increment_views(product.id)

            return service_ok(product)
        except Exception as e:
            return self.internal_error(f"fetching product {product_id}", e)

    @BaseService.log_performance
    def list_products(self, filters: Optional[Dict] = None, page=None, page_size=None) -> ServiceResult[Dict]:
        """Active listings filtered by seller, category, search text and price bounds."""
        try:
            filters = filters or {}
            queryset = Product.objects.select_related("seller").filter(status=Product.STATUS_ACTIVE)

            if filters.get("seller"):
                try:
                    queryset = queryset.filter(seller_id=filters["seller"])
                except ValidationError:
                    return service_err(ErrorCodes.INVALID_INPUT, "seller must be a valid id")
            if filters.get("category"):
                queryset = queryset.filter(category__iexact=filters["category"])
            if filters.get("search"):
                term = filters["search"]
                queryset = queryset.filter(Q(name__icontains=term) | Q(description__icontains=term))
            for key, lookup in (("min_price", "price__gte"), ("max_price", "price__lte")):
                if filters.get(key):
                    bound, problem = parse_price(filters[key], allow_zero=True)
                    if problem:
                        return service_err(ErrorCodes.INVALID_INPUT, f"{key} must be a number")
                    queryset = queryset.filter(**{lookup: bound})

            if page_size is None:
                page_size = self.settings_service.items_per_page()
            return service_ok(paginate(queryset, page, page_size))
        except Exception as e:
            return self.internal_error("listing products", e)

    @BaseService.log_performance
    def list_pending_products(self, page=None, page_size=None) -> ServiceResult[Dict]:
        try:
            queryset = Product.objects.select_related("seller").filter(status=Product.STATUS_PENDING)
            return service_ok(paginate(queryset.order_by("created_at"), page, page_size))
        except Exception as e:
            return self.internal_error("listing pending products", e)

    @BaseService.log_performance
    def review_product(self, product_id, decision: str) -> ServiceResult[Product]:
        """Admin approval: a pending listing becomes active or rejected."""
        try:
            if decision not in (Product.STATUS_ACTIVE, Product.STATUS_REJECTED):
                return service_err(ErrorCodes.INVALID_INPUT, "Status must be 'active' or 'rejected'")

            with transaction.atomic():
                product = Product.objects.select_for_update().filter(id=product_id).first()
                if product is None:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
                if product.status != Product.STATUS_PENDING:
                    return service_err(
                        ErrorCodes.INVALID_PRODUCT_STATE, f"Only pending products can be reviewed (is {product.status})"
                    )
                product.status = decision
                product.save(update_fields=["status", "updated_at"])

            self.logger.info(f"Product {product_id} reviewed: {decision}")
            return service_ok(product)
        except Exception as e:
            return self.internal_error(f"reviewing product {product_id}", e)

    # ---- owner / admin edits -----------------------------------------------

    def _can_manage(self, user, product: Product) -> bool:
        return user.id == product.seller_id or user.is_admin()

    @BaseService.log_performance
    def update_product(self, user, product_id, data: Dict) -> ServiceResult[Product]:
        """
        Partially update a listing. Only its seller or an admin may edit it,
        and only an admin may change ``status``.

        Errors:
            PRODUCT_NOT_FOUND, PERMISSION_DENIED, INVALID_PRODUCT_DATA
        """
        try:
            changes = {}
            if "name" in data:
                name = (data.get("name") or "").strip()
                if not name:
                    return service_err(ErrorCodes.INVALID_PRODUCT_DATA, "Product name cannot be empty")
                changes["name"] = name
            if "price" in data:
                price, problem = parse_price(data.get("price"), ceiling=MAX_PRICE)
                if problem:
                    return service_err(ErrorCodes.INVALID_PRODUCT_DATA, problem)
                changes["price"] = price
            if "condition" in data:
                if data["condition"] not in CONDITIONS:
                    return service_err(
                        ErrorCodes.INVALID_PRODUCT_DATA, f"Condition must be one of: {', '.join(CONDITIONS)}"
                    )
                changes["condition"] = data["condition"]
            for field in ("description", "category", "location"):
                if field in data:
                    changes[field] = data.get(field) or ""

            with transaction.atomic():
                product = Product.objects.select_for_update().filter(id=product_id).first()
                if product is None:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
                if not self._can_manage(user, product):
                    return service_err(ErrorCodes.PERMISSION_DENIED, "You can only edit your own listings")
                if "status" in data and data["status"] != product.status:
                    if not user.is_admin():
                        return service_err(ErrorCodes.PERMISSION_DENIED, "Only admins can change a listing's status")
                    problem = self._status_change_problem(product, data["status"])
                    if problem:
                        return problem
                    changes["status"] = data["status"]

                for field, value in changes.items():
                    setattr(product, field, value)
                if changes:
                    product.save(update_fields=list(changes) + ["updated_at"])

            self.logger.info(f"Product {product_id} updated by {user.id}: {sorted(changes)}")
            return service_ok(product)
        except Exception as e:
            return self.internal_error(f"updating product {product_id}", e)

    def _status_change_problem(self, product: Product, new_status: str) -> Optional[ServiceResult]:
        if new_status not in dict(Product.STATUS_CHOICES):
            return service_err(ErrorCodes.INVALID_INPUT, f"Unknown product status '{new_status}'")
        # sold <-> anything else only happens through orders
        if Product.STATUS_SOLD in (product.status, new_status):
            return service_err(
                ErrorCodes.INVALID_PRODUCT_STATE, "Sold status is managed by orders and cannot be set by hand"
            )
        return None

    @BaseService.log_performance
    def update_product_status(self, product_id, new_status: str) -> ServiceResult[Product]:
        """Admin moderation: move a listing between active, pending, rejected and suspended."""
        try:
            with transaction.atomic():
                product = Product.objects.select_for_update().filter(id=product_id).first()
                if product is None:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
                if product.status != new_status:
                    problem = self._status_change_problem(product, new_status)
                    if problem:
                        return problem
                    product.status = new_status
                    product.save(update_fields=["status", "updated_at"])

            self.logger.info(f"Product {product_id} status set to {new_status}")
            return service_ok(product)
        except Exception as e:
            return self.internal_error(f"updating status of product {product_id}", e)

    @BaseService.log_performance
    def delete_product(self, user, product_id) -> ServiceResult[Dict]:
        """
        Delete a listing together with its cart lines, listing reports and
        conversations. Reviews survive without the product link. Listings
        that appear on an order are kept for the order history.

        Errors:
            PRODUCT_NOT_FOUND, PERMISSION_DENIED, INVALID_PRODUCT_STATE
        """
        from marketplace.cart.domain.models import CartItem
        from marketplace.moderation.domain.models import Report
        from marketplace.ordering.domain.models import OrderItem

        try:
            with transaction.atomic():
                product = Product.objects.select_for_update().filter(id=product_id).first()
                if product is None:
                    return service_err(ErrorCodes.PRODUCT_NOT_FOUND, "Product not found")
                if not self._can_manage(user, product):
                    return service_err(ErrorCodes.PERMISSION_DENIED, "You can only delete your own listings")
                if OrderItem.objects.filter(product_id=product.id).exists():
                    return service_err(
                        ErrorCodes.INVALID_PRODUCT_STATE, "Products that appear on orders cannot be deleted"
                    )

                removed = {
                    "cart_items": CartItem.objects.filter(product_id=product.id).delete()[0],
                    "reports": Report.objects.filter(type=Report.TYPE_LISTING, item_id=product.id).delete()[0],
                    "conversations": product.conversations.count(),
                    "reviews_detached": product.reviews.count(),
                }
                product.delete()

            self.logger.info(f"Product {product_id} deleted by {user.id}: {removed}")
            return service_ok({"product_id": str(product_id), **removed})
        except Exception as e:
            return self.internal_error(f"deleting product {product_id}", e)

    # ---- storefront ----------------------------------------------------------

    @staticmethod
    def parse_limit(raw, default: int, maximum: int = 50) -> Optional[int]:
        """Positive limit capped at ``maximum``; None when ``raw`` is not a positive integer."""
        if raw in (None, ""):
            return default
        try:
            limit = int(raw)
        except (TypeError, ValueError):
            return None
        if limit < 1:
            return None
        return min(limit, maximum)

    @BaseService.log_performance
    def featured_products(self, limit=None) -> ServiceResult[list]:
        """Active listings ranked by ``views * 0.4 + interested * 0.6``."""
        limit = self.parse_limit(limit, default=4)
        if limit is None:
            return service_err(ErrorCodes.INVALID_INPUT, "limit must be a positive integer")
        try:
            queryset = (
                Product.objects.select_related("seller")
                .filter(status=Product.STATUS_ACTIVE)
                .annotate(
                    score=ExpressionWrapper(F("views") * 0.4 + F("interested") * 0.6, output_field=FloatField())
                )
                .order_by("-score", "-created_at")
            )
            return service_ok(list(queryset[:limit]))
        except Exception as e:
            return self.internal_error("fetching featured products", e)

    @BaseService.log_performance
    def recent_products(self, limit=None) -> ServiceResult[list]:
        limit = self.parse_limit(limit, default=8)
        if limit is None:
            return service_err(ErrorCodes.INVALID_INPUT, "limit must be a positive integer")
        try:
            queryset = Product.objects.select_related("seller").filter(status=Product.STATUS_ACTIVE)
            return service_ok(list(queryset.order_by("-created_at")[:limit]))
        except Exception as e:
            return self.internal_error("fetching recent products", e)

    @BaseService.log_performance
    def categories(self, popular_limit: int = 5) -> ServiceResult[Dict]:
        """Categories in use by active listings, alphabetically and by popularity."""
        try:
            rows = list(
                Product.objects.filter(status=Product.STATUS_ACTIVE)
                .exclude(category="")
                .values("category")
                .annotate(product_count=Count("id"))
                .order_by("category")
            )
            categories = [{"name": row["category"], "product_count": row["product_count"]} for row in rows]
            popular = sorted(categories, key=lambda c: (-c["product_count"], c["name"]))[:popular_limit]
            return service_ok({"categories": categories, "popular": popular})
        except Exception as e:
            return self.internal_error("listing categories", e)

    def get_product_detail(self, product_id, viewer=None) -> ServiceResult[Dict]:
        """
        Product plus related listings and seller stats.

        The extras are assembled separately; if one of them fails it comes
        back empty and the product is still returned.
        """
        result = self.get_product(product_id, viewer=viewer)
        if not result.ok:
            return result
        product = result.value
        return service_ok(
            {
                "product": product,
                "related_products": self._related_products(product),
                "seller_stats": self._seller_stats(product),
            }
        )

    def _related_products(self, product: Product, limit: int = 4) -> list:
        if not product.category:
            return []
        try:
            return list(
                Product.objects.select_related("seller")
                .filter(status=Product.STATUS_ACTIVE, category__iexact=product.category)
                .exclude(id=product.id)
                .order_by("-created_at")[:limit]
            )
        except Exception as e:
            self.logger.warning(f"Related products lookup failed for {product.id}: {e}")
            return []

    def _seller_stats(self, product: Product) -> Dict:
        try:
            counts = Product.objects.filter(seller_id=product.seller_id).aggregate(
                active_listings=Count("id", filter=Q(status=Product.STATUS_ACTIVE)),
                sold_listings=Count("id", filter=Q(status=Product.STATUS_SOLD)),
            )
            seller = product.seller
            return {
                "rating": str(seller.rating),
                "total_sales": seller.total_sales,
                **counts,
            }
        except Exception as e:
            self.logger.warning(f"Seller stats lookup failed for product {product.id}: {e}")
            return {}
