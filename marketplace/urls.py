from django.urls import path

from .administration.api.views import AdminViewSet
from .api.views.metrics_views import marketplace_metrics
from .cart.api.views import CartViewSet
from .catalog.api.views import ProductViewSet
from .moderation.api.views import ReportViewSet
from .ordering.api.views import OrderViewSet
from .reviews.api.views import ReviewViewSet
from .settings_provider.api.views import PlatformSettingsViewSet


app_name = "marketplace"

urlpatterns = [
    # Cart
    path("cart/", CartViewSet.as_view({"get": "list", "delete": "clear"}), name="cart"),
    path("cart/items/", CartViewSet.as_view({"post": "add_item"}), name="cart-items"),
    path(
        "cart/items/<int:pk>/",
        CartViewSet.as_view({"put": "update_item", "delete": "remove_item"}),
        name="cart-item-detail",
    ),
    path("cart/validate/", CartViewSet.as_view({"get": "validate"}), name="cart-validate"),
    path("cart/count/", CartViewSet.as_view({"get": "count"}), name="cart-count"),
    path("cart/check/<uuid:product_id>/", CartViewSet.as_view({"get": "check"}), name="cart-check"),
    # Orders (admin routes first so "all" and "stats" are not read as order ids)
    path("orders/", OrderViewSet.as_view({"get": "list", "post": "create"}), name="orders"),
    path("orders/all/", OrderViewSet.as_view({"get": "all_orders"}), name="orders-all"),
    path("orders/stats/", OrderViewSet.as_view({"get": "stats"}), name="orders-stats"),
    path("orders/stats/monthly/", OrderViewSet.as_view({"get": "monthly_stats"}), name="orders-stats-monthly"),
    path("orders/<str:pk>/", OrderViewSet.as_view({"get": "retrieve"}), name="order-detail"),
    path("orders/<str:pk>/status/", OrderViewSet.as_view({"put": "update_status"}), name="order-status"),
    path("orders/<str:pk>/payment/", OrderViewSet.as_view({"put": "update_payment"}), name="order-payment"),
    path("orders/<str:pk>/checkout/", OrderViewSet.as_view({"post": "checkout"}), name="order-checkout"),
    path("orders/<str:pk>/cancel/", OrderViewSet.as_view({"put": "cancel"}), name="order-cancel"),
    # Reviews
    path("reviews/", ReviewViewSet.as_view({"post": "create"}), name="reviews"),
    path(
        "reviews/seller/<uuid:seller_id>/",
        ReviewViewSet.as_view({"get": "seller_reviews"}),
        name="reviews-seller",
    ),
    path(
        "reviews/product/<uuid:product_id>/",
        ReviewViewSet.as_view({"get": "product_reviews"}),
        name="reviews-product",
    ),
    path(
        "reviews/check-eligibility/<uuid:product_id>/",
        ReviewViewSet.as_view({"get": "check_eligibility"}),
        name="reviews-check-eligibility",
    ),
    path(
        "reviews/user/<uuid:user_id>/product/<uuid:product_id>/",
        ReviewViewSet.as_view({"get": "user_review"}),
        name="reviews-user-product",
    ),
    path(
        "reviews/<int:pk>/",
        ReviewViewSet.as_view({"put": "update", "delete": "destroy"}),
        name="review-detail",
    ),
    # Reports
    path("reports/", ReportViewSet.as_view({"get": "list", "post": "create"}), name="reports"),
    path("reports/stats/", ReportViewSet.as_view({"get": "stats"}), name="reports-stats"),
    path("reports/pending/count/", ReportViewSet.as_view({"get": "pending_count"}), name="reports-pending-count"),
    path(
        "reports/check/<str:report_type>/<str:item_id>/",
        ReportViewSet.as_view({"get": "check"}),
        name="reports-check",
    ),
    path(
        "reports/<int:pk>/",
        ReportViewSet.as_view({"get": "retrieve", "delete": "destroy"}),
        name="report-detail",
    ),
    path("reports/<int:pk>/status/", ReportViewSet.as_view({"put": "update_status"}), name="report-status"),
    # Platform settings
    path("settings/", PlatformSettingsViewSet.as_view({"get": "retrieve", "put": "update"}), name="settings"),
    path("settings/reset/", PlatformSettingsViewSet.as_view({"post": "reset"}), name="settings-reset"),
    # Products
    path("products/", ProductViewSet.as_view({"get": "list", "post": "create"}), name="products"),
    path("products/pending/", ProductViewSet.as_view({"get": "pending"}), name="products-pending"),
    path("products/featured/", ProductViewSet.as_view({"get": "featured"}), name="products-featured"),
    path("products/recent/", ProductViewSet.as_view({"get": "recent"}), name="products-recent"),
    path(
        "products/<uuid:pk>/",
        ProductViewSet.as_view({"get": "retrieve", "put": "update", "delete": "destroy"}),
        name="product-detail",
    ),
    path("products/<uuid:pk>/review/", ProductViewSet.as_view({"put": "review"}), name="product-review"),
    path("products/<uuid:pk>/status/", ProductViewSet.as_view({"put": "update_status"}), name="product-status"),
    path("categories/", ProductViewSet.as_view({"get": "categories"}), name="categories"),
    # Admin
    path("admin/users/", AdminViewSet.as_view({"get": "users"}), name="admin-users"),
    path("admin/users/<uuid:user_id>/status/", AdminViewSet.as_view({"put": "user_status"}), name="admin-user-status"),
    path("admin/users/<uuid:user_id>/role/", AdminViewSet.as_view({"put": "user_role"}), name="admin-user-role"),
    path("admin/dashboard/", AdminViewSet.as_view({"get": "dashboard"}), name="admin-dashboard"),
    path("admin/reports/sales/", AdminViewSet.as_view({"get": "sales_report"}), name="admin-report-sales"),
    path(
        "admin/reports/users/",
        AdminViewSet.as_view({"get": "user_activity_report"}),
        name="admin-report-users",
    ),
    # Prometheus metrics endpoint
    path("metrics/", marketplace_metrics, name="metrics"),
]
