from prometheus_client import Counter, Gauge, Histogram


# Order Metrics
orders_placed_total = Counter("marketplace_orders_placed_total", "Total orders placed", ["payment_method"])
order_value = Histogram(
    "marketplace_order_value",
    "Order value distribution",
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, float("inf")],
)
order_status_transitions_total = Counter(
    "marketplace_order_status_transitions_total", "Order status transitions", ["status"]
)
checkout_failures_total = Counter("marketplace_checkout_failures_total", "Failed simulated checkouts", ["reason"])
order_number_collisions_total = Counter(
    "marketplace_order_number_collisions_total", "Order number collisions retried during creation"
)

# Cart Metrics
cart_operations_total = Counter("marketplace_cart_operations_total", "Cart mutations", ["operation"])

# Review and moderation Metrics
reviews_written_total = Counter("marketplace_reviews_written_total", "Review mutations", ["action"])
reports_filed_total = Counter("marketplace_reports_filed_total", "Reports filed", ["type"])

# Moderation queue, refreshed on scrape
moderation_queue_size = Gauge("marketplace_moderation_queue_size", "Items waiting for an admin", ["queue"])
