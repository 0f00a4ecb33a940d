from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from marketplace.catalog.domain.models import Product
from marketplace.infra.observability.metrics import moderation_queue_size
from marketplace.moderation.domain.models import Report


@api_view(["GET"])
@permission_classes([AllowAny])
def marketplace_metrics(request):
    """
    Prometheus scrape endpoint. Counters are process-local; the moderation
    queue gauges are recomputed from the database on every scrape.
    """
    moderation_queue_size.labels(queue="pending_products").set(
        Product.objects.filter(status=Product.STATUS_PENDING).count()
    )
    moderation_queue_size.labels(queue="pending_reports").set(Report.objects.filter(status=Report.STATUS_PENDING).count())
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
