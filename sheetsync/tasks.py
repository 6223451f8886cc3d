import logging

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded
from django.conf import settings
from django.utils.module_loading import import_string

from sheetsync.clients.google_oauth import GoogleOAuthClient
from sheetsync.deadline import Deadline
from sheetsync.errors import SyncCancelled, SyncError
from sheetsync.models import Connector, ProviderType
from sheetsync.sync import SyncOrchestrator

logger = logging.getLogger(__name__)

SYNC_SOURCE_CLASS = getattr(
    settings, 'SYNC_SOURCE_CLASS', 'sheetsync.sources.shopify_source.ShopifyGraphQLSource'
)
RUN_TIMEOUT = getattr(settings, 'SHEETSYNC_RUN_TIMEOUT', 600)


def build_orchestrator():
    source = import_string(SYNC_SOURCE_CLASS)()
    return SyncOrchestrator(source=source, oauth_client=GoogleOAuthClient())


# No autoretry: spreadsheet creation is not idempotent, retries belong to the caller.
@shared_task(soft_time_limit=RUN_TIMEOUT)
def sync_catalog(shop_id):
    deadline = Deadline(seconds=RUN_TIMEOUT)
    try:
        summary = build_orchestrator().run(shop_id, deadline=deadline)
    except SoftTimeLimitExceeded as exc:
        deadline.cancel()
        raise SyncCancelled(f"Sync for shop {shop_id} hit the time limit") from exc
    except SyncError as exc:
        logger.error("Sync failed for shop %s: %s", shop_id, exc)
        raise
    return summary.as_dict()


@shared_task
def sync_all_connected_shops():
    shop_ids = list(
        Connector.objects.filter(provider_type=ProviderType.GOOGLE)
        .values_list('shop_id', flat=True)
    )
    for shop_id in shop_ids:
        sync_catalog.delay(shop_id)
    logger.info("Queued catalog sync for %d shops", len(shop_ids))
    return len(shop_ids)
