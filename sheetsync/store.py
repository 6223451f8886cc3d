import logging
import uuid
from contextlib import contextmanager
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from sheetsync.errors import AuthorizationError, NotConnected, SyncInProgress, TokenRefreshFailure
from sheetsync.models import Connector, ProviderType

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_LEEWAY = getattr(settings, 'SHEETSYNC_TOKEN_EXPIRY_LEEWAY', 60)
LEASE_SECONDS = getattr(settings, 'SHEETSYNC_LEASE_SECONDS', 900)


class ConnectorStore:
    """Find-or-create access to the one connector per (shop, provider) pair."""

    def get(self, shop_id, provider_type=ProviderType.GOOGLE):
        return Connector.objects.filter(shop_id=shop_id, provider_type=provider_type).first()

    def upsert(self, shop_id, provider_type=ProviderType.GOOGLE, **fields):
        with transaction.atomic():
            connector = (
                Connector.objects.select_for_update()
                .filter(shop_id=shop_id, provider_type=provider_type)
                .first()
            )
            if connector is None:
                try:
                    with transaction.atomic():
                        return Connector.objects.create(
                            shop_id=shop_id, provider_type=provider_type, **fields
                        )
                except IntegrityError:
                    # Lost the insert race; the winner's row is updated instead.
                    connector = (
                        Connector.objects.select_for_update()
                        .filter(shop_id=shop_id, provider_type=provider_type)
                        .first()
                    )
                    if connector is None:
                        raise

            for name, value in fields.items():
                setattr(connector, name, value)
            connector.save(update_fields=[*fields, 'updated_at'])
            return connector

    def delete(self, shop_id, provider_type=ProviderType.GOOGLE):
        count, _ = Connector.objects.filter(shop_id=shop_id, provider_type=provider_type).delete()
        return count

    def save_grant(self, shop_id, grant, provider_type=ProviderType.GOOGLE):
        return self.upsert(shop_id, provider_type, **grant.as_fields())

    def fresh_connector(self, shop_id, oauth_client, provider_type=ProviderType.GOOGLE,
                        now=None, timeout=None):
        """Return the connector with a usable access token.

        The row is locked while the token is checked, so concurrent runs see
        the refreshed token instead of refreshing again.
        """
        with transaction.atomic():
            connector = (
                Connector.objects.select_for_update()
                .filter(shop_id=shop_id, provider_type=provider_type)
                .first()
            )
            if connector is None:
                raise NotConnected(shop_id, provider_type)
            if not connector.is_expired(leeway=TOKEN_EXPIRY_LEEWAY, now=now):
                return connector

            logger.info("Access token for %s expired, refreshing", connector)
            try:
                grant = oauth_client.refresh(connector.refresh_token, timeout=timeout)
            except AuthorizationError as exc:
                raise TokenRefreshFailure(f"Could not refresh token for {connector}: {exc}") from exc

            fields = grant.as_fields()
            for name, value in fields.items():
                setattr(connector, name, value)
            connector.save(update_fields=[*fields, 'updated_at'])
            return connector

    def acquire_lease(self, connector, ttl=None, now=None):
        now = now or timezone.now()
        token = uuid.uuid4().hex
        claimed = (
            Connector.objects.filter(pk=connector.pk)
            .filter(Q(lease_expires_at__isnull=True) | Q(lease_expires_at__lte=now))
            .update(
                lease_token=token,
                lease_expires_at=now + timedelta(seconds=ttl or LEASE_SECONDS),
            )
        )
        if not claimed:
            raise SyncInProgress(f"A sync is already running for {connector}")
        return token

    def release_lease(self, connector, token):
        return (
            Connector.objects.filter(pk=connector.pk, lease_token=token)
            .update(lease_token=None, lease_expires_at=None)
        )

    @contextmanager
    def lease(self, connector, ttl=None):
        token = self.acquire_lease(connector, ttl=ttl)
        logger.debug("Acquired sync lease for %s", connector)
        try:
            yield token
        finally:
            self.release_lease(connector, token)
            logger.debug("Released sync lease for %s", connector)


def connect_google(shop_id, code, oauth_client, store=None):
    """Exchange an authorization code and record the shop's Google connector."""
    store = store or ConnectorStore()
    grant = oauth_client.exchange_code(code)
    connector = store.save_grant(shop_id, grant, ProviderType.GOOGLE)
    logger.info("Connected Google for shop %s", shop_id)
    return connector
