from datetime import timedelta

from django.db import models
from django.utils import timezone


class ProviderType(models.TextChoices):
    GOOGLE = 'GOOGLE', 'Google'


class Connector(models.Model):
    shop_id = models.CharField(max_length=255)
    provider_type = models.CharField(max_length=32, choices=ProviderType.choices)
    access_token = models.TextField()
    refresh_token = models.TextField(null=True, blank=True)
    token_type = models.CharField(max_length=32, default='Bearer')
    expires_at = models.DateTimeField()
    resource_url = models.URLField(max_length=500, null=True, blank=True)

    # Per-shop sync lease, claimed with a conditional UPDATE.
    lease_token = models.CharField(max_length=64, null=True, blank=True)
    lease_expires_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['shop_id', 'provider_type'],
                name='unique_connector_per_shop_provider',
            ),
        ]

    def is_expired(self, leeway=0, now=None):
        now = now or timezone.now()
        return self.expires_at <= now + timedelta(seconds=leeway)

    def __str__(self):
        return f"{self.shop_id} ({self.provider_type})"
