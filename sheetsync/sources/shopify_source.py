import logging

import requests
from django.conf import settings

from sheetsync.clients.base import BaseClient
from sheetsync.errors import CatalogSourceError

from .base import BaseCatalogSource, CatalogPage

logger = logging.getLogger(__name__)

SHOPIFY_API_VERSION = getattr(settings, 'SHOPIFY_API_VERSION', '2025-01')

PRODUCTS_QUERY = """
query GetProducts($first: Int!, $cursor: String) {
  products(first: $first, after: $cursor) {
    edges {
      node {
        id
        title
        description
        variants(first: 1) {
          edges {
            node {
              price
            }
          }
        }
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""


class ShopifyGraphQLSource(BaseCatalogSource, BaseClient):
    def __init__(self, shop_domain=None, access_token=None, api_version=None):
        self.shop_domain = shop_domain or getattr(settings, 'SHOPIFY_SHOP_DOMAIN', '')
        self.access_token = access_token or getattr(settings, 'SHOPIFY_ADMIN_TOKEN', '')
        self.api_version = api_version or SHOPIFY_API_VERSION
        self._session = None

    @property
    def endpoint(self):
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/graphql.json"

    def make_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            'X-Shopify-Access-Token': self.access_token,
            'Content-Type': 'application/json',
        })
        return session

    def fetch_page(self, cursor, page_size, timeout=None) -> CatalogPage:
        if self._session is None:
            self._session = self.make_session()

        kwargs = {'json': {
            'query': PRODUCTS_QUERY,
            'variables': {'first': page_size, 'cursor': cursor},
        }}
        if timeout is not None:
            kwargs['timeout'] = timeout

        body = self.request(self._session, 'POST', self.endpoint, **kwargs).json()
        if body.get('errors'):
            raise CatalogSourceError(f"Shopify GraphQL errors: {body['errors']}")

        try:
            products = body['data']['products']
        except (KeyError, TypeError) as exc:
            raise CatalogSourceError(f"Unexpected Shopify response shape: {body}") from exc

        nodes = []
        for edge in products.get('edges', []):
            node = edge['node']
            variant_edges = (node.get('variants') or {}).get('edges', [])
            nodes.append({
                'id': node['id'],
                'title': node.get('title'),
                'description': node.get('description'),
                'variants': [e['node'] for e in variant_edges],
            })

        page_info = products.get('pageInfo') or {}
        return CatalogPage(
            nodes=nodes,
            has_next_page=bool(page_info.get('hasNextPage')),
            end_cursor=page_info.get('endCursor'),
        )
