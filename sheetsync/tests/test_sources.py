import json
from unittest.mock import patch

import responses
from django.test import TestCase

from sheetsync.errors import CatalogSourceError
from sheetsync.sources.shopify_source import ShopifyGraphQLSource

ENDPOINT = "https://test-shop.myshopify.com/admin/api/2025-01/graphql.json"


def _graphql_page(nodes, has_next_page=False, end_cursor=None):
    return {
        "data": {
            "products": {
                "edges": [{"node": node} for node in nodes],
                "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
            }
        }
    }


def _node(number, price="19.99"):
    variants = [{"node": {"price": price}}] if price is not None else []
    return {
        "id": f"gid://shopify/Product/{number}",
        "title": f"Hockey Stick {number}",
        "description": "Composite",
        "variants": {"edges": variants},
    }


class TestShopifyGraphQLSource(TestCase):
    def setUp(self):
        self.source = ShopifyGraphQLSource()

    def test_endpoint_from_settings(self):
        self.assertEqual(self.source.endpoint, ENDPOINT)

    @responses.activate
    def test_fetch_first_page(self):
        responses.add(
            responses.POST,
            ENDPOINT,
            json=_graphql_page([_node(1), _node(2, price=None)], True, "cursor-abc"),
            status=200,
        )

        page = self.source.fetch_page(None, 100)

        self.assertTrue(page.has_next_page)
        self.assertEqual(page.end_cursor, "cursor-abc")
        self.assertEqual(page.nodes[0]["variants"], [{"price": "19.99"}])
        self.assertEqual(page.nodes[1]["variants"], [])

        request = responses.calls[0].request
        self.assertEqual(request.headers["X-Shopify-Access-Token"], "shpat_test_token")
        body = json.loads(request.body)
        self.assertEqual(body["variables"], {"first": 100, "cursor": None})
        self.assertIn("variants(first: 1)", body["query"])

    @responses.activate
    def test_cursor_is_forwarded(self):
        responses.add(responses.POST, ENDPOINT, json=_graphql_page([]), status=200)

        page = self.source.fetch_page("cursor-abc", 50)

        self.assertFalse(page.has_next_page)
        self.assertIsNone(page.end_cursor)
        body = json.loads(responses.calls[0].request.body)
        self.assertEqual(body["variables"], {"first": 50, "cursor": "cursor-abc"})

    @responses.activate
    def test_graphql_errors_raise(self):
        responses.add(
            responses.POST,
            ENDPOINT,
            json={"errors": [{"message": "Throttled"}]},
            status=200,
        )
        with self.assertRaisesRegex(CatalogSourceError, "Throttled"):
            self.source.fetch_page(None, 100)

    @responses.activate
    def test_unexpected_shape_raises(self):
        responses.add(responses.POST, ENDPOINT, json={"data": None}, status=200)
        with self.assertRaises(CatalogSourceError):
            self.source.fetch_page(None, 100)

    @responses.activate
    def test_retry_on_429(self):
        responses.add(
            responses.POST,
            ENDPOINT,
            json={"errors": "Exceeded 2 calls per second"},
            status=429,
            headers={"Retry-After": "0.01"},
        )
        responses.add(responses.POST, ENDPOINT, json=_graphql_page([_node(1)]), status=200)

        with patch('sheetsync.clients.base.RETRY_BASE_DELAY', 0.01):
            page = self.source.fetch_page(None, 100)

        self.assertEqual(len(page.nodes), 1)
        self.assertEqual(len(responses.calls), 2)
