import types

from django.test import TestCase

from sheetsync.catalog import CatalogItem, extract_all, iter_catalog, to_catalog_item
from sheetsync.deadline import Deadline
from sheetsync.errors import ExtractionFailure, SyncCancelled
from sheetsync.sources.base import CatalogPage
from sheetsync.tests.fakes import FakeCatalogSource, make_pages, product_node


class TestProjection(TestCase):
    def test_first_variant_price(self):
        node = product_node(1, price="24.50")
        node['variants'].append({'price': "99.00"})
        item = to_catalog_item(node)
        self.assertEqual(item, CatalogItem(
            id='gid://shopify/Product/1',
            title='Product 1',
            description='Description 1',
            price="24.50",
        ))

    def test_no_variant_defaults_price(self):
        item = to_catalog_item(product_node(2, variants=False))
        self.assertEqual(item.price, "0.00")

    def test_missing_text_becomes_empty(self):
        item = to_catalog_item({'id': 'gid://shopify/Product/3', 'title': None, 'variants': None})
        self.assertEqual(item.title, "")
        self.assertEqual(item.description, "")
        self.assertEqual(item.price, "0.00")

    def test_row_order(self):
        item = to_catalog_item(product_node(4, price="1.00"))
        self.assertEqual(item.as_row(), [item.id, item.title, item.description, "1.00"])


class TestExtraction(TestCase):
    def test_drains_all_pages_in_order(self):
        nodes = [product_node(n) for n in range(1, 238)]
        source = FakeCatalogSource(make_pages(nodes, page_size=100))

        items = extract_all(source, page_size=100)

        self.assertEqual(len(source.calls), 3)
        self.assertEqual(len(items), 237)
        self.assertEqual([item.id for item in items], [node['id'] for node in nodes])
        self.assertEqual(
            [cursor for cursor, _ in source.calls], [None, 'cursor-1', 'cursor-2']
        )

    def test_empty_catalog(self):
        source = FakeCatalogSource(make_pages([]))
        self.assertEqual(extract_all(source), [])
        self.assertEqual(len(source.calls), 1)

    def test_iteration_is_lazy(self):
        source = FakeCatalogSource(make_pages([product_node(n) for n in range(1, 6)], page_size=2))
        iterator = iter_catalog(source, page_size=2)

        self.assertIsInstance(iterator, types.GeneratorType)
        self.assertEqual(source.calls, [])
        next(iterator)
        self.assertEqual(len(source.calls), 1)

    def test_page_failure_aborts_whole_extraction(self):
        source = FakeCatalogSource(
            make_pages([product_node(n) for n in range(1, 6)], page_size=2),
            fail_on_call=2,
        )
        with self.assertRaisesRegex(ExtractionFailure, "page 2"):
            extract_all(source, page_size=2)

    def test_next_page_without_cursor_fails(self):
        source = FakeCatalogSource([CatalogPage(nodes=[], has_next_page=True, end_cursor=None)])
        with self.assertRaises(ExtractionFailure):
            extract_all(source)

    def test_node_without_id_fails(self):
        source = FakeCatalogSource([CatalogPage(nodes=[{'title': 'orphan'}])])
        with self.assertRaises(ExtractionFailure):
            extract_all(source)

    def test_cancelled_deadline_stops_before_next_page(self):
        source = FakeCatalogSource(make_pages([product_node(n) for n in range(1, 6)], page_size=2))
        deadline = Deadline()
        iterator = iter_catalog(source, page_size=2, deadline=deadline)

        next(iterator)
        next(iterator)
        deadline.cancel()

        with self.assertRaises(SyncCancelled):
            list(iterator)
        self.assertEqual(len(source.calls), 1)


class TestDeadline(TestCase):
    def test_expiry(self):
        now = [100.0]
        deadline = Deadline(seconds=10, clock=lambda: now[0])

        self.assertEqual(deadline.timeout(30), 10)
        deadline.check("first call")
        now[0] = 110.0
        self.assertTrue(deadline.expired)
        with self.assertRaisesRegex(SyncCancelled, "second call"):
            deadline.check("second call")

    def test_unbounded(self):
        deadline = Deadline()
        self.assertIsNone(deadline.remaining())
        self.assertEqual(deadline.timeout(30), 30)
        self.assertFalse(deadline.expired)
