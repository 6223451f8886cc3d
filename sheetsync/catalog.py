import logging
from dataclasses import dataclass
from typing import Iterator

import requests

from sheetsync import deadline as deadlines
from sheetsync.errors import CatalogSourceError, ExtractionFailure

logger = logging.getLogger(__name__)

DEFAULT_PRICE = "0.00"
PAGE_TIMEOUT = 30.0


@dataclass(frozen=True)
class CatalogItem:
    id: str
    title: str
    description: str
    price: str

    def as_row(self):
        return [self.id, self.title, self.description, self.price]


def _text(value):
    return "" if value is None else str(value)


def to_catalog_item(node) -> CatalogItem:
    variants = node.get('variants') or []
    price = variants[0].get('price') if variants else None
    return CatalogItem(
        id=_text(node['id']),
        title=_text(node.get('title')),
        description=_text(node.get('description')),
        price=DEFAULT_PRICE if price in (None, "") else _text(price),
    )


def iter_catalog(source, page_size=100, deadline=None) -> Iterator[CatalogItem]:
    """Yield every catalog item, one page at a time, following the cursor."""
    cursor = None
    page_number = 0

    while True:
        deadlines.check(deadline, f"catalog page {page_number + 1}")
        try:
            page = source.fetch_page(
                cursor, page_size, timeout=deadlines.timeout(deadline, PAGE_TIMEOUT)
            )
        except (requests.RequestException, CatalogSourceError) as exc:
            raise ExtractionFailure(
                f"Catalog page {page_number + 1} failed after cursor {cursor!r}: {exc}"
            ) from exc

        page_number += 1
        logger.debug("Fetched catalog page %d (%d items)", page_number, len(page.nodes))

        for node in page.nodes:
            try:
                yield to_catalog_item(node)
            except KeyError as exc:
                raise ExtractionFailure(f"Catalog item without {exc} on page {page_number}") from exc

        if not page.has_next_page:
            return
        if not page.end_cursor:
            raise ExtractionFailure(f"Page {page_number} reports more pages but no end cursor")
        cursor = page.end_cursor


def extract_all(source, page_size=100, deadline=None) -> list:
    items = list(iter_catalog(source, page_size=page_size, deadline=deadline))
    logger.info("Extracted %d catalog items", len(items))
    return items
