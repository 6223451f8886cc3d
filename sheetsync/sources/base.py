from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class CatalogPage:
    nodes: list = field(default_factory=list)
    has_next_page: bool = False
    end_cursor: Optional[str] = None


class BaseCatalogSource(ABC):
    @abstractmethod
    def fetch_page(self, cursor, page_size, timeout=None) -> CatalogPage:
        """Fetch the page of product nodes that follows ``cursor``.

        Each node is a dict with ``id``, ``title``, ``description`` and a
        ``variants`` list whose entries carry ``price``.
        """
