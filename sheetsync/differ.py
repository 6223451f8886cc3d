from dataclasses import dataclass, field

COMPARED_FIELDS = ('title', 'description', 'price')


@dataclass
class DiffResult:
    new: list = field(default_factory=list)
    changed: list = field(default_factory=list)  # (CatalogItem, row index)
    unchanged: int = 0

    @property
    def has_changes(self):
        return bool(self.new or self.changed)


def _normalise(value):
    return "" if value is None else str(value)


def is_changed(item, row):
    return any(
        _normalise(getattr(item, name)) != _normalise(getattr(row, name))
        for name in COMPARED_FIELDS
    )


def diff(catalog_items, snapshot) -> DiffResult:
    """Classify each catalog item against the snapshot by id, never by position.

    Snapshot rows whose id left the catalog are ignored: rows are only ever
    updated or appended, never removed.
    """
    # Duplicate ids: the last occurrence wins, at the first one's position.
    catalog = {item.id: item for item in catalog_items}
    result = DiffResult()

    for identifier, row in snapshot.items():
        item = catalog.get(identifier)
        if item is None:
            continue
        if is_changed(item, row):
            result.changed.append((item, row.index))
        else:
            result.unchanged += 1

    result.changed.sort(key=lambda pair: pair[1])
    result.new = [item for item in catalog.values() if item.id not in snapshot]
    return result
