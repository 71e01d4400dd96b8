"""
Unit tests for the in-memory catalog store.
"""

import pytest

from service_catalog.app.store import CatalogStore, DEFAULT_PRODUCTS
from shared.errors import NotFoundError, ValidationError


class TestCatalogStore:
    """Test cases for CatalogStore."""

    def test_seed_loads_default_catalog(self, seeded_store):
        assert seeded_store.count() == len(DEFAULT_PRODUCTS) == 10
        assert seeded_store.next_id == 11
        assert [p.id for p in seeded_store.list()] == list(range(1, 11))

    def test_create_applies_defaults(self, store):
        product = store.create({"name": "Pen", "price": 1.5, "category": "office"})

        assert product.id == 1
        assert product.description == ""
        assert product.stock == 0
        assert store.get(1) == product

    def test_ids_are_monotonic_and_never_reused(self, store):
        first = store.create({"name": "A", "price": 1, "category": "x"})
        second = store.create({"name": "B", "price": 2, "category": "x"})
        store.delete(second.id)
        third = store.create({"name": "C", "price": 3, "category": "x"})

        assert first.id < second.id < third.id
        assert third.id == 3

    @pytest.mark.parametrize("price", [0, -5, True, "10", None, float("inf"), float("nan")])
    def test_create_rejects_invalid_price(self, store, price):
        with pytest.raises(ValidationError):
            store.create({"name": "Pen", "price": price, "category": "office"})
        assert store.count() == 0
        assert store.next_id == 1

    def test_create_requires_category(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.create({"name": "Pen", "price": 10})
        assert exc_info.value.details == {"missing": ["category"]}

    @pytest.mark.parametrize("fields", [
        {"name": "", "price": 1, "category": "office"},
        {"name": "Pen", "price": 1, "category": "   "},
        {"name": "Pen", "price": 1, "category": "office", "stock": -1},
        {"name": "Pen", "price": 1, "category": "office", "stock": 2.5},
    ])
    def test_create_rejects_invalid_fields(self, store, fields):
        with pytest.raises(ValidationError):
            store.create(fields)

    def test_list_filters_by_category(self, seeded_store):
        audio = seeded_store.list("audio")
        assert [p.name for p in audio] == ["Headphones"]
        assert seeded_store.list("unknown") == []

    def test_returned_products_are_copies(self, seeded_store):
        product = seeded_store.get(1)
        product.price = 0.01
        assert seeded_store.get(1).price == 1299.99

    def test_get_unknown_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.get(42)

    def test_update_applies_only_supplied_fields(self, seeded_store):
        updated = seeded_store.update(2, {"price": 24.99, "stock": 10})

        assert updated.price == 24.99
        assert updated.stock == 10
        assert updated.name == "Wireless Mouse"
        assert updated.category == "electronics"

    def test_update_ignores_id_and_unknown_fields(self, seeded_store):
        updated = seeded_store.update(3, {"id": 99, "colour": "red"})
        assert updated.id == 3
        assert seeded_store.count() == 10

    def test_rejected_update_leaves_product_untouched(self, seeded_store):
        before = seeded_store.get(4)
        with pytest.raises(ValidationError):
            seeded_store.update(4, {"name": "Renamed", "price": -1})
        assert seeded_store.get(4) == before

    def test_update_checks_existence_before_validation(self, store):
        for changes in ({"price": -1}, {"price": "abc"}, {"stock": None}):
            with pytest.raises(NotFoundError):
                store.update(7, changes)

    @pytest.mark.parametrize("price", [float("inf"), "abc", False])
    def test_update_rejects_invalid_price(self, seeded_store, price):
        with pytest.raises(ValidationError):
            seeded_store.update(2, {"price": price})
        assert seeded_store.get(2).price == 29.99

    def test_delete_returns_removed_product(self, seeded_store):
        removed = seeded_store.delete(6)
        assert removed.category == "audio"
        with pytest.raises(NotFoundError):
            seeded_store.get(6)
        with pytest.raises(NotFoundError):
            seeded_store.delete(6)
        assert seeded_store.next_id == 11

    def test_empty_store(self):
        store = CatalogStore()
        assert len(store) == 0
        assert store.list() == []
