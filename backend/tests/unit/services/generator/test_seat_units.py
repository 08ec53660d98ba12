import pytest

from bundlegen.services.generator.cache import LookupCache
from bundlegen.services.generator.seat_units import (
    ensure_inventory,
    ensure_seat_unit,
    merge_tags,
    variant_create_strategy,
)
from bundlegen.services.shopify.types import VariantNode
from tests.helper import LOCATION


def test_merge_tags_keeps_order_and_drops_duplicates():
    assert merge_tags(["grotte", " SeatUnit "], None, ["SeatUnit", ""]) == ["grotte", "SeatUnit"]


def test_variant_create_strategy():
    assert variant_create_strategy([VariantNode(id="v1", title="Default Title")]) == "REMOVE_STANDALONE_VARIANT"
    assert variant_create_strategy([VariantNode(id="v1", title="10:00")]) == "DEFAULT"
    assert variant_create_strategy([]) == "DEFAULT"


@pytest.mark.asyncio
async def test_ensure_seat_unit_creates_product_and_time_variant(catalog):
    result = await ensure_seat_unit(catalog, title_base="Grotte", date_str="2025-12-06", time_str="10:00", tags=["grotte"])

    product = catalog.products[result.product_id]
    variant = catalog.variants[result.variant_id]
    assert result.created is True
    assert result.variant_created is True
    assert product["title"] == "Grotte — 2025-12-06"
    assert product["tags"] == ["grotte", "SeatUnit"]
    assert [catalog.variants[v]["title"] for v in product["variants"]] == ["10:00"]
    assert variant["tracked"] is True
    assert variant["sku"] == "SU-2025-12-06-1000"


@pytest.mark.asyncio
async def test_ensure_seat_unit_adds_second_time_to_same_product(catalog):
    cache = LookupCache()
    first = await ensure_seat_unit(catalog, title_base="Grotte", date_str="2025-12-06", time_str="10:00", cache=cache)
    second = await ensure_seat_unit(catalog, title_base="Grotte", date_str="2025-12-06", time_str="15:00", cache=cache)

    assert second.product_id == first.product_id
    assert second.created is False
    assert second.variant_created is True
    assert len(catalog.products) == 1
    assert catalog.names().count("create_product") == 1
    strategies = [c[1][2] for c in catalog.calls if c[0] == "create_variants"]
    assert strategies == ["REMOVE_STANDALONE_VARIANT", "DEFAULT"]


@pytest.mark.asyncio
async def test_ensure_seat_unit_finds_existing_variant(catalog):
    pid = catalog.add_product("Grotte — 2025-12-06", ["SeatUnit"], ["10:00"])

    result = await ensure_seat_unit(catalog, title_base="Grotte", date_str="2025-12-06", time_str="10:00")

    assert result.product_id == pid
    assert result.created is False
    assert result.variant_created is False
    assert catalog.writes() == []


@pytest.mark.asyncio
async def test_ensure_seat_unit_dry_run_only_looks_up(catalog):
    result = await ensure_seat_unit(
        catalog, title_base="Grotte", date_str="2025-12-06", time_str="10:00", dry_run=True
    )

    assert "DRYRUN-" in result.product_id
    assert "DRYRUN-" in result.variant_id
    assert catalog.writes() == []
    assert catalog.names() == ["find_product"]


@pytest.mark.asyncio
async def test_ensure_inventory_activates_then_converges(catalog):
    pid = catalog.add_product("Grotte — 2025-12-06", ["SeatUnit"])
    vid = catalog.add_variant(pid, "10:00", tracked=True)

    assert await ensure_inventory(catalog, variant_id=vid, location_id=LOCATION, quantity=30) is True
    assert await ensure_inventory(catalog, variant_id=vid, location_id=LOCATION, quantity=30) is False
    assert await ensure_inventory(catalog, variant_id=vid, location_id=LOCATION, quantity=25) is True

    item = catalog.variants[vid]["item"]
    assert catalog.levels[(item, LOCATION)] == 25
    assert [c[0] for c in catalog.writes()] == ["activate_inventory", "set_inventory_absolute"]


@pytest.mark.asyncio
async def test_ensure_inventory_dry_run_makes_no_calls(catalog):
    assert await ensure_inventory(catalog, variant_id="v", location_id=LOCATION, quantity=30, dry_run=True) is False
    assert catalog.calls == []
