from decimal import Decimal

import pytest

from bundlegen.core.errors import BundleModeConflict, ValidationError
from bundlegen.services.generator.bundles import (
    ensure_bundle,
    ensure_seat_references,
    ensure_variant_leads_to_seat,
    fix_variant_component,
    repair_components,
    set_variant_prices,
)
from bundlegen.services.generator.types import PriceTier


def _bundle_args(**overrides):
    args = dict(event_handle="grotte", title_base="Grotte", date_str="2025-12-01", time_str="15:00", mode="triple")
    args.update(overrides)
    return args


@pytest.mark.asyncio
async def test_ensure_bundle_creates_triple_variants_with_metafield(catalog):
    result = await ensure_bundle(catalog, **_bundle_args(tags=["promo"]))

    product = catalog.products[result.product_id]
    assert result.created_product is True
    assert result.created_variants == 3
    assert product["title"] == "Grotte — 2025-12-01 15:00"
    assert product["tags"] == ["promo", "Bundle", "grotte"]
    assert list(result.variant_map) == ["adulto", "bambino", "handicap"]
    handicap = catalog.variants[result.variant_map["handicap"]]
    assert handicap["tracked"] is False
    assert handicap["metafields"] == [
        {"namespace": "tickets", "key": "seats_per_ticket", "type": "number_integer", "value": "2"}
    ]
    assert "publish_product" not in catalog.names()


@pytest.mark.asyncio
async def test_new_bundle_variants_reference_their_seat_variant(catalog):
    seat = catalog.add_variant(catalog.add_product("Grotte — 2025-12-01", ["SeatUnit"]), "15:00")

    result = await ensure_bundle(catalog, **_bundle_args(), seat_variant_id=seat)

    for variant_id in result.variant_map.values():
        refs = [m for m in catalog.variants[variant_id]["metafields"] if m["key"] == "seat_unit"]
        assert refs == [{"namespace": "tickets", "key": "seat_unit", "type": "variant_reference", "value": seat}]
    assert result.current_seat_refs == {v: seat for v in result.variant_map.values()}


@pytest.mark.asyncio
async def test_seat_references_rewrite_only_stale_variants(catalog):
    pid = catalog.add_product("Grotte — 2025-12-01 15:00", ["Bundle", "grotte"], ["Adulto", "Bambino"])
    adulto, bambino = catalog.products[pid]["variants"]
    seat = "gid://shopify/ProductVariant/900"

    written = await ensure_seat_references(
        catalog,
        product_id=pid,
        variant_map={"adulto": adulto, "bambino": bambino},
        seat_variant_id=seat,
        current_refs={adulto: seat, bambino: "gid://shopify/ProductVariant/1"},
    )

    assert written == 1
    assert [c for c in catalog.calls if c[0] == "set_variant_metafields"] == [
        (
            "set_variant_metafields",
            (pid, {bambino: [{"namespace": "tickets", "key": "seat_unit", "type": "variant_reference", "value": seat}]}),
        )
    ]
    assert catalog.variants[bambino]["metafields"][-1]["value"] == seat


@pytest.mark.asyncio
async def test_seat_references_dry_run_writes_nothing(catalog):
    written = await ensure_seat_references(
        catalog, product_id="p", variant_map={"unico": "u"}, seat_variant_id="s", dry_run=True
    )

    assert written == 0
    assert catalog.writes() == []


@pytest.mark.asyncio
async def test_ensure_bundle_publishes_when_publication_set(catalog):
    result = await ensure_bundle(catalog, **_bundle_args(mode="unico"), publication_id="gid://shopify/Publication/9")

    assert catalog.products[result.product_id]["published"] is True
    assert list(result.variant_map) == ["unico"]


@pytest.mark.asyncio
async def test_ensure_bundle_adds_only_missing_variants(catalog):
    pid = catalog.add_product("Grotte — 2025-12-01 15:00", ["Bundle", "grotte"], ["Adulto"])

    result = await ensure_bundle(catalog, **_bundle_args())

    assert result.product_id == pid
    assert result.created_product is False
    assert result.created_variants == 2
    assert [c[1][1] for c in catalog.calls if c[0] == "create_variants"] == [("Bambino", "Handicap")]


@pytest.mark.asyncio
async def test_ensure_bundle_mode_conflict(catalog):
    catalog.add_product("Grotte — 2025-12-01 15:00", ["Bundle"], ["Biglietto unico"])

    with pytest.raises(BundleModeConflict):
        await ensure_bundle(catalog, **_bundle_args())

    assert catalog.writes() == []


@pytest.mark.asyncio
async def test_ensure_bundle_dry_run_returns_placeholders(catalog):
    result = await ensure_bundle(catalog, **_bundle_args(), dry_run=True)

    assert all("DRYRUN-" in v for v in result.variant_map.values())
    assert catalog.writes() == []


@pytest.mark.asyncio
async def test_component_link_is_idempotent_and_updates_quantity(catalog):
    pid = catalog.add_product("b", ["Bundle"])
    parent = catalog.add_variant(pid, "Handicap")
    seat = catalog.add_variant(catalog.add_product("s", ["SeatUnit"]), "15:00")

    assert await ensure_variant_leads_to_seat(catalog, bundle_variant_id=parent, seat_variant_id=seat, quantity=2)
    assert not await ensure_variant_leads_to_seat(catalog, bundle_variant_id=parent, seat_variant_id=seat, quantity=2)
    assert await ensure_variant_leads_to_seat(catalog, bundle_variant_id=parent, seat_variant_id=seat, quantity=1)

    assert catalog.components_of(parent) == {seat: 1}


@pytest.mark.asyncio
async def test_component_link_replaces_stale_seat(catalog):
    pid = catalog.add_product("b", ["Bundle"])
    parent = catalog.add_variant(pid, "Adulto")
    sid = catalog.add_product("s", ["SeatUnit"])
    old_seat = catalog.add_variant(sid, "10:00")
    seat = catalog.add_variant(sid, "15:00")
    catalog.components[parent] = {old_seat: 1}

    assert await ensure_variant_leads_to_seat(catalog, bundle_variant_id=parent, seat_variant_id=seat, quantity=1)

    assert catalog.components_of(parent) == {seat: 1}


@pytest.mark.asyncio
async def test_set_variant_prices_only_pushes_changes(catalog, mocker):
    tier = PriceTier(adulto=Decimal("11"), bambino=Decimal("9"), handicap=Decimal("11"))
    variant_map = {"adulto": "a", "bambino": "b", "handicap": "h"}
    push = mocker.patch.object(catalog, "set_variant_prices", new=mocker.AsyncMock())

    changed = await set_variant_prices(
        catalog,
        product_id="p",
        variant_map=variant_map,
        tier=tier,
        current_prices={"a": Decimal("11.00"), "b": Decimal("8"), "h": None},
    )

    assert changed == 2
    push.assert_awaited_once_with("p", {"b": Decimal("9"), "h": Decimal("11")})


@pytest.mark.asyncio
async def test_set_variant_prices_dry_run_writes_nothing(catalog):
    tier = PriceTier(unico=Decimal("10"))

    changed = await set_variant_prices(catalog, product_id="p", variant_map={"unico": "u"}, tier=tier, dry_run=True)

    assert changed == 0
    assert catalog.calls == []


@pytest.mark.asyncio
async def test_fix_variant_component_recreates_link(catalog):
    parent = catalog.add_variant(catalog.add_product("b", ["Bundle"]), "Handicap")
    seat = catalog.add_variant(catalog.add_product("s", ["SeatUnit"]), "15:00")
    catalog.components[parent] = {seat: 1}

    components = await fix_variant_component(catalog, parent_variant_id=parent, child_variant_id=seat, quantity=2)

    assert [(c["childVariantId"], c["qty"]) for c in components] == [(seat, 2)]


@pytest.mark.asyncio
async def test_repair_components_counts_then_repairs(catalog):
    pid = catalog.add_product("Grotte — 2025-12-01 15:00", ["Bundle"])
    adulto = catalog.add_variant(pid, "Adulto")
    handicap = catalog.add_variant(pid, "Handicap")
    bambino = catalog.add_variant(pid, "Bambino")
    seat = catalog.add_variant(catalog.add_product("s", ["SeatUnit"]), "15:00")
    catalog.components[adulto] = {seat: 1}
    catalog.components[handicap] = {seat: 1}

    preview = await repair_components(catalog, dry_run=True)
    assert preview["variantsChecked"] == 3
    assert preview["alreadyOk"] == 1
    assert preview["unlinked"] == 1
    assert preview["toRepair"] == 1
    assert preview["repaired"] == 0
    assert catalog.writes() == []

    result = await repair_components(catalog, dry_run=False)
    assert result["repaired"] == 1
    assert catalog.components_of(handicap) == {seat: 2}
    assert catalog.components_of(bambino) == {}


@pytest.mark.asyncio
async def test_repair_components_reports_offset_on_user_error(catalog, mocker):
    pid = catalog.add_product("b", ["Bundle"])
    handicap = catalog.add_variant(pid, "Handicap")
    catalog.components[handicap] = {"gid://shopify/ProductVariant/999": 1}
    mocker.patch.object(
        catalog,
        "update_relationships",
        new=mocker.AsyncMock(side_effect=ValidationError("productVariantRelationshipBulkUpdate", ["bad"])),
    )

    with pytest.raises(ValidationError) as exc:
        await repair_components(catalog, dry_run=False)

    assert exc.value.ctx == {"offset": 0, "repaired": 0}

