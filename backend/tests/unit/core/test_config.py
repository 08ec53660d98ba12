from bundlegen.config import Settings


def test_settings_strip_secrets_and_scheme(monkeypatch):
    monkeypatch.setenv("SHOP_DOMAIN", "https://grotte.myshopify.com/")
    monkeypatch.setenv("ADMIN_ACCESS_TOKEN", "  shpat_123 \n")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, ,https://b.example")

    s = Settings(_env_file=None)

    assert s.shop_domain == "grotte.myshopify.com"
    assert s.admin_access_token == "shpat_123"
    assert s.cors_origin_list() == ["https://a.example", "https://b.example"]


def test_store_domain_env_wins_over_shop_domain(monkeypatch):
    monkeypatch.setenv("SHOPIFY_STORE_DOMAIN", "primary.myshopify.com")
    monkeypatch.setenv("SHOP_DOMAIN", "fallback.myshopify.com")

    assert Settings(_env_file=None).shop_domain == "primary.myshopify.com"


def test_defaults(monkeypatch):
    for key in ("SHOPIFY_API_VERSION", "CALENDAR_TIMEZONE", "TICKET_METAFIELD_NAMESPACE"):
        monkeypatch.delenv(key, raising=False)

    s = Settings(_env_file=None)

    assert s.shopify_api_version == "2024-07"
    assert s.calendar_timezone == "Europe/Rome"
    assert s.ticket_metafield_namespace == "tickets"
