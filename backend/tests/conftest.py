import pytest

from bundlegen.config import settings
from tests.helper import FakeCatalog


@pytest.fixture(autouse=True)
def plain_settings(monkeypatch):
    """Tests never see a local .env: no shop, no publication, Europe/Rome calendar."""
    monkeypatch.setattr(settings, "shop_domain", "")
    monkeypatch.setattr(settings, "admin_access_token", "")
    monkeypatch.setattr(settings, "shopify_storefront_access_token", "")
    monkeypatch.setattr(settings, "shopify_online_store_publication_id", "")
    monkeypatch.setattr(settings, "default_location_id", "")
    monkeypatch.setattr(settings, "admin_secret", "s3cret")
    monkeypatch.setattr(settings, "calendar_timezone", "Europe/Rome")
    monkeypatch.setattr(settings, "ticket_metafield_namespace", "tickets")


@pytest.fixture
def catalog():
    return FakeCatalog()
