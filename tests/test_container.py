"""Tests for container wiring."""

import asyncio

from photo_journal.config import Settings
from photo_journal.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert container.entry_repository.entries == ()
    assert container.item_price_service.items == []
    assert container.credential_service.is_configured() is False
    assert container.export_service.export_dir == settings.export_dir
    asyncio.run(container.close_resources())


def test_build_container_uses_configured_api_key(settings: Settings) -> None:
    configured = settings.model_copy(update={"openai_api_key": "sk-env"})

    container = build_container(configured)

    assert container.credential_service.get_api_key() == "sk-env"
    asyncio.run(container.close_resources())


def test_container_state_persists_across_builds(settings: Settings) -> None:
    first = build_container(settings)
    first.item_price_service.add_item("Lamp", "12.50")
    first.credential_service.set_api_key("sk-saved")
    asyncio.run(first.close_resources())

    second = build_container(settings)

    assert [item.name for item in second.item_price_service.items] == ["Lamp"]
    assert second.credential_service.get_api_key() == "sk-saved"
    assert (settings.store_dir / "SavedItemPrices.json").exists()
    asyncio.run(second.close_resources())
