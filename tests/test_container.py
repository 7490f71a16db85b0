"""Tests for container wiring."""

import asyncio

from food_importer import containers
from food_importer.containers import build_container


def test_build_container_creates_services(settings, monkeypatch) -> None:
    created: list[tuple[str, str]] = []

    def fake_create_client(url: str, key: str) -> object:
        created.append((url, key))
        return object()

    monkeypatch.setattr(containers, "create_client", fake_create_client)

    container = build_container(settings)

    assert created == [("https://example.supabase.co", "service-key")]
    assert container.import_service.default_batch_size == 100
    assert container.job_runner.job_store is container.job_store
    asyncio.run(container.close_resources())
