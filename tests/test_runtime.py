from __future__ import annotations

import importlib
from types import SimpleNamespace

import pytest


class ClosableClient:
    def __init__(self) -> None:
        self.closed = 0

    async def aclose(self) -> None:
        self.closed += 1


@pytest.mark.asyncio
async def test_close_pipeline_releases_clients_and_resets(monkeypatch) -> None:
    module = importlib.import_module("webapp.runtime")
    store, dispatcher = ClosableClient(), ClosableClient()
    monkeypatch.setattr(module, "_PIPELINE", SimpleNamespace(store=store, dispatcher=dispatcher))

    await module.close_pipeline()
    await module.close_pipeline()

    assert (store.closed, dispatcher.closed) == (1, 1)
    assert module._PIPELINE is None
