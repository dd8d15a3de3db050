"""Tests for application bootstrap failure paths."""

from __future__ import annotations

import os

import pytest

from statusinformer.app import StatusInformerApp, _ComponentError, main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("STATUS_INFORMER_"):
            monkeypatch.delenv(key, raising=False)


class TestStartup:
    async def test_invalid_config_is_a_config_component_error(self) -> None:
        app = StatusInformerApp({"resync_interval": "soon"})
        with pytest.raises(_ComponentError) as excinfo:
            await app.start()
        assert excinfo.value.component == "config"

    async def test_stop_without_start_is_safe(self) -> None:
        app = StatusInformerApp()
        await app.stop()
        await app.stop()

    async def test_main_exits_non_zero_on_startup_failure(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            await main({"emitter": "pigeon"})
        assert excinfo.value.code == 1
