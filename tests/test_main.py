"""Tests for component wiring in main.build_components."""

import pytest

from funding_radar.alerts.notifier import ServerChanNotifier
from funding_radar.config import AppSettings, NotifierSettings, SourceSettings
from funding_radar.exceptions import ConfigurationError
from funding_radar.main import build_components


class TestBuildComponents:
    def test_all_components_present(self, mock_settings: AppSettings) -> None:
        components = build_components(mock_settings)
        assert set(components) == {
            "registry",
            "orchestrator",
            "funding_service",
            "catalog_service",
            "gate",
            "seen_set",
            "notifier",
            "alert_job",
        }
        assert isinstance(components["notifier"], ServerChanNotifier)
        assert len(components["registry"].list_sources()) == 6

    def test_missing_sendkey_leaves_notifier_unset(self) -> None:
        settings = AppSettings(notifier=NotifierSettings(sendkey=""))  # type: ignore[arg-type]
        components = build_components(settings)
        assert components["notifier"] is None

    def test_enabled_sources_narrow_registry(self) -> None:
        settings = AppSettings(sources=SourceSettings(enabled=["okx", "htx"]))
        components = build_components(settings)
        assert [s.id for s in components["registry"].list_sources()] == ["okx", "htx"]

    def test_unknown_source_rejected(self) -> None:
        settings = AppSettings(sources=SourceSettings(enabled=["kraken"]))
        with pytest.raises(ConfigurationError):
            build_components(settings)
