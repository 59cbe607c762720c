from __future__ import annotations

from core.settings import DATE_FORMATS, UNKNOWN_PRODUCT, DashboardSettings, ServerSettings, normalize_settings


def test_defaults():
    s = normalize_settings()
    assert s == DashboardSettings()
    assert s.date_format == DATE_FORMATS[0]
    assert s.server == ServerSettings(host="0.0.0.0", port=5000, cors_origins=("*",))
    assert s.unknown_product == UNKNOWN_PRODUCT


def test_normalize_coerces_loose_values():
    s = normalize_settings({"date_format": " %d/%m/%Y ", "dayfirst": 1, "unknown_product": "  "})
    assert s.date_format == "%d/%m/%Y"
    assert s.dayfirst is True
    assert s.unknown_product == UNKNOWN_PRODUCT


def test_normalize_rejects_format_without_directives():
    assert normalize_settings({"date_format": "MM/DD/YYYY"}).date_format == DATE_FORMATS[0]
    assert normalize_settings({"date_format": None}).date_format == DATE_FORMATS[0]


def test_server_settings_are_fixed():
    assert normalize_settings({"dayfirst": True}).server.port == 5000
