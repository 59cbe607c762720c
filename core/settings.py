from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


UNKNOWN_PRODUCT = "Unknown Product"
DATE_FORMATS = ("%m/%d/%Y", "%d/%m/%Y", "%Y-%m-%d")


@dataclass(frozen=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: Tuple[str, ...] = ("*",)


@dataclass(frozen=True)
class DashboardSettings:
    date_format: str = DATE_FORMATS[0]
    dayfirst: bool = False
    unknown_product: str = UNKNOWN_PRODUCT
    server: ServerSettings = field(default_factory=ServerSettings)


def normalize_settings(raw: Optional[dict] = None) -> DashboardSettings:
    raw = raw or {}
    defaults = DashboardSettings()

    date_format = str(raw.get("date_format") or defaults.date_format).strip()
    if "%" not in date_format:
        date_format = defaults.date_format
    dayfirst = bool(raw.get("dayfirst", defaults.dayfirst))
    unknown_product = str(raw.get("unknown_product") or defaults.unknown_product).strip() or UNKNOWN_PRODUCT

    return DashboardSettings(
        date_format=date_format,
        dayfirst=dayfirst,
        unknown_product=unknown_product,
    )


DEFAULT_SETTINGS = DashboardSettings()
