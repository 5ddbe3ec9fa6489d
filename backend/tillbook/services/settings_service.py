from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from typing import Any

from flask import current_app

from ..extensions import db
from ..models import Setting
from .concurrency import serialized, atomic


BACKUP_FREQUENCIES = {"daily", "weekly", "monthly", "never"}


class SettingsError(ValueError):
    pass


class SettingsValidationError(SettingsError):
    pass


@dataclass
class StoreSettings:
    store_name: str = "Your Fabulous Store Name"
    store_address: str = "123 Slay Street, City, Country"
    store_phone: str = "+123 456 7890"
    store_email: str = "contact@yourstore.com"
    receipt_header: str = "Thank you for your purchase!"
    receipt_footer: str = "Visit us again soon!"
    show_logo: bool = True
    backup_frequency: str = "daily"
    printer_model: str = "Epson TM-T88VI"

    def to_dict(self) -> dict:
        return asdict(self)


SETTING_KEYS = [f.name for f in fields(StoreSettings)]
BOOLEAN_KEYS = {f.name for f in fields(StoreSettings) if f.type in ("bool", bool)}


def _encode(key: str, value: Any) -> str:
    if key in BOOLEAN_KEYS:
        return "true" if value else "false"
    return str(value)


def _decode(key: str, raw: str) -> Any:
    if key in BOOLEAN_KEYS:
        return raw == "true"
    return raw


def validate_settings(settings: StoreSettings) -> None:
    for key in SETTING_KEYS:
        value = getattr(settings, key)
        if key in BOOLEAN_KEYS:
            if not isinstance(value, bool):
                raise SettingsValidationError(f"{key} must be a boolean")
        elif not isinstance(value, str):
            raise SettingsValidationError(f"{key} must be a string")

    if settings.backup_frequency not in BACKUP_FREQUENCIES:
        allowed = ", ".join(sorted(BACKUP_FREQUENCIES))
        raise SettingsValidationError(f"backup_frequency must be one of: {allowed}")


def settings_from_payload(payload: dict, *, base: StoreSettings | None = None) -> StoreSettings:
    """
    Build StoreSettings from a JSON payload, starting from `base` for keys
    the payload omits. Unknown keys are rejected.
    """
    if not isinstance(payload, dict):
        raise SettingsValidationError("Invalid JSON payload")

    unknown = sorted(k for k in payload if k not in SETTING_KEYS)
    if unknown:
        raise SettingsValidationError(f"Unknown setting: {', '.join(unknown)}")

    values = (base or StoreSettings()).to_dict()
    values.update(payload)
    settings = StoreSettings(**values)
    validate_settings(settings)
    return settings


@serialized
def load_settings() -> StoreSettings:
    """Stored settings, with each missing key falling back to its default."""
    stored = {row.key: row.value for row in db.session.query(Setting).all()}
    defaults = StoreSettings()

    values = {}
    for key in SETTING_KEYS:
        raw = stored.get(key)
        values[key] = getattr(defaults, key) if raw is None else _decode(key, raw)
    return StoreSettings(**values)


@serialized
def save_settings(settings: StoreSettings) -> None:
    """Upsert every setting key."""
    validate_settings(settings)

    with atomic():
        existing = {row.key: row for row in db.session.query(Setting).all()}
        for key in SETTING_KEYS:
            value = _encode(key, getattr(settings, key))
            row = existing.get(key)
            if row is None:
                db.session.add(Setting(key=key, value=value))
            else:
                row.value = value

    current_app.logger.info("Store settings saved")


@serialized
def update_settings(payload: dict) -> StoreSettings:
    """
    Merge a partial payload over the stored settings and save the result.

    The read, merge and write happen under one hold of the store lock, so
    concurrent partial updates to different keys all survive.
    """
    settings = settings_from_payload(payload, base=load_settings())
    save_settings(settings)
    return settings
