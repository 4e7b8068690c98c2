"""Named saves of the note workspace in a key-value store.

A saved bundle holds the form state, the last generated narrative and the
layout settings. Bundles are JSON documents stored under
``nurse-note-save-<name>`` and tagged with ``schema_version``. Older
documents are upgraded on read by walking ``MIGRATIONS`` one version at a
time:

* version 0: a bare form state without the bundle wrapper;
* version 1: the wrapper, possibly missing the narrative or layout settings,
  with ``font_size`` possibly still expressed as a legacy multiplier.
"""

import json
import logging
from typing import Callable, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.form_state import FormState
from app.models.kv_entry import KeyValueEntry

logger = logging.getLogger(__name__)

SAVE_KEY_PREFIX = "nurse-note-save-"
LAYOUT_KEY = "note-layout-settings"
SCHEMA_VERSION = 2

# Font sizes below this value predate absolute points and are multipliers.
LEGACY_FONT_SIZE_THRESHOLD = 7
LEGACY_FONT_SIZE_FACTOR = 5


class StoreError(RuntimeError):
    """The key-value backend failed (quota, availability, ...)."""


class BundleFormatError(ValueError):
    """A stored document cannot be turned into a bundle."""


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> list[str]: ...


class InMemoryKeyValueStore:
    def __init__(self, data: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return [key for key in self._data if key.startswith(prefix)]


class SqlKeyValueStore:
    """Key-value store backed by the ``kv_entries`` table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        try:
            with self._session_factory() as session:
                entry = session.get(KeyValueEntry, key)
                return entry.value if entry is not None else None
        except SQLAlchemyError as exc:
            raise StoreError(f"Unable to read {key!r}") from exc

    def set(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as session:
                session.merge(KeyValueEntry(key=key, value=value))
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"Unable to write {key!r}") from exc

    def remove(self, key: str) -> None:
        try:
            with self._session_factory() as session:
                entry = session.get(KeyValueEntry, key)
                if entry is not None:
                    session.delete(entry)
                    session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"Unable to remove {key!r}") from exc

    def keys(self, prefix: str = "") -> list[str]:
        stmt = (
            select(KeyValueEntry.key)
            .where(KeyValueEntry.key.startswith(prefix, autoescape=True))
            .order_by(KeyValueEntry.key)
        )
        try:
            with self._session_factory() as session:
                return list(session.scalars(stmt))
        except SQLAlchemyError as exc:
            raise StoreError("Unable to enumerate stored keys") from exc


class LayoutSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    line_height: float = 1.5
    font_size: float = 12
    text_top_position: float = 0
    text_left_position: float = 0
    text_block_width: float = 100
    letter_spacing: float = 0
    font_weight: int = 400
    font_family: str = "Arial"
    text_opacity: float = 1


class SavedBundle(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    form_state: FormState
    narrative: str = ""
    layout_settings: LayoutSettings = Field(default_factory=LayoutSettings)


# Migrations -----------------------------------------------------------------


def rescale_legacy_font_size(layout: dict) -> dict:
    font_size = layout.get("font_size")
    if isinstance(font_size, bool) or not isinstance(font_size, (int, float)):
        return layout
    if font_size and font_size < LEGACY_FONT_SIZE_THRESHOLD:
        return {**layout, "font_size": font_size * LEGACY_FONT_SIZE_FACTOR}
    return layout


def _wrap_bare_state(data: dict) -> dict:
    return {"form_state": data}


def _backfill_bundle(data: dict) -> dict:
    layout = data.get("layout_settings") or {}
    if not isinstance(layout, dict):
        raise BundleFormatError("layout_settings must be an object")
    return {
        "form_state": data.get("form_state"),
        "narrative": data.get("narrative") or "",
        "layout_settings": rescale_legacy_font_size(layout),
    }


MIGRATIONS: dict[int, Callable[[dict], dict]] = {
    0: _wrap_bare_state,
    1: _backfill_bundle,
}


def _detect_version(data: dict) -> int:
    if "schema_version" in data:
        version = data["schema_version"]
        if isinstance(version, bool) or not isinstance(version, int):
            raise BundleFormatError(f"Invalid schema_version: {version!r}")
        if not 0 <= version <= SCHEMA_VERSION:
            raise BundleFormatError(f"Unsupported schema_version: {version}")
        return version
    if "form_state" in data:
        return 1
    return 0


def migrate_bundle(data) -> dict:
    """Upgrade a decoded bundle document of any known version to the current one."""
    if not isinstance(data, dict):
        raise BundleFormatError("Saved note must be a JSON object")
    version = _detect_version(data)
    payload = {key: value for key, value in data.items() if key != "schema_version"}
    while version < SCHEMA_VERSION:
        payload = MIGRATIONS[version](payload)
        version += 1
    return payload


def parse_bundle(raw: str) -> SavedBundle:
    """Decode, migrate and validate a stored bundle.

    Any failure surfaces as ``ValueError`` (JSON, format and pydantic
    validation errors all derive from it).
    """
    return SavedBundle.model_validate(migrate_bundle(json.loads(raw)))


def serialize_bundle(bundle: SavedBundle) -> str:
    payload = {"schema_version": SCHEMA_VERSION, **bundle.model_dump(mode="json")}
    return json.dumps(payload, ensure_ascii=False)


def parse_layout(raw: str) -> LayoutSettings:
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise BundleFormatError("Layout settings must be a JSON object")
    if "schema_version" in data:
        return LayoutSettings.model_validate(data.get("layout_settings") or {})
    return LayoutSettings.model_validate(rescale_legacy_font_size(data))


def serialize_layout(layout: LayoutSettings) -> str:
    return json.dumps(
        {"schema_version": SCHEMA_VERSION, "layout_settings": layout.model_dump(mode="json")},
        ensure_ascii=False,
    )


# Manager --------------------------------------------------------------------


class PersistenceManager:
    """Save, load and delete named bundles.

    The set of known names is an in-memory index; :meth:`hydrate` rebuilds it
    from the store, so an index that missed a write (crash between the store
    write and the index update) is corrected on the next startup.
    """

    def __init__(self, store: KeyValueStore, *, prefix: str = SAVE_KEY_PREFIX) -> None:
        self._store = store
        self._prefix = prefix
        self._names: set[str] = set()

    def _key(self, name: str) -> str:
        return f"{self._prefix}{name}"

    def hydrate(self) -> dict[str, SavedBundle]:
        bundles: dict[str, SavedBundle] = {}
        for key in self._store.keys(self._prefix):
            name = key[len(self._prefix):]
            raw = self._store.get(key)
            if raw is None:
                continue
            try:
                bundles[name] = parse_bundle(raw)
            except ValueError as exc:
                logger.warning("Skipping unreadable saved note %r: %s", name, exc)
        self._names = set(bundles)
        logger.info("Loaded %d saved note(s)", len(bundles))
        return bundles

    def save(self, name: str, bundle: SavedBundle) -> str:
        trimmed = name.strip()
        if not trimmed:
            raise ValueError("Save name must not be blank")
        self._store.set(self._key(trimmed), serialize_bundle(bundle))
        self._names.add(trimmed)
        logger.info("Saved note %r", trimmed)
        return trimmed

    def load(self, name: str) -> Optional[SavedBundle]:
        trimmed = name.strip()
        if not trimmed:
            return None
        raw = self._store.get(self._key(trimmed))
        if raw is None:
            self._names.discard(trimmed)
            return None
        try:
            bundle = parse_bundle(raw)
        except ValueError as exc:
            logger.warning("Unable to read saved note %r: %s", trimmed, exc)
            return None
        self._names.add(trimmed)
        return bundle

    def delete(self, name: str) -> None:
        trimmed = name.strip()
        if not trimmed:
            return
        self._store.remove(self._key(trimmed))
        self._names.discard(trimmed)
        logger.info("Deleted note %r", trimmed)

    def list_names(self) -> set[str]:
        return set(self._names)

    def load_layout(self) -> LayoutSettings:
        raw = self._store.get(LAYOUT_KEY)
        if raw is None:
            return LayoutSettings()
        try:
            return parse_layout(raw)
        except ValueError as exc:
            logger.error("Failed to parse stored layout settings: %s", exc)
            return LayoutSettings()

    def save_layout(self, layout: LayoutSettings) -> None:
        self._store.set(LAYOUT_KEY, serialize_layout(layout))


__all__ = [
    "SAVE_KEY_PREFIX",
    "LAYOUT_KEY",
    "SCHEMA_VERSION",
    "LEGACY_FONT_SIZE_THRESHOLD",
    "LEGACY_FONT_SIZE_FACTOR",
    "StoreError",
    "BundleFormatError",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SqlKeyValueStore",
    "LayoutSettings",
    "SavedBundle",
    "MIGRATIONS",
    "rescale_legacy_font_size",
    "migrate_bundle",
    "parse_bundle",
    "serialize_bundle",
    "parse_layout",
    "serialize_layout",
    "PersistenceManager",
]
