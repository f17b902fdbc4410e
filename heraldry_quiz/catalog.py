"""Emblem catalog loading.

The catalog is a static JSON array (``sigils_db.json``) of objects shaped like::

    {"idSigil": 1, "textFull": "House Stark of Winterfell", "text": "Stark",
     "imageURL": "sigils/stark.png", "imageWidth": 160, "imageHeight": 190,
     "region": "The North", "level": 1}

Loading is a one-shot operation whose outcome is either ``CatalogLoaded`` or
``CatalogFailed``. ``CatalogLoader`` runs it off the UI thread and hands the
result over exactly once through ``poll()``.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path

from .emblems import EmblemRecord

logger = logging.getLogger(__name__)

CATALOG_PATH_ENV = "HERALDRY_CATALOG_PATH"

_STR_FIELDS = ("textFull", "text", "imageURL", "region")
_INT_FIELDS = ("idSigil", "imageWidth", "imageHeight", "level")


class CatalogLoadError(RuntimeError):
    """The catalog could not be read or is not a well-formed emblem list."""


@dataclass(frozen=True, slots=True)
class CatalogLoaded:
    emblems: tuple[EmblemRecord, ...]
    source: Path | None = None


@dataclass(frozen=True, slots=True)
class CatalogFailed:
    reason: str


CatalogResult = CatalogLoaded | CatalogFailed


def default_catalog_path() -> Path:
    explicit = os.environ.get(CATALOG_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return Path(__file__).resolve().parent / "data" / "sigils_db.json"


def parse_emblem(raw: object, *, index: int) -> EmblemRecord:
    if not isinstance(raw, dict):
        raise CatalogLoadError(f"Entry {index}: expected an object")

    for key in _INT_FIELDS:
        value = raw.get(key)
        # bool is an int subclass; reject it explicitly.
        if not isinstance(value, int) or isinstance(value, bool):
            raise CatalogLoadError(f"Entry {index}: '{key}' must be an integer")
    for key in _STR_FIELDS:
        if not isinstance(raw.get(key), str):
            raise CatalogLoadError(f"Entry {index}: '{key}' must be a string")

    if raw["imageWidth"] <= 0 or raw["imageHeight"] <= 0:
        raise CatalogLoadError(f"Entry {index}: image dimensions must be positive")
    if raw["level"] < 1:
        raise CatalogLoadError(f"Entry {index}: 'level' must be >= 1")
    if raw["text"].strip() == "":
        raise CatalogLoadError(f"Entry {index}: 'text' must not be empty")

    return EmblemRecord(
        emblem_id=raw["idSigil"],
        full_label=raw["textFull"],
        short_label=raw["text"],
        image_ref=raw["imageURL"],
        image_width=raw["imageWidth"],
        image_height=raw["imageHeight"],
        region=raw["region"],
        level=raw["level"],
    )


def parse_catalog(payload: object) -> tuple[EmblemRecord, ...]:
    if not isinstance(payload, list):
        raise CatalogLoadError("Invalid catalog format: expected an array")

    emblems: list[EmblemRecord] = []
    seen: set[int] = set()
    for index, raw in enumerate(payload):
        emblem = parse_emblem(raw, index=index)
        if emblem.emblem_id in seen:
            raise CatalogLoadError(f"Entry {index}: duplicate idSigil {emblem.emblem_id}")
        seen.add(emblem.emblem_id)
        emblems.append(emblem)
    return tuple(emblems)


def load_catalog(path: Path) -> tuple[EmblemRecord, ...]:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogLoadError(f"Unable to load {Path(path).name}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(f"Invalid JSON in {Path(path).name}: {exc.msg}") from exc
    return parse_catalog(payload)


def fetch_catalog(path: Path) -> CatalogResult:
    """Load ``path`` and fold any failure into a ``CatalogFailed`` result."""

    try:
        emblems = load_catalog(path)
    except CatalogLoadError as exc:
        logger.error("Catalog load failed: %s", exc)
        return CatalogFailed(reason=str(exc))
    logger.info("Loaded %d emblems from %s", len(emblems), path)
    return CatalogLoaded(emblems=emblems, source=Path(path))


class CatalogLoader:
    """Runs ``fetch_catalog`` once on a background thread.

    There is no retry and no timeout; ``poll()`` returns ``None`` until the
    load has finished and the result on every call after that.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._result: CatalogResult | None = None
        self._done = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def path(self) -> Path:
        return self._path

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="catalog-loader", daemon=True)
        self._thread.start()

    def poll(self) -> CatalogResult | None:
        if not self._done.is_set():
            return None
        return self._result

    def wait(self, timeout: float | None = None) -> CatalogResult | None:
        self._done.wait(timeout)
        return self.poll()

    def _run(self) -> None:
        try:
            self._result = fetch_catalog(self._path)
        except Exception as exc:
            logger.exception("Unexpected error while loading %s", self._path)
            self._result = CatalogFailed(reason=str(exc) or type(exc).__name__)
        finally:
            self._done.set()
