"""Preset store and query functions.

A preset is a named bundle of calculator parameters bound to one calculator type.
:class:`PresetsAPI` owns the records, persists them through a :class:`PresetStorage`
backend and notifies listeners of every change. The module-level query functions
(:func:`by_calculator`, :func:`search`, :func:`filter_by_tags`, :func:`sort_presets`)
are pure and never touch the store.
"""
import copy
import dataclasses
import datetime
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd
from PySide6 import QtCore

from ..status import status
from ..ui.actions import signals

Status = status.Status
BaseStatusException = status.BaseStatusException

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

STORAGE_FORMAT_VERSION = 1
EXPORT_FORMAT_VERSION = '1.0.0'

#: Fields a caller may set; everything else is owned by the store
EDITABLE_FIELDS = ('name', 'description', 'tags', 'version', 'parameters')
IDENTITY_FIELDS = ('id', 'created_at', 'updated_at')

SORT_KEYS = ('name', 'created_at', 'updated_at')


def now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def new_id() -> str:
    return f'preset_{uuid.uuid4().hex}'


def _parse_timestamp(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, str) and value:
        dt = datetime.datetime.fromisoformat(value)
    else:
        raise ValueError(f'Invalid timestamp: {value!r}')
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt


def parse_tags(value: Any) -> Optional[List[str]]:
    """Return value as a list of trimmed, non-empty tags.

    A string is split on commas. Returns None when value is neither a string
    nor a sequence of strings.
    """
    if not value:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(',') if t.strip()]
    if not isinstance(value, (list, tuple)) or not all(isinstance(t, str) for t in value):
        return None
    return [t.strip() for t in value if t.strip()]


@dataclasses.dataclass
class Preset:
    """A named, versioned bundle of calculator parameters."""
    id: str
    name: str
    calculator_type: str
    parameters: Dict[str, Any]
    description: str = ''
    tags: List[str] = dataclasses.field(default_factory=list)
    version: str = ''
    created_at: datetime.datetime = dataclasses.field(default_factory=now)
    updated_at: datetime.datetime = dataclasses.field(default_factory=now)

    def copy(self) -> 'Preset':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation of the preset."""
        data = dataclasses.asdict(self)
        data['created_at'] = self.created_at.isoformat()
        data['updated_at'] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Preset':
        """Build a preset from its serialized form.

        Raises:
            status.PresetInvalidException: If required fields are missing or malformed.
        """
        try:
            preset = cls(
                id=str(data['id']),
                name=str(data['name']),
                calculator_type=str(data['calculator_type']),
                parameters=dict(data.get('parameters') or {}),
                description=str(data.get('description') or ''),
                tags=parse_tags(data.get('tags')) or [],
                version=str(data.get('version') or ''),
                created_at=_parse_timestamp(data['created_at']),
                updated_at=_parse_timestamp(data['updated_at']),
            )
        except (KeyError, TypeError, ValueError) as ex:
            raise status.PresetInvalidException(f'Malformed preset record: {ex}') from ex
        if not preset.id or not preset.calculator_type:
            raise status.PresetInvalidException('Preset record has no id or calculator type.')
        return preset


@dataclasses.dataclass
class Result:
    """Outcome of a store operation.

    Attributes:
        success: True when the operation completed.
        data: The operation's payload, e.g. the created Preset.
        error: User-facing error message when the operation failed.
        status: Status code describing the outcome.
    """
    success: bool
    data: Any = None
    error: str = ''
    status: Status = Status.Okay

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, data: Any = None) -> 'Result':
        return cls(True, data=data)

    @classmethod
    def fail(cls, code: Status, error: str = '') -> 'Result':
        return cls(False, error=error or status.get_message(code), status=code)

    @classmethod
    def from_exception(cls, ex: BaseStatusException) -> 'Result':
        return cls(False, error=str(ex), status=ex.status)


@dataclasses.dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: List[str] = dataclasses.field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclasses.dataclass
class PresetStats:
    total: int
    calculator_usage: Dict[str, int]
    tag_usage: Dict[str, int]
    recent: List[Preset]


# ---------------------------------------------------------------------------
# Query functions
# ---------------------------------------------------------------------------

def by_calculator(presets: Iterable[Preset], calculator_type: str) -> List[Preset]:
    """Return the presets bound to calculator_type, preserving order."""
    return [p for p in presets if p.calculator_type == calculator_type]


def matches(preset: Preset, query: str) -> bool:
    """True if query is a case-insensitive substring of the name or description."""
    if not (query or '').strip():
        return True
    q = query.casefold()
    return q in preset.name.casefold() or q in (preset.description or '').casefold()


def search(presets: Sequence[Preset], query: str) -> List[Preset]:
    """Filter presets by a case-insensitive substring of their name or description.

    An empty query returns the input unchanged.
    """
    if not (query or '').strip():
        return list(presets)
    return [p for p in presets if matches(p, query)]


def filter_by_tags(presets: Sequence[Preset], tags: Iterable[str]) -> List[Preset]:
    """Keep presets that share at least one of tags. No tags returns the input."""
    wanted = {t.casefold() for t in tags if t}
    if not wanted:
        return list(presets)
    return [p for p in presets if wanted & {t.casefold() for t in p.tags}]


def sort_presets(presets: Sequence[Preset], sort_by: str = 'updated_at', descending: bool = True) -> List[Preset]:
    """Return presets sorted by name, created_at or updated_at."""
    if sort_by not in SORT_KEYS:
        raise ValueError(f'Invalid sort key: {sort_by}, must be one of {SORT_KEYS}')
    if sort_by == 'name':
        return sorted(presets, key=lambda p: p.name.casefold(), reverse=descending)
    return sorted(presets, key=lambda p: getattr(p, sort_by), reverse=descending)


# ---------------------------------------------------------------------------
# Storage backends
# ---------------------------------------------------------------------------

class PresetStorage:
    """Persistence medium for preset records.

    Implementations raise :class:`status.PersistenceFailureException` when a write is
    rejected and :class:`status.StorageCorruptException` when stored data is unreadable.
    """

    def load(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, records: List[Dict[str, Any]]) -> None:
        raise NotImplementedError


class MemoryStorage(PresetStorage):
    """Keeps serialized records in memory."""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None) -> None:
        self._records: List[Dict[str, Any]] = copy.deepcopy(records or [])

    def load(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._records)

    def save(self, records: List[Dict[str, Any]]) -> None:
        self._records = copy.deepcopy(records)


class JsonFileStorage(PresetStorage):
    """Stores records in a single JSON document.

    Writes go to a temporary sibling file which then replaces the original.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with self.path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as ex:
            raise status.StorageCorruptException(f'{self.path}: {ex}') from ex

        if not isinstance(data, dict) or not isinstance(data.get('presets'), list):
            raise status.StorageCorruptException(f'{self.path}: missing "presets" list')
        if data.get('format_version') != STORAGE_FORMAT_VERSION:
            logging.warning(
                f'Preset storage format {data.get("format_version")!r} differs from '
                f'{STORAGE_FORMAT_VERSION}, attempting to read anyway'
            )
        return data['presets']

    def save(self, records: List[Dict[str, Any]]) -> None:
        data = {
            'format_version': STORAGE_FORMAT_VERSION,
            'presets': records,
        }
        tmp_path = self.path.with_name(self.path.name + '.tmp')
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open('w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as ex:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError:
                pass
            raise status.PersistenceFailureException(f'{self.path}: {ex}') from ex


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class PresetsAPI(QtCore.QObject):
    """
    Keyed store of presets for all calculator types.

    Mutators return a :class:`Result` and never raise for expected conditions such as a
    missing id or a rejected write. Every successful mutation is persisted, then
    announced through the Qt signals, the subscribed callbacks and
    ``signals.presetsChanged``.
    """

    # Signals to notify views of changes
    presetsReloaded = QtCore.Signal()
    presetAdded = QtCore.Signal(str)
    presetUpdated = QtCore.Signal(str)
    presetRemoved = QtCore.Signal(str)

    def __init__(self, storage: Optional[PresetStorage] = None, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent)
        if storage is None:
            from ..settings import lib
            storage = JsonFileStorage(lib.settings.presets_path)
        self._storage: PresetStorage = storage
        self._items: List[Preset] = []
        self._listeners: List[Callable[[List[Preset]], None]] = []
        self.load_presets()

    @property
    def storage(self) -> PresetStorage:
        return self._storage

    def load_presets(self) -> None:
        """Read all records from storage. Malformed records are skipped."""
        self._items.clear()
        try:
            records = self._storage.load()
        except status.StorageCorruptException:
            logging.error('Preset storage unreadable, starting with an empty list')
            records = []

        seen = set()
        for record in records:
            try:
                preset = Preset.from_dict(record)
            except status.PresetInvalidException:
                logging.warning(f'Skipped invalid preset record: {record!r:.200}')
                continue
            if preset.id in seen:
                logging.warning(f'Skipped duplicate preset id: {preset.id}')
                continue
            seen.add(preset.id)
            self._items.append(preset)
        logging.debug(f'Loaded {len(self._items)} presets')

    def reload(self) -> None:
        """Reload presets from storage and notify listeners."""
        self.load_presets()
        self.presetsReloaded.emit()
        self._notify()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self.list())

    def __contains__(self, preset_id: str) -> bool:
        return self._index(preset_id) is not None

    def _index(self, preset_id: str) -> Optional[int]:
        return next((i for i, p in enumerate(self._items) if p.id == preset_id), None)

    # -- subscription --------------------------------------------------------

    def subscribe(self, callback: Callable[[List[Preset]], None]) -> Callable[[], None]:
        """Register a callback receiving the full preset list after every change.

        Returns:
            A function that removes the callback.
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.list()
        for callback in list(self._listeners):
            try:
                callback(snapshot)
            except Exception as ex:
                logging.error(f'Error in preset listener {callback!r}: {ex}')
        signals.presetsChanged.emit()

    def _persist(self) -> None:
        self._storage.save([p.to_dict() for p in self._items])

    # -- reads ---------------------------------------------------------------

    def get(self, preset_id: str) -> Optional[Preset]:
        """Return a copy of the preset with the given id, or None."""
        idx = self._index(preset_id)
        if idx is None:
            return None
        return self._items[idx].copy()

    def list(self) -> List[Preset]:
        """Return copies of all presets in insertion order."""
        return [p.copy() for p in self._items]

    def by_calculator(self, calculator_type: str) -> List[Preset]:
        return by_calculator(self.list(), calculator_type)

    # -- mutators ------------------------------------------------------------

    def create(self, data: Mapping[str, Any]) -> Result:
        """Create a preset from data and persist it.

        Args:
            data: Mapping with name, calculator_type, parameters and optionally
                description, tags and version. Identity fields are ignored.

        Returns:
            Result carrying the new Preset.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f'Expected a mapping, got {type(data).__name__}')

        name = str(data.get('name') or '').strip()
        calculator_type = str(data.get('calculator_type') or '').strip()
        parameters = data.get('parameters', {})
        if not name or not calculator_type:
            return Result.fail(status.Status.PresetInvalid, 'A preset needs a name and a calculator type.')
        if not isinstance(parameters, Mapping):
            return Result.fail(status.Status.PresetInvalid, 'Preset parameters must be a mapping.')
        tags = parse_tags(data.get('tags'))
        if tags is None:
            return Result.fail(status.Status.PresetInvalid, 'Preset tags must be text or a list of text.')

        timestamp = now()
        preset = Preset(
            id=new_id(),
            name=name,
            calculator_type=calculator_type,
            parameters=copy.deepcopy(dict(parameters)),
            description=str(data.get('description') or '').strip(),
            tags=tags,
            version=str(data.get('version') or ''),
            created_at=timestamp,
            updated_at=timestamp,
        )

        self._items.append(preset)
        try:
            self._persist()
        except status.BaseStatusException as ex:
            self._items.pop()
            return Result.from_exception(ex)

        logging.debug(f'Preset created: {preset.name} ({preset.id})')
        self.presetAdded.emit(preset.id)
        self._notify()
        return Result.ok(preset.copy())

    def update(self, preset_id: str, data: Mapping[str, Any]) -> Result:
        """Merge data into an existing preset and persist it.

        Only name, description, tags, version and parameters are merged. id,
        created_at and calculator_type are never altered.

        Returns:
            Result carrying the updated Preset, or a PresetNotFound failure.
        """
        idx = self._index(preset_id)
        if idx is None:
            logging.warning(f'Cannot update missing preset: {preset_id}')
            return Result.fail(status.Status.PresetNotFound)

        current = self._items[idx]
        if 'calculator_type' in data and data['calculator_type'] != current.calculator_type:
            logging.warning(f'Ignored calculator_type change for preset {preset_id}')

        updated = current.copy()
        for field in EDITABLE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field in ('name', 'description'):
                value = str(value or '').strip()
            elif field == 'tags':
                value = parse_tags(value)
                if value is None:
                    return Result.fail(status.Status.PresetInvalid, 'Preset tags must be text or a list of text.')
            elif field == 'parameters':
                if not isinstance(value, Mapping):
                    return Result.fail(status.Status.PresetInvalid, 'Preset parameters must be a mapping.')
                value = copy.deepcopy(dict(value))
            elif field == 'version':
                value = str(value or '')
            setattr(updated, field, value)

        if not updated.name:
            return Result.fail(status.Status.PresetInvalid, 'A preset needs a name.')

        updated.updated_at = max(now(), current.updated_at)

        self._items[idx] = updated
        try:
            self._persist()
        except status.BaseStatusException as ex:
            self._items[idx] = current
            return Result.from_exception(ex)

        logging.debug(f'Preset updated: {updated.name} ({preset_id})')
        self.presetUpdated.emit(preset_id)
        self._notify()
        return Result.ok(updated.copy())

    def delete(self, preset_id: str) -> Result:
        """Delete a preset. Deleting a missing id succeeds without side effects."""
        idx = self._index(preset_id)
        if idx is None:
            logging.debug(f'Preset already absent: {preset_id}')
            return Result.ok()

        removed = self._items.pop(idx)
        try:
            self._persist()
        except status.BaseStatusException as ex:
            self._items.insert(idx, removed)
            return Result.from_exception(ex)

        logging.debug(f'Preset deleted: {removed.name} ({preset_id})')
        self.presetRemoved.emit(preset_id)
        self._notify()
        return Result.ok()

    def delete_many(self, preset_ids: Iterable[str]) -> Result:
        """Delete several presets.

        Returns:
            Result whose data holds the ``deleted`` count and a list of ``errors``.
        """
        deleted = 0
        errors = []
        for preset_id in preset_ids:
            existed = preset_id in self
            result = self.delete(preset_id)
            if not result:
                errors.append(f'{preset_id}: {result.error}')
            elif existed:
                deleted += 1
        data = {'deleted': deleted, 'errors': errors}
        if errors:
            return Result(False, data=data, error='; '.join(errors), status=status.Status.PersistenceFailure)
        return Result.ok(data)

    def duplicate(self, preset_id: str, new_name: Optional[str] = None) -> Result:
        """Copy a preset under a new name, '<name> (Copy)' by default."""
        original = self.get(preset_id)
        if original is None:
            return Result.fail(status.Status.PresetNotFound)

        name = (new_name or '').strip() or f'{original.name} (Copy)'
        return self.create({
            'name': name[:NAME_MAX_LENGTH],
            'description': original.description,
            'tags': list(original.tags),
            'calculator_type': original.calculator_type,
            'version': original.version,
            'parameters': original.parameters,
        })

    # -- import / export -----------------------------------------------------

    def export(self, calculator_type: Optional[str] = None) -> Dict[str, Any]:
        """Return a serializable bundle of presets, optionally for one calculator type."""
        presets = self.list() if calculator_type is None else self.by_calculator(calculator_type)
        return {
            'version': EXPORT_FORMAT_VERSION,
            'exported_at': now().isoformat(),
            'presets': [p.to_dict() for p in presets],
        }

    def import_(self, data: Mapping[str, Any], overwrite: bool = False) -> ImportResult:
        """Import presets from a bundle produced by :meth:`export`.

        Entries whose id already exists are skipped unless overwrite is True, in which
        case the stored record is replaced. Malformed entries are reported in errors.
        """
        result = ImportResult()
        records = data.get('presets') if isinstance(data, Mapping) else None
        if not isinstance(records, list):
            result.errors.append('Import data has no "presets" list.')
            return result

        snapshot = list(self._items)
        changed = []
        for record in records:
            try:
                preset = Preset.from_dict(record)
            except status.PresetInvalidException as ex:
                result.errors.append(str(ex))
                continue
            idx = self._index(preset.id)
            if idx is not None and not overwrite:
                result.skipped += 1
                continue
            if idx is not None:
                self._items[idx] = preset
            else:
                self._items.append(preset)
            changed.append(preset.id)
            result.imported += 1

        if not changed:
            return result

        try:
            self._persist()
        except status.BaseStatusException as ex:
            self._items = snapshot
            result.errors.append(str(ex))
            result.imported = 0
            return result

        self.presetsReloaded.emit()
        self._notify()
        return result

    # -- statistics ----------------------------------------------------------

    def to_frame(self) -> pd.DataFrame:
        """Return the presets as a DataFrame with one row per preset."""
        columns = ['id', 'name', 'calculator_type', 'tags', 'version', 'created_at', 'updated_at']
        rows = [
            {
                'id': p.id,
                'name': p.name,
                'calculator_type': p.calculator_type,
                'tags': list(p.tags),
                'version': p.version,
                'created_at': p.created_at,
                'updated_at': p.updated_at,
            }
            for p in self._items
        ]
        return pd.DataFrame(rows, columns=columns)

    def stats(self, recent: int = 5) -> PresetStats:
        """Summarize the store: totals, per-calculator and per-tag counts, recent presets."""
        df = self.to_frame()
        if df.empty:
            return PresetStats(total=0, calculator_usage={}, tag_usage={}, recent=[])

        calculator_usage = df['calculator_type'].value_counts().sort_index()
        tags = df['tags'].explode().dropna()
        tags = tags[tags.astype(str).str.len() > 0]
        tag_usage = tags.value_counts().sort_index() if not tags.empty else pd.Series(dtype=int)

        recent_ids = df.sort_values('updated_at', ascending=False, kind='stable')['id'].head(recent)
        return PresetStats(
            total=len(df),
            calculator_usage={str(k): int(v) for k, v in calculator_usage.items()},
            tag_usage={str(k): int(v) for k, v in tag_usage.items()},
            recent=[self.get(i) for i in recent_ids],
        )
