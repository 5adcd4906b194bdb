#------------------------------------------------------------
#                      cache_service.py
#          Key-value stores with time-based expiry and
#            the contributor dataset cache on top.

import json
import os
import sys
import tempfile
import time
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from ..config import CONTRIBUTOR_CACHE_KEY_TEMPLATE
from ..models import (
    AggregateSummary,
    ContributorDataset,
    ContributorRecord,
    ContributorSummary,
    RepoContribution,
    RepositorySummary,
)

ENTRY_VALUE_FIELD = "value"
ENTRY_WRITTEN_AT_FIELD = "written_at"
ENTRY_TTL_FIELD = "ttl"

CACHE_READ_ERROR_TEMPLATE = "WARNING: error reading cache entry {key!r}: {error}"
CACHE_WRITE_ERROR_TEMPLATE = "WARNING: error saving cache entry {key!r}: {error}"
CACHE_CLEAR_ERROR_TEMPLATE = "WARNING: error clearing cache entry {key!r}: {error}"
CACHE_FILE_ERROR_TEMPLATE = "WARNING: ignoring unreadable cache file {path}: {error}"

class CacheStore:
    """Key-value store whose entries expire ``ttl`` seconds after being written.

    Subclasses provide ``_load_entry``, ``_save_entry`` and ``_remove_entry``;
    expiry is evaluated here so every storage medium behaves the same.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock

    def _load_entry(self, key: str) -> Optional[dict]:
        raise NotImplementedError

    def _save_entry(self, key: str, entry: dict) -> None:
        raise NotImplementedError

    def _remove_entry(self, key: str) -> None:
        raise NotImplementedError

    # This function does return a live entry or None.
    # Expired entries are removed on read.
    def _live_entry(self, key: str) -> Optional[dict]:
        entry = self._load_entry(key)
        if entry is None:
            return None
        written_at = float(entry[ENTRY_WRITTEN_AT_FIELD])
        ttl = float(entry[ENTRY_TTL_FIELD])
        if self.clock() - written_at < ttl:
            return entry
        self._remove_entry(key)
        return None

    def get(self, key: str) -> Any:
        entry = self._live_entry(key)
        return None if entry is None else entry[ENTRY_VALUE_FIELD]

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._save_entry(
            key,
            {
                ENTRY_VALUE_FIELD: value,
                ENTRY_WRITTEN_AT_FIELD: self.clock(),
                ENTRY_TTL_FIELD: float(ttl),
            },
        )

    def delete(self, key: str) -> None:
        self._remove_entry(key)

    def written_at(self, key: str) -> Optional[float]:
        entry = self._live_entry(key)
        return None if entry is None else float(entry[ENTRY_WRITTEN_AT_FIELD])

    # This function does report seconds left before a key expires.
    # It returns zero when the key is absent or already expired.
    def time_remaining(self, key: str) -> float:
        entry = self._live_entry(key)
        if entry is None:
            return 0.0
        remaining = float(entry[ENTRY_TTL_FIELD]) - (self.clock() - float(entry[ENTRY_WRITTEN_AT_FIELD]))
        return max(0.0, remaining)

class MemoryCacheStore(CacheStore):
    """Per-process store; entries live as long as the interpreter session."""

    def __init__(self, clock: Callable[[], float] = time.time):
        super().__init__(clock)
        self._entries: Dict[str, dict] = {}

    def _load_entry(self, key: str) -> Optional[dict]:
        return self._entries.get(key)

    def _save_entry(self, key: str, entry: dict) -> None:
        # Round-trip through JSON so stored values match what a file store returns.
        self._entries[key] = json.loads(json.dumps(entry))

    def _remove_entry(self, key: str) -> None:
        self._entries.pop(key, None)

class JsonFileCacheStore(CacheStore):
    """All entries in a single JSON document on disk."""

    def __init__(self, path: str, clock: Callable[[], float] = time.time):
        super().__init__(clock)
        self.path = path

    # This function does read every entry from the cache file.
    # Missing or corrupt files are treated as an empty cache.
    def _read_all(self) -> Dict[str, dict]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as file_handle:
                data = json.load(file_handle)
        except (OSError, ValueError) as error:
            print(CACHE_FILE_ERROR_TEMPLATE.format(path=self.path, error=error), file=sys.stderr)
            return {}
        return data if isinstance(data, dict) else {}

    # This function does replace the cache file with the given entries.
    # A temp file in the same directory is swapped in only once complete.
    def _write_all(self, entries: Dict[str, dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        file_descriptor, temp_path = tempfile.mkstemp(dir=directory, prefix=".cache-", suffix=".tmp")
        try:
            with os.fdopen(file_descriptor, "w", encoding="utf-8") as file_handle:
                json.dump(entries, file_handle)
            os.replace(temp_path, self.path)
        except BaseException:
            os.unlink(temp_path)
            raise

    def _load_entry(self, key: str) -> Optional[dict]:
        return self._read_all().get(key)

    def _save_entry(self, key: str, entry: dict) -> None:
        # Serialize first so a bad value never truncates the existing file.
        json.dumps(entry)
        entries = self._read_all()
        entries[key] = entry
        self._write_all(entries)

    def _remove_entry(self, key: str) -> None:
        entries = self._read_all()
        if entries.pop(key, None) is not None:
            self._write_all(entries)

def _record_from_dict(data: dict) -> ContributorRecord:
    return ContributorRecord(**data)

def _repository_from_dict(data: dict) -> RepositorySummary:
    values = dict(data)
    values["contributors"] = [_record_from_dict(item) for item in data["contributors"]]
    return RepositorySummary(**values)

def _contributor_summary_from_dict(data: dict) -> ContributorSummary:
    values = dict(data)
    values["repositories"] = [RepoContribution(**item) for item in data["repositories"]]
    return ContributorSummary(**values)

# This function does convert a dataset into JSON-compatible dicts.
def dataset_to_dict(dataset: ContributorDataset) -> dict:
    return asdict(dataset)

# This function does rebuild a dataset from its dict form.
# It raises KeyError or TypeError when fields are missing or unexpected.
def dataset_from_dict(data: dict) -> ContributorDataset:
    summary = dict(data["summary"])
    summary["top_contributors"] = [_contributor_summary_from_dict(item) for item in summary["top_contributors"]]
    summary["top_repositories"] = [_repository_from_dict(item) for item in summary["top_repositories"]]
    return ContributorDataset(
        repositories=list(data["repositories"]),
        contributors_by_repo={
            name: _repository_from_dict(item) for name, item in data["contributors_by_repo"].items()
        },
        all_contributors=[_record_from_dict(item) for item in data["all_contributors"]],
        summary=AggregateSummary(**summary),
    )

class ContributorCache:
    """Caches the merged contributor dataset per GitHub username."""

    def __init__(self, store: CacheStore, expiry_seconds: float):
        self.store = store
        self.expiry_seconds = expiry_seconds

    @staticmethod
    def key_for(username: str) -> str:
        return CONTRIBUTOR_CACHE_KEY_TEMPLATE.format(username=username)

    # This function does read a cached dataset for the username.
    # Unreadable entries are dropped and reported as a miss.
    def read(self, username: str) -> Optional[ContributorDataset]:
        key = self.key_for(username)
        try:
            data = self.store.get(key)
            if data is None:
                return None
            return dataset_from_dict(data)
        except (KeyError, TypeError, ValueError, OSError) as error:
            print(CACHE_READ_ERROR_TEMPLATE.format(key=key, error=error), file=sys.stderr)
            self.clear(username)
            return None

    # This function does persist a dataset for the username.
    # Storage failures are logged and the write is skipped.
    def write(self, username: str, dataset: ContributorDataset) -> bool:
        key = self.key_for(username)
        try:
            self.store.set(key, dataset_to_dict(dataset), self.expiry_seconds)
        except (TypeError, ValueError, OSError) as error:
            print(CACHE_WRITE_ERROR_TEMPLATE.format(key=key, error=error), file=sys.stderr)
            return False
        return True

    def clear(self, username: str) -> None:
        key = self.key_for(username)
        try:
            self.store.delete(key)
        except OSError as error:
            print(CACHE_CLEAR_ERROR_TEMPLATE.format(key=key, error=error), file=sys.stderr)

    def last_written(self, username: str) -> Optional[datetime]:
        try:
            written_at = self.store.written_at(self.key_for(username))
        except (KeyError, TypeError, ValueError, OSError):
            return None
        if written_at is None:
            return None
        return datetime.fromtimestamp(written_at, tz=timezone.utc)

    def time_remaining(self, username: str) -> float:
        try:
            return self.store.time_remaining(self.key_for(username))
        except (KeyError, TypeError, ValueError, OSError):
            return 0.0
