"""PR record cache in <data_dir>/prs/ as YAML files.

One file per repository: {repository_id}.yaml holding a list of records.
Records are replaced by (repository_id, id); records that disappear
upstream are kept.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List

import yaml
from pydantic import ValidationError as PydanticValidationError

from gitpm.errors import NotFoundError, StorageError
from gitpm.models import PRRecord
from gitpm.services.store._yaml import read_yaml, write_yaml_atomic
from gitpm.utils import ensure_utc

PRS_DIR = "prs"

LOG = logging.getLogger("gitpm.services.store.pr_store")


class PRRecordStore:
    """Local cache of pull request records, keyed by (repository_id, id)."""

    def __init__(self, data_dir: Path) -> None:
        self._dir = Path(data_dir) / PRS_DIR
        self._lock = threading.RLock()

    def _path(self, repository_id: str) -> Path:
        return self._dir / f"{repository_id}.yaml"

    def _load(self, repository_id: str, strict: bool = False) -> Dict[int, PRRecord]:
        """Records of one repository file.

        Reads skip unreadable files and invalid records with a warning. Write
        paths pass strict=True and get StorageError instead, so a file that
        cannot be loaded in full is never overwritten with a subset.
        """
        path = self._path(repository_id)
        try:
            data = read_yaml(path)
        except (OSError, yaml.YAMLError) as e:
            if strict:
                raise StorageError(f"Cannot read PR records {path}: {e}") from e
            LOG.warning("Failed to read PR records %s: %s", path, e)
            return {}
        records: Dict[int, PRRecord] = {}
        for item in data or []:
            try:
                record = PRRecord.model_validate(item)
            except PydanticValidationError as e:
                if strict:
                    raise StorageError(f"Invalid PR record in {path}, not rewriting it: {e}") from e
                LOG.warning("Skip invalid PR record in %s: %s", path, e)
                continue
            records[record.id] = record
        return records

    def _save(self, repository_id: str, records: Dict[int, PRRecord]) -> None:
        payload = [r.model_dump(mode="json", exclude_none=True) for r in records.values()]
        write_yaml_atomic(self._path(repository_id), payload)
        LOG.debug("Saved %s PR records for repository %s", len(payload), repository_id)

    def upsert(self, record: PRRecord) -> None:
        """Insert or replace one record."""
        self.upsert_many([record])

    def upsert_many(self, records: Iterable[PRRecord]) -> int:
        """Insert or replace records; one write per repository. Returns count."""
        by_repo: Dict[str, List[PRRecord]] = {}
        for record in records:
            by_repo.setdefault(record.repository_id, []).append(record)
        count = 0
        with self._lock:
            # Load every file before writing any, so a bad file aborts the whole batch
            merged = {repository_id: self._load(repository_id, strict=True) for repository_id in by_repo}
            for repository_id, items in by_repo.items():
                existing = merged[repository_id]
                for record in items:
                    existing[record.id] = record
                self._save(repository_id, existing)
                count += len(items)
        return count

    def get_by_repository(self, repository_id: str) -> List[PRRecord]:
        """All cached records of a repository, newest PR number first."""
        with self._lock:
            records = list(self._load(repository_id).values())
        return sorted(records, key=lambda r: r.number, reverse=True)

    def get_by_time_range(
        self,
        repository_ids: Iterable[str],
        start_time: datetime,
        end_time: datetime,
    ) -> List[PRRecord]:
        """Records of the given repositories with start <= created_at <= end.

        Cache only, no network. Sorted by created_at descending.
        """
        start, end = ensure_utc(start_time), ensure_utc(end_time)
        out: List[PRRecord] = []
        with self._lock:
            for repository_id in set(repository_ids):
                for record in self._load(repository_id).values():
                    if start <= ensure_utc(record.created_at) <= end:
                        out.append(record)
        return sorted(out, key=lambda r: ensure_utc(r.created_at), reverse=True)

    def delete(self, repository_id: str, pr_id: int) -> None:
        """Remove one record. Raises NotFoundError if absent."""
        with self._lock:
            records = self._load(repository_id, strict=True)
            if pr_id not in records:
                raise NotFoundError(f"PR record {pr_id} not found in repository {repository_id}")
            del records[pr_id]
            self._save(repository_id, records)
        LOG.info("Deleted PR record %s of repository %s", pr_id, repository_id)

    def delete_by_repository(self, repository_id: str) -> int:
        """Remove every record of a repository. Returns how many were removed."""
        with self._lock:
            count = len(self._load(repository_id))
            self._path(repository_id).unlink(missing_ok=True)
        if count:
            LOG.info("Deleted %s PR records of repository %s", count, repository_id)
        return count

    def clear(self) -> None:
        """Drop the whole cache."""
        with self._lock:
            if not self._dir.is_dir():
                return
            for f in self._dir.glob("*.yaml"):
                f.unlink(missing_ok=True)
        LOG.info("Cleared PR record cache")
