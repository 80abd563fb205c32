"""
File-based cache of open GitHub issues.

The whole cache lives in a single JSON document mapping repository
identifiers to their issues and the time they were last scanned. Every
operation reads the file afresh; writes replace the file as a whole.
"""

import json
import logging
import os
import stat
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .exceptions import PersistenceError
from .models import CachedRepository, Issue

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class IssueCache:
    """JSON file cache of issues keyed by repository identifier.

    A missing or unreadable cache file behaves as an empty cache, but a
    failed write is always raised to the caller.
    """

    def __init__(self, cache_file: str = "issues_cache.json"):
        """Initialize cache.

        Args:
            cache_file: Path of the JSON document holding the cache
        """
        self.cache_file = Path(cache_file)
        self._save_lock = threading.Lock()
        logger.info(f"Initialized issue cache at {self.cache_file}")

    def load(self) -> Dict[str, CachedRepository]:
        """Read the whole cache from disk.

        Returns:
            Mapping of repository identifier to cached entry, empty if the
            file is missing or cannot be parsed
        """
        if not self.cache_file.exists():
            return {}

        try:
            with open(self.cache_file, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return {
                repo: CachedRepository.model_validate(entry)
                for repo, entry in raw.items()
            }
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Error loading cache from {self.cache_file}: {str(e)}")
            return {}

    def save(self, cache: Dict[str, CachedRepository]) -> None:
        """Write the whole cache to disk, replacing the previous file.

        The document is written to a temporary file next to the target and
        renamed over it, so readers never see a partial file.

        Raises:
            PersistenceError: If the file cannot be written
        """
        data = {repo: entry.model_dump() for repo, entry in cache.items()}
        directory = self.cache_file.parent

        with self._save_lock:
            tmp_path = None
            try:
                with tempfile.NamedTemporaryFile(
                    "w",
                    encoding="utf-8",
                    dir=directory,
                    prefix=f".{self.cache_file.name}.",
                    suffix=".tmp",
                    delete=False
                ) as f:
                    tmp_path = f.name
                    json.dump(data, f, indent=2)
                os.chmod(tmp_path, self._file_mode())
                os.replace(tmp_path, self.cache_file)
                tmp_path = None
            except OSError as e:
                logger.error(f"Error saving cache to {self.cache_file}: {str(e)}")
                raise PersistenceError("Failed to save cache to file") from e
            finally:
                if tmp_path is not None and os.path.exists(tmp_path):
                    os.unlink(tmp_path)

    def _file_mode(self) -> int:
        """Permissions for a freshly written cache file.

        Keeps the mode of the file being replaced, 0644 for a new one.
        """
        try:
            return stat.S_IMODE(self.cache_file.stat().st_mode)
        except FileNotFoundError:
            return DEFAULT_FILE_MODE

    def store(self, repo: str, issues: List[Issue]) -> CachedRepository:
        """Replace the cached issues of a repository.

        Args:
            repo: Repository identifier
            issues: Issues to cache, in order

        Returns:
            The entry that was written
        """
        cache = self.load()
        entry = CachedRepository(issues=list(issues), last_updated=_now())
        cache[repo] = entry
        self.save(cache)
        logger.info(f"Cached {len(entry.issues)} issues for {repo}")
        return entry

    def get(self, repo: str) -> Optional[CachedRepository]:
        """Retrieve the cached entry of a repository, None if never scanned."""
        return self.load().get(repo)

    def has(self, repo: str) -> bool:
        """Check whether a repository has been scanned."""
        return repo in self.load()
