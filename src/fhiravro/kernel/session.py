"""Compilation session: settings plus the per-session converter cache.

The cache maps a fully-qualified record name (``namespace.recordName``) to
the single converter instance compiled for it in this session. Entries are
written once and never evicted, except that a failed ``transaction()``
drops the entries it added.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from fhiravro.codes import CompileErrorCode
from fhiravro.kernel.converters import Converter
from fhiravro.kernel.errors import CompilationError
from fhiravro.kernel.naming import ROOT_NAMESPACE

logger = logging.getLogger(__name__)


class CompilerSettings(BaseModel):
    """Settings for one compilation session."""
    root_namespace: str = Field(ROOT_NAMESPACE, description="Namespace of base FHIR types")
    max_depth: int = Field(1, ge=0, description="Times a recursive element may repeat on one branch")
    strict_record_names: bool = Field(
        True,
        description="Reject distinct sources that derive the same full record name"
    )

    model_config = ConfigDict(frozen=True, extra="forbid")


class RecordNameCollisionError(CompilationError):
    """Raised when two distinct sources derive the same full record name."""

    def __init__(self, full_name: str, existing_source: str, new_source: str):
        self.full_name = full_name
        self.existing_source = existing_source
        self.new_source = new_source
        super().__init__(
            CompileErrorCode.RECORD_NAME_COLLISION,
            f"Record name '{full_name}' derived from both '{existing_source}' and '{new_source}'",
        )


class CompilationSession:
    """Owns the converter cache for one compilation run.

    Safe to share between threads: cache reads and writes happen under one
    lock, so each full name is compiled at most once and every caller sees
    the stored instance.
    """

    def __init__(self, settings: Optional[CompilerSettings] = None):
        self.settings = settings if settings is not None else CompilerSettings()
        self._converters: Dict[str, Converter] = {}
        self._sources: Dict[str, str] = {}
        self._lock = threading.RLock()

    def get(self, full_name: str) -> Optional[Converter]:
        with self._lock:
            return self._converters.get(full_name)

    def __contains__(self, full_name: object) -> bool:
        with self._lock:
            return full_name in self._converters

    def __len__(self) -> int:
        with self._lock:
            return len(self._converters)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(sorted(self._converters))

    def items(self) -> Tuple[Tuple[str, Converter], ...]:
        with self._lock:
            return tuple(sorted(self._converters.items()))

    def get_or_compile(self, full_name: str, source: str, build: Callable[[], Converter]) -> Converter:
        """Return the converter cached for ``full_name``, building it on first use.

        Args:
            full_name: ``namespace.recordName`` cache key.
            source: What the name was derived from (element path, extension
                URL, reference targets). Used to detect name collisions.
            build: Called at most once per full name, only on a cache miss.

        Raises:
            RecordNameCollisionError: If strict record names are enabled and
                ``full_name`` is already cached for a different source.
        """
        with self._lock:
            cached = self._converters.get(full_name)
            if cached is not None:
                existing_source = self._sources[full_name]
                if self.settings.strict_record_names and existing_source != source:
                    raise RecordNameCollisionError(full_name, existing_source, source)
                logger.debug("cache hit for %s", full_name)
                return cached

            converter = build()
            self._converters[full_name] = converter
            self._sources[full_name] = source
            logger.debug("compiled %s from %s", full_name, source)
            return converter

    @contextmanager
    def transaction(self) -> Iterator["CompilationSession"]:
        """Hold the cache for one compilation; entries it adds are dropped if it fails.

        The lock is held throughout, so other threads never observe entries
        of a compilation that is later rolled back.
        """
        with self._lock:
            before = set(self._converters)
            try:
                yield self
            except Exception:
                added = sorted(name for name in self._converters if name not in before)
                for full_name in added:
                    del self._converters[full_name]
                    del self._sources[full_name]
                if added:
                    logger.debug("rolled back %s", ", ".join(added))
                raise
