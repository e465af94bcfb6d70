"""
Index store — atomic persistence of the search index artifact on local disk.

Files live next to each other:
    search-index.json          canonical, what readers load
    search-index.backup.json   copy of the previous canonical during a write
    search-index.old.json      previous generation, kept after a good write
    search-index.temp.json     staging file, removed on success or failure

Readers only ever see a complete old or complete new canonical file: the
new content is written to the staging file, validated, then renamed over
the canonical path. One writer per index path at a time.
Version: 1.0.0
"""
import json
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from catalog_search.core.constants.index import BACKUP_SUFFIX, OLD_SUFFIX, TEMP_SUFFIX
from catalog_search.core.exceptions import (
    IndexCorruptError,
    IndexLoadError,
    IndexNotFoundError,
    IndexValidationError,
    PersistenceError,
)
from catalog_search.schemas.index import IndexArtifact, IndexInfo, IndexMetadata
from catalog_search.schemas.products import ProductRecord

logger = logging.getLogger("index_store")


@dataclass(frozen=True)
class IndexPaths:
    canonical: Path
    backup: Path
    old: Path
    temp: Path

    @classmethod
    def for_index(cls, canonical: Union[str, Path]) -> "IndexPaths":
        """search-index.json -> search-index.backup.json, .old.json, .temp.json"""
        path = Path(canonical)
        return cls(
            canonical=path,
            backup=path.with_name(f"{path.stem}{BACKUP_SUFFIX}{path.suffix}"),
            old=path.with_name(f"{path.stem}{OLD_SUFFIX}{path.suffix}"),
            temp=path.with_name(f"{path.stem}{TEMP_SUFFIX}{path.suffix}"),
        )


def check_products_payload(data: Any) -> list:
    """Return the products array of a decoded artifact or raise ValueError."""
    if isinstance(data, list):
        products = data
    elif isinstance(data, dict):
        products = data.get("products")
    else:
        raise ValueError("top level is neither an object nor an array")
    if not isinstance(products, list):
        raise ValueError("products is not an array")
    if not products:
        raise ValueError("products array is empty")
    return products


def validate_artifact_payload(data: Any) -> None:
    """
    Structural check for a freshly written artifact.

    Raises:
        ValueError: with the reason the payload is not a complete artifact
    """
    if not isinstance(data, dict):
        raise ValueError("top level is not an object")
    products = check_products_payload(data)
    metadata = data.get("metadata")
    if not isinstance(metadata, dict):
        raise ValueError("metadata is not an object")
    if metadata.get("totalProducts") != len(products):
        raise ValueError(
            f"metadata.totalProducts={metadata.get('totalProducts')} "
            f"does not match {len(products)} products"
        )
    for key in ("vendors", "productTypes"):
        if not isinstance(metadata.get(key), list):
            raise ValueError(f"metadata.{key} is not an array")


class IndexStore:
    """Reads and atomically writes one search index file family."""

    def __init__(self, paths: IndexPaths, read_only: bool = False) -> None:
        self._paths = paths
        self._read_only = read_only

    @classmethod
    def for_path(cls, index_path: Union[str, Path], read_only: bool = False) -> "IndexStore":
        return cls(IndexPaths.for_index(index_path), read_only=read_only)

    @property
    def paths(self) -> IndexPaths:
        return self._paths

    @property
    def read_only(self) -> bool:
        return self._read_only

    def exists(self) -> bool:
        return self._paths.canonical.is_file()

    def serialize(self, artifact: IndexArtifact) -> bytes:
        return artifact.model_dump_json(by_alias=True).encode("utf-8")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def persist(self, artifact: IndexArtifact) -> Optional[int]:
        """
        Write artifact to the canonical path.

        Steps: back up the current canonical file, write the staging file,
        validate it, rename it over the canonical path, then rotate the
        backup to .old. On failure the staging file is removed and, if the
        canonical file is gone, it is restored from the backup.

        Returns:
            Bytes written, or None in read-only mode (nothing touches disk)

        Raises:
            IndexValidationError: the staging file did not validate
            PersistenceError: any I/O failure
        """
        if self._read_only:
            logger.info(
                f"Read-only mode, skipping index file write "
                f"({artifact.metadata.total_products:,} products kept in memory)"
            )
            return None

        paths = self._paths
        content = self.serialize(artifact)
        try:
            paths.canonical.parent.mkdir(parents=True, exist_ok=True)

            if paths.canonical.exists():
                logger.info("Creating backup of existing index...")
                shutil.copy2(paths.canonical, paths.backup)

            logger.info("Writing to temporary file...")
            self._write_temp(content)

            logger.info("Validating temporary file...")
            self._validate_temp()

            logger.info("Moving temporary file to final location...")
            os.replace(paths.temp, paths.canonical)

            self._rotate_backup()
        except IndexValidationError:
            self._recover()
            raise
        except OSError as e:
            logger.error(f"Error saving index: {e}")
            self._recover()
            raise PersistenceError(str(paths.canonical), str(e)) from e

        logger.info(f"Index saved to {paths.canonical} ({len(content) / 1024 / 1024:.2f} MB)")
        return len(content)

    def _write_temp(self, content: bytes) -> None:
        with open(self._paths.temp, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

    def _validate_temp(self) -> None:
        try:
            data = json.loads(self._paths.temp.read_bytes())
            validate_artifact_payload(data)
        except ValueError as e:
            raise IndexValidationError(str(self._paths.temp), f"written index failed validation: {e}") from e

    def _rotate_backup(self) -> None:
        paths = self._paths
        if not paths.backup.exists():
            return
        if paths.old.exists():
            paths.old.unlink()
        os.replace(paths.backup, paths.old)

    def _recover(self) -> None:
        paths = self._paths
        try:
            paths.temp.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {paths.temp}: {e}")

        if not paths.canonical.exists() and paths.backup.exists():
            logger.info("Restoring from backup...")
            try:
                shutil.copy2(paths.backup, paths.canonical)
            except OSError as e:
                logger.error(f"Failed to restore index from backup {paths.backup}: {e}")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load(self) -> IndexArtifact:
        """
        Load the canonical artifact.

        A bare JSON array of records is accepted as a legacy index with
        unknown metadata.

        Raises:
            IndexNotFoundError: the file does not exist
            IndexCorruptError: the file cannot be decoded or validated
            IndexLoadError: the file exists but cannot be read
        """
        path = self._paths.canonical
        try:
            raw = path.read_bytes()
        except FileNotFoundError as e:
            raise IndexNotFoundError(str(path)) from e
        except OSError as e:
            raise IndexLoadError(str(path), f"Failed to read search index ({e})") from e

        try:
            data = json.loads(raw)
        except ValueError as e:
            raise IndexCorruptError(str(path), "not valid JSON") from e

        try:
            products_payload = check_products_payload(data)
        except ValueError as e:
            raise IndexCorruptError(str(path), str(e)) from e

        try:
            products = [ProductRecord.model_validate(item) for item in products_payload]
            metadata_payload = data.get("metadata") if isinstance(data, dict) else None
            if metadata_payload is None:
                metadata = IndexMetadata(total_products=len(products))
            else:
                metadata = IndexMetadata.model_validate(metadata_payload)
        except ValidationError as e:
            raise IndexCorruptError(str(path), f"invalid record data: {e.error_count()} error(s)") from e

        logger.info(f"Loaded {len(products):,} products from {path}")
        return IndexArtifact(products=products, metadata=metadata)

    def info(self) -> IndexInfo:
        """Describe the canonical file without raising."""
        path = self._paths.canonical
        try:
            stat = path.stat()
        except FileNotFoundError:
            return IndexInfo(exists=False)
        except OSError as e:
            return IndexInfo(exists=False, error=str(e))

        info = IndexInfo(
            exists=True,
            size_bytes=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        )
        try:
            artifact = self.load()
        except IndexLoadError as e:
            return info.model_copy(update={"error": str(e)})
        return info.model_copy(
            update={"product_count": len(artifact.products), "metadata": artifact.metadata}
        )
