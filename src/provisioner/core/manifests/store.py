"""Directory of independently addressable YAML manifests.

Each document lives in its own file, so writers for different tenants never
touch the same file. Writes go to a temporary file in the same directory and
are moved into place with an atomic rename.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Any

import yaml


_SAFE_NAME = re.compile(r"^[a-z0-9][a-z0-9.-]*$")


class ManifestStore:
    """YAML documents keyed by name inside one directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, name: str) -> Path:
        if not _SAFE_NAME.match(name):
            raise ValueError(f"Invalid manifest name: {name!r}")
        return self.directory / f"{name}.yaml"

    async def put(self, name: str, document: dict[str, Any]) -> bool:
        """Write a document, replacing any previous version.

        Returns:
            True if the stored content changed
        """
        return await asyncio.to_thread(self._put, name, document)

    async def get(self, name: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._get, name)

    async def delete(self, name: str) -> bool:
        """Delete a document; deleting a missing document is a no-op.

        Returns:
            True if a document was removed
        """
        return await asyncio.to_thread(self._delete, name)

    async def list(self) -> dict[str, dict[str, Any]]:
        """Load every document, keyed by name."""
        return await asyncio.to_thread(self._list)

    def _put(self, name: str, document: dict[str, Any]) -> bool:
        path = self.path_for(name)
        content = yaml.safe_dump(document, default_flow_style=False, sort_keys=True)
        if path.exists() and path.read_text() == content:
            return False

        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(content)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        return True

    def _get(self, name: str) -> dict[str, Any] | None:
        path = self.path_for(name)
        if not path.exists():
            return None
        with path.open() as f:
            return yaml.safe_load(f) or {}

    def _delete(self, name: str) -> bool:
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def _list(self) -> dict[str, dict[str, Any]]:
        if not self.directory.exists():
            return {}
        documents: dict[str, dict[str, Any]] = {}
        for path in sorted(self.directory.glob("*.yaml")):
            with path.open() as f:
                documents[path.stem] = yaml.safe_load(f) or {}
        return documents
