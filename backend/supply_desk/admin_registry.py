from __future__ import annotations

import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .errors import ValidationError

ADMIN_KEY = "ADMIN_USERNAMES"


@dataclass(frozen=True)
class RegistryChange:
    changed: bool
    admins: list[str] = field(default_factory=list)


def _norm(username: str) -> str:
    return username.strip().lower()


class AdminRegistry:
    """
    Administrator usernames kept on one ``ADMIN_USERNAMES=a,b,c`` line of a key-value text file.

    Comparisons are case-insensitive everywhere; names are stored as first added.
    Changes are serialized per instance and the file is replaced atomically, so a
    concurrent reader sees either the old line or the new one.
    """

    def __init__(self, path: str | Path, key: str = ADMIN_KEY):
        self.path = Path(path)
        self.key = key
        self._lock = threading.Lock()

    @property
    def _prefix(self) -> str:
        return f"{self.key}="

    def _read_lines(self) -> list[str]:
        return self.path.read_text(encoding="utf-8").splitlines()

    def has_entry(self) -> bool:
        try:
            lines = self._read_lines()
        except FileNotFoundError:
            return False
        return any(line.startswith(self._prefix) for line in lines)

    def list_admins(self) -> list[str]:
        try:
            lines = self._read_lines()
        except OSError as exc:
            logger.error("Failed to read admin registry", path=str(self.path), error=str(exc))
            return []

        line = next((ln for ln in lines if ln.startswith(self._prefix)), None)
        if line is None:
            return []
        return [u.strip() for u in line[len(self._prefix):].split(",") if u.strip()]

    def is_admin(self, username: str) -> bool:
        wanted = _norm(username)
        return any(_norm(u) == wanted for u in self.list_admins())

    def add(self, username: str) -> RegistryChange:
        name = username.strip()
        if not name:
            raise ValidationError("username is required")

        with self._lock:
            admins = self.list_admins()
            if any(_norm(u) == _norm(name) for u in admins):
                return RegistryChange(changed=False, admins=admins)

            admins.append(name)
            self.persist(admins)
        logger.info("Administrator added", username=name)
        return RegistryChange(changed=True, admins=admins)

    def remove(self, username: str) -> RegistryChange:
        name = username.strip()
        if not name:
            raise ValidationError("username is required")

        with self._lock:
            admins = self.list_admins()
            remaining = [u for u in admins if _norm(u) != _norm(name)]
            if len(remaining) == len(admins):
                return RegistryChange(changed=False, admins=admins)

            self.persist(remaining)
        logger.info("Administrator removed", username=name)
        return RegistryChange(changed=True, admins=remaining)

    def persist(self, admins: list[str]) -> None:
        """Rewrite the registry line, keeping every other line and appending it if absent. Write errors propagate."""
        new_line = f"{self._prefix}{','.join(admins)}"
        try:
            lines = self._read_lines()
        except FileNotFoundError:
            lines = []

        replaced = False
        out: list[str] = []
        for line in lines:
            if line.startswith(self._prefix):
                out.append(new_line)
                replaced = True
            else:
                out.append(line)
        if not replaced:
            out.append(new_line)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write("\n".join(out) + "\n")
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def seed(self, admins: list[str]) -> bool:
        """Write the initial list when the file has no registry line yet. Returns True if written."""
        if not admins:
            return False
        unique: list[str] = []
        for name in admins:
            if name.strip() and all(_norm(u) != _norm(name) for u in unique):
                unique.append(name.strip())
        with self._lock:
            if self.has_entry():
                return False
            self.persist(unique)
        logger.info("Administrator registry seeded", admins=unique)
        return True
