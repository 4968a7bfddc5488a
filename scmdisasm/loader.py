"""Resource loading: script bodies and language files from a directory."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from .commands import CommandTable
from .compat import CompatIssue, check_script
from .errors import LoaderError

logger = logging.getLogger(__name__)

_COMMENT_PATTERN = re.compile(r"//|#")


@dataclass
class LoadedScript:
    path: Path
    data: bytes
    issue: Optional[CompatIssue] = None
    # ``.csi`` scripts are started on demand instead of at game load.
    invoked: bool = False

    @property
    def compatible(self) -> bool:
        return self.issue is None


@dataclass
class LoadedLanguage:
    path: Path
    entries: Dict[str, str] = field(default_factory=dict)


LoadedResource = Union[LoadedScript, LoadedLanguage]


def parse_language_file(text: str) -> Dict[str, str]:
    """Parse ``KEY value`` lines; ``//`` and ``#`` start comments."""

    entries: Dict[str, str] = {}
    for raw_line in text.splitlines():
        line = _COMMENT_PATTERN.split(raw_line, 1)[0].strip()
        if not line:
            continue

        parts = line.split(" ", 1)
        if len(parts) != 2:
            logger.warning("Unable to find key and value in line '%s'", line)
            continue
        key, value = parts
        entries[key] = value
    return entries


class ScriptLoader:
    """Dispatch resource files to the matching loader by extension."""

    def __init__(
        self,
        table: Optional[CommandTable] = None,
        *,
        language: Optional[Dict[str, str]] = None,
    ) -> None:
        self.table = table
        self.language: Dict[str, str] = language if language is not None else {}
        self._handlers: Dict[str, Callable[[Path], LoadedResource]] = {
            ".fxt": self.load_language_file,
            ".csa": self.load_script,
            ".csi": self.load_invoked_script,
        }

    def load_all(self, directory: Path) -> List[LoadedResource]:
        """Load every resource in ``directory``; failures are logged and skipped."""

        directory = Path(directory)
        logger.info("Loading files from %s", directory)

        loaded: List[LoadedResource] = []
        for entry in sorted(directory.iterdir()):
            try:
                result = self._load_entry(entry)
            except (LoaderError, OSError) as exc:
                logger.warning("Unable to load %s: %s", entry, exc)
                continue
            logger.info("Loaded resource %s", entry)
            loaded.extend(result)
        return loaded

    def load_path(self, path: Path) -> LoadedResource:
        path = Path(path)
        suffix = path.suffix.lower()
        if not suffix:
            raise LoaderError("Extension required")
        handler = self._handlers.get(suffix)
        if handler is None:
            raise LoaderError("Unrecognised extension")
        return handler(path)

    def _load_entry(self, path: Path) -> List[LoadedResource]:
        if path.is_dir():
            return self.load_all(path)
        return [self.load_path(path)]

    def load_language_file(self, path: Path) -> LoadedLanguage:
        try:
            text = path.read_text("utf-8")
        except UnicodeDecodeError as exc:
            raise LoaderError(f"language file is not valid UTF-8: {exc}") from exc
        entries = parse_language_file(text)
        self.language.update(entries)
        return LoadedLanguage(path, entries)

    def load_script(self, path: Path) -> LoadedScript:
        data = path.read_bytes()
        issue = check_script(data, self.table)
        logger.debug("check_script(%s) ==> %s", path, issue)
        return LoadedScript(path, data, issue)

    def load_invoked_script(self, path: Path) -> LoadedScript:
        script = self.load_script(path)
        script.invoked = True
        return script


__all__ = [
    "LoadedLanguage",
    "LoadedResource",
    "LoadedScript",
    "ScriptLoader",
    "parse_language_file",
]
