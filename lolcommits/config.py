"""Per-repository state: the lolcommits directory and its config.yml document."""

from __future__ import annotations

import os
import sys
import tempfile
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, NoReturn, Optional, Sequence, Tuple

import yaml

from .errors import ConfigError
from .logging import get_logger

BASE_DIR_ENV = "LOLCOMMITS_DIR"
CONFIG_FILENAME = "config.yml"
ARCHIVE_DIRNAME = "archive"
DIRECTORY_MODE = 0o755

_IMAGE_SUFFIXES = (".jpg", ".gif")
_FALLBACK_NAME = "unnamed"

logger = get_logger("config")


def normalize_repo_name(name: str) -> str:
    """Return a filesystem-safe directory name for a repository basename."""
    cleaned = name.strip()
    if cleaned.startswith("."):
        cleaned = "dot" + cleaned[1:]
    cleaned = "-".join(cleaned.split())
    cleaned = cleaned.replace(os.sep, "-")
    if os.altsep:
        cleaned = cleaned.replace(os.altsep, "-")
    return cleaned or _FALLBACK_NAME


def base_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Root under which every repository gets its own directory."""
    env = os.environ if environ is None else environ
    override = env.get(BASE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".lolcommits"


def ensure_directory(path: Path) -> Path:
    """Create ``path`` or force its permissions; exit if they cannot be fixed."""
    if path.is_dir():
        try:
            os.chmod(path, DIRECTORY_MODE)
        except PermissionError:
            _fatal_directory(path)
    elif path.exists():
        _fatal_directory(path)
    else:
        path.mkdir(parents=True, exist_ok=True)
    return path


def _fatal_directory(path: Path) -> NoReturn:
    user = os.environ.get("USER") or os.environ.get("USERNAME") or "current user"
    print(
        f"FATAL: directory '{path}' should be present and writeable by user '{user}'",
        file=sys.stderr,
    )
    print(f"Try changing the directory permissions to {DIRECTORY_MODE:o}", file=sys.stderr)
    sys.exit(1)


def loldir_for(basename: str, environ: Mapping[str, str] | None = None) -> Path:
    return ensure_directory(base_dir(environ) / basename)


class RepoState:
    """Owns the on-disk directory for one repository identity.

    The directory is resolved lazily on first access. The configuration
    document is never cached: every read goes back to disk and every save
    rewrites the whole file.
    """

    def __init__(
        self,
        name: str,
        *,
        environ: Mapping[str, str] | None = None,
        loldir: Path | None = None,
    ) -> None:
        self.name = normalize_repo_name(name)
        self._environ = environ
        self._loldir = loldir

    @classmethod
    def for_repository(
        cls, vcs: Any, *, cwd: Path | None = None, environ: Mapping[str, str] | None = None
    ) -> "RepoState":
        """Build state keyed by the VCS root name, or the working directory name."""
        name = vcs.local_name() if vcs is not None and vcs.is_repo() else None
        if not name:
            name = (cwd or Path.cwd()).name
        return cls(name, environ=environ)

    # ------------------------------------------------------------------
    # Directory layout

    @property
    def loldir(self) -> Path:
        if self._loldir is None:
            self._loldir = loldir_for(self.name, self._environ)
        return self._loldir

    def resolve(self) -> Path:
        """Idempotently create or repair the repository directory."""
        if self._loldir is not None:
            return ensure_directory(self._loldir)
        return self.loldir

    @property
    def config_path(self) -> Path:
        return self.loldir / CONFIG_FILENAME

    @property
    def archivedir(self) -> Path:
        return ensure_directory(self.loldir / ARCHIVE_DIRNAME)

    @property
    def log_path(self) -> Path:
        return self.loldir / "lolcommits.log"

    def raw_image(self, extension: str = "jpg") -> Path:
        return self.loldir / f"tmp_snapshot.{extension}"

    def main_image(self, commit_sha: str, extension: str = "jpg") -> Path:
        return self.loldir / f"{commit_sha}.{extension}"

    @property
    def video_loc(self) -> Path:
        return self.loldir / "tmp_video.mov"

    @property
    def frames_loc(self) -> Path:
        return self.loldir / "tmp_frames"

    # ------------------------------------------------------------------
    # Configuration document

    def read_config(self) -> Dict[str, Any]:
        path = self.config_path
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        if not text.strip():
            return {}
        try:
            loaded = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {path}: {exc}") from exc
        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"{path} must contain a mapping at the root")
        return loaded

    def save_config(self, document: Mapping[str, Any]) -> Path:
        """Serialise the whole document and replace config.yml with it."""
        path = self.config_path
        contents = yaml.safe_dump(dict(document), default_flow_style=False, sort_keys=False)
        fd, tmp_name = tempfile.mkstemp(prefix=".config-", suffix=".yml", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(contents)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Saved configuration to %s", path)
        return path

    def plugin_options(self, plugin_name: str) -> Optional[Dict[str, Any]]:
        entry = self.read_config().get(plugin_name)
        return dict(entry) if isinstance(entry, dict) else None

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.read_config(), default_flow_style=False, sort_keys=False)

    # ------------------------------------------------------------------
    # Artifacts

    def artifacts(self, suffixes: Sequence[str] = _IMAGE_SUFFIXES) -> List[Path]:
        """Snapshot of captured artifacts ordered by (mtime, filename)."""
        entries: List[Tuple[float, str, Path]] = []
        for path in self.loldir.iterdir():
            if path.suffix.lower() not in suffixes or path.name.startswith("tmp_snapshot"):
                continue
            try:
                mtime = path.stat().st_mtime
            except FileNotFoundError:
                # removed by another process mid-scan
                continue
            if not path.is_file():
                continue
            entries.append((mtime, path.name, path))
        entries.sort(key=lambda item: (item[0], item[1]))
        return [path for _, _, path in entries]

    def most_recent(self) -> Optional[Path]:
        found = self.artifacts()
        return found[-1] if found else None

    def jpg_images(self) -> List[Path]:
        return self.artifacts((".jpg",))

    def daily_artifacts(self, day: date | None = None) -> List[Path]:
        target = day or date.today()
        selected: List[Path] = []
        for path in self.jpg_images():
            try:
                modified = datetime.fromtimestamp(path.stat().st_mtime).date()
            except FileNotFoundError:
                continue
            if modified == target:
                selected.append(path)
        return selected


__all__ = [
    "BASE_DIR_ENV",
    "RepoState",
    "base_dir",
    "ensure_directory",
    "loldir_for",
    "normalize_repo_name",
]
