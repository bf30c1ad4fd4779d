"""Local copies of synthesized audio served from the public directory."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger("mindspace.pipeline")

AUDIO_SUFFIXES = frozenset({".mp3", ".ogg", ".pcm"})


class LocalAudioStore:
    """Write synthesized audio under the public audio directory.

    ``write_current`` keeps a single slot: every audio file in the directory
    is removed before the new bytes are written, and the slot's extension
    follows the audio format. ``write_for_run`` keys the file by run id so
    concurrent runs never overwrite each other, then prunes the oldest audio
    files so at most ``max_files`` remain.
    """

    def __init__(
        self,
        directory: str | Path,
        *,
        current_filename: str = "current_audio.mp3",
        public_root: str | Path | None = None,
        max_files: int = 20,
    ) -> None:
        if max_files < 1:
            raise ValueError("max_files must be at least 1")
        self.directory = Path(directory)
        self.current_filename = current_filename
        self.public_root = Path(public_root) if public_root is not None else self.directory.parent
        self.max_files = max_files

    def ensure_directory(self) -> None:
        if not self.directory.exists():
            self.directory.mkdir(parents=True, exist_ok=True)
            logger.info("Created audio output directory %s", self.directory)

    def audio_files(self) -> list[Path]:
        """Audio files in the directory, newest first."""

        if not self.directory.is_dir():
            return []
        files = [
            path
            for path in self.directory.iterdir()
            if path.is_file() and path.suffix in AUDIO_SUFFIXES
        ]
        return sorted(files, key=lambda p: (p.stat().st_mtime_ns, p.name), reverse=True)

    def clear_previous(self) -> list[str]:
        """Delete every existing audio file."""

        removed: list[str] = []
        for path in self.audio_files():
            path.unlink(missing_ok=True)
            removed.append(path.name)
            logger.info("Deleted previous audio: %s", path.name)
        return removed

    def current_path(self, extension: str | None = None) -> Path:
        slot = Path(self.current_filename)
        return self.directory / f"{slot.stem}{extension or slot.suffix}"

    def write_current(self, data: bytes, extension: str | None = None) -> Path:
        self.ensure_directory()
        self.clear_previous()
        target = self.current_path(extension)
        target.write_bytes(data)
        return target

    def write_for_run(self, run_id: str, data: bytes, extension: str) -> Path:
        self.ensure_directory()
        target = self.directory / f"{Path(run_id).name}{extension}"
        target.write_bytes(data)
        self.prune(keep=target)
        return target

    def prune(self, *, keep: Path | None = None) -> list[str]:
        """Delete the oldest audio files beyond ``max_files``; ``keep`` always survives."""

        files = self.audio_files()
        if keep is not None and keep in files:
            files.remove(keep)
            files.insert(0, keep)
        removed: list[str] = []
        for path in files[self.max_files:]:
            path.unlink(missing_ok=True)
            removed.append(path.name)
        if removed:
            logger.info("Pruned %d old audio file(s) from %s", len(removed), self.directory)
        return removed

    def resolve(self, filename: str | None) -> Path:
        """Return the path for ``filename`` confined to the audio directory.

        Without a name this is the single slot, whatever format it was written in.
        """

        name = Path(filename).name if filename else ""
        if name and name not in {".", ".."}:
            return self.directory / name
        default = self.current_path()
        if default.is_file():
            return default
        for suffix in sorted(AUDIO_SUFFIXES):
            candidate = self.current_path(suffix)
            if candidate.is_file():
                return candidate
        return default

    def delete(self, filename: str | None = None) -> bool:
        """Delete ``filename`` (default: the current file); ``False`` if absent."""

        target = self.resolve(filename)
        if not target.is_file():
            return False
        target.unlink()
        logger.info("Deleted audio file: %s", target.name)
        return True

    def public_path(self, path: Path) -> str:
        try:
            return path.relative_to(self.public_root).as_posix()
        except ValueError:
            return path.as_posix()


__all__ = ["AUDIO_SUFFIXES", "LocalAudioStore"]
