"""Zip/unzip by shelling out to the system archiver."""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .filesystem import NotFoundError, create_directory
from .settings import settings

logger = logging.getLogger(__name__)


@dataclass
class ArchiveResult:
    """Result of an archiver invocation."""

    succeeded: bool
    returncode: Optional[int] = None
    message: str = ""


def _run_tool(tool: str, args: List[str], cwd: Optional[Path] = None) -> ArchiveResult:
    executable = shutil.which(tool)
    if executable is None:
        logger.error(f"Archiv-Werkzeug nicht gefunden: {tool}")
        return ArchiveResult(
            succeeded=False,
            message=f"'{tool}' ist nicht installiert",
        )

    try:
        proc = subprocess.run(
            [executable, *args],
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=settings.archive.timeout,
        )
    except subprocess.TimeoutExpired:
        logger.error(f"{tool} Zeitüberschreitung nach {settings.archive.timeout}s")
        return ArchiveResult(succeeded=False, message=f"{tool}: Zeitüberschreitung")
    except OSError as e:
        logger.error(f"{tool} konnte nicht gestartet werden: {e}")
        return ArchiveResult(succeeded=False, message=str(e))

    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout).strip().splitlines()
        message = detail[-1] if detail else f"{tool} exit code {proc.returncode}"
        logger.error(f"{tool} fehlgeschlagen ({proc.returncode}): {message}")
        return ArchiveResult(succeeded=False, returncode=proc.returncode, message=message)

    return ArchiveResult(succeeded=True, returncode=0)


def create_archive(source: str | Path, archive_path: str | Path) -> ArchiveResult:
    """
    Pack a file or directory into a zip archive.

    The archiver runs from the source's parent directory so entries are
    stored relative to it.

    Args:
        source: File or directory to pack
        archive_path: Zip file to create or update

    Returns:
        ArchiveResult
    """
    source_path = Path(source)
    archive = Path(archive_path)

    if not source_path.exists():
        raise NotFoundError(f"Quelle existiert nicht: {source_path}", source_path)

    result = _run_tool(
        settings.archive.zip_bin,
        ["-r", "-q", str(archive.absolute()), source_path.name],
        cwd=source_path.parent,
    )
    if result.succeeded:
        result.message = f"Archiv erstellt: {archive}"
        logger.info(f"Archiv erstellt: {source_path} -> {archive}")
    return result


def extract_archive(archive_path: str | Path, destination: str | Path) -> ArchiveResult:
    """
    Unpack a zip archive, overwriting existing files.

    Args:
        archive_path: Zip file to unpack
        destination: Target directory (created if missing)

    Returns:
        ArchiveResult
    """
    archive = Path(archive_path)
    dest_path = Path(destination)

    if not archive.is_file():
        raise NotFoundError(f"Archiv existiert nicht: {archive}", archive)

    if not dest_path.is_dir():
        create_directory(dest_path)

    result = _run_tool(
        settings.archive.unzip_bin,
        ["-o", "-q", str(archive), "-d", str(dest_path)],
    )
    if result.succeeded:
        result.message = f"Archiv entpackt nach: {dest_path}"
        logger.info(f"Archiv entpackt: {archive} -> {dest_path}")
    return result
