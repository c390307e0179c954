"""Atomic filesystem operations for G-code output and YAML handling.

Provides:
    - Atomic writes: tmp file → fsync → rename (prevents partial reads)
    - YAML loading (profiles and job documents; JSON loads too)
    - Batch writing of rendered G-code files
    - Directory creation with exist_ok semantics

A machine controller watching the output folder never sees a
half-written program: each file appears complete or not at all.

All paths use pathlib.Path for cross-platform compatibility.

Usage:
    from shoptools.utils import fs
    profile_data = fs.load_yaml("profile.yaml")
    fs.write_gcode_files(renderer.render_files(workpiece), "out/")
"""

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Union

import yaml

if TYPE_CHECKING:
    from shoptools.gcode.renderer import GCodeFile

logger = logging.getLogger(__name__)


def ensure_dir(p: Union[str, Path]) -> Path:
    """Create directory if it doesn't exist, return Path object.

    Parameters
    ----------
    p : Union[str, Path]
        Directory path

    Returns
    -------
    Path
        Path object (guaranteed to exist)

    Notes
    -----
    Creates parent directories as needed.
    """
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    tmp_suffix: str = ".tmp"
) -> None:
    """Write bytes to file atomically (tmp → fsync → rename).

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    data : bytes
        Data to write
    tmp_suffix : str
        Temporary file suffix, default ".tmp"

    Raises
    ------
    RuntimeError
        If the write or the rename fails.  The tmp file is removed.

    Notes
    -----
    Uses same directory for tmp file to ensure atomic rename on same filesystem.
    """
    path = Path(path)
    ensure_dir(path.parent)

    tmp_path = path.with_suffix(path.suffix + tmp_suffix)

    try:
        with open(tmp_path, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        # Atomic rename (overwrites existing file on POSIX)
        tmp_path.replace(path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(
    path: Union[str, Path],
    text: str,
    encoding: str = "utf-8"
) -> None:
    """Write text to file atomically.

    Parameters
    ----------
    path : Union[str, Path]
        Target file path
    text : str
        Text content
    encoding : str
        Text encoding, default "utf-8"
    """
    atomic_write_bytes(path, text.encode(encoding))


def load_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    """Load YAML file safely.

    Parameters
    ----------
    path : Union[str, Path]
        YAML (or JSON) file path

    Returns
    -------
    Dict[str, Any]
        Parsed content; ``None`` for an empty file

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    yaml.YAMLError
        If YAML parsing fails

    Notes
    -----
    Uses safe_load to prevent arbitrary code execution.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Failed to parse YAML file {path}: {e}") from e


def write_gcode_files(
    files: Iterable["GCodeFile"],
    directory: Union[str, Path],
) -> List[Path]:
    """Write each rendered program to *directory* under its filename.

    Parameters
    ----------
    files : Iterable[GCodeFile]
        Output of ``GCodeRenderer.render_files``.
    directory : Union[str, Path]
        Output folder; created if missing.

    Returns
    -------
    List[Path]
        Written paths, in input order.
    """
    out_dir = ensure_dir(directory)
    written: List[Path] = []
    for item in files:
        target = out_dir / item.filename
        atomic_write_text(target, item.content)
        logger.info("Wrote %s (%d bytes)", target, len(item.content))
        written.append(target)
    return written
