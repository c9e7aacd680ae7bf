# ladder_RunAuditor/loaders/container_loader.py
from __future__ import annotations
from pathlib import Path
from typing import Callable
import logging
import struct
import zipfile

from scipy.io import whosmat

_LOG = logging.getLogger(__name__)

ContainerVerifier = Callable[[Path], None]


class ContainerError(Exception):
    """A binary result container could not be opened or failed its integrity check."""


# ---------- ROOT files ----------
_ROOT_MAGIC = b"root"
_ROOT_BIG_FILE_VERSION = 1000000


def verify_root(path: Path) -> None:
    """
    Header-level integrity check of a ROOT file: signature, version and the
    recorded end-of-file offset against the real size (catches truncated writes).
    """
    try:
        size = path.stat().st_size
        with path.open("rb") as f:
            head = f.read(20)
    except OSError as e:
        raise ContainerError(f"{path.name}: {e}") from e

    if len(head) < 16 or head[:4] != _ROOT_MAGIC:
        raise ContainerError(f"{path.name}: not a ROOT file")
    version, begin = struct.unpack(">ii", head[4:12])
    if version >= _ROOT_BIG_FILE_VERSION:
        if len(head) < 20:
            raise ContainerError(f"{path.name}: truncated header")
        (end,) = struct.unpack(">q", head[12:20])
    else:
        (end,) = struct.unpack(">i", head[12:16])
    if begin <= 0 or end < begin:
        raise ContainerError(f"{path.name}: corrupt header (begin={begin}, end={end})")
    if end > size:
        raise ContainerError(f"{path.name}: truncated ({size} of {end} bytes)")


# ---------- MAT files ----------
def verify_mat(path: Path) -> None:
    try:
        variables = whosmat(path)
    except Exception as e:
        raise ContainerError(f"{path.name}: {e}") from e
    if not variables:
        raise ContainerError(f"{path.name}: no variables")


# ---------- ZIP files ----------
def verify_zip(path: Path) -> None:
    try:
        with zipfile.ZipFile(path, "r") as zf:
            bad = zf.testzip()
    except (OSError, zipfile.BadZipFile, RuntimeError, NotImplementedError) as e:
        # encrypted members raise RuntimeError, unknown compression NotImplementedError
        raise ContainerError(f"{path.name}: {e}") from e
    if bad is not None:
        raise ContainerError(f"{path.name}: corrupt member {bad}")


_REGISTRY: dict[str, ContainerVerifier] = {
    "root": verify_root,
    "mat": verify_mat,
    "zip": verify_zip,
}


def verifier_for(ext: str) -> ContainerVerifier:
    """Pick the integrity check for a container extension (without the dot)."""
    key = ext.lower().lstrip(".")
    verifier = _REGISTRY.get(key)
    if verifier is None:
        raise KeyError(f"no container verifier registered for '.{key}'")
    _LOG.debug("container verifier for .%s: %s", key, verifier.__name__)
    return verifier
