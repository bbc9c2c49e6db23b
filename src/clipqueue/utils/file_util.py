"""
Filename helpers shared by the catalog and the session.

Identities are derived by splitting a filename on its first dot, so
``clip.final.mkv`` has the identity ``clip`` and the extension ``final.mkv``.
Output files are always named ``identity + "." + output_extension``.
"""
from pathlib import Path
from typing import Tuple


def split_identity(filename: str) -> Tuple[str, str]:
    """Split a filename on the first '.' into (identity, extension)."""
    identity, _, extension = filename.partition(".")
    return identity, extension


def build_output_path(output_dir: Path, identity: str, output_extension: str) -> Path:
    """Return the path the transcoded file for `identity` is written to."""
    return Path(output_dir).resolve() / f"{identity}.{output_extension}"


def remove_partial(path: Path) -> bool:
    """Delete a partially written output file. Returns True if a file was removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
