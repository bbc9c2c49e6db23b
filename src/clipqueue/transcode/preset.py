"""
HandBrake preset files.

A preset file is the JSON exported by HandBrake's "Export presets" action: an
object with a ``PresetList`` array whose entries each carry a ``PresetName``.
Only the first entry is ever used.
"""
import json
from dataclasses import dataclass
from pathlib import Path

from clipqueue.errors import PresetInvalid, PresetNotFound


@dataclass(frozen=True)
class Preset:
    file_path: Path
    name: str


def load_preset(path: Path) -> Preset:
    """
    Read the preset file at `path` and select its first preset.

    Raises:
        PresetNotFound: If the file cannot be read, is not valid JSON, or
            contains no presets.
        PresetInvalid: If the first preset has no name.
    """
    path = Path(path).resolve()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PresetNotFound(f"Preset not found, or invalid: {path} ({e})") from e

    presets = data.get("PresetList") if isinstance(data, dict) else None
    if not isinstance(presets, list) or not presets:
        raise PresetNotFound(f"Preset not found, or invalid: {path} has no PresetList entries")

    first = presets[0]
    name = first.get("PresetName") if isinstance(first, dict) else None
    if not name or not isinstance(name, str):
        raise PresetInvalid(f"First preset in {path} has no PresetName")

    return Preset(file_path=path, name=name)
