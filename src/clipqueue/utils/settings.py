"""
Loading and validation of the JSON settings file.

The settings file is read once at startup. Missing optional fields fall back
to the defaults in ``constants``; missing required fields raise
ConfigurationInvalid with a message telling the operator what to fix.
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from clipqueue.errors import ConfigurationInvalid
from clipqueue.utils import constants


@dataclass(frozen=True)
class Settings:
    input_path: Path
    output_path: Path
    preset_file_name: str = constants.DEFAULT_PRESET_FILE
    accepted_extensions: Tuple[str, ...] = constants.DEFAULT_ACCEPTED_EXTENSIONS
    output_extension: str = constants.DEFAULT_OUTPUT_EXTENSION
    presets_path: Path = Path(constants.PRESETS_DIR)
    handbrake_cli: str = constants.HANDBRAKE_CLI

    @property
    def preset_file_path(self) -> Path:
        return (self.presets_path / self.preset_file_name).resolve()


def _optional_string(data: Dict[str, Any], key: str, default: str) -> str:
    """Return data[key] when present, which must then be a non-empty string."""
    if key not in data:
        return default
    value = data[key]
    if not isinstance(value, str) or not value:
        raise ConfigurationInvalid(f"{key} in settings file must be a non-empty string.")
    return value


def settings_from_dict(data: Dict[str, Any], base_dir: Optional[Path] = None) -> Settings:
    """
    Build Settings from the parsed JSON object.

    Relative paths are resolved against `base_dir` (the working directory when
    omitted). Fields are checked in the order the operator is most likely to
    fill them in, so the first missing one is reported.

    Raises:
        ConfigurationInvalid: If a required field is missing or empty.
    """
    if not isinstance(data, dict):
        raise ConfigurationInvalid("Settings file must contain a JSON object.")

    base = Path(base_dir) if base_dir is not None else Path.cwd()

    input_path = data.get("inputPath")
    output_path = data.get("outputPath")
    extensions = data.get("acceptedExtensions", list(constants.DEFAULT_ACCEPTED_EXTENSIONS))
    output_extension = data.get("outputExtension", constants.DEFAULT_OUTPUT_EXTENSION)

    if not input_path or not isinstance(input_path, str):
        raise ConfigurationInvalid("Input path not set in settings file (inputPath).")
    if not output_path or not isinstance(output_path, str):
        raise ConfigurationInvalid("Output path not set in settings file (outputPath).")
    if (not isinstance(extensions, list) or not extensions
            or not all(isinstance(ext, str) and ext for ext in extensions)):
        raise ConfigurationInvalid("Accepted extensions not set in settings file (acceptedExtensions).")
    if not output_extension or not isinstance(output_extension, str):
        raise ConfigurationInvalid("Output extension not set in settings file (outputExtension).")

    preset_file_name = _optional_string(data, "presetName", constants.DEFAULT_PRESET_FILE)
    presets_path = _optional_string(data, "presetsPath", constants.PRESETS_DIR)
    handbrake_cli = _optional_string(data, "handbrakeCliPath", constants.HANDBRAKE_CLI)

    return Settings(
        input_path=(base / Path(input_path).expanduser()).resolve(),
        output_path=(base / Path(output_path).expanduser()).resolve(),
        preset_file_name=preset_file_name,
        accepted_extensions=tuple(extensions),
        output_extension=output_extension,
        presets_path=(base / Path(presets_path).expanduser()).resolve(),
        handbrake_cli=handbrake_cli,
    )


def load_settings(path: Path, create_output: bool = True) -> Settings:
    """
    Read and validate the settings file at `path`.

    When `create_output` is set the output folder is created if it does not
    exist yet.

    Raises:
        ConfigurationInvalid: If the file is missing, is not valid JSON, or
            fails validation.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationInvalid(
            f"Settings file not found at {path.resolve()}, create a settings file with the following structure:\n"
            f"{constants.SETTINGS_TEMPLATE}"
        )

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationInvalid(f"Settings file is not valid JSON, please check {path}: {e}") from e

    settings = settings_from_dict(data)

    if create_output:
        try:
            settings.output_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationInvalid(f"Could not create output folder {settings.output_path}: {e}") from e

    return settings
