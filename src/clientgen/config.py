"""Configuration resolution, data paths and atomic output writes.

* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the project-local ``clientgen.json`` over the
  defaults of :class:`~clientgen.models.GeneratorConfig`.
* **Data directory** -- XDG compliant on Linux/BSD, ``~/.clientgen/`` on
  macOS and Windows. Crash logs live there.
* **Atomic writes** -- generated modules are written with a
  temp-file-then-rename strategy (:func:`write_output`) so a failed run never
  leaves a half-written client behind.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from clientgen.exceptions import ConfigError
from clientgen.models import GeneratorConfig

logger = logging.getLogger(__name__)

_APP_NAME = "clientgen"
_PROJECT_CONFIG_FILENAME = "clientgen.json"

# Environment variable -> GeneratorConfig field.
ENVIRONMENT_VARIABLES = {
    "CLIENTGEN_CLIENT_NAME": "client_name",
    "CLIENTGEN_RUNTIME_MODULE": "runtime_module",
    "CLIENTGEN_TARGET": "target",
}


# --- Data directory ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/clientgen/`` (default
    ``~/.local/share/clientgen/``). Elsewhere: ``~/.clientgen/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


def write_output(path: Path, code: str) -> None:
    """Write a generated module to *path* atomically.

    Raises:
        ConfigError: If the file cannot be written.
    """
    try:
        _atomic_write(path, code)
    except OSError as exc:
        raise ConfigError(f"Cannot write {path}: {exc}") from exc
    logger.debug("Wrote %d characters to %s", len(code), path)


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``clientgen.json``.

    Args:
        directory: Directory to look in; defaults to the current directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_config(
    cli_client_name: Optional[str] = None,
    cli_runtime_module: Optional[str] = None,
    cli_target: Optional[str] = None,
    cli_base_type: Optional[str] = None,
    cli_strict: Optional[bool] = None,
    directory: Optional[Path] = None,
) -> GeneratorConfig:
    """Resolve the effective generator settings.

    Precedence (high to low):
        1. CLI flags (``cli_*`` arguments that are not ``None``)
        2. Environment variables (``CLIENTGEN_CLIENT_NAME``,
           ``CLIENTGEN_RUNTIME_MODULE``, ``CLIENTGEN_TARGET``)
        3. Project config (``./clientgen.json``)
        4. Defaults

    Raises:
        ConfigError: If the merged settings fail validation.
    """
    values: dict[str, Any] = {}

    # 3. Project-local config
    project = load_project_config(directory)
    if project is not None:
        values.update(project)

    # 2. Environment variables
    for variable, field_name in ENVIRONMENT_VARIABLES.items():
        env_value = os.environ.get(variable)
        if env_value:
            values[field_name] = env_value

    # 1. CLI flags
    cli = {
        "client_name": cli_client_name,
        "runtime_module": cli_runtime_module,
        "target": cli_target,
        "base_type": cli_base_type,
        "strict": cli_strict,
    }
    values.update({k: v for k, v in cli.items() if v is not None})

    try:
        return GeneratorConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
