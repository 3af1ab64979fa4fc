"""Configuration resolution and atomic output writes.

This module handles all persistent state for restify:

* **Project config** -- an optional ``restify.json`` or ``restify.yaml``
  (``.yml``) in the working directory. See :func:`load_project_config`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project config and defaults into a
  :class:`~restify.models.CompilerConfig`.
* **Output** -- :func:`write_modules` writes generated modules and the
  package ``__init__.py`` into the output directory.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) so that a crash never leaves a half-written module.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml
from pydantic import ValidationError

from restify.exceptions import ConfigError
from restify.models import CompilerConfig, GeneratedModule

logger = logging.getLogger(__name__)

_PROJECT_CONFIG_FILENAMES = ("restify.json", "restify.yaml", "restify.yml")
ENV_OUTPUT_DIR = "RESTIFY_OUTPUT_DIR"
"""Environment variable overriding the output directory."""


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
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
        # Includes KeyboardInterrupt.
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Project config ---


def _parse_project_file(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read project config at {path}: {exc}") from exc

    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Project config at {path} must be a mapping (got {type(data).__name__})"
        )
    return data


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project configuration from *directory* (default: the working directory).

    The first existing file among ``restify.json``, ``restify.yaml`` and
    ``restify.yml`` wins.

    Returns:
        The parsed mapping, or ``None`` if no project file exists.

    Raises:
        ConfigError: If the file exists but cannot be parsed.
    """
    base = directory or Path.cwd()
    for name in _PROJECT_CONFIG_FILENAMES:
        path = base / name
        if path.is_file():
            logger.debug("Loading project config from %s", path)
            return _parse_project_file(path)
    return None


# --- Precedence resolution ---


def resolve_config(
    cli_output_dir: Optional[str] = None,
    cli_write_init: Optional[bool] = None,
    check_only: bool = False,
    directory: Optional[Path] = None,
) -> CompilerConfig:
    """Resolve the effective compiler configuration.

    Precedence (high to low):
        1. CLI flags (``cli_output_dir``, ``cli_write_init``)
        2. Environment variable ``RESTIFY_OUTPUT_DIR``
        3. Project config (``./restify.json`` or ``./restify.yaml``)
        4. Defaults

    Raises:
        ConfigError: If the project config is invalid.
    """
    settings: dict[str, Any] = {}

    project = load_project_config(directory)
    if project is not None:
        settings.update(project)

    env_output = os.environ.get(ENV_OUTPUT_DIR)
    if env_output:
        settings["output_dir"] = env_output

    if cli_output_dir is not None:
        settings["output_dir"] = cli_output_dir
    if cli_write_init is not None:
        settings["write_init"] = cli_write_init
    if check_only:
        settings["check_only"] = True

    try:
        return CompilerConfig.model_validate(settings)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


# --- Output ---


def write_modules(
    modules: Sequence[GeneratedModule],
    config: CompilerConfig,
    init_source: Optional[str] = None,
) -> list[Path]:
    """Write generated modules into ``config.output_dir``.

    Args:
        modules: Modules returned by the generator.
        config: Effective configuration.
        init_source: Source of the package ``__init__.py``; written only when
            given and ``config.write_init`` is set.

    Returns:
        The written paths, in write order.
    """
    out_dir = Path(config.output_dir)
    written: list[Path] = []
    for module in modules:
        path = out_dir / module.filename
        _atomic_write(path, module.source)
        written.append(path)
    if config.write_init and init_source is not None:
        path = out_dir / "__init__.py"
        _atomic_write(path, init_source)
        written.append(path)
    logger.debug("Wrote %d file(s) to %s", len(written), out_dir)
    return written
