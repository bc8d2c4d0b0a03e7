# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Build configuration.

Defaults follow the project layout (`asm/`, `build/`,
`lendasm/generated/lending_errors.py`). An optional `lendasm.json` in the
project directory overrides them; explicit arguments override the file.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from lendasm.assembly.parser import is_valid_module_path

CONFIG_FILE_NAME = "lendasm.json"
CONFIG_FORMAT = "lendasm-build"

# Set to 0/false/no/off to keep generated sources out of the source tree.
GENERATED_FILES_ENV = "BUILD_GENERATED_FILES_IN_SRC"

DEFAULT_SOURCE_DIR = Path("asm")
DEFAULT_OUT_DIR = Path("build")
DEFAULT_ERRORS_FILE = Path("lendasm") / "generated" / "lending_errors.py"
DEFAULT_NAMESPACE = "lending"

ASM_CONTRACTS_DIR = "contracts"
ASM_NOTE_SCRIPTS_DIR = "note_scripts"
ASSETS_DIR = "assets"


@dataclass(frozen=True)
class BuildConfig:
	project_dir: Path
	source_dir: Path
	out_dir: Path
	errors_file: Path
	namespace: str = DEFAULT_NAMESPACE
	write_generated_to_src: bool = True
	force: bool = False

	@property
	def workspace_asm_dir(self) -> Path:
		return self.out_dir / "asm"

	@property
	def assets_dir(self) -> Path:
		return self.out_dir / ASSETS_DIR

	@property
	def errors_output_path(self) -> Path:
		"""Where the registry is written, honoring the generated-files toggle."""
		if self.write_generated_to_src:
			return self.errors_file
		return self.out_dir / "generated" / self.errors_file.name

	def output_settings(self) -> dict[str, Any]:
		"""Settings that change what a build writes; part of the rerun fingerprint."""
		return {
			"namespace": self.namespace,
			"errors_output_path": str(self.errors_output_path.resolve()),
			"write_generated_to_src": self.write_generated_to_src,
		}


def _parse_bool_env(value: str | None, *, default: bool) -> bool:
	if value is None or not value.strip():
		return default
	return value.strip().lower() not in ("0", "false", "no", "off")


def _load_config_json(path: Path) -> dict[str, Any]:
	data = json.loads(path.read_text(encoding="utf-8"))
	if not isinstance(data, dict):
		raise ValueError("build config must be a JSON object")
	if data.get("format") != CONFIG_FORMAT or data.get("version") != 0:
		raise ValueError("unsupported build config format/version")
	allowed = {"format", "version", "source_dir", "out_dir", "errors_file", "namespace"}
	unknown = sorted(set(data.keys()) - allowed)
	if unknown:
		raise ValueError(f"build config has unknown fields: {', '.join(unknown)}")
	for key in ("source_dir", "out_dir", "errors_file", "namespace"):
		if key in data and (not isinstance(data[key], str) or not data[key]):
			raise ValueError(f"build config field '{key}' must be a non-empty string")
	namespace = data.get("namespace")
	if namespace is not None and not is_valid_module_path(namespace):
		raise ValueError(f"build config namespace '{namespace}' is not a valid module path")
	return data


def load_build_config(
	project_dir: Path,
	*,
	config_path: Path | None = None,
	out_dir: Path | None = None,
	force: bool = False,
	environ: Mapping[str, str] | None = None,
) -> BuildConfig:
	"""
	Resolve the build configuration for `project_dir`.

	Relative paths (from the config file or defaults) are taken relative to
	`project_dir`; `out_dir` given here is used as-is.
	"""
	env = os.environ if environ is None else environ
	path = config_path if config_path is not None else project_dir / CONFIG_FILE_NAME
	data: dict[str, Any] = {}
	if config_path is not None or path.is_file():
		data = _load_config_json(path)

	def _resolve(key: str, default: Path) -> Path:
		value = Path(data[key]) if key in data else default
		return value if value.is_absolute() else project_dir / value

	return BuildConfig(
		project_dir=project_dir,
		source_dir=_resolve("source_dir", DEFAULT_SOURCE_DIR),
		out_dir=out_dir if out_dir is not None else _resolve("out_dir", DEFAULT_OUT_DIR),
		errors_file=_resolve("errors_file", DEFAULT_ERRORS_FILE),
		namespace=str(data.get("namespace", DEFAULT_NAMESPACE)),
		write_generated_to_src=_parse_bool_env(env.get(GENERATED_FILES_ENV), default=True),
		force=force,
	)


__all__ = [
	"BuildConfig",
	"load_build_config",
	"CONFIG_FILE_NAME",
	"GENERATED_FILES_ENV",
	"ASM_CONTRACTS_DIR",
	"ASM_NOTE_SCRIPTS_DIR",
	"ASSETS_DIR",
]
