# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Runtime access to compiled artifacts.

Contracts and note scripts are loaded from the assets directory produced by
`lendasm build` and verified on load. Loaded artifacts are immutable, so
they are cached per (name, directory).
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from lendasm.assembly.artifacts import LIBRARY_EXTENSION, PROGRAM_EXTENSION, Library, Program
from lendasm.config import ASM_CONTRACTS_DIR, ASM_NOTE_SCRIPTS_DIR, ASSETS_DIR, DEFAULT_OUT_DIR

ASSETS_DIR_ENV = "LENDASM_ASSETS_DIR"


def default_assets_dir() -> Path:
	value = os.environ.get(ASSETS_DIR_ENV)
	if value:
		return Path(value)
	return DEFAULT_OUT_DIR / ASSETS_DIR


def load_contract_library(name: str, assets_dir: Path | None = None) -> Library:
	"""Load `<assets>/contracts/<name>.masl`."""
	return _load_library(name, (assets_dir or default_assets_dir()).resolve())


def load_note_script(name: str, assets_dir: Path | None = None) -> Program:
	"""Load `<assets>/note_scripts/<name>.masb`."""
	return _load_program(name, (assets_dir or default_assets_dir()).resolve())


@lru_cache(maxsize=None)
def _load_library(name: str, assets_dir: Path) -> Library:
	path = assets_dir / ASM_CONTRACTS_DIR / f"{name}.{LIBRARY_EXTENSION}"
	try:
		return Library.read_from_file(path)
	except ValueError as err:
		raise ValueError(f"failed to deserialize contract library '{name}' ({path}): {err}") from err


@lru_cache(maxsize=None)
def _load_program(name: str, assets_dir: Path) -> Program:
	path = assets_dir / ASM_NOTE_SCRIPTS_DIR / f"{name}.{PROGRAM_EXTENSION}"
	try:
		return Program.read_from_file(path)
	except ValueError as err:
		raise ValueError(f"failed to deserialize note script '{name}' ({path}): {err}") from err


def clear_cache() -> None:
	_load_library.cache_clear()
	_load_program.cache_clear()


__all__ = ["ASSETS_DIR_ENV", "default_assets_dir", "load_contract_library", "load_note_script", "clear_cache"]
