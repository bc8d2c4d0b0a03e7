# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path
from typing import Callable, Mapping

import pytest

from lendasm import assets
from lendasm.tests.asm_samples import DEPOSIT_NOTE_SRC, ORACLE_SRC, POOL_SRC


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[..., Path]:
	"""Write `{relative path: text}` under a root (default: <tmp>/asm) and return the root."""

	def _write(files: Mapping[str, str], root: Path | None = None) -> Path:
		base = root if root is not None else tmp_path / "asm"
		base.mkdir(parents=True, exist_ok=True)
		for rel, text in files.items():
			path = base / rel
			path.parent.mkdir(parents=True, exist_ok=True)
			path.write_text(text)
		return base

	return _write


@pytest.fixture
def lending_tree() -> dict[str, str]:
	return {
		"contracts/price_oracle.masm": ORACLE_SRC,
		"contracts/pool.masm": POOL_SRC,
		"note_scripts/deposit.masm": DEPOSIT_NOTE_SRC,
	}


@pytest.fixture(autouse=True)
def _clear_asset_cache() -> None:
	assets.clear_cache()
