# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from lendasm.assembly.artifacts import Program
from lendasm.assembly.kernel import base_context
from lendasm.build.contracts import compile_contracts
from lendasm.build.note_scripts import compile_note_script, compile_note_scripts
from lendasm.build.sources import SourceUnit
from lendasm.errors import BuildError
from lendasm.tests.asm_samples import DEPOSIT_NOTE_SRC

KERNEL_ONLY_NOTE = """
use.miden::note
use.std::sys

begin
	exec.note::get_inputs
	exec.sys::truncate_stack
end
"""


def test_note_script_compiles_against_kernel_context() -> None:
	program = compile_note_script(base_context(), SourceUnit(path=Path("consume.masm"), module_name="consume", text=KERNEL_ONLY_NOTE))
	assert program.name == "consume"
	assert program.libraries == ("miden::note", "std::sys")


def test_note_scripts_link_against_compiled_contracts(
	tmp_path: Path, write_tree: Callable[..., Path], lending_tree: dict[str, str]
) -> None:
	root = write_tree(lending_tree)
	ctx, _ = compile_contracts(root / "contracts", tmp_path / "assets" / "contracts")
	written = compile_note_scripts(root / "note_scripts", tmp_path / "assets" / "note_scripts", ctx)

	assert [p.name for p in written] == ["deposit.masb"]
	program = Program.read_from_file(written[0])
	deposit = ctx.find_library("lending::pool").exports["deposit"]
	assert program.body[-1] == {"op": "call", "target": deposit.digest, "ref": "lending::pool::deposit"}


def test_note_script_without_contracts_fails(tmp_path: Path) -> None:
	unit = SourceUnit(path=tmp_path / "deposit.masm", module_name="deposit", text=DEPOSIT_NOTE_SRC)
	with pytest.raises(BuildError) as excinfo:
		compile_note_script(base_context(), unit)
	assert excinfo.value.reason_code == "assembly-failed"
	assert excinfo.value.message == "failed to assemble note script 'deposit'"


def test_failing_note_script_writes_nothing(tmp_path: Path, write_tree: Callable[..., Path]) -> None:
	root = write_tree({"note_scripts/a.masm": KERNEL_ONLY_NOTE, "note_scripts/b.masm": "begin\n\tfrobnicate\nend\n"})
	target = tmp_path / "out"
	with pytest.raises(BuildError):
		compile_note_scripts(root / "note_scripts", target, base_context())
	assert list(target.iterdir()) == []


def test_note_script_names_must_be_identifiers(tmp_path: Path, write_tree: Callable[..., Path]) -> None:
	root = write_tree({"note_scripts/p2id-note.masm": KERNEL_ONLY_NOTE})
	with pytest.raises(BuildError) as excinfo:
		compile_note_scripts(root / "note_scripts", tmp_path / "out", base_context())
	assert "invalid module path 'p2id-note'" in excinfo.value.diagnostics[0].message


def test_colliding_note_script_names_write_nothing(tmp_path: Path, write_tree: Callable[..., Path]) -> None:
	root = write_tree({"note_scripts/consume.masm": KERNEL_ONLY_NOTE})
	if (root / "note_scripts" / "consume.MASM").exists():
		pytest.skip("case-insensitive filesystem")
	(root / "note_scripts" / "consume.MASM").write_text(KERNEL_ONLY_NOTE)
	target = tmp_path / "out"
	with pytest.raises(BuildError) as excinfo:
		compile_note_scripts(root / "note_scripts", target, base_context())
	assert excinfo.value.diagnostics[0].code == "duplicate-module"
	assert list(target.iterdir()) == []
