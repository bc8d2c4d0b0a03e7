# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from lendasm.assembly.artifacts import Library
from lendasm.assembly.kernel import base_context
from lendasm.build.contracts import compile_contracts, compile_library_unit, order_library_modules, parse_library_unit
from lendasm.build.sources import SourceUnit
from lendasm.errors import BuildError
from lendasm.tests.asm_samples import ORACLE_SRC, POOL_SRC


def _unit(name: str, text: str) -> SourceUnit:
	return SourceUnit(path=Path(f"{name}.masm"), module_name=name, text=text)


def _uses(*paths: str) -> str:
	return "".join(f"use.{p}\n" for p in paths) + "export.f\n\tnop\nend\n"


def test_order_puts_imports_first_with_lexical_tie_break() -> None:
	modules = {
		name: parse_library_unit(_unit(name, text), "lending")
		for name, text in {
			"c": _uses("lending::a"),
			"b": _uses(),
			"a": _uses("miden::account"),
			"d": _uses("lending::c", "lending::b"),
		}.items()
	}
	assert order_library_modules(modules, "lending") == ["a", "b", "c", "d"]


def test_order_detects_cycles() -> None:
	modules = {
		"a": parse_library_unit(_unit("a", _uses("lending::b")), "lending"),
		"b": parse_library_unit(_unit("b", _uses("lending::a")), "lending"),
		"z": parse_library_unit(_unit("z", _uses()), "lending"),
	}
	with pytest.raises(BuildError) as excinfo:
		order_library_modules(modules, "lending")
	assert excinfo.value.reason_code == "dependency-cycle"
	assert "a, b" in excinfo.value.message


def test_compile_library_unit_extends_context() -> None:
	ctx = base_context()
	ctx2, oracle = compile_library_unit(ctx, _unit("price_oracle", ORACLE_SRC))
	assert oracle.path == "lending::price_oracle"
	assert ctx2.find_library("lending::price_oracle") is oracle
	assert ctx.find_library("lending::price_oracle") is None

	_, pool = compile_library_unit(ctx2, _unit("pool", POOL_SRC))
	assert pool.dependencies == ("lending::price_oracle", "miden::account")


def test_compile_library_unit_needs_earlier_dependency() -> None:
	with pytest.raises(BuildError) as excinfo:
		compile_library_unit(base_context(), _unit("pool", POOL_SRC))
	err = excinfo.value
	assert err.reason_code == "assembly-failed"
	assert err.message == "failed to assemble 'pool'"
	assert any("undefined module 'lending::price_oracle'" in d.message for d in err.diagnostics)


def test_compile_contracts_writes_libraries_in_dependency_order(
	tmp_path: Path, write_tree: Callable[..., Path], lending_tree: dict[str, str]
) -> None:
	root = write_tree(lending_tree)
	ctx, written = compile_contracts(root / "contracts", tmp_path / "assets" / "contracts")

	assert [p.name for p in written] == ["price_oracle.masl", "pool.masl"]
	assert ctx.find_library("lending::pool") is not None
	pool = Library.read_from_file(written[1])
	oracle = Library.read_from_file(written[0])
	assert pool.exports["deposit"].body[-2]["target"] == oracle.exports["get_price"].digest


def test_compile_contracts_honors_namespace(tmp_path: Path, write_tree: Callable[..., Path]) -> None:
	root = write_tree({"contracts/vault.masm": _uses()})
	ctx, _ = compile_contracts(root / "contracts", tmp_path / "out", namespace="acme::defi")
	assert ctx.find_library("acme::defi::vault") is not None


def test_compile_contracts_stops_at_first_failure(tmp_path: Path, write_tree: Callable[..., Path]) -> None:
	root = write_tree(
		{
			"contracts/a.masm": _uses(),
			"contracts/b.masm": "export.f\n\tfrobnicate\nend\n",
			"contracts/c.masm": _uses(),
		}
	)
	target = tmp_path / "out"
	with pytest.raises(BuildError) as excinfo:
		compile_contracts(root / "contracts", target)
	assert excinfo.value.source_path.endswith("b.masm")
	assert sorted(p.name for p in target.iterdir()) == ["a.masl"]


def test_compile_contracts_reports_parse_errors_before_writing(tmp_path: Path, write_tree: Callable[..., Path]) -> None:
	root = write_tree({"contracts/a.masm": _uses(), "contracts/b.masm": "export.f\n\tnop\n"})
	target = tmp_path / "out"
	with pytest.raises(BuildError) as excinfo:
		compile_contracts(root / "contracts", target)
	assert excinfo.value.diagnostics[0].phase == "parse"
	assert list(target.iterdir()) == []


def test_compile_contracts_removes_stale_artifacts(tmp_path: Path, write_tree: Callable[..., Path]) -> None:
	target = tmp_path / "out"
	target.mkdir()
	(target / "removed.masl").write_bytes(b"stale")
	root = write_tree({"contracts/a.masm": _uses()})
	compile_contracts(root / "contracts", target)
	assert sorted(p.name for p in target.iterdir()) == ["a.masl"]


def test_compile_contracts_empty_directory(tmp_path: Path) -> None:
	src = tmp_path / "contracts"
	src.mkdir()
	ctx, written = compile_contracts(src, tmp_path / "out")
	assert written == []
	assert ctx == base_context()
