# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import pytest

from lendasm.cli import main


@pytest.fixture
def project(tmp_path: Path, write_tree: Callable[..., Path], lending_tree: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> Path:
	monkeypatch.delenv("BUILD_GENERATED_FILES_IN_SRC", raising=False)
	write_tree(lending_tree, root=tmp_path / "asm")
	return tmp_path


def test_build_prints_summary(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
	assert main(["build", "--project-dir", str(project)]) == 0
	out = capsys.readouterr().out.splitlines()
	assert out[:3] == [
		"compiled contract: price_oracle",
		"compiled contract: pool",
		"compiled note script: deposit",
	]
	assert out[3].startswith("generated error constants in ")

	assert main(["build", "--project-dir", str(project)]) == 0
	assert capsys.readouterr().out == "build: up to date\n"


def test_build_json_report(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
	assert main(["build", "--project-dir", str(project), "--json"]) == 0
	report = json.loads(capsys.readouterr().out)
	assert report["ok"] is True
	assert [Path(p).name for p in report["libraries"]] == ["price_oracle.masl", "pool.masl"]


def test_build_failure_exit_code(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
	(project / "asm" / "contracts" / "pool.masm").write_text("export.f\n\tfrobnicate\nend\n")
	assert main(["build", "--project-dir", str(project)]) == 1
	err = capsys.readouterr().err
	assert err.startswith("error: [assembly-failed] failed to assemble 'pool'")
	assert "unknown instruction 'frobnicate'" in err


def test_build_failure_json(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
	(project / "asm" / "contracts" / "extra.masm").write_text('const.ERR_ZERO_AMOUNT="nope"\nexport.f\n\tnop\nend\n')
	assert main(["build", "--project-dir", str(project), "--json"]) == 1
	payload = json.loads(capsys.readouterr().out)
	assert payload["ok"] is False
	assert payload["error"]["reason_code"] == "error-conflict"
	assert payload["error"]["constant_name"] == "ERR_ZERO_AMOUNT"


def test_build_invalid_config(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
	(project / "lendasm.json").write_text("{}")
	assert main(["build", "--project-dir", str(project)]) == 2
	assert "invalid build config" in capsys.readouterr().err


def test_build_warns_about_missing_sources(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	assert main(["build", "--project-dir", str(tmp_path)]) == 0
	assert "warning: No " in capsys.readouterr().err


def test_errors_generate_and_check(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
	assert main(["errors", "--project-dir", str(project), "--check"]) == 1
	assert "out of date" in capsys.readouterr().err

	assert main(["errors", "--project-dir", str(project)]) == 0
	assert capsys.readouterr().out.startswith("generated error constants in ")
	assert main(["errors", "--project-dir", str(project), "--check"]) == 0


def test_inspect_library_and_program(project: Path, capsys: pytest.CaptureFixture[str]) -> None:
	assert main(["build", "--project-dir", str(project)]) == 0
	capsys.readouterr()
	assets = project / "build" / "assets"

	assert main(["inspect", str(assets / "contracts" / "pool.masl")]) == 0
	lines = capsys.readouterr().out.splitlines()
	assert lines[0] == "library lending::pool"
	assert "  use lending::price_oracle" in lines
	assert any(line.startswith("  export deposit locals=1 digest=") for line in lines)

	assert main(["inspect", str(assets / "note_scripts" / "deposit.masb")]) == 0
	lines = capsys.readouterr().out.splitlines()
	assert lines[:2] == ["program deposit", "  use lending::pool"]
	assert lines[2].startswith("  entrypoint ")

	assert main(["inspect", "--json", str(assets / "note_scripts" / "deposit.masb")]) == 0
	assert json.loads(capsys.readouterr().out)["kind"] == "program"


def test_inspect_rejects_garbage(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
	path = tmp_path / "x.masl"
	path.write_bytes(b"garbage")
	assert main(["inspect", str(path)]) == 1
	assert "not an ASM artifact" in capsys.readouterr().err
