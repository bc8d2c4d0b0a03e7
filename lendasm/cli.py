# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from lendasm.assembly.artifacts import Library, read_artifact
from lendasm.build.error_registry import collect_error_registry, render_error_file
from lendasm.build.pipeline import run_build, run_error_generation
from lendasm.config import ASM_CONTRACTS_DIR, BuildConfig, load_build_config
from lendasm.errors import BuildError


def _build_parser() -> argparse.ArgumentParser:
	p = argparse.ArgumentParser(prog="lendasm", description="Build-time ASM compilation (contracts, note scripts, error registry)")
	sub = p.add_subparsers(dest="cmd", required=True)

	build = sub.add_parser("build", help="Compile asm/ into assets and regenerate the error registry")
	build.add_argument("--project-dir", type=Path, default=Path("."), help="Project root (default: .)")
	build.add_argument("--config", type=Path, default=None, help="Build config file (default: <project>/lendasm.json if present)")
	build.add_argument("--out-dir", type=Path, default=None, help="Build workspace/output directory (default: <project>/build)")
	build.add_argument("--force", action="store_true", help="Rebuild even when sources are unchanged")
	build.add_argument("--json", action="store_true", help="Emit machine-readable JSON report")

	errors = sub.add_parser("errors", help="Regenerate the error registry from asm/contracts only")
	errors.add_argument("--project-dir", type=Path, default=Path("."), help="Project root (default: .)")
	errors.add_argument("--config", type=Path, default=None, help="Build config file (default: <project>/lendasm.json if present)")
	errors.add_argument("--check", action="store_true", help="Do not write; exit 1 if the generated file is out of date")

	inspect = sub.add_parser("inspect", help="Decode a .masl/.masb artifact and print a summary")
	inspect.add_argument("artifact", type=Path, help="Path to the artifact")
	inspect.add_argument("--json", action="store_true", help="Emit the decoded payload as JSON")
	return p


def _emit_build_error(err: BuildError, *, as_json: bool) -> None:
	if as_json:
		print(json.dumps({"ok": False, "error": err.to_dict()}, sort_keys=True, separators=(",", ":")))
		return
	print(f"error: {err.format_human()}", file=sys.stderr)


def _cmd_build(args: argparse.Namespace) -> int:
	try:
		config = load_build_config(args.project_dir, config_path=args.config, out_dir=args.out_dir, force=bool(args.force))
	except (OSError, ValueError) as err:
		print(f"error: invalid build config: {err}", file=sys.stderr)
		return 2
	try:
		report = run_build(config)
	except BuildError as err:
		_emit_build_error(err, as_json=bool(args.json))
		return 1
	if args.json:
		print(json.dumps(report.to_dict(), sort_keys=True, separators=(",", ":")))
		return 0
	for warning in report.warnings:
		print(f"warning: {warning}", file=sys.stderr)
	if report.up_to_date:
		print("build: up to date")
		return 0
	for path in report.libraries:
		print(f"compiled contract: {path.stem}")
	for path in report.programs:
		print(f"compiled note script: {path.stem}")
	if report.errors_file is not None:
		print(f"generated error constants in {report.errors_file}")
	return 0


def _cmd_errors(args: argparse.Namespace) -> int:
	try:
		config: BuildConfig = load_build_config(args.project_dir, config_path=args.config)
	except (OSError, ValueError) as err:
		print(f"error: invalid build config: {err}", file=sys.stderr)
		return 2
	try:
		if args.check:
			expected = render_error_file(collect_error_registry(config.source_dir / ASM_CONTRACTS_DIR))
			out = config.errors_output_path
			current = out.read_text(encoding="utf-8") if out.is_file() else None
			if current != expected:
				print(f"errors: {out} is out of date; run 'lendasm errors'", file=sys.stderr)
				return 1
			return 0
		out_path = run_error_generation(config)
	except BuildError as err:
		_emit_build_error(err, as_json=False)
		return 1
	if out_path is None:
		print(f"warning: no {ASM_CONTRACTS_DIR} directory under {config.source_dir}, nothing generated", file=sys.stderr)
		return 0
	print(f"generated error constants in {out_path}")
	return 0


def _cmd_inspect(args: argparse.Namespace) -> int:
	try:
		artifact = read_artifact(args.artifact)
	except (OSError, ValueError) as err:
		print(f"error: {err}", file=sys.stderr)
		return 1
	if args.json:
		print(json.dumps(artifact.to_dict(), indent=2, sort_keys=True))
		return 0
	if isinstance(artifact, Library):
		print(f"library {artifact.path}")
		for dep in artifact.dependencies:
			print(f"  use {dep}")
		for name, proc in sorted(artifact.exports.items()):
			print(f"  export {name} locals={proc.num_locals} digest={proc.digest}")
		return 0
	print(f"program {artifact.name}")
	for lib in artifact.libraries:
		print(f"  use {lib}")
	print(f"  entrypoint {artifact.entrypoint}")
	return 0


def main(argv: list[str] | None = None) -> int:
	p = _build_parser()
	args = p.parse_args(argv)

	if args.cmd == "build":
		return _cmd_build(args)
	if args.cmd == "errors":
		return _cmd_errors(args)
	if args.cmd == "inspect":
		return _cmd_inspect(args)

	raise AssertionError("unreachable")
