# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Library compilation ("contracts").

Each library unit becomes `<namespace>::<module_name>`. Units are compiled
one at a time and every compiled library is registered into the context
before the next unit is assembled, so a unit may import any sibling that
precedes it. The order is computed from the units' `use` declarations
(dependencies first, lexical order among independent units); a dependency
cycle fails the build.
"""

from __future__ import annotations

import heapq
from pathlib import Path
from typing import Mapping

from lendasm.assembly.artifacts import LIBRARY_EXTENSION, Library
from lendasm.assembly.assembler import AssemblerContext, assemble_library
from lendasm.assembly.ast import LIBRARY, Module
from lendasm.assembly.diagnostics import AssemblyError
from lendasm.assembly.kernel import base_context
from lendasm.assembly.parser import parse_module
from lendasm.config import DEFAULT_NAMESPACE
from lendasm.errors import ASSEMBLY_FAILED, DEPENDENCY_CYCLE, IO_FAILURE, BuildError

from .sources import SourceUnit, collect_units, prepare_output_dir


def library_path_for(namespace: str, module_name: str) -> str:
	return f"{namespace}::{module_name}"


def parse_library_unit(unit: SourceUnit, namespace: str) -> Module:
	try:
		return parse_module(unit.text, path=library_path_for(namespace, unit.module_name), kind=LIBRARY, source_file=str(unit.path))
	except AssemblyError as err:
		raise _assembly_failed(unit, err) from err


def order_library_modules(modules: Mapping[str, Module], namespace: str) -> list[str]:
	"""
	Return module names so that every module follows the siblings it imports.

	Imports outside `namespace` (kernel/std libraries) are ignored here; they
	resolve against the base context. Ties are broken lexically.
	"""
	deps: dict[str, set[str]] = {}
	dependents: dict[str, set[str]] = {name: set() for name in modules}
	prefix = f"{namespace}::"
	for name, module in modules.items():
		wanted = set()
		for use in module.uses:
			if use.path.startswith(prefix):
				target = use.path[len(prefix) :]
				if target in modules and target != name:
					wanted.add(target)
		deps[name] = wanted
		for target in wanted:
			dependents[target].add(name)

	remaining = {name: len(wanted) for name, wanted in deps.items()}
	ready = [name for name, count in remaining.items() if count == 0]
	heapq.heapify(ready)
	order: list[str] = []
	while ready:
		name = heapq.heappop(ready)
		order.append(name)
		for dependent in dependents[name]:
			remaining[dependent] -= 1
			if remaining[dependent] == 0:
				heapq.heappush(ready, dependent)

	if len(order) != len(modules):
		stuck = sorted(name for name, count in remaining.items() if count > 0)
		raise BuildError(
			reason_code=DEPENDENCY_CYCLE,
			message=f"library dependency cycle among: {', '.join(stuck)}",
			source_path=str(modules[stuck[0]].source_file) if stuck else None,
		)
	return order


def compile_library_unit(context: AssemblerContext, unit: SourceUnit, namespace: str = DEFAULT_NAMESPACE) -> tuple[AssemblerContext, Library]:
	"""
	One compile step: assemble `unit` against `context` and return the
	extended context together with the new library.
	"""
	module = parse_library_unit(unit, namespace)
	return _assemble_step(context, unit, module)


def compile_contracts(
	source_dir: Path,
	target_dir: Path,
	*,
	namespace: str = DEFAULT_NAMESPACE,
	context: AssemblerContext | None = None,
) -> tuple[AssemblerContext, list[Path]]:
	"""
	Compile every library unit in `source_dir` into `<target_dir>/<name>.masl`.

	Returns the final context (all libraries registered) and the written
	artifact paths in compile order. The first failing unit aborts the stage;
	units after it are not written.
	"""
	ctx = context if context is not None else base_context()
	prepare_output_dir(target_dir, LIBRARY_EXTENSION)

	units = {unit.module_name: unit for unit in collect_units(source_dir)}
	modules = {name: parse_library_unit(unit, namespace) for name, unit in sorted(units.items())}

	written: list[Path] = []
	for name in order_library_modules(modules, namespace):
		unit = units[name]
		ctx, library = _assemble_step(ctx, unit, modules[name])
		artifact_path = target_dir / f"{name}.{LIBRARY_EXTENSION}"
		try:
			library.write_to_file(artifact_path)
		except OSError as err:
			raise BuildError(reason_code=IO_FAILURE, message=f"failed to write library: {err}", source_path=str(artifact_path), operation="write") from err
		written.append(artifact_path)
	return ctx, written


def _assemble_step(context: AssemblerContext, unit: SourceUnit, module: Module) -> tuple[AssemblerContext, Library]:
	try:
		library = assemble_library(context, module)
		return context.with_library(library), library
	except AssemblyError as err:
		raise _assembly_failed(unit, err) from err


def _assembly_failed(unit: SourceUnit, err: AssemblyError) -> BuildError:
	return BuildError(
		reason_code=ASSEMBLY_FAILED,
		message=f"failed to assemble '{unit.module_name}'",
		source_path=str(unit.path),
		diagnostics=list(err.diagnostics),
	)


__all__ = [
	"DEFAULT_NAMESPACE",
	"library_path_for",
	"parse_library_unit",
	"order_library_modules",
	"compile_library_unit",
	"compile_contracts",
]
