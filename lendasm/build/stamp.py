# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Rerun detection.

A build is only repeated when a file under the ASM root changed, a setting
that shapes the outputs changed (namespace, registry location, the
generated-files toggle), or an output recorded by the previous build is
missing or modified. The stamp stored next to the outputs holds the input
fingerprint and the sha256 of every output written.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from lendasm.assembly.artifacts import canonical_json_bytes, sha256_hex, write_bytes_atomic
from lendasm.errors import IO_FAILURE, BuildError

STAMP_FILE_NAME = ".lendasm-stamp"
STAMP_FORMAT = "lendasm-stamp"


@dataclass(frozen=True)
class BuildStamp:
	fingerprint: str
	# output path -> sha256 hex of its bytes
	outputs: dict[str, str] = field(default_factory=dict)

	def outputs_intact(self) -> bool:
		for name, digest in self.outputs.items():
			path = Path(name)
			if not path.is_file():
				return False
			try:
				if sha256_hex(path.read_bytes()) != digest:
					return False
			except OSError:
				return False
		return True

	def to_dict(self) -> dict[str, Any]:
		return {"format": STAMP_FORMAT, "version": 0, "fingerprint": self.fingerprint, "outputs": dict(self.outputs)}


def source_fingerprint(source_dir: Path, settings: Mapping[str, Any]) -> str:
	"""sha256 over the build settings plus every file's relative path and bytes."""
	h = hashlib.sha256()
	h.update(canonical_json_bytes(dict(settings)))
	try:
		files = sorted(p for p in source_dir.rglob("*") if p.is_file())
		for path in files:
			rel = path.relative_to(source_dir).as_posix().encode("utf-8")
			h.update(len(rel).to_bytes(8, "little"))
			h.update(rel)
			data = path.read_bytes()
			h.update(len(data).to_bytes(8, "little"))
			h.update(data)
	except OSError as err:
		raise BuildError(
			reason_code=IO_FAILURE,
			message=f"failed to fingerprint source tree: {err}",
			source_path=str(getattr(err, "filename", None) or source_dir),
			operation="read",
		) from err
	return h.hexdigest()


def stamp_outputs(fingerprint: str, paths: Iterable[Path]) -> BuildStamp:
	"""Build a stamp recording the current bytes of `paths`."""
	outputs: dict[str, str] = {}
	for path in paths:
		try:
			outputs[str(path.resolve())] = sha256_hex(path.read_bytes())
		except OSError as err:
			raise BuildError(reason_code=IO_FAILURE, message=f"failed to read output: {err}", source_path=str(path), operation="read") from err
	return BuildStamp(fingerprint=fingerprint, outputs=outputs)


def load_stamp(out_dir: Path) -> BuildStamp | None:
	"""Return the recorded stamp; an absent or unreadable stamp means "rebuild"."""
	path = out_dir / STAMP_FILE_NAME
	if not path.is_file():
		return None
	try:
		data = json.loads(path.read_text(encoding="utf-8"))
	except (OSError, ValueError):
		return None
	if not isinstance(data, dict) or data.get("format") != STAMP_FORMAT or data.get("version") != 0:
		return None
	fingerprint = data.get("fingerprint")
	outputs = data.get("outputs")
	if not isinstance(fingerprint, str) or not isinstance(outputs, dict):
		return None
	if any(not isinstance(k, str) or not isinstance(v, str) for k, v in outputs.items()):
		return None
	return BuildStamp(fingerprint=fingerprint, outputs=outputs)


def save_stamp(out_dir: Path, stamp: BuildStamp) -> None:
	write_bytes_atomic(out_dir / STAMP_FILE_NAME, canonical_json_bytes(stamp.to_dict()) + b"\n")


def clear_stamp(out_dir: Path) -> None:
	path = out_dir / STAMP_FILE_NAME
	if path.exists():
		path.unlink()


__all__ = [
	"STAMP_FILE_NAME",
	"BuildStamp",
	"source_fingerprint",
	"stamp_outputs",
	"load_stamp",
	"save_stamp",
	"clear_stamp",
]
