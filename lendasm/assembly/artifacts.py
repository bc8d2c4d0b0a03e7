# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Compiled artifacts and their binary container (v0).

Both libraries (`.masl`) and programs (`.masb`) use the same tiny,
deterministic container:

- a fixed little-endian header carrying magic, version, the payload length
  and the payload sha256,
- followed by the payload: canonical JSON of the artifact.

Loaders verify the header and the payload hash before trusting the bytes.
Equal artifacts always serialize to equal bytes, and decoding then
re-encoding a container reproduces it byte-for-byte.
"""

from __future__ import annotations

import hashlib
import json
import os
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

LIBRARY_MAGIC = b"ASMLIB\0\0"
PROGRAM_MAGIC = b"ASMPRG\0\0"
VERSION = 0

LIBRARY_EXTENSION = "masl"
PROGRAM_EXTENSION = "masb"

# Header layout:
# magic(8), version(u16), flags(u16), header_size(u32), payload_len(u64),
# payload_sha256(32)
_HEADER_STRUCT = struct.Struct("<8sHHIQ32s")
HEADER_SIZE_V0 = _HEADER_STRUCT.size


def sha256_hex(data: bytes) -> str:
	"""Return sha256 hex digest for `data`."""
	return hashlib.sha256(data).hexdigest()


def canonical_json_bytes(obj: Any) -> bytes:
	"""
	Render JSON deterministically.

Rules:
	- UTF-8
	- no insignificant whitespace
	- stable key ordering
	"""
	return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def procedure_digest(num_locals: int, body: list[dict[str, Any]]) -> str:
	"""Content hash of a compiled procedure (stands in for a MAST root)."""
	return sha256_hex(canonical_json_bytes({"locals": num_locals, "body": body}))


@dataclass(frozen=True)
class Procedure:
	"""A compiled procedure; `body` is a list of JSON-able nodes."""

	name: str
	exported: bool
	num_locals: int
	digest: str
	body: list[dict[str, Any]] = field(default_factory=list)

	def to_dict(self) -> dict[str, Any]:
		return {
			"name": self.name,
			"exported": self.exported,
			"locals": self.num_locals,
			"digest": self.digest,
			"body": self.body,
		}

	@classmethod
	def from_dict(cls, obj: Mapping[str, Any]) -> "Procedure":
		name = obj.get("name")
		digest = obj.get("digest")
		num_locals = obj.get("locals")
		body = obj.get("body")
		if not isinstance(name, str) or not name:
			raise ValueError("procedure entry missing name")
		if not isinstance(digest, str) or not digest:
			raise ValueError(f"procedure '{name}' missing digest")
		if not isinstance(num_locals, int) or num_locals < 0:
			raise ValueError(f"procedure '{name}' has invalid locals count")
		if not isinstance(body, list):
			raise ValueError(f"procedure '{name}' body must be a list")
		if procedure_digest(num_locals, body) != digest:
			raise ValueError(f"procedure '{name}' digest mismatch")
		return cls(name=name, exported=bool(obj.get("exported")), num_locals=num_locals, digest=digest, body=body)


@dataclass(frozen=True)
class Library:
	"""
	A compiled, namespaced collection of procedures.

	`path` is the namespaced module path (e.g. `lending::price_oracle`);
	`dependencies` lists the module paths it imports.
	"""

	path: str
	procedures: tuple[Procedure, ...]
	dependencies: tuple[str, ...] = ()

	@property
	def name(self) -> str:
		return self.path.rsplit("::", 1)[-1]

	@property
	def namespace(self) -> str:
		return self.path.rsplit("::", 1)[0] if "::" in self.path else ""

	@property
	def exports(self) -> dict[str, Procedure]:
		return {p.name: p for p in self.procedures if p.exported}

	def get_export(self, name: str) -> Procedure | None:
		for p in self.procedures:
			if p.exported and p.name == name:
				return p
		return None

	def to_dict(self) -> dict[str, Any]:
		return {
			"kind": "library",
			"path": self.path,
			"dependencies": list(self.dependencies),
			"procedures": [p.to_dict() for p in self.procedures],
		}

	@classmethod
	def from_dict(cls, obj: Mapping[str, Any]) -> "Library":
		if obj.get("kind") != "library":
			raise ValueError("payload is not a library")
		path = obj.get("path")
		deps = obj.get("dependencies")
		procs = obj.get("procedures")
		if not isinstance(path, str) or not path:
			raise ValueError("library payload missing path")
		if not isinstance(deps, list) or any(not isinstance(d, str) for d in deps):
			raise ValueError("library dependencies must be a list of strings")
		if not isinstance(procs, list) or any(not isinstance(p, dict) for p in procs):
			raise ValueError("library procedures must be a list of objects")
		return cls(path=path, procedures=tuple(Procedure.from_dict(p) for p in procs), dependencies=tuple(deps))

	def to_bytes(self) -> bytes:
		return encode_container(LIBRARY_MAGIC, self.to_dict())

	@classmethod
	def from_bytes(cls, data: bytes) -> "Library":
		return cls.from_dict(decode_container(LIBRARY_MAGIC, data))

	def write_to_file(self, path: Path) -> None:
		write_bytes_atomic(path, self.to_bytes())

	@classmethod
	def read_from_file(cls, path: Path) -> "Library":
		return cls.from_bytes(path.read_bytes())


@dataclass(frozen=True)
class Program:
	"""A compiled standalone program: an entry body plus its local procedures."""

	name: str
	body: list[dict[str, Any]]
	procedures: tuple[Procedure, ...] = ()
	libraries: tuple[str, ...] = ()

	@property
	def entrypoint(self) -> str:
		return procedure_digest(0, self.body)

	def to_dict(self) -> dict[str, Any]:
		return {
			"kind": "program",
			"name": self.name,
			"entrypoint": self.entrypoint,
			"body": self.body,
			"procedures": [p.to_dict() for p in self.procedures],
			"libraries": list(self.libraries),
		}

	@classmethod
	def from_dict(cls, obj: Mapping[str, Any]) -> "Program":
		if obj.get("kind") != "program":
			raise ValueError("payload is not a program")
		name = obj.get("name")
		body = obj.get("body")
		procs = obj.get("procedures")
		libs = obj.get("libraries")
		if not isinstance(name, str) or not name:
			raise ValueError("program payload missing name")
		if not isinstance(body, list):
			raise ValueError("program body must be a list")
		if not isinstance(procs, list) or any(not isinstance(p, dict) for p in procs):
			raise ValueError("program procedures must be a list of objects")
		if not isinstance(libs, list) or any(not isinstance(lib, str) for lib in libs):
			raise ValueError("program libraries must be a list of strings")
		program = cls(name=name, body=body, procedures=tuple(Procedure.from_dict(p) for p in procs), libraries=tuple(libs))
		if obj.get("entrypoint") != program.entrypoint:
			raise ValueError("program entrypoint digest mismatch")
		return program

	def to_bytes(self) -> bytes:
		return encode_container(PROGRAM_MAGIC, self.to_dict())

	@classmethod
	def from_bytes(cls, data: bytes) -> "Program":
		return cls.from_dict(decode_container(PROGRAM_MAGIC, data))

	def write_to_file(self, path: Path) -> None:
		write_bytes_atomic(path, self.to_bytes())

	@classmethod
	def read_from_file(cls, path: Path) -> "Program":
		return cls.from_bytes(path.read_bytes())


def encode_container(magic: bytes, payload_obj: Mapping[str, Any]) -> bytes:
	payload = canonical_json_bytes(dict(payload_obj))
	header = _HEADER_STRUCT.pack(
		magic,
		VERSION,
		0,
		HEADER_SIZE_V0,
		len(payload),
		hashlib.sha256(payload).digest(),
	)
	return header + payload


def decode_container(magic: bytes, data: bytes) -> dict[str, Any]:
	"""
	Decode a container and verify integrity.

Verification steps:
	- header magic/version/flags/size
	- payload length matches the header exactly (no trailing bytes)
	- payload sha256 matches the header
	- payload is canonical JSON (re-encoding reproduces it)
	"""
	if len(data) < HEADER_SIZE_V0:
		raise ValueError("unexpected EOF while reading artifact header")
	got_magic, version, flags, header_size, payload_len, payload_sha = _HEADER_STRUCT.unpack(data[:HEADER_SIZE_V0])
	if got_magic != magic:
		raise ValueError("invalid artifact magic")
	if version != VERSION:
		raise ValueError(f"unsupported artifact version {version}")
	if flags != 0:
		raise ValueError("unsupported artifact flags")
	if header_size != HEADER_SIZE_V0:
		raise ValueError("unsupported header size")
	payload = data[HEADER_SIZE_V0:]
	if len(payload) != payload_len:
		raise ValueError("artifact payload length mismatch")
	if hashlib.sha256(payload).digest() != payload_sha:
		raise ValueError("artifact payload sha256 mismatch")
	obj = json.loads(payload.decode("utf-8"))
	if not isinstance(obj, dict):
		raise ValueError("artifact payload must be a JSON object")
	if canonical_json_bytes(obj) != payload:
		raise ValueError("artifact payload is not canonical JSON")
	return obj


def write_bytes_atomic(path: Path, data: bytes) -> None:
	"""
	Write `data` to `path` via a temp file + `os.replace`.

	Readers never observe a partially written file; on failure the temp file
	is removed and any previous `path` is left untouched.
	"""
	path.parent.mkdir(parents=True, exist_ok=True)
	tmp = path.with_name(path.name + f".tmp.{os.getpid()}")
	try:
		with tmp.open("wb") as f:
			f.write(data)
		os.replace(tmp, path)
	finally:
		if tmp.exists():
			tmp.unlink()


def read_artifact(path: Path) -> Library | Program:
	"""Decode either artifact kind, dispatching on the header magic."""
	data = path.read_bytes()
	if data[:8] == LIBRARY_MAGIC:
		return Library.from_bytes(data)
	if data[:8] == PROGRAM_MAGIC:
		return Program.from_bytes(data)
	raise ValueError(f"{path}: not an ASM artifact")


__all__ = [
	"LIBRARY_EXTENSION",
	"PROGRAM_EXTENSION",
	"Procedure",
	"Library",
	"Program",
	"canonical_json_bytes",
	"procedure_digest",
	"sha256_hex",
	"encode_container",
	"decode_container",
	"write_bytes_atomic",
	"read_artifact",
]
