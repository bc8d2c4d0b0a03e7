# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import hashlib
import struct
from pathlib import Path

import pytest

from lendasm.assembly.artifacts import (
	HEADER_SIZE_V0,
	LIBRARY_MAGIC,
	Library,
	Program,
	decode_container,
	encode_container,
	read_artifact,
	write_bytes_atomic,
)
from lendasm.assembly.assembler import assemble_library, assemble_program
from lendasm.assembly.ast import EXECUTABLE
from lendasm.assembly.kernel import base_context
from lendasm.assembly.parser import parse_module


def _library() -> Library:
	src = 'const.ERR_X="boom"\nproc.helper.1\n\tloc_store.0\nend\nexport.run\n\texec.helper\n\tassert.err=ERR_X\nend\n'
	return assemble_library(base_context(), parse_module(src, path="lending::demo"))


def _program() -> Program:
	src = "use.miden::note\nbegin\n\trepeat.2\n\t\tpush.1\n\tend\n\texec.note::get_inputs\nend\n"
	return assemble_program(base_context(), parse_module(src, path="demo_note", kind=EXECUTABLE))


def test_library_roundtrip_is_byte_identical() -> None:
	lib = _library()
	data = lib.to_bytes()
	assert data[:8] == LIBRARY_MAGIC
	decoded = Library.from_bytes(data)
	assert decoded == lib
	assert decoded.to_bytes() == data


def test_program_roundtrip_preserves_entrypoint() -> None:
	program = _program()
	decoded = Program.from_bytes(program.to_bytes())
	assert decoded == program
	assert decoded.entrypoint == program.entrypoint
	assert decoded.libraries == ("miden::note",)


def test_tampered_payload_is_rejected() -> None:
	data = bytearray(_library().to_bytes())
	data[HEADER_SIZE_V0 + 5] ^= 0x01
	with pytest.raises(ValueError, match="sha256 mismatch"):
		Library.from_bytes(bytes(data))


def test_truncated_artifact_is_rejected() -> None:
	data = _library().to_bytes()
	with pytest.raises(ValueError, match="unexpected EOF"):
		Library.from_bytes(data[: HEADER_SIZE_V0 - 1])
	with pytest.raises(ValueError, match="length mismatch"):
		Library.from_bytes(data[:-1])


def test_program_bytes_are_not_a_library() -> None:
	with pytest.raises(ValueError, match="invalid artifact magic"):
		Library.from_bytes(_program().to_bytes())


def test_non_canonical_payload_is_rejected() -> None:
	data = encode_container(LIBRARY_MAGIC, {"b": 1, "a": 2})
	assert decode_container(LIBRARY_MAGIC, data) == {"a": 2, "b": 1}

	payload = b'{"b":1,"a":2}'
	header = struct.pack("<8sHHIQ32s", LIBRARY_MAGIC, 0, 0, HEADER_SIZE_V0, len(payload), hashlib.sha256(payload).digest())
	with pytest.raises(ValueError, match="not canonical"):
		decode_container(LIBRARY_MAGIC, header + payload)


def test_digest_mismatch_in_payload_is_rejected() -> None:
	obj = _library().to_dict()
	obj["procedures"][0]["digest"] = "00" * 32
	with pytest.raises(ValueError, match="digest mismatch"):
		Library.from_bytes(encode_container(LIBRARY_MAGIC, obj))


def test_write_and_read_artifacts(tmp_path: Path) -> None:
	lib_path = tmp_path / "out" / "demo.masl"
	prg_path = tmp_path / "out" / "demo_note.masb"
	_library().write_to_file(lib_path)
	_program().write_to_file(prg_path)

	assert isinstance(read_artifact(lib_path), Library)
	assert isinstance(read_artifact(prg_path), Program)
	assert sorted(p.name for p in (tmp_path / "out").iterdir()) == ["demo.masl", "demo_note.masb"]


def test_read_artifact_rejects_unknown_files(tmp_path: Path) -> None:
	path = tmp_path / "junk.masl"
	path.write_bytes(b"not an artifact")
	with pytest.raises(ValueError, match="not an ASM artifact"):
		read_artifact(path)


def test_atomic_write_replaces_existing_file(tmp_path: Path) -> None:
	path = tmp_path / "file.bin"
	path.write_bytes(b"old")
	write_bytes_atomic(path, b"new")
	assert path.read_bytes() == b"new"
	assert [p.name for p in tmp_path.iterdir()] == ["file.bin"]
