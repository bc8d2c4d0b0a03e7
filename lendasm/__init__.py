# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
lendasm: build-time compilation of the lending protocol's ASM sources.

Subpackages:
  assembly: parser, assembler context and binary artifacts
  build:    source collection, library/program compilation, error registry

The CLI entrypoint is `lendasm.cli:main`.
"""

__version__ = "0.1.0"

__all__ = ["assembly", "build"]
