from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union


LIBRARY = "library"
EXECUTABLE = "executable"


@dataclass(frozen=True)
class Located:
    line: int
    column: int


@dataclass
class UseDecl:
    path: str
    alias: str
    loc: Located


@dataclass
class ConstDecl:
    name: str
    value: str
    loc: Located
    # Quoted values keep their text without the quotes.
    quoted: bool = False


@dataclass
class Instr:
    op: str
    arg: Optional[str]
    loc: Located


@dataclass
class IfBlock:
    cond: bool
    then_body: List["Op"]
    else_body: List["Op"]
    loc: Located


@dataclass
class WhileBlock:
    body: List["Op"]
    loc: Located


@dataclass
class RepeatBlock:
    count: int
    body: List["Op"]
    loc: Located


Op = Union[Instr, IfBlock, WhileBlock, RepeatBlock]


@dataclass
class ProcDef:
    name: str
    exported: bool
    num_locals: int
    body: List[Op]
    loc: Located


@dataclass
class EntryBlock:
    body: List[Op]
    loc: Located


@dataclass
class Module:
    path: str
    kind: str
    uses: List[UseDecl] = field(default_factory=list)
    consts: List[ConstDecl] = field(default_factory=list)
    procs: List[ProcDef] = field(default_factory=list)
    entries: List[EntryBlock] = field(default_factory=list)
    source_file: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.rsplit("::", 1)[-1]

    @property
    def exports(self) -> List[ProcDef]:
        return [p for p in self.procs if p.exported]
