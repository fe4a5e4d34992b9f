"""Generating the cffi binding surface for libopus.

A one-line wrapper header pulls in ``opus.h``. It is run through the C
preprocessor with the include paths of the acquired library, parsed with
pycparser, and only declarations whose names match the allowlist are kept.
Integer ``#define`` constants come from a second preprocessor run that dumps
the macro table, so only macros reachable from ``opus.h`` are declared. The
result is a cdef (``opus_cdef.h``) plus the cffi extension source
(``_opus_cffi.c``) under the output directory.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from cffi import FFI
from pycparser import c_ast, c_generator, c_parser

from ..util import Echo, echo
from .acquire import Acquisition
from .config import BuildConfig
from .errors import BindingGenerationFailed
from .layout import LIB_NAME, BuildLayout, LinkDirectives
from .runner import CommandRunner, SubprocessRunner

MODULE_NAME = "pyopus._opus_cffi"
UMBRELLA_HEADER = "opus.h"

# GNU extensions in system headers that pycparser does not understand
GNU_STUBS = (
    "-D__attribute__(x)=",
    "-D__asm__(x)=",
    "-D__asm(x)=",
    "-D__extension__=",
    "-D__restrict=",
    "-D__restrict__=",
    "-D__inline=",
    "-D__inline__=",
    "-D__signed__=signed",
    "-D__builtin_va_list=void *",
    "-D_Noreturn=",
)

# MSVC extensions from vcruntime.h and friends
MSVC_STUBS = (
    "/D__int64=long long",
    "/D__int32=int",
    "/D__int16=short",
    "/D__int8=char",
    "/D__cdecl=",
    "/D__stdcall=",
    "/D__fastcall=",
    "/D__declspec(x)=",
    "/D__pragma(x)=",
    "/D__inline=",
    "/D__forceinline=",
    "/D__restrict=",
    "/D__ptr64=",
    "/D__unaligned=",
)

DEFINE_RE = re.compile(
    r"^[ \t]*#[ \t]*define[ \t]+(\w+)[ \t]+\(?[ \t]*(-?[ \t]*(?:0[xX][0-9a-fA-F]+|\d+))[uUlL]*"
    r"[ \t]*\)?[ \t]*(?:/\*.*?\*/[ \t]*|//.*)?$",
    re.MULTILINE,
)


def _compile(patterns: Iterable[str]) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p) for p in patterns)


@dataclass(frozen=True)
class SymbolAllowlist:
    """Name patterns for the symbols exported into the binding."""

    functions: tuple[str, ...] = (r"^opus_",)
    types: tuple[str, ...] = (r"^opus_", r"^OPUS_", r"^Opus")
    constants: tuple[str, ...] = (r"^OPUS_",)
    _compiled: dict = field(init=False, repr=False, compare=False, default_factory=dict)

    def _match(self, kind: str, name: str | None) -> bool:
        if not name:
            return False
        if kind not in self._compiled:
            self._compiled[kind] = _compile(getattr(self, kind))
        return any(p.match(name) for p in self._compiled[kind])

    def allows_function(self, name: str | None) -> bool:
        return self._match("functions", name)

    def allows_type(self, name: str | None) -> bool:
        return self._match("types", name)

    def allows_constant(self, name: str | None) -> bool:
        return self._match("constants", name)


OPUS_ALLOWLIST = SymbolAllowlist()


@dataclass(frozen=True)
class BindingRequest:
    header: Path
    include_paths: tuple[Path, ...]
    allowlist: SymbolAllowlist = OPUS_ALLOWLIST

    @property
    def include_flags(self) -> list[str]:
        return [f"-I{p}" for p in self.include_paths]


@dataclass
class Bindings:
    ffibuilder: FFI
    cdef: str
    cdef_path: Path
    c_source_path: Path


def write_wrapper_header(layout: BuildLayout) -> Path:
    path = layout.wrapper_header
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"#include <{UMBRELLA_HEADER}>\n", encoding="utf-8")
    return path


def _declared_type_name(node: c_ast.Node) -> str | None:
    """Name of a struct/union/enum declared without a variable."""
    if isinstance(node, (c_ast.Struct, c_ast.Union, c_ast.Enum)):
        return node.name
    return None


def select_declarations(ast: c_ast.FileAST, allowlist: SymbolAllowlist) -> list[str]:
    """Render the allowed top-level declarations of ``ast`` back to C."""
    generator = c_generator.CGenerator()
    selected = []
    for node in ast.ext:
        if isinstance(node, c_ast.Typedef):
            keep = allowlist.allows_type(node.name)
        elif isinstance(node, c_ast.Decl):
            if isinstance(node.type, c_ast.FuncDecl):
                keep = allowlist.allows_function(node.name)
            elif node.name is None:
                keep = allowlist.allows_type(_declared_type_name(node.type))
            else:
                # global variables are not part of the opus API
                keep = False
        else:
            keep = False
        if keep:
            selected.append(generator.visit(node) + ";")
    return selected


def extract_constants(macros: str, allowlist: SymbolAllowlist) -> list[str]:
    """Allowed integer ``#define``s in a preprocessor macro dump, in order."""
    seen = {}
    for match in DEFINE_RE.finditer(macros):
        name = match.group(1)
        if allowlist.allows_constant(name) and name not in seen:
            seen[name] = match.group(2)
    return list(seen)


def render_cdef(declarations: list[str], constants: list[str]) -> str:
    lines = [f"/* Generated by pyopus.build.bindings from {UMBRELLA_HEADER}. Do not edit. */", ""]
    lines += [f"#define {name} ..." for name in constants]
    if constants:
        lines.append("")
    lines += declarations
    lines.append("")
    return "\n".join(lines)


class CffiBindingGenerator:
    """Turns a :class:`BindingRequest` into a validated cffi cdef."""

    def __init__(self, runner: CommandRunner, preprocessor: str = "cc"):
        self.runner = runner
        self.preprocessor = preprocessor

    @property
    def is_msvc(self) -> bool:
        return Path(self.preprocessor).stem.lower() == "cl"

    def preprocess_command(self, request: BindingRequest) -> list[str]:
        if self.is_msvc:
            return [
                self.preprocessor,
                "/nologo",
                "/EP",
                *MSVC_STUBS,
                *request.include_flags,
                str(request.header),
            ]
        return [
            self.preprocessor,
            "-E",
            "-P",
            *GNU_STUBS,
            *request.include_flags,
            str(request.header),
        ]

    def macro_command(self, request: BindingRequest) -> list[str]:
        """Command dumping every macro defined after including the header."""
        if self.is_msvc:
            # /d1PP keeps the #define lines in the /EP output
            return [
                self.preprocessor,
                "/nologo",
                "/EP",
                "/d1PP",
                *MSVC_STUBS,
                *request.include_flags,
                str(request.header),
            ]
        return [
            self.preprocessor,
            "-dM",
            "-E",
            *GNU_STUBS,
            *request.include_flags,
            str(request.header),
        ]

    def _run(self, argv: list[str], request: BindingRequest) -> str:
        try:
            result = self.runner.run(argv)
        except OSError as e:
            raise BindingGenerationFailed(f"Unable to run {argv[0]}: {e}") from e
        if not result.ok:
            raise BindingGenerationFailed(
                f"Preprocessing {request.header} failed:\n{result.stderr.strip()}"
            )
        return result.stdout

    def preprocess(self, request: BindingRequest) -> str:
        return self._run(self.preprocess_command(request), request)

    def macros(self, request: BindingRequest) -> str:
        return self._run(self.macro_command(request), request)

    def generate(self, request: BindingRequest) -> str:
        text = self.preprocess(request)
        try:
            ast = c_parser.CParser().parse(text, filename=str(request.header))
        except Exception as e:
            raise BindingGenerationFailed(f"Unable to parse {request.header}: {e}") from e

        declarations = select_declarations(ast, request.allowlist)
        if not any("(" in decl for decl in declarations):
            raise BindingGenerationFailed(
                f"No functions in {request.header} matched the allowlist"
            )
        constants = extract_constants(self.macros(request), request.allowlist)
        cdef = render_cdef(declarations, constants)
        try:
            FFI().cdef(cdef)
        except Exception as e:
            raise BindingGenerationFailed(f"cffi rejected the generated cdef: {e}") from e
        return cdef


def _write_if_changed(path: Path, content: str, log: Echo) -> None:
    if path.exists() and path.read_text(encoding="utf-8") == content:
        log(f"No changes to {path}")
        return
    path.write_text(content, encoding="utf-8")
    log(f"Generated: {path}")


def make_ffibuilder(cdef: str, include_paths, directives: LinkDirectives) -> FFI:
    ffibuilder = FFI()
    ffibuilder.cdef(cdef)
    ffibuilder.set_source(
        MODULE_NAME,
        f"#include <{UMBRELLA_HEADER}>\n",
        include_dirs=[str(p) for p in include_paths],
        **directives.as_build_kwargs(),
    )
    return ffibuilder


def generate_bindings(
    config: BuildConfig,
    acquisition: Acquisition,
    runner: CommandRunner | None = None,
    *,
    generator: CffiBindingGenerator | None = None,
    log: Echo = echo,
) -> Bindings:
    """Generate, persist and return the bindings for an acquired libopus."""
    layout = config.layout
    generator = generator or CffiBindingGenerator(
        runner or SubprocessRunner(), config.preprocessor
    )
    request = BindingRequest(
        header=write_wrapper_header(layout),
        include_paths=acquisition.paths.include_paths,
    )
    log(f"Generating {LIB_NAME} bindings from {request.header}")
    cdef = generator.generate(request)
    _write_if_changed(layout.cdef_path, cdef, log)

    ffibuilder = make_ffibuilder(cdef, request.include_paths, acquisition.directives)
    try:
        ffibuilder.emit_c_code(str(layout.c_source_path))
    except Exception as e:
        raise BindingGenerationFailed(f"cffi could not emit {layout.c_source_path}: {e}") from e
    return Bindings(ffibuilder, cdef, layout.cdef_path, layout.c_source_path)
