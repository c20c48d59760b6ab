"""
Module implementing C++ type abstractions for MSVC-mangled symbols, and the
conversion of those types back into C++ declarations.
"""

from dataclasses import dataclass, field
from enum import Enum, Flag, auto
from io import StringIO
from typing import ClassVar, List, Optional

from msvc_demangler.errors import DanglingReference
from msvc_demangler.strenum import StrEnum


class StorageClass(Flag):
    """
    Qualifier bits attached to a type (or to the target of a pointer/reference).
    """

    NONE = 0
    CONST = auto()
    VOLATILE = auto()
    FAR = auto()
    HUGE = auto()
    UNALIGNED = auto()
    RESTRICT = auto()


class CallingConvention(Enum):
    CDECL = "__cdecl"
    PASCAL = "__pascal"
    THISCALL = "__thiscall"
    STDCALL = "__stdcall"
    FASTCALL = "__fastcall"
    REGCALL = "__regcall"


class FunctionClass(Flag):
    """
    Access and dispatch properties of a member (or global) function.
    """

    NONE = 0
    PUBLIC = auto()
    PROTECTED = auto()
    PRIVATE = auto()
    GLOBAL = auto()
    STATIC = auto()
    VIRTUAL = auto()
    FAR = auto()


@dataclass(eq=False)
class CxxType:
    """
    One node of a demangled type tree.

    Pointers, references, arrays and functions own exactly one `inner` node (the pointee,
    element or return type). Tag types (struct/union/class/enum) carry a qualified name,
    stored innermost-first. Functions and templates carry their parameters in
    `type_arguments`, in declaration order.
    """

    class Kind(StrEnum):
        # Abnormal types
        UNKNOWN = "unknown"
        NO_RETURN_TYPE = "none"

        # Compound types
        FUNCTION = "function"
        POINTER = "*"
        REFERENCE = "&"
        ARRAY = "[]"

        # Tagged types
        STRUCT = "struct"
        UNION = "union"
        CLASS = "class"
        ENUM = "enum"

        # Primitive types. The value is the C++ spelling.
        VOID = "void"
        BOOL = "bool"
        CHAR = "char"
        SIGNED_CHAR = "signed char"
        UNSIGNED_CHAR = "unsigned char"
        SHORT = "short"
        UNSIGNED_SHORT = "unsigned short"
        INT = "int"
        UNSIGNED_INT = "unsigned int"
        LONG = "long"
        UNSIGNED_LONG = "unsigned long"
        LONG_LONG = "long long"
        UNSIGNED_LONG_LONG = "unsigned long long"
        WIDE_CHAR = "wchar_t"
        FLOAT = "float"
        DOUBLE = "double"
        LONG_DOUBLE = "long double"

        def is_function(self) -> bool:
            return self == CxxType.Kind.FUNCTION

        def is_pointer(self) -> bool:
            return self == CxxType.Kind.POINTER

        def is_reference(self) -> bool:
            return self == CxxType.Kind.REFERENCE

        def is_ptr_or_ref(self) -> bool:
            return self.is_pointer() or self.is_reference()

        def is_array(self) -> bool:
            return self == CxxType.Kind.ARRAY

        def has_inner(self) -> bool:
            return self.is_function() or self.is_ptr_or_ref() or self.is_array()

        def is_tag(self) -> bool:
            return self in [
                CxxType.Kind.STRUCT,
                CxxType.Kind.UNION,
                CxxType.Kind.CLASS,
                CxxType.Kind.ENUM,
            ]

        def is_primitive(self) -> bool:
            return not (
                self in [CxxType.Kind.UNKNOWN, CxxType.Kind.NO_RETURN_TYPE]
                or self.has_inner()
                or self.is_tag()
            )

        def binds_tighter_than_pointer(self) -> bool:
            """
            Determine if a declarator of this kind takes precedence over `*` and `&`, so a
            pointer or reference to it has to be parenthesized.
            """
            return self.is_function() or self.is_array()

    kind: Kind = Kind.UNKNOWN
    qualifiers: StorageClass = StorageClass.NONE
    inner: Optional["CxxType"] = None
    calling_convention: Optional[CallingConvention] = None
    function_class: FunctionClass = FunctionClass.NONE
    array_extent: Optional[int] = None
    # Innermost name first: `["inner", "outer"]` is `outer::inner`.
    name_path: List[str] = field(default_factory=list)
    type_arguments: List["CxxType"] = field(default_factory=list)

    def __post_init__(self):
        """
        Validate the node's contents.
        """
        if self.inner is not None:
            assert self.kind.has_inner(), f"Type {self.kind.name} cannot have an inner type."

        if self.calling_convention is not None:
            assert (
                self.kind.is_function()
            ), f"Non-function type {self.kind.name} cannot have a calling convention."

        if self.array_extent is not None:
            assert (
                self.kind.is_array()
            ), f"Non-array type {self.kind.name} cannot have an array extent."

        if self.name_path:
            assert self.kind.is_tag(), f"Non-tag type {self.kind.name} cannot have a name."

    def is_const(self) -> bool:
        return bool(self.qualifiers & StorageClass.CONST)

    def walk(self):
        """
        Yield this node and every node it owns, depth first.
        """
        yield self
        if self.inner is not None:
            yield from self.inner.walk()
        for arg in self.type_arguments:
            yield from arg.walk()

    def __str__(self) -> str:
        """
        Format this type as an abstract declarator (a declaration without a name).
        """
        writer = DeclWriter()
        writer.write_prefix(self)
        writer.write_suffix(self)
        return writer.getvalue()


class TypeArena:
    """
    Owner of all type nodes created while demangling one symbol.

    The arena only ever hands out fresh nodes, so a node can never end up with two
    parents, and the resulting tree can never contain a cycle.
    """

    def __init__(self):
        self._nodes: list[CxxType] = []

    def alloc(self, kind: CxxType.Kind = CxxType.Kind.UNKNOWN) -> CxxType:
        node = CxxType(kind=kind)
        self._nodes.append(node)
        return node

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes)


class BackrefTable:
    """
    Memory for the first names seen in a mangled symbol.

    A digit `0`-`9` inside a qualified name refers back to the name with that index.
    """

    CAPACITY: ClassVar[int] = 10

    def __init__(self):
        self._names: list[str] = []

    def record(self, name: str):
        """
        Remember `name`, unless the table is already full.
        """
        if len(self._names) < self.CAPACITY:
            self._names.append(name)

    def resolve(self, index: int) -> str:
        """
        Return the name remembered at `index`.
        """
        if not 0 <= index < len(self._names):
            raise DanglingReference(
                f"name reference {index} is out of range ({len(self._names)} names remembered)"
            )
        return self._names[index]

    def __len__(self) -> int:
        return len(self._names)

    def __getitem__(self, index: int) -> str:
        return self._names[index]


class DeclWriter:
    """
    Converts type trees into C++ declaration text.

    C declarator syntax wraps the declared name: base types and `*`/`&` are written
    to its left, while array bounds and parameter lists are written to its right. So
    a type is written in two passes, `write_prefix()` before the name and
    `write_suffix()` after it. For example, for a pointer to a function returning int,
    the prefix pass writes `int(*`, and the suffix pass writes `)(int)`.
    """

    # Markers for constructor and destructor names.
    CTOR_PREFIX: ClassVar[str] = "?0"
    DTOR_PREFIX: ClassVar[str] = "?1"

    def __init__(self):
        self._out = StringIO()
        self._last = ""

    def write(self, text: str):
        if text:
            self._out.write(text)
            self._last = text[-1]

    def getvalue(self) -> str:
        return self._out.getvalue()

    def write_space(self):
        """
        Write a space if the previous character would otherwise run into the next word.
        """
        if self._last.isalpha():
            self.write(" ")

    def write_prefix(self, typ: CxxType):
        """
        Write the part of `typ` which appears to the left of the declared name.
        """
        kind = typ.kind

        if kind.is_function():
            # Only the return type goes to the left. Parameters are written by `write_suffix()`.
            self.write_prefix(typ.inner)
            return

        if kind.is_ptr_or_ref():
            self.write_prefix(typ.inner)
            if typ.inner.kind.binds_tighter_than_pointer():
                self.write("(")
            self.write(str(kind))
        elif kind.is_array():
            self.write_prefix(typ.inner)
        elif kind.is_tag():
            self.write(f"{kind} ")
            self.write_name(typ.name_path)
            if typ.type_arguments:
                self.write("<")
                self.write_params(typ.type_arguments)
                self.write(">")
        elif kind.is_primitive():
            self.write(str(kind))

        if typ.is_const():
            self.write_space()
            self.write("const")

    def write_suffix(self, typ: CxxType):
        """
        Write the part of `typ` which appears to the right of the declared name.
        """
        kind = typ.kind

        if kind.is_function():
            self.write("(")
            self.write_params(typ.type_arguments)
            self.write(")")
        elif kind.is_ptr_or_ref():
            if typ.inner.kind.binds_tighter_than_pointer():
                self.write(")")
            self.write_suffix(typ.inner)
        elif kind.is_array():
            self.write(f"[{typ.array_extent}]")
            self.write_suffix(typ.inner)

    def write_params(self, params: List[CxxType]):
        """
        Write a function parameter or template argument list, without the brackets.
        """
        for i, param in enumerate(params):
            if i != 0:
                self.write(",")
            self.write_prefix(param)
            self.write_suffix(param)

    def write_name(self, name_path: List[str]):
        """
        Write an innermost-first qualified name in `outer::inner` order.
        """
        if not name_path:
            return
        self.write_space()

        for scope in reversed(name_path[1:]):
            self.write(f"{scope}::")

        base = name_path[0]
        if base.startswith(self.CTOR_PREFIX):
            cls = base[len(self.CTOR_PREFIX) :]
            self.write(f"{cls}::{cls}")
        elif base.startswith(self.DTOR_PREFIX):
            cls = base[len(self.DTOR_PREFIX) :]
            self.write(f"{cls}::~{cls}")
        else:
            self.write(base)


@dataclass
class CxxSymbol:
    """
    Represents a demangled symbol: its qualified name and its type.
    """

    name_path: List[str]
    type: CxxType

    @property
    def qualified_name(self) -> str:
        """
        The symbol's name in `outer::inner` form, with constructor/destructor names expanded.
        """
        writer = DeclWriter()
        writer.write_name(self.name_path)
        return writer.getvalue()

    @property
    def is_function(self) -> bool:
        return self.type.kind.is_function()

    @property
    def is_variable(self) -> bool:
        return not (self.is_function or self.type.kind == CxxType.Kind.UNKNOWN)

    @property
    def calling_convention(self) -> Optional[CallingConvention]:
        return self.type.calling_convention

    @property
    def function_class(self) -> FunctionClass:
        return self.type.function_class

    def __str__(self) -> str:
        """
        Format this symbol as a C++ declaration.
        """
        writer = DeclWriter()
        writer.write_prefix(self.type)
        writer.write_name(self.name_path)
        writer.write_suffix(self.type)
        return writer.getvalue()


@dataclass
class DemangleResult:
    """
    Outcome of demangling one symbol. Exactly one of `symbol` and `error` is set.
    """

    symbol: Optional[CxxSymbol] = None
    error: str = ""

    def __post_init__(self):
        assert (self.symbol is None) != (
            not self.error
        ), "A result must have either a symbol or an error, not both."

    @property
    def ok(self) -> bool:
        return not self.error

    def __str__(self) -> str:
        return str(self.symbol) if self.ok else self.error
