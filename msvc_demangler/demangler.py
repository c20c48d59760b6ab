"""
Demangler for MSVC-style C++ symbols.

Mangled names look like `?name@scope@@<type>`: a `?` marker, a qualified name
written innermost-first with each part terminated by `@` (the whole name ends
with an empty part), then an encoding of the symbol's type. For example:

?x@@3HA                 int x
?foo@@YAHH@Z            int foo(int)
?bar@ns@@YAXPAH@Z       void ns::bar(int*)
??0Foo@@QAE@XZ          Foo::Foo(void)
"""

import logging

from msvc_demangler.cxx import (
    BackrefTable,
    CallingConvention,
    CxxSymbol,
    CxxType,
    DemangleResult,
    StorageClass,
    TypeArena,
)
from msvc_demangler.errors import (
    DemangleError,
    InvalidArrayDimension,
    NestingTooDeep,
    UnterminatedParameterList,
    UnterminatedString,
)
from msvc_demangler.io_util import Cursor, read_number
from msvc_demangler.token import (
    CallingConventionCode,
    FunctionClassCode,
    PrimitiveCode,
    StorageCode,
)

LOGGER = logging.getLogger(__name__)

# Marks a mangled symbol. Anything else is a plain identifier.
SYMBOL_MARKER = "?"
# Terminates name parts, names, and several argument lists.
NAME_TERMINATOR = "@"
# Deepest nesting of types within a symbol that is demangled.
MAX_TYPE_DEPTH = 128


class MsvcDemangler:
    """
    Demangler object.

    The parser state is reset for every call to `parse()`, so an instance can be reused.
    """

    def __init__(self):
        self._reset()

    def parse(self, symbol: str) -> CxxSymbol:
        """
        Demangle `symbol`. Raises a `DemangleError` on the first problem found.
        """
        self._reset()
        LOGGER.debug("demangling %r", symbol)

        try:
            return self._parse(Cursor(symbol))
        except DemangleError as e:
            LOGGER.debug("failed to demangle %r: %s", symbol, e)
            raise

    def _reset(self):
        """
        Reset the parser state.
        """
        # Owner of every type node of the current symbol.
        self._arena = TypeArena()
        # The first 10 names in a symbol can be referenced again with a single digit.
        self._backrefs = BackrefTable()
        # Nesting level of the type being read.
        self._depth = 0

    def _alloc(
        self,
        kind: CxxType.Kind = CxxType.Kind.UNKNOWN,
        qualifiers: StorageClass = StorageClass.NONE,
    ) -> CxxType:
        typ = self._arena.alloc(kind)
        typ.qualifiers = qualifiers
        return typ

    def _parse(self, src: Cursor) -> CxxSymbol:
        if not src.consume(SYMBOL_MARKER):
            LOGGER.debug("not a mangled symbol, keeping it as an identifier")
            return CxxSymbol(name_path=[src.remaining()], type=self._alloc())

        # The main symbol name. This may include namespaces or class names.
        name_path = self._read_name(src)

        if src.consume("3"):
            LOGGER.debug("variable %s", name_path)
            typ = self._alloc()
            self._read_var_type(src, typ)
        elif src.consume("Y"):
            LOGGER.debug("free function %s", name_path)
            typ = self._read_free_func_type(src)
        else:
            LOGGER.debug("member function %s", name_path)
            typ = self._read_member_func_type(src)

        return CxxSymbol(name_path=name_path, type=typ)

    def _read_free_func_type(self, src: Cursor) -> CxxType:
        """
        Read the type of a non-member function, after its `Y` code.
        """
        fn = self._alloc(CxxType.Kind.FUNCTION)
        fn.calling_convention = CallingConventionCode.read(src)

        fn.inner = self._alloc(qualifiers=StorageCode.read_for_return(src))
        self._read_var_type(src, fn.inner)

        while not src.empty() and not src.starts_with(NAME_TERMINATOR):
            fn.type_arguments.append(self._read_param(src))

        return fn

    def _read_member_func_type(self, src: Cursor) -> CxxType:
        """
        Read the type of a member function, starting at its function class code.
        """
        fn = self._alloc(CxxType.Kind.FUNCTION)
        fn.function_class = FunctionClassCode.read(src)
        # 64-bit symbols have an extra `E`.
        src.consume("E")
        fn.calling_convention = CallingConventionCode.read(src)

        fn.inner = self._read_func_return_type(src, StorageCode.read(src))

        while not src.empty() and not src.starts_with("Z"):
            fn.type_arguments.append(self._read_param(src))

        return fn

    def _read_func_return_type(self, src: Cursor, qualifiers: StorageClass) -> CxxType:
        """
        Read a member function's return type. Constructors and destructors have no
        declared return type, which is encoded as a lone `@`.
        """
        if src.consume(NAME_TERMINATOR):
            return self._alloc(CxxType.Kind.NO_RETURN_TYPE, qualifiers)

        typ = self._alloc(qualifiers=qualifiers)
        self._read_var_type(src, typ)
        src.consume(NAME_TERMINATOR)
        return typ

    def _read_param(self, src: Cursor) -> CxxType:
        typ = self._alloc()
        self._read_var_type(src, typ)
        return typ

    def _read_string(self, src: Cursor) -> str:
        """
        Read a name part, up to and including the next `@`.
        """
        value = src.read_until(NAME_TERMINATOR)
        if value is None:
            raise UnterminatedString(f"read_string: missing '@': {src.remaining()}")
        return value

    def _read_name(self, src: Cursor) -> list[str]:
        """
        Read a qualified name in the form `A@B@C@@`, which represents `C::B::A`.

        The name is returned innermost-first, ie. `["A", "B", "C"]`.
        """
        name_path: list[str] = []
        while not src.consume(NAME_TERMINATOR):
            if src.is_digit():
                name_path.append(self._backrefs.resolve(int(src.take_one())))
                continue

            part = self._read_string(src)
            name_path.append(part)
            self._backrefs.record(part)

        return name_path

    def _read_var_type(self, src: Cursor, typ: CxxType):
        """
        Read a type code and fill in `typ` with it.

        Storage classes of `typ` itself are set by the caller, since they are encoded in
        front of the type.
        """
        self._depth += 1
        if self._depth > MAX_TYPE_DEPTH:
            raise NestingTooDeep(
                f"types nested deeper than {MAX_TYPE_DEPTH} levels: {src.remaining()[:32]}"
            )
        self._read_type_code(src, typ)
        self._depth -= 1

    def _read_type_code(self, src: Cursor, typ: CxxType):
        if src.consume("T"):
            self._read_class(src, CxxType.Kind.UNION, typ)

        elif src.consume("U"):
            self._read_class(src, CxxType.Kind.STRUCT, typ)

        elif src.consume("V"):
            self._read_class(src, CxxType.Kind.CLASS, typ)

        elif src.consume("W4"):
            typ.kind = CxxType.Kind.ENUM
            typ.name_path = self._read_name(src)

        elif src.consume("P6A"):
            # Pointer to a cdecl function.
            typ.kind = CxxType.Kind.POINTER
            fn = typ.inner = self._alloc(CxxType.Kind.FUNCTION)
            fn.calling_convention = CallingConvention.CDECL
            fn.inner = self._alloc()
            self._read_var_type(src, fn.inner)

            while not (src.consume("@Z") or src.consume("Z")):
                if src.empty():
                    raise UnterminatedParameterList(
                        "missing 'Z' after parameters of pointed-to function"
                    )
                fn.type_arguments.append(self._read_param(src))

        elif src.consume("A"):
            self._read_pointer(src, CxxType.Kind.REFERENCE, typ)

        elif src.consume("P"):
            self._read_pointer(src, CxxType.Kind.POINTER, typ)

        elif src.consume("Q"):
            # Const pointer.
            typ.qualifiers |= StorageClass.CONST
            self._read_pointer(src, CxxType.Kind.POINTER, typ)

        elif src.consume("Y"):
            self._read_array(src, typ)

        else:
            typ.kind = PrimitiveCode.read(src)

    def _read_pointer(self, src: Cursor, kind: CxxType.Kind, typ: CxxType):
        """
        Read the target of a pointer or reference, after its type code.
        """
        typ.kind = kind
        # 64-bit symbols have an extra `E`.
        src.consume("E")
        typ.inner = self._alloc(qualifiers=StorageCode.read(src))
        self._read_var_type(src, typ.inner)

    def _read_array(self, src: Cursor, typ: CxxType):
        """
        Read an array type, after its `Y` code. Multidimensional arrays become a chain of
        array types, outermost dimension first.
        """
        dimension = read_number(src)
        if dimension <= 0:
            raise InvalidArrayDimension(f"invalid array dimension: {dimension}")

        elem = typ
        for _ in range(dimension):
            elem.kind = CxxType.Kind.ARRAY
            elem.array_extent = read_number(src)
            elem.inner = self._alloc()
            elem = elem.inner

        sclass = StorageCode.read_for_array(src)
        if sclass is not None:
            typ.qualifiers = sclass

        self._read_var_type(src, elem)

    def _read_class(self, src: Cursor, kind: CxxType.Kind, typ: CxxType):
        """
        Read the name of a struct, union or class, after its type code. Template
        instances are introduced by `?$` and carry their arguments after the base name.
        """
        typ.kind = kind
        if not src.consume("?$"):
            typ.name_path = self._read_name(src)
            return

        typ.name_path = [self._read_string(src)]
        while not src.consume(NAME_TERMINATOR):
            if src.empty():
                raise UnterminatedParameterList(
                    f"missing '@' after template arguments of {typ.name_path[0]}"
                )
            typ.type_arguments.append(self._read_param(src))


def parse(mangled: str) -> CxxSymbol:
    p = MsvcDemangler()
    result = p.parse(mangled)
    return result


def decode(mangled: str) -> DemangleResult:
    """
    Demangle a symbol, returning the error message in the result instead of raising.
    """
    try:
        return DemangleResult(symbol=parse(mangled))
    except DemangleError as e:
        return DemangleResult(error=str(e))


def demangle(mangled: str) -> str:
    try:
        return str(parse(mangled))
    except ValueError:
        return mangled
