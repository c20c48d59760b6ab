"""
Python package which implements a demangler for MSVC-style C++ symbols.
"""

from msvc_demangler.cxx import (
    BackrefTable,
    CallingConvention,
    CxxSymbol,
    CxxType,
    DeclWriter,
    DemangleResult,
    FunctionClass,
    StorageClass,
    TypeArena,
)
from msvc_demangler.demangler import MsvcDemangler, decode, demangle, parse
from msvc_demangler.errors import (
    BadNumber,
    DanglingReference,
    DemangleError,
    InvalidArrayDimension,
    NestingTooDeep,
    UnknownCallingConvention,
    UnknownFunctionClass,
    UnknownPrimitiveType,
    UnknownStorageClass,
    UnterminatedParameterList,
    UnterminatedString,
)

__all__ = [
    "parse",
    "decode",
    "demangle",
    "MsvcDemangler",
    "BackrefTable",
    "CallingConvention",
    "CxxSymbol",
    "CxxType",
    "DeclWriter",
    "DemangleResult",
    "FunctionClass",
    "StorageClass",
    "TypeArena",
    "DemangleError",
    "BadNumber",
    "DanglingReference",
    "InvalidArrayDimension",
    "NestingTooDeep",
    "UnknownCallingConvention",
    "UnknownFunctionClass",
    "UnknownPrimitiveType",
    "UnknownStorageClass",
    "UnterminatedParameterList",
    "UnterminatedString",
]
