"""
Module implementing the MSVC code tables: single-letter (and a few multi-letter)
codes for primitive types, storage classes, function classes and calling conventions.

Each table knows how to read its own code from a `Cursor`. This keeps the letter
soup out of the parser.
"""

from typing import ClassVar, Optional

from msvc_demangler.cxx import CallingConvention, CxxType, FunctionClass, StorageClass
from msvc_demangler.errors import (
    UnknownCallingConvention,
    UnknownFunctionClass,
    UnknownPrimitiveType,
    UnknownStorageClass,
)
from msvc_demangler.io_util import Cursor


class PrimitiveCode:
    """
    Codes for fundamental types.
    """

    _SINGLE_MAP: ClassVar[dict[str, CxxType.Kind]] = {
        "X": CxxType.Kind.VOID,
        "D": CxxType.Kind.CHAR,
        "C": CxxType.Kind.SIGNED_CHAR,
        "E": CxxType.Kind.UNSIGNED_CHAR,
        "F": CxxType.Kind.SHORT,
        "G": CxxType.Kind.UNSIGNED_SHORT,
        "H": CxxType.Kind.INT,
        "I": CxxType.Kind.UNSIGNED_INT,
        "J": CxxType.Kind.LONG,
        "K": CxxType.Kind.UNSIGNED_LONG,
        "M": CxxType.Kind.FLOAT,
        "N": CxxType.Kind.DOUBLE,
        "O": CxxType.Kind.LONG_DOUBLE,
    }
    # Extended types are prefixed with `_`.
    _EXTENDED_MAP: ClassVar[dict[str, CxxType.Kind]] = {
        "_N": CxxType.Kind.BOOL,
        "_J": CxxType.Kind.LONG_LONG,
        "_K": CxxType.Kind.UNSIGNED_LONG_LONG,
        "_W": CxxType.Kind.WIDE_CHAR,
    }

    @staticmethod
    def read(src: Cursor) -> CxxType.Kind:
        char = src.take_one()
        kind = PrimitiveCode._SINGLE_MAP.get(char)
        if kind is not None:
            return kind

        src.push_back(char)
        for code, kind in PrimitiveCode._EXTENDED_MAP.items():
            if src.consume(code):
                return kind

        raise UnknownPrimitiveType(f"unknown primitive type: {src.remaining()}")


class StorageCode:
    """
    Storage classes of pointer and reference targets, function return types and arrays.
    """

    _MAP: ClassVar[dict[str, StorageClass]] = {
        "A": StorageClass.NONE,
        "B": StorageClass.CONST,
        "C": StorageClass.VOLATILE,
        "D": StorageClass.CONST | StorageClass.VOLATILE,
        "E": StorageClass.FAR,
        "F": StorageClass.CONST | StorageClass.FAR,
        "G": StorageClass.VOLATILE | StorageClass.FAR,
        "H": StorageClass.CONST | StorageClass.VOLATILE | StorageClass.FAR,
    }
    # Only found in front of a free function's return type.
    _RETURN_MAP: ClassVar[dict[str, StorageClass]] = {
        "?A": StorageClass.NONE,
        "?B": StorageClass.CONST,
        "?C": StorageClass.VOLATILE,
        "?D": StorageClass.CONST | StorageClass.VOLATILE,
    }
    # Follows the `$$C` marker after array dimensions. `C` and `D` are both const volatile.
    _ARRAY_MARKER: ClassVar[str] = "$$C"
    _ARRAY_MAP: ClassVar[dict[str, StorageClass]] = {
        "A": StorageClass.NONE,
        "B": StorageClass.CONST,
        "C": StorageClass.CONST | StorageClass.VOLATILE,
        "D": StorageClass.CONST | StorageClass.VOLATILE,
    }

    @staticmethod
    def read(src: Cursor) -> StorageClass:
        """
        Read a storage class code. An unknown code is left in the buffer and treated as
        no storage class.
        """
        char = src.take_one()
        sclass = StorageCode._MAP.get(char)
        if sclass is None:
            src.push_back(char)
            return StorageClass.NONE
        return sclass

    @staticmethod
    def read_for_return(src: Cursor) -> StorageClass:
        """
        Read the optional `?[A-D]` storage class of a free function's return type.
        """
        for code, sclass in StorageCode._RETURN_MAP.items():
            if src.consume(code):
                return sclass
        return StorageClass.NONE

    @staticmethod
    def read_for_array(src: Cursor) -> Optional[StorageClass]:
        """
        Read the optional `$$C` storage class suffix of an array declaration.

        Returns `None` if there is no suffix.
        """
        if not src.consume(StorageCode._ARRAY_MARKER):
            return None

        for code, sclass in StorageCode._ARRAY_MAP.items():
            if src.consume(code):
                return sclass

        raise UnknownStorageClass(f"unknown storage class: {src.remaining()}")


class FunctionClassCode:
    """
    Access and dispatch codes of functions.
    """

    _MAP: ClassVar[dict[str, FunctionClass]] = {
        "A": FunctionClass.PRIVATE,
        "B": FunctionClass.PRIVATE | FunctionClass.FAR,
        "C": FunctionClass.PRIVATE | FunctionClass.STATIC,
        "D": FunctionClass.PRIVATE | FunctionClass.STATIC | FunctionClass.FAR,
        "E": FunctionClass.PRIVATE | FunctionClass.VIRTUAL,
        "F": FunctionClass.PRIVATE | FunctionClass.VIRTUAL | FunctionClass.FAR,
        "I": FunctionClass.PROTECTED,
        "J": FunctionClass.PROTECTED | FunctionClass.FAR,
        "K": FunctionClass.PROTECTED | FunctionClass.STATIC,
        "L": FunctionClass.PROTECTED | FunctionClass.STATIC | FunctionClass.FAR,
        "M": FunctionClass.PROTECTED | FunctionClass.VIRTUAL,
        "N": FunctionClass.PROTECTED | FunctionClass.VIRTUAL | FunctionClass.FAR,
        "Q": FunctionClass.PUBLIC,
        "R": FunctionClass.PUBLIC | FunctionClass.FAR,
        "S": FunctionClass.PUBLIC | FunctionClass.STATIC,
        "T": FunctionClass.PUBLIC | FunctionClass.STATIC | FunctionClass.FAR,
        "U": FunctionClass.PUBLIC | FunctionClass.VIRTUAL,
        "V": FunctionClass.PUBLIC | FunctionClass.VIRTUAL | FunctionClass.FAR,
        "Y": FunctionClass.GLOBAL,
        "Z": FunctionClass.GLOBAL | FunctionClass.FAR,
    }

    @staticmethod
    def read(src: Cursor) -> FunctionClass:
        char = src.take_one()
        fclass = FunctionClassCode._MAP.get(char)
        if fclass is None:
            src.push_back(char)
            raise UnknownFunctionClass(f"unknown func class: {src.remaining()}")
        return fclass


class CallingConventionCode:
    """
    Calling convention codes.
    """

    _MAP: ClassVar[dict[str, CallingConvention]] = {
        "A": CallingConvention.CDECL,
        "C": CallingConvention.PASCAL,
        "E": CallingConvention.THISCALL,
        "G": CallingConvention.STDCALL,
        "I": CallingConvention.FASTCALL,
    }

    @staticmethod
    def read(src: Cursor) -> CallingConvention:
        char = src.take_one()
        conv = CallingConventionCode._MAP.get(char)
        if conv is None:
            src.push_back(char)
            raise UnknownCallingConvention(f"unknown calling convention: {src.remaining()}")
        return conv
