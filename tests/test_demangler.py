"""
Tests for demangler.
"""

from dataclasses import dataclass
from typing import Type

import pytest

from msvc_demangler import (
    BadNumber,
    CallingConvention,
    CxxType,
    DanglingReference,
    DemangleError,
    FunctionClass,
    InvalidArrayDimension,
    NestingTooDeep,
    MsvcDemangler,
    UnknownCallingConvention,
    UnknownFunctionClass,
    UnknownPrimitiveType,
    UnknownStorageClass,
    UnterminatedParameterList,
    UnterminatedString,
    decode,
    demangle,
    parse,
)


@dataclass
class CaseData:
    input: str
    expected: str

    def test(self):
        """
        Run the demangler on the input and verify output matches.
        """
        try:
            actual = str(parse(self.input))
        except Exception as e:
            raise AssertionError(f"Failed on input `{self.input}`") from e

        assert self.expected == actual, (
            "\n" f"Input:    {self.input}\n" f"Expected: {self.expected}\n" f"Actual:   {actual}\n"
        )


@dataclass
class ErrorCaseData:
    input: str
    error: Type[DemangleError]

    def test(self):
        """
        Run the demangler on the input and verify that it fails with the expected error.
        """
        with pytest.raises(self.error) as excinfo:
            parse(self.input)
        assert str(excinfo.value), f"Empty error message for input `{self.input}`"


def test_basic():
    """
    Test very basic variables and free functions.
    """
    test_data = [
        CaseData(input="?x@@3HA", expected="int x"),
        CaseData(input="?foo@@YAHH@Z", expected="int foo(int)"),
        CaseData(input="?foo@@YAXX@Z", expected="void foo(void)"),
        CaseData(input="?bar@ns@@YAXPAH@Z", expected="void ns::bar(int*)"),
        CaseData(input="?pi@math@@3NA", expected="double math::pi"),
        CaseData(input="?f@@YAXHMN@Z", expected="void f(int,float,double)"),
    ]

    for test in test_data:
        test.test()


def test_primitive_types():
    """
    Verify every primitive type code.
    """
    test_data = [
        CaseData(
            input="?f@@YAXCDEFGHIJKMNO@Z",
            expected="void f(signed char,char,unsigned char,short,unsigned short,int,"
            "unsigned int,long,unsigned long,float,double,long double)",
        ),
        CaseData(
            input="?f@@YA_N_J_K_W@Z",
            expected="bool f(long long,unsigned long long,wchar_t)",
        ),
    ]

    for test in test_data:
        test.test()


def test_plain_identifier():
    """
    Symbols without the `?` marker are not mangled, and are returned as they are.
    """
    test_data = [
        CaseData(input="main", expected="main"),
        CaseData(input="_printf", expected="_printf"),
        CaseData(input="", expected=""),
    ]

    for test in test_data:
        test.test()

    sym = parse("main")
    assert sym.name_path == ["main"]
    assert sym.type.kind == CxxType.Kind.UNKNOWN


def test_pointers_and_references():
    """
    Verify pointers, references, and the storage classes of their targets.
    """
    test_data = [
        CaseData(input="?x@@3PAHA", expected="int*x"),
        CaseData(input="?x@@3PBHA", expected="int const*x"),
        CaseData(input="?x@@3QAHA", expected="int*const x"),
        CaseData(input="?x@@3QBHA", expected="int const*const x"),
        CaseData(input="?pp@@3PAPADA", expected="char**pp"),
        CaseData(input="?f@@YAXAAH@Z", expected="void f(int&)"),
        CaseData(input="?f@@YAXABH@Z", expected="void f(int const&)"),
        # Volatile and far targets are not printed.
        CaseData(input="?x@@3PCHA", expected="int*x"),
        CaseData(input="?x@@3PFHA", expected="int const*x"),
        # 64-bit pointers.
        CaseData(input="?x@@3PEAHA", expected="int*x"),
        CaseData(input="?x@@3PEBDA", expected="char const*x"),
    ]

    for test in test_data:
        test.test()


def test_function_pointers():
    """
    Pointers to functions must be parenthesized.
    """
    test_data = [
        CaseData(input="?fp@@3P6AHH@ZA", expected="int(*fp)(int)"),
        CaseData(input="?fp@@3P6AXXZA", expected="void(*fp)(void)"),
        CaseData(input="?fp@@3P6AHHD@ZA", expected="int(*fp)(int,char)"),
        CaseData(input="?call@@YAXP6AXH@Z@Z", expected="void call(void(*)(int))"),
    ]

    for test in test_data:
        test.test()


def test_arrays():
    """
    Verify arrays, multidimensional arrays and the array storage class suffix.
    """
    test_data = [
        CaseData(input="?arr@@3Y02HA", expected="int arr[3]"),
        CaseData(input="?grid@@3Y113HA", expected="int grid[2][4]"),
        CaseData(input="?buf@@3Y0BAA@DA", expected="char buf[256]"),
        CaseData(input="?tbl@@3Y02$$CBHA", expected="int const tbl[3]"),
        CaseData(input="?tbl@@3Y02$$CCHA", expected="int const tbl[3]"),
        CaseData(input="?tbl@@3Y02$$CDHA", expected="int const tbl[3]"),
        CaseData(input="?tbl@@3Y02$$CAHA", expected="int tbl[3]"),
        CaseData(input="?pa@@3PAY01HA", expected="int(*pa)[2]"),
        CaseData(input="?r@@3AAY02HA", expected="int(&r)[3]"),
    ]

    for test in test_data:
        test.test()


def test_tagged_types():
    """
    Verify struct, union, class and enum types, including qualified names.
    """
    test_data = [
        CaseData(input="?e@@3W4Color@@A", expected="enum Color e"),
        CaseData(input="?x@@3W4@A", expected="enum x"),
        CaseData(input="?p@@3UPoint@@A", expected="struct Point p"),
        CaseData(input="?u@@3TValue@@A", expected="union Value u"),
        CaseData(input="?draw@@YAXPAVShape@gfx@@@Z", expected="void draw(class gfx::Shape*)"),
        CaseData(input="?f@@YAXABUPoint@@@Z", expected="void f(struct Point const&)"),
    ]

    for test in test_data:
        test.test()


def test_templates():
    """
    Verify template instances and their argument lists.
    """
    test_data = [
        CaseData(input="?v@@3V?$vector@H@@A", expected="class vector<int>v"),
        CaseData(input="?m@@3U?$pair@HN@@A", expected="struct pair<int,double>m"),
        CaseData(
            input="?f@@YAXPAV?$vector@PAD@@@Z",
            expected="void f(class vector<char*>*)",
        ),
        CaseData(
            input="?f@@YAXV?$map@HV?$vector@H@@@@Z",
            expected="void f(class map<int,class vector<int>>)",
        ),
    ]

    for test in test_data:
        test.test()


def test_backreferences():
    """
    Digits inside names refer back to previously seen name parts.
    """
    test_data = [
        CaseData(input="?f@ns@@YAXPAUS@1@@Z", expected="void ns::f(struct ns::S*)"),
        CaseData(input="?x@0@3HA", expected="int x::x"),
        # Only the first 10 names are remembered, so `k` is never recorded.
        CaseData(
            input="?a@b@c@d@e@f@g@h@i@j@k@9@3HA",
            expected="int j::k::j::i::h::g::f::e::d::c::b::a",
        ),
    ]

    for test in test_data:
        test.test()


def test_member_functions():
    """
    Verify member functions, their function classes and calling conventions.
    """
    test_data = [
        CaseData(input="?get@Foo@@QAEHXZ", expected="int Foo::get(void)"),
        CaseData(input="?get@Foo@@QAEH@HZ", expected="int Foo::get(int)"),
        CaseData(input="?get@Foo@@QEAAHXZ", expected="int Foo::get(void)"),
        CaseData(input="?draw@Shape@@UAEXXZ", expected="void Shape::draw(void)"),
        CaseData(input="?count@Foo@@SAAHXZ", expected="int Foo::count(void)"),
    ]

    for test in test_data:
        test.test()

    sym = parse("?get@Foo@@QEAAHXZ")
    assert sym.is_function
    assert not sym.is_variable
    assert sym.qualified_name == "Foo::get"
    assert sym.function_class == FunctionClass.PUBLIC
    assert sym.calling_convention == CallingConvention.CDECL

    sym = parse("?draw@Shape@@UAEXXZ")
    assert sym.function_class == FunctionClass.PUBLIC | FunctionClass.VIRTUAL

    sym = parse("?count@Foo@@SGAHXZ")
    assert sym.function_class == FunctionClass.PUBLIC | FunctionClass.STATIC
    assert sym.calling_convention == CallingConvention.STDCALL

    sym = parse("?run@Task@@AIAHXZ")
    assert sym.function_class == FunctionClass.PRIVATE
    assert sym.calling_convention == CallingConvention.FASTCALL


def test_structors():
    """
    Constructors and destructors have special names and no return type.
    """
    test_data = [
        CaseData(input="??0Foo@@QAE@XZ", expected="Foo::Foo(void)"),
        CaseData(input="??1Foo@@QAE@XZ", expected="Foo::~Foo(void)"),
        CaseData(input="??0Foo@ns@@QAE@HZ", expected="ns::Foo::Foo(int)"),
        CaseData(input="??1Foo@@UAE@XZ", expected="Foo::~Foo(void)"),
    ]

    for test in test_data:
        test.test()

    sym = parse("??0Foo@@QAE@XZ")
    assert sym.type.inner.kind == CxxType.Kind.NO_RETURN_TYPE
    assert sym.qualified_name == "Foo::Foo"


def test_return_storage_class():
    """
    Free functions may prefix their return type with `?[A-D]`.
    """
    test_data = [
        CaseData(input="?name@@YA?BDX@Z", expected="char const name(void)"),
        CaseData(input="?name@@YA?ADX@Z", expected="char name(void)"),
        CaseData(input="?name@@YA?CHX@Z", expected="int name(void)"),
        CaseData(input="?name@@YAPBDX@Z", expected="char const*name(void)"),
    ]

    for test in test_data:
        test.test()


def test_errors():
    """
    Verify that malformed symbols fail with the right error.
    """
    test_data = [
        ErrorCaseData(input="?", error=UnterminatedString),
        ErrorCaseData(input="?foo", error=UnterminatedString),
        ErrorCaseData(input="?foo@bar", error=UnterminatedString),
        ErrorCaseData(input="?v@@3V?$vector", error=UnterminatedString),
        ErrorCaseData(input="?x@1@3HA", error=DanglingReference),
        ErrorCaseData(input="?x@@3Y0A", error=BadNumber),
        ErrorCaseData(input="?x@@3Y0", error=BadNumber),
        ErrorCaseData(input="?x@@3YA@HA", error=InvalidArrayDimension),
        ErrorCaseData(input="?x@@3Y?0HA", error=InvalidArrayDimension),
        ErrorCaseData(input="?x@@3Y00$$CZHA", error=UnknownStorageClass),
        ErrorCaseData(input="?x@@3ZA", error=UnknownPrimitiveType),
        ErrorCaseData(input="?x@@3", error=UnknownPrimitiveType),
        ErrorCaseData(input="?x@@3PA", error=UnknownPrimitiveType),
        ErrorCaseData(input="?x@@3" + "PA" * 200 + "HA", error=NestingTooDeep),
        ErrorCaseData(input="?f@@YBHH@Z", error=UnknownCallingConvention),
        ErrorCaseData(input="?f@@Y", error=UnknownCallingConvention),
        ErrorCaseData(input="?f@@WAEXXZ", error=UnknownFunctionClass),
        ErrorCaseData(input="?f@@", error=UnknownFunctionClass),
        ErrorCaseData(input="?fp@@3P6AHH", error=UnterminatedParameterList),
        ErrorCaseData(input="?v@@3V?$vector@H", error=UnterminatedParameterList),
    ]

    for test in test_data:
        test.test()


def test_error_messages():
    """
    Unknown codes are left in the buffer, so messages show the input starting at them.
    """
    with pytest.raises(UnknownCallingConvention, match="unknown calling convention: BHH@Z"):
        parse("?f@@YBHH@Z")

    with pytest.raises(UnknownFunctionClass, match="unknown func class: WAEXXZ"):
        parse("?f@@WAEXXZ")


def test_errors_are_value_errors():
    """
    All demangling errors are `ValueError`s.
    """
    with pytest.raises(ValueError):
        parse("?foo")


def test_decode():
    """
    `decode()` reports failures in the result instead of raising.
    """
    result = decode("?foo@@YAHH@Z")
    assert result.ok
    assert result.error == ""
    assert str(result) == "int foo(int)"
    assert result.symbol.name_path == ["foo"]

    result = decode("?foo")
    assert not result.ok
    assert result.symbol is None
    assert result.error
    assert str(result) == result.error


def test_demangle_passthrough():
    """
    `demangle()` returns symbols it cannot demangle unchanged.
    """
    assert demangle("?foo@@YAHH@Z") == "int foo(int)"
    assert demangle("?foo") == "?foo"
    assert demangle("?f@@YBHH@Z") == "?f@@YBHH@Z"


def test_idempotence():
    """
    Demangling the same symbol twice gives the same result, and no state leaks between
    symbols demangled by the same demangler.
    """
    for symbol in ["?foo@@YAHH@Z", "?f@ns@@YAXPAUS@1@@Z", "?foo"]:
        first = decode(symbol)
        second = decode(symbol)
        assert str(first) == str(second)
        assert first.ok == second.ok

    demangler = MsvcDemangler()
    assert str(demangler.parse("?a@b@@3HA")) == "int b::a"
    # `b` was remembered as name 1 by the previous symbol only.
    with pytest.raises(DanglingReference):
        demangler.parse("?x@1@3HA")
    assert str(demangler.parse("?a@b@@3HA")) == "int b::a"


def test_type_tree_is_a_tree():
    """
    No type node is reachable twice from the root.
    """
    sym = parse("?f@@YAXV?$map@HV?$vector@H@@@P6AHPAH@Z@Z")
    nodes = list(sym.type.walk())
    assert len(nodes) == len({id(n) for n in nodes})


def test_deep_nesting():
    """
    Types nested too deeply are reported as a demangling error rather than exhausting the
    stack, while reasonable nesting still works.
    """
    assert str(parse("?x@@3" + "PA" * 100 + "HA")) == "int" + "*" * 100 + "x"

    deep = "?x@@3" + "PA" * 2000 + "HA"
    with pytest.raises(NestingTooDeep, match="nested deeper than"):
        parse(deep)

    result = decode(deep)
    assert not result.ok
    assert result.error

    assert demangle(deep) == deep
    assert decode("?v@@3" + "V?$t@" * 500 + "H").error
