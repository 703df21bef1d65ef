import pytest
from sigbind.sigbind_datatypes import Arg, Contract, Target
from sigbind.sigbind_printer import Printer, dbg, is_array_type
from sigbind.sigbind_matcher import describe, UnorderedSignature


class A:
    pass


class B:
    pass


@pytest.fixture
def printer():
    return Printer()


def test_describe_empty_contract():
    assert describe(Contract.of()) == "()"

def test_describe_two_slots():
    assert describe(Contract.of(A, B)) == "( A, B)"

def test_describe_array_types_get_brackets():
    assert describe(Contract.of(list[A], B)) == "( A[], B)"
    assert describe(Contract.of(tuple[int, ...])) == "( int[])"

def test_describe_nested_arrays():
    assert describe(Contract.of(list[list[int]])) == "( int[][])"

def test_describe_ignores_tags():
    assert describe(Contract.of((str, "text"), A)) == "( str, A)"

def test_append_description_writes_into_buffer():
    sig = UnorderedSignature(Contract.of(A, B))
    buf = ["sig"]
    sig.append_description(buf)
    assert "".join(buf) == "sig( A, B)"

def test_is_array_type():
    assert is_array_type(list[int])
    assert is_array_type(tuple[str, ...])
    assert not is_array_type(tuple[str, int])
    assert not is_array_type(list)
    assert not is_array_type(A)

def test_type_name_for_typing_forms(printer):
    from typing import Any
    assert printer.type_name(Any) == "Any"
    assert printer.type_name(None) == "None"
    assert printer.type_name(dict[str, int]) == "dict[str, int]"

def test_format_arg_and_call_args(printer):
    c = Contract.of(A, (str, "text"))
    assert printer.format_arg(c[1]) == "Arg[1,str,text]"
    assert printer.format_call_args(c) == "(Arg[0,A,None], Arg[1,str,text])"

def test_format_target_plain_function(printer):
    def on_open(a, b):
        return None
    t = Target(on_open, [A, list[B]], name="on_open")
    text = printer.format_target(t)
    assert text.endswith("on_open(A, B[])")
    assert text.startswith(on_open.__module__)

def test_format_target_with_receiver(printer):
    class Socket:
        def on_open(self, a):
            return None
    t = Target(Socket.on_open, [A])
    assert printer.format_target(t, Socket) == "Socket.on_open(A)"

def test_format_runtime_types_marks_null(printer):
    assert printer.format_runtime_types(["x", None, 3, A()]) == "str, <null>, int, A"
    assert printer.format_runtime_types([]) == ""

def test_dbg_silent_without_env(monkeypatch, capsys):
    monkeypatch.delenv("SIGBIND_DEBUG", raising=False)
    dbg("hello")
    assert capsys.readouterr().err == ""

def test_dbg_writes_to_stderr_with_env(monkeypatch, capsys):
    monkeypatch.setenv("SIGBIND_DEBUG", "1")
    dbg("hello", 42)
    assert capsys.readouterr().err == "[DBG] hello 42\n"
