import dataclasses
from typing import Annotated

import pytest
from sigbind.sigbind_datatypes import (
    Arg, Contract, Target, Tag, ArgIdentifier,
    DynamicArgsError, UnresolvableParameter, InvocationFailure, CatalogError
)


class Session:
    pass


class Message:
    pass


# --- Arg Tests ---

def test_arg_with_tag_returns_new_descriptor():
    a = Arg(0, str)
    b = a.with_tag("text")
    assert a.tag is None
    assert b.tag == "text"
    assert b.index == 0 and b.type is str

def test_arg_is_immutable():
    a = Arg(0, str)
    with pytest.raises(dataclasses.FrozenInstanceError):
        a.tag = "x"

def test_arg_tag_matches_requires_both_tags():
    assert Arg(0, str, "t").tag_matches(Arg(3, int, "t"))
    assert not Arg(0, str, None).tag_matches(Arg(0, str, None))
    assert not Arg(0, str, "t").tag_matches(Arg(0, str, None))
    assert not Arg(0, str, "a").tag_matches(Arg(0, str, "b"))

def test_arg_type_matches_on_identity_and_alias_equality():
    assert Arg(0, Session).type_matches(Arg(5, Session))
    assert not Arg(0, Session).type_matches(Arg(0, Message))
    assert Arg(0, list[str]).type_matches(Arg(1, list[str]))

def test_arg_equality_ignores_metadata():
    assert Arg(0, str, "t", (1,)) == Arg(0, str, "t", ())

def test_arg_repr():
    assert repr(Arg(1, Session, "s")) == "Arg[1,Session,s]"


# --- Contract Tests ---

def test_contract_of_assigns_positions_in_order():
    c = Contract.of(Session, (str, "text"), Message)
    assert len(c) == 3
    assert [a.index for a in c] == [0, 1, 2]
    assert c[1].type is str and c[1].tag == "text"
    assert c[0].tag is None

def test_contract_rejects_reused_positions():
    with pytest.raises(ValueError):
        Contract([Arg(0, str), Arg(0, int)])

def test_contract_rejects_negative_positions():
    with pytest.raises(ValueError):
        Contract([Arg(-1, str)])

def test_contract_rejects_non_arg_slots():
    with pytest.raises(TypeError):
        Contract([str])

def test_contract_equality_and_hash():
    assert Contract.of(str, int) == Contract.of(str, int)
    assert hash(Contract.of(str, int)) == hash(Contract.of(str, int))
    assert Contract.of(str, int) != Contract.of(int, str)

def test_empty_contract():
    c = Contract.of()
    assert len(c) == 0
    assert list(c) == []


# --- Target Tests ---

def test_target_explicit_param_types():
    def handler(msg, session):
        return None
    t = Target(handler, [Message, Session])
    assert len(t) == 2
    assert t.name == handler.__qualname__
    raw = t.raw_args()
    assert [(a.index, a.type, a.tag) for a in raw] == [(0, Message, None), (1, Session, None)]

def test_target_rejects_non_callable():
    with pytest.raises(TypeError):
        Target("not callable", [])

def test_target_custom_name():
    t = Target(lambda: None, [], name="on-open")
    assert t.name == "on-open"

def test_target_from_annotations_reads_types_and_annotated_extras():
    def handler(session: Session, text: Annotated[str, Tag("text")]):
        return None
    t = Target.from_annotations(handler)
    assert t.param_types == (Session, str)
    assert t.metadata[0] == ()
    assert t.metadata[1] == (Tag("text"),)

def test_target_from_annotations_skips_receiver():
    class Socket:
        def on_message(self, msg: Message, session: Session):
            return None
    t = Target.from_annotations(Socket.on_message, receiver=True)
    assert t.param_types == (Message, Session)

def test_target_from_annotations_rejects_keyword_only():
    def handler(session: Session, *, text: str):
        return None
    with pytest.raises(TypeError):
        Target.from_annotations(handler)


# --- ArgIdentifier / exceptions ---

def test_arg_identifier_is_abstract():
    with pytest.raises(TypeError):
        ArgIdentifier()

def test_arg_identifier_call_delegates_to_apply():
    class Everything(ArgIdentifier):
        def apply(self, arg):
            return arg.with_tag("all")
    assert Everything()(Arg(0, str)).tag == "all"

def test_exception_hierarchy():
    for cls in (UnresolvableParameter, InvocationFailure, CatalogError):
        assert issubclass(cls, DynamicArgsError)
    err = CatalogError("bad", detail="more")
    assert str(err) == "bad"
    assert err.detail == "more"
