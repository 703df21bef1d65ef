"""
Argument descriptor resolution.

Each parameter of a target becomes an `Arg` that is passed through the
resolver chain top-to-bottom. A resolver sees the output of the one before
it, so when two resolvers tag the same descriptor the later one wins.
"""
from typing import Any, Dict, Iterable, List

from sigbind.sigbind_datatypes import Arg, ArgIdentifier, Resolver, Tag, Target
from sigbind.sigbind_printer import dbg


def resolve_arg(arg: Arg, resolvers: Iterable[Resolver]) -> Arg:
    """Run `arg` through every resolver in order.

    A resolver that raises, or returns something other than an Arg, is
    skipped for this descriptor only. Resolvers may replace a tag but never
    clear one.
    """
    for resolver in resolvers:
        try:
            out = resolver(arg)
        except Exception as e:
            dbg("resolver failed", _resolver_name(resolver), "on", repr(arg), f"{type(e).__name__}: {e}")
            continue
        if not isinstance(out, Arg):
            dbg("resolver returned non-Arg", _resolver_name(resolver), type(out).__name__)
            continue
        if out.tag is None and arg.tag is not None:
            out = out.with_tag(arg.tag)
        arg = out
    return arg


def resolve_args(target: Target, resolvers: Iterable[Resolver] = ()) -> List[Arg]:
    """Resolved descriptors for every parameter of `target`, in declaration order."""
    chain = list(resolvers or ())
    return [resolve_arg(arg, chain) for arg in target.raw_args()]


def _resolver_name(resolver) -> str:
    if isinstance(resolver, ArgIdentifier):
        return type(resolver).__name__
    return getattr(resolver, "__qualname__", None) or repr(resolver)


# =================================================================
# Built-in identifiers
# =================================================================

class AnnotatedTagIdentifier(ArgIdentifier):
    """Tags parameters declared as `Annotated[T, Tag("name")]`.

    When several Tag markers are present the last one is used.
    """

    def apply(self, arg: Arg) -> Arg:
        tag = None
        for extra in arg.metadata:
            if isinstance(extra, Tag):
                tag = extra.name
        if tag is None:
            return arg
        return arg.with_tag(tag)


class TypeTagIdentifier(ArgIdentifier):
    """Tags parameters whose declared type (or a base of it) is in `mapping`."""

    def __init__(self, mapping: Dict[Any, Any]):
        self.mapping = dict(mapping)

    def apply(self, arg: Arg) -> Arg:
        tp = arg.type
        if tp in self.mapping:
            return arg.with_tag(self.mapping[tp])
        if isinstance(tp, type):
            for base in tp.__mro__[1:]:
                if base in self.mapping:
                    return arg.with_tag(self.mapping[base])
        return arg

    def __repr__(self) -> str:
        return f"TypeTagIdentifier({self.mapping!r})"
