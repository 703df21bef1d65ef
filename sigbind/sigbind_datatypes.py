
"""
Defines the core data types for the sigbind binder.

This module provides the argument descriptors, call-site contracts and
target records that the matcher and binder work with, along with the
exceptions they raise.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Callable, List, Optional, Tuple, Union
import inspect
import typing


# =================================================================
# Exceptions
# =================================================================

class DynamicArgsError(Exception):
    """Base class for binder errors.

    `detail` holds an optional human-readable explanation, in the same way
    dispatch failures carry one for the caller to surface.
    """
    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.detail = detail


class UnresolvableParameter(DynamicArgsError):
    """A target parameter has no satisfying slot in the contract."""
    def __init__(self, message: str, arg: 'Arg', target: 'Target', contract: 'Contract'):
        super().__init__(message, detail=f"No slot for parameter {arg.index}")
        self.arg = arg
        self.target = target
        self.contract = contract


class InvocationFailure(DynamicArgsError):
    """A bound invoker could not call its target, or the target raised."""
    def __init__(self, message: str, cause: BaseException, receiver_type: Optional[type],
                 target: 'Target', arg_types: List[Optional[type]]):
        super().__init__(message, detail=f"{type(cause).__name__}: {cause}")
        self.cause = cause
        self.receiver_type = receiver_type
        self.target = target
        self.arg_types = arg_types


class CatalogError(DynamicArgsError):
    """A contract catalog document is malformed or names something unknown."""
    pass


# =================================================================
# Descriptors
# =================================================================

@dataclass(frozen=True)
class Tag:
    """Marker placed in `Annotated[...]` extras to name a parameter's role."""
    name: str


@dataclass(frozen=True)
class Arg:
    """One parameter of a target, or one slot of a contract.

    `index` is the declaration position. `tag` is the optional semantic tag
    assigned by resolvers (or declared on a contract slot). `metadata`
    carries declaration extras that resolvers may inspect.
    """
    index: int
    type: Any
    tag: Any = None
    metadata: Tuple[Any, ...] = field(default=(), compare=False)

    def with_tag(self, tag: Any) -> 'Arg':
        return replace(self, tag=tag)

    def tag_matches(self, other: 'Arg') -> bool:
        """Both sides carry a tag and the tags are equal."""
        return self.tag is not None and other.tag is not None and self.tag == other.tag

    def type_matches(self, other: 'Arg') -> bool:
        return self.type is other.type or self.type == other.type

    def __repr__(self) -> str:
        from sigbind.sigbind_printer import Printer
        return Printer().format_arg(self)


class Contract:
    """The ordered, read-only set of values available at a dispatch point."""

    def __init__(self, args: List[Arg]):
        seen = set()
        for a in args:
            if not isinstance(a, Arg):
                raise TypeError(f"Contract slots must be Arg, not {type(a).__name__}")
            if a.index < 0:
                raise ValueError(f"Slot position must be non-negative, got {a.index}")
            if a.index in seen:
                raise ValueError(f"Slot position {a.index} is used more than once")
            seen.add(a.index)
        self._args: Tuple[Arg, ...] = tuple(args)

    @classmethod
    def of(cls, *entries: Union[Any, Tuple[Any, Any]]) -> 'Contract':
        """Build a contract from types or `(type, tag)` pairs, positioned by order."""
        args = []
        for i, entry in enumerate(entries):
            if isinstance(entry, tuple) and len(entry) == 2:
                args.append(Arg(i, entry[0], entry[1]))
            else:
                args.append(Arg(i, entry))
        return cls(args)

    @property
    def args(self) -> Tuple[Arg, ...]:
        return self._args

    def __getitem__(self, index):
        return self._args[index]

    def __len__(self) -> int:
        return len(self._args)

    def __iter__(self):
        return iter(self._args)

    def __eq__(self, other):
        if not isinstance(other, Contract):
            return NotImplemented
        return self._args == other._args

    def __hash__(self):
        return hash(self._args)

    def __repr__(self) -> str:
        return f"Contract({', '.join(repr(a) for a in self._args)})"


class Target:
    """A callable together with its explicitly declared parameter types.

    The parameter list excludes the receiver; when the invoker is given a
    receiver it is passed as the first positional argument.
    """

    def __init__(self, func: Callable[..., Any], param_types: List[Any],
                 name: Optional[str] = None, metadata: Optional[List[Tuple[Any, ...]]] = None):
        if not callable(func):
            raise TypeError(f"Target must be callable, not {type(func).__name__}")
        self.func = func
        self.param_types: Tuple[Any, ...] = tuple(param_types)
        self.name = name or getattr(func, "__qualname__", None) or getattr(func, "__name__", repr(func))
        meta = list(metadata or [])
        if len(meta) < len(self.param_types):
            meta.extend(() for _ in range(len(self.param_types) - len(meta)))
        self.metadata: Tuple[Tuple[Any, ...], ...] = tuple(tuple(m) for m in meta)

    @classmethod
    def from_annotations(cls, func: Callable[..., Any], *, receiver: bool = False) -> 'Target':
        """Read parameter types once from `func`'s annotations.

        With `receiver=True` the first parameter (`self`) is left out of the
        list. `Annotated[T, ...]` hints contribute `T` as the type and their
        extras as the parameter metadata.
        """
        sig = inspect.signature(func)
        hints = typing.get_type_hints(func, include_extras=True)
        params = list(sig.parameters.values())
        if receiver:
            params = params[1:]
        types, metadata = [], []
        for p in params:
            if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD,
                          inspect.Parameter.KEYWORD_ONLY):
                raise TypeError(f"Parameter {p.name!r} of {func.__qualname__} cannot be bound positionally")
            hint = hints.get(p.name, Any)
            if typing.get_origin(hint) is typing.Annotated:
                base, *extras = typing.get_args(hint)
                types.append(base)
                metadata.append(tuple(extras))
            else:
                types.append(hint)
                metadata.append(())
        return cls(func, types, metadata=metadata)

    def raw_args(self) -> List[Arg]:
        """Unresolved descriptors, one per parameter, positioned by declaration."""
        return [Arg(i, t, None, self.metadata[i]) for i, t in enumerate(self.param_types)]

    def __len__(self) -> int:
        return len(self.param_types)

    def __repr__(self) -> str:
        from sigbind.sigbind_printer import Printer
        return f"<Target {Printer().format_target(self)}>"


# =================================================================
# Resolver interface
# =================================================================

class ArgIdentifier(ABC):
    """A pluggable step that may assign a semantic tag to a descriptor.

    Implementations return the same descriptor or a new one with a tag
    added; they never remove an existing tag.
    """

    @abstractmethod
    def apply(self, arg: Arg) -> Arg:
        raise NotImplementedError

    def __call__(self, arg: Arg) -> Arg:
        return self.apply(arg)


Resolver = Union[ArgIdentifier, Callable[[Arg], Arg]]
