"""
Binding targets to call-site contracts.

`bind` works out, once per (target, contract) pair, which contract slot
feeds each target parameter and returns a `BoundInvoker` that can be
called any number of times with value arrays shaped like the contract.
"""
import inspect
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from sigbind.sigbind_datatypes import (
    Arg, Contract, Resolver, Target, UnresolvableParameter, InvocationFailure
)
from sigbind.sigbind_matcher import Policy, first_typed_slot, normalize_policy
from sigbind.sigbind_printer import Printer, dbg
from sigbind.sigbind_resolution import resolve_args


def first_bound_slot(arg: Arg, contract: Contract) -> int:
    # First slot with an equal tag or the same declared position.
    for ci, slot in enumerate(contract):
        if arg.tag_matches(slot):
            return ci
        if arg.index == slot.index:
            return ci
    return -1


class BoundInvoker:
    """A target plus the index mapping that feeds it from contract values."""

    def __init__(self, target: Target, mapping: Sequence[int]):
        self.target = target
        self.mapping: Tuple[int, ...] = tuple(mapping)

    def _gather(self, values: Sequence[Any]) -> List[Any]:
        return [values[m] for m in self.mapping]

    def _call(self, receiver: Any, args: List[Any]) -> Any:
        if receiver is None:
            return self.target.func(*args)
        return self.target.func(receiver, *args)

    def _failure(self, e: Exception, receiver: Any, values: Sequence[Any],
                 args: Optional[List[Any]]) -> InvocationFailure:
        # Report the realized argument array, or what was supplied if gathering failed.
        if args is not None:
            shown = args
        else:
            try:
                shown = list(values)
            except TypeError:
                shown = [values]
        receiver_type = type(receiver) if receiver is not None else None
        p = Printer()
        msg = (f"Unable to call: {p.format_target(self.target, receiver_type)}"
               f" [with {p.format_runtime_types(shown)}]")
        dbg("invocation failed", msg, f"{type(e).__name__}: {e}")
        return InvocationFailure(msg, e, receiver_type, self.target,
                                 [type(v) if v is not None else None for v in shown])

    def invoke(self, receiver: Any, values: Sequence[Any]) -> Any:
        """Call the target with `values` rearranged into its parameter order."""
        args = None
        try:
            args = self._gather(values)
            return self._call(receiver, args)
        except Exception as e:
            raise self._failure(e, receiver, values, args) from e

    __call__ = invoke

    async def ainvoke(self, receiver: Any, values: Sequence[Any]) -> Any:
        """Like `invoke`, awaiting the result when the target returns an awaitable."""
        args = None
        try:
            args = self._gather(values)
            result = self._call(receiver, args)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            raise self._failure(e, receiver, values, args) from e

    def __repr__(self) -> str:
        return f"<BoundInvoker {self.target.name} mapping={list(self.mapping)}>"


def compute_mapping(args: List[Arg], target: Target, contract: Contract, policy: str = 'positional') -> List[int]:
    """Contract slot for each resolved target parameter.

    Raises UnresolvableParameter for the first parameter with no slot.
    """
    find = first_typed_slot if policy == 'typed' else first_bound_slot
    mapping = []
    for arg in args:
        ref = find(arg, contract)
        if ref < 0:
            p = Printer()
            msg = (f"Unable to map type [{p.format_type(arg.type)}] in method "
                   f"{p.format_target(target)} to calling args: {p.format_call_args(contract)}")
            raise UnresolvableParameter(msg, arg, target, contract)
        mapping.append(ref)
    return mapping


def bind(target: Target, contract: Contract, resolvers: Iterable[Resolver] = (),
         policy: Optional[Policy] = None) -> BoundInvoker:
    """Build a reusable invoker for `target` fed from `contract` slots."""
    policy = normalize_policy(policy)
    if not isinstance(contract, Contract):
        contract = Contract(list(contract))
    args = resolve_args(target, resolvers)
    mapping = compute_mapping(args, target, contract, policy)
    dbg("bound", target.name, "mapping", mapping, "policy", policy)
    return BoundInvoker(target, mapping)
