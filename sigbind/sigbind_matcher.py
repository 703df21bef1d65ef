"""
Unordered signature matching.

A target matches a contract when every one of its parameters can be
satisfied by some slot of the contract, in any order. Several parameters
may be satisfied by the same slot.
"""
import os
from typing import Iterable, List, Literal, Optional

from sigbind.sigbind_datatypes import Arg, Contract, Resolver, Target
from sigbind.sigbind_printer import Printer, dbg
from sigbind.sigbind_resolution import resolve_args

Policy = Literal['positional', 'typed']
POLICIES = ('positional', 'typed')


def normalize_policy(policy: Optional[str]) -> str:
    """Validate a slot policy name. None means SIGBIND_POLICY, else 'positional'."""
    if policy is None:
        policy = os.environ.get("SIGBIND_POLICY") or 'positional'
    if policy not in POLICIES:
        raise ValueError(f"Unknown slot policy {policy!r}; expected one of {', '.join(POLICIES)}")
    return policy


def first_typed_slot(arg: Arg, contract: Contract) -> int:
    """First slot with an equal tag, else first slot with an equal type, else -1."""
    for ci, slot in enumerate(contract):
        if arg.tag_matches(slot):
            return ci
    for ci, slot in enumerate(contract):
        if arg.type_matches(slot):
            return ci
    return -1


def last_matching_slot(arg: Arg, contract: Contract) -> int:
    # Full scan; a later satisfying slot replaces an earlier one.
    ref = -1
    for ci, slot in enumerate(contract):
        if arg.tag_matches(slot):
            ref = ci
        elif arg.type_matches(slot):
            ref = ci
    return ref


class UnorderedSignature:
    """A call-site contract together with the resolver chain and slot policy
    used to test and bind targets against it."""

    def __init__(self, contract: Contract, resolvers: Iterable[Resolver] = (),
                 policy: Optional[Policy] = None):
        if not isinstance(contract, Contract):
            contract = Contract(list(contract))
        self.contract = contract
        self.resolvers = tuple(resolvers or ())
        self.policy = normalize_policy(policy)

    def resolve(self, target: Target) -> List[Arg]:
        return resolve_args(target, self.resolvers)

    def match_refs(self, target: Target) -> Optional[List[int]]:
        """The slot the matcher settles on for each parameter, or None if infeasible."""
        refs = []
        find = first_typed_slot if self.policy == 'typed' else last_matching_slot
        for arg in self.resolve(target):
            ref = find(arg, self.contract)
            if ref < 0:
                dbg("no slot for", repr(arg), "in", self.describe())
                return None
            refs.append(ref)
        return refs

    def matches(self, target: Target) -> bool:
        return self.match_refs(target) is not None

    def append_description(self, buf: list):
        Printer().append_description(buf, self.contract)

    def describe(self) -> str:
        return Printer().format_contract(self.contract)

    def get_invoker(self, target: Target):
        from sigbind.sigbind_binder import bind
        return bind(target, self.contract, self.resolvers, self.policy)

    def __repr__(self) -> str:
        return f"<UnorderedSignature {self.describe()} policy={self.policy}>"


def matches(target: Target, contract: Contract, resolvers: Iterable[Resolver] = (),
            policy: Optional[Policy] = None) -> bool:
    """Can every parameter of `target` be satisfied from `contract`?"""
    return UnorderedSignature(contract, resolvers, policy).matches(target)


def describe(contract: Contract) -> str:
    """`( A, B)` style rendering of a contract's slot types."""
    return Printer().format_contract(contract)
