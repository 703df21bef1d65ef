"""
Contract catalogs: named call-site contracts plus the resolver chain and
slot policy used for every signature built from them.

A catalog is usually declared in YAML:

    policy: positional
    resolvers:
      - sigbind.sigbind_resolution.AnnotatedTagIdentifier
    contracts:
      on_message:
        - type: str
          tag: text
        - myapp.session.Session

The catalog only declares contracts. Choosing which targets are registered
for which dispatch kind, and caching their invokers, is left to the caller.
"""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import yaml

from sigbind.sigbind_datatypes import Arg, CatalogError, Contract, Resolver
from sigbind.sigbind_matcher import UnorderedSignature, normalize_policy
from sigbind.sigbind_printer import dbg


def import_dotted(path: str) -> Any:
    """Import `module.attr` (or `module.Outer.Inner`). Bare names are builtins."""
    if not isinstance(path, str) or not path.strip():
        raise CatalogError(f"Expected a dotted name, got {path!r}")
    path = path.strip()
    if '.' not in path:
        path = f"builtins.{path}"
    parts = path.split('.')
    # Longest importable module prefix, then attribute walk
    for cut in range(len(parts) - 1, 0, -1):
        modname = '.'.join(parts[:cut])
        try:
            obj = importlib.import_module(modname)
        except ModuleNotFoundError as e:
            # Only a missing prefix moves on to a shorter one
            if e.name == modname or modname.startswith(f"{e.name}."):
                continue
            raise CatalogError(f"Cannot import {path!r}: {e}") from e
        except ImportError as e:
            raise CatalogError(f"Cannot import {path!r}: {e}") from e
        try:
            for attr in parts[cut:]:
                obj = getattr(obj, attr)
        except AttributeError:
            raise CatalogError(f"Cannot resolve {path!r}: module {modname!r} has no {'.'.join(parts[cut:])!r}")
        return obj
    raise CatalogError(f"Cannot import {path!r}")


def _build_resolver(entry: Any) -> Resolver:
    obj = import_dotted(entry)
    # Classes are instantiated with no arguments; functions are used as-is.
    if isinstance(obj, type):
        try:
            obj = obj()
        except TypeError as e:
            raise CatalogError(f"Resolver {entry!r} cannot be constructed without arguments: {e}") from e
    if not callable(obj):
        raise CatalogError(f"Resolver {entry!r} is not callable")
    return obj


def _build_contract(kind: str, entries: Any) -> Contract:
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise CatalogError(f"contracts.{kind} must be a list, got {type(entries).__name__}")
    args: List[Arg] = []
    for i, entry in enumerate(entries):
        if isinstance(entry, str):
            args.append(Arg(i, import_dotted(entry)))
            continue
        if not isinstance(entry, dict) or 'type' not in entry:
            raise CatalogError(f"contracts.{kind}[{i}] must be a type name or a mapping with 'type'")
        unknown = set(entry) - {'type', 'tag'}
        if unknown:
            raise CatalogError(f"contracts.{kind}[{i}] has unknown keys: {', '.join(sorted(unknown))}")
        args.append(Arg(i, import_dotted(entry['type']), entry.get('tag')))
    return Contract(args)


class ContractCatalog:
    """Named contracts sharing one resolver chain and slot policy."""

    def __init__(self, contracts: Optional[Dict[str, Contract]] = None,
                 resolvers: Iterable[Resolver] = (), policy: Optional[str] = None):
        self.resolvers = tuple(resolvers or ())
        self.policy = normalize_policy(policy)
        self._contracts: Dict[str, Contract] = {}
        for kind, contract in (contracts or {}).items():
            self.register(kind, contract)

    @classmethod
    def from_dict(cls, doc: Any) -> 'ContractCatalog':
        if doc is None:
            doc = {}
        if not isinstance(doc, dict):
            raise CatalogError(f"Catalog document must be a mapping, got {type(doc).__name__}")
        unknown = set(doc) - {'policy', 'resolvers', 'contracts'}
        if unknown:
            raise CatalogError(f"Unknown catalog keys: {', '.join(sorted(unknown))}")
        resolver_entries = doc.get('resolvers') or []
        if not isinstance(resolver_entries, list):
            raise CatalogError("resolvers must be a list of dotted names")
        resolvers = [_build_resolver(r) for r in resolver_entries]
        contract_docs = doc.get('contracts') or {}
        if not isinstance(contract_docs, dict):
            raise CatalogError("contracts must be a mapping of dispatch kind to slot list")
        contracts = {str(kind): _build_contract(str(kind), entries) for kind, entries in contract_docs.items()}
        try:
            return cls(contracts, resolvers, doc.get('policy'))
        except ValueError as e:
            raise CatalogError(str(e)) from e

    @classmethod
    def from_yaml(cls, text: str) -> 'ContractCatalog':
        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise CatalogError(f"Invalid catalog YAML: {e}") from e
        return cls.from_dict(doc)

    @classmethod
    def from_file(cls, path) -> 'ContractCatalog':
        p = Path(path)
        dbg("loading catalog", str(p))
        return cls.from_yaml(p.read_text(encoding="utf-8"))

    def register(self, kind: str, contract: Contract):
        if not isinstance(contract, Contract):
            raise TypeError(f"Expected a Contract for {kind!r}, got {type(contract).__name__}")
        self._contracts[kind] = contract

    def kinds(self) -> List[str]:
        return list(self._contracts.keys())

    def __getitem__(self, kind: str) -> Contract:
        try:
            return self._contracts[kind]
        except KeyError:
            raise KeyError(kind) from None

    def __contains__(self, kind: str) -> bool:
        return kind in self._contracts

    def __len__(self) -> int:
        return len(self._contracts)

    def signature(self, kind: str) -> UnorderedSignature:
        return UnorderedSignature(self[kind], self.resolvers, self.policy)

    def __repr__(self) -> str:
        return f"<ContractCatalog kinds={self.kinds()!r} policy={self.policy}>"
