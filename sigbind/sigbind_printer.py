"""
Diagnostic rendering for sigbind descriptors, contracts and targets.
"""
import os
import sys
import typing

from sigbind.sigbind_datatypes import Arg, Contract, Target


def dbg(*parts):
    """Debug output to stderr, enabled by the SIGBIND_DEBUG environment variable."""
    if os.environ.get("SIGBIND_DEBUG"):
        try:
            print("[DBG]", *parts, file=sys.stderr)
        except Exception:
            pass


def is_array_type(tp) -> bool:
    """`list[X]` and `tuple[X, ...]` are the array types."""
    origin = typing.get_origin(tp)
    if origin is list:
        return len(typing.get_args(tp)) == 1
    if origin is tuple:
        args = typing.get_args(tp)
        return len(args) == 2 and args[1] is Ellipsis
    return False


def array_element_type(tp):
    return typing.get_args(tp)[0]


class Printer:
    """Formats binder objects into short, readable diagnostic strings."""

    def type_name(self, tp) -> str:
        """Name of a declared type. Array types render as their element's name."""
        if tp is None or tp is type(None):
            return 'None'
        if is_array_type(tp):
            return self.format_type(array_element_type(tp))
        if typing.get_origin(tp) is None and isinstance(tp, type):
            return tp.__qualname__
        if tp is typing.Any:
            return 'Any'
        text = repr(tp)
        return text[len('typing.'):] if text.startswith('typing.') else text

    def format_type(self, tp) -> str:
        name = self.type_name(tp)
        if is_array_type(tp):
            return f"{name}[]"
        return name

    def format_contract(self, contract: Contract) -> str:
        buf = []
        self.append_description(buf, contract)
        return "".join(buf)

    def append_description(self, buf: list, contract: Contract):
        """Append `( A, B)` style rendering of the contract's slot types to `buf`."""
        buf.append('(')
        delim = False
        for arg in contract:
            if delim:
                buf.append(',')
            buf.append(' ')
            buf.append(self.format_type(arg.type))
            delim = True
        buf.append(')')

    def format_arg(self, arg: Arg) -> str:
        return f"Arg[{arg.index},{self.format_type(arg.type)},{arg.tag}]"

    def format_call_args(self, contract: Contract) -> str:
        return "(" + ", ".join(self.format_arg(a) for a in contract) + ")"

    def format_target(self, target: Target, receiver_type=None) -> str:
        """`[Receiver.]module.name(T1, T2)` for a target."""
        func = target.func
        module = getattr(func, "__module__", None)
        head = target.name
        if receiver_type is not None:
            head = f"{receiver_type.__qualname__}.{head.rsplit('.', 1)[-1]}"
        elif module and module != 'builtins':
            head = f"{module}.{head}"
        params = ", ".join(self.format_type(t) for t in target.param_types)
        return f"{head}({params})"

    def format_runtime_types(self, values) -> str:
        """Runtime type names of realized arguments, `<null>` for None."""
        parts = []
        for v in values:
            if v is None:
                parts.append('<null>')
            else:
                parts.append(type(v).__name__)
        return ", ".join(parts)
