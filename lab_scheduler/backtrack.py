"""Depth-first search over an abstract state machine.

A problem plugs in by giving its state two methods, `successors` and
`is_goal`, both of which receive a read-only context shared by the whole
search. States are never mutated: every successor owns its own copy of
whatever it extends, so abandoning a branch needs no undo step.
"""
from typing import Any, Iterable, Optional, Protocol, TypeVar

S = TypeVar("S", bound="SearchState")


class SearchState(Protocol):
    def successors(self: S, ctx: Any) -> Iterable[S]:
        """Every state reachable in one step, in the order they should be tried."""
        ...

    def is_goal(self, ctx: Any) -> bool:
        """True when the state is complete (and therefore valid)."""
        ...


def solve(ctx: Any, state: S) -> Optional[S]:
    """Return the first goal state reachable from `state`, or None.

    One stack frame per step from `state` to the goal, so the interpreter
    recursion limit bounds how deep a search can go. Callers with deep
    searches raise it first (see `solver.recursion_headroom`).
    """
    if state.is_goal(ctx):
        return state

    for child in state.successors(ctx):
        found = solve(ctx, child)
        if found is not None:
            return found

    # dead end, prune this subtree
    return None
