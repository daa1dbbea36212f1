from typing import Dict, List, NamedTuple, Optional, Tuple

from .automaton import Automaton, Transition
from .derivation_log import DerivationLog
from .regex_algebra import EPSILON

# state -> symbol -> targets; dicts keep insertion order so the output is deterministic
Adjacency = Dict[str, Dict[str, Dict[str, None]]]


class EpsilonEliminationResult(NamedTuple):
    """Epsilon-free view of an automaton together with the data used to derive it"""
    closures: Dict[str, List[str]]
    original_finals: List[str]
    reclassified_finals: List[str]
    transition_function: Dict[Tuple[str, str], List[str]]
    transitions: List[Transition]


def build_adjacency(states: List[str], transitions) -> Adjacency:
    """Map (state, symbol) to its targets, keeping ε edges."""
    adjacency: Adjacency = {state: {} for state in states}
    for source, target, symbol in transitions:
        adjacency.setdefault(source, {}).setdefault(symbol, {})[target] = None
    return adjacency


def epsilon_closure(state: str, adjacency: Adjacency) -> List[str]:
    """
    States reachable from `state` through ε edges only, in discovery order.

    Visited states are never revisited, so ε cycles terminate.
    """
    closure = {state: None}
    stack = [state]

    while stack:
        current = stack.pop()
        for target in adjacency.get(current, {}).get(EPSILON, {}):
            if target not in closure:
                closure[target] = None
                stack.append(target)

    return list(closure)


def eliminate_epsilon_transitions(automaton: Automaton,
                                  log: Optional[DerivationLog] = None) -> EpsilonEliminationResult:
    """
    Rewrite an ε-NFA as an equivalent NFA over its declared alphabet.

    A state is final afterwards iff its ε-closure contains an original final
    state. For every state q and symbol s the new targets are the closures of
    every s-successor of every state in closure(q); empty target sets produce
    no transition.
    """
    log = log if log is not None else DerivationLog()

    states = automaton.state_names()
    alphabet = automaton.alphabet()
    finals = [state.name for state in automaton.states() if state.is_final]

    log.declaration(states, alphabet)

    adjacency = build_adjacency(states, automaton.transitions())

    closures = {}
    for state in states:
        closures[state] = epsilon_closure(state, adjacency)
        log.closure(state, closures[state])

    final_set = set(finals)
    reclassified = [state for state in states if any(member in final_set for member in closures[state])]
    log.finals(finals, reclassified)

    transition_function = {}
    transitions = []
    for state in states:
        for symbol in alphabet:
            reached = {}
            for member in closures[state]:
                for target in adjacency[member].get(symbol, {}):
                    for closed in closures[target]:
                        reached[closed] = None

            if reached:
                transition_function[(state, symbol)] = list(reached)
                transitions.extend(Transition(state, target, symbol) for target in reached)
                log.transition_entry(state, symbol, reached)

    return EpsilonEliminationResult(
        closures=closures,
        original_finals=finals,
        reclassified_finals=reclassified,
        transition_function=transition_function,
        transitions=transitions
    )
