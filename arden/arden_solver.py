import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Union

from .automaton import Automaton
from .derivation_log import DerivationLog
from .epsilon_elimination import eliminate_epsilon_transitions
from .equations import LanguageEquation, build_equation_system
from .regex_algebra import EMPTY, EPSILON, RegexNode, concat, star, union

logger = logging.getLogger(__name__)

EliminationOrder = Callable[[List[str], Dict[str, LanguageEquation], str], List[str]]


class SolveResult(NamedTuple):
    """Regular expression for the initial state plus the derivation that produced it"""
    regex: RegexNode
    trace: List[str]
    initial_state: str
    elimination_order: List[str]

    @property
    def expression(self) -> str:
        return self.regex.to_string()

    @property
    def transcript(self) -> str:
        return '\n'.join(self.trace)


def reverse_declaration_order(states: List[str], system: Dict[str, LanguageEquation], initial: str) -> List[str]:
    """Eliminate from the last declared state to the first."""
    return list(reversed(states))


def minimum_degree_order(states: List[str], system: Dict[str, LanguageEquation], initial: str) -> List[str]:
    """
    Eliminate states with the fewest incident equation terms first.

    Ties keep declaration order and the initial state always goes last.
    """
    degree = {state: 0 for state in states}
    for state, equation in system.items():
        for target in equation.terms:
            if target != state:
                degree[state] += 1
                degree[target] += 1

    position = {state: index for index, state in enumerate(states)}
    others = [state for state in states if state != initial]
    others.sort(key=lambda state: (degree[state], position[state]))
    return others + [initial]


ELIMINATION_ORDERS: Dict[str, EliminationOrder] = {
    'reverse': reverse_declaration_order,
    'min_degree': minimum_degree_order,
}


def resolve_elimination_order(order: Union[None, str, EliminationOrder]) -> EliminationOrder:
    if order is None:
        return reverse_declaration_order
    if callable(order):
        return order
    if order not in ELIMINATION_ORDERS:
        raise ValueError(
            f"Unknown elimination order '{order}'. Expected one of: {', '.join(ELIMINATION_ORDERS)}")
    return ELIMINATION_ORDERS[order]


def solve_equation_system(states: List[str], system: Dict[str, LanguageEquation], initial: str,
                          order: List[str], log: Optional[DerivationLog] = None) -> RegexNode:
    """
    Eliminate every state in `order` and return the initial state's language.

    Each eliminated equation first loses its self-loop through Arden's lemma
    (X = cX ∪ B has the least solution X = c*B) and is then substituted into
    every equation not yet eliminated, and into the initial state's equation
    even when that one was eliminated earlier.
    """
    log = log if log is not None else DerivationLog()

    if sorted(order) != sorted(states):
        raise ValueError('Elimination order must list every state exactly once')

    eliminated = set()
    for xk in order:
        eq_k = system[xk]
        coefficient = eq_k.terms.pop(xk, EMPTY)

        if coefficient != EMPTY:
            factor = star(coefficient)
            eq_k.constant = concat(factor, eq_k.constant)
            for target in eq_k.terms:
                eq_k.terms[target] = concat(factor, eq_k.terms[target])
            log.arden(xk, coefficient, factor, eq_k.to_string(xk))

        eliminated.add(xk)
        logger.debug("Eliminating %s: %s", xk, eq_k.to_string(xk))

        for xi in states:
            if xi == xk or (xi in eliminated and xi != initial):
                continue

            eq_i = system[xi]
            substituted = eq_i.terms.get(xk)
            if substituted is None:
                continue

            eq_i.constant = union(eq_i.constant, concat(substituted, eq_k.constant))
            for target, term in eq_k.terms.items():
                eq_i.add_term(target, concat(substituted, term))
            del eq_i.terms[xk]

            log.substitution(xk, xi, substituted, eq_i.to_string(xi))

    return system[initial].constant


def solve(automaton: Automaton, elimination_order: Union[None, str, EliminationOrder] = None) -> SolveResult:
    """
    Convert an ε-NFA into an equivalent regular expression.

    Raises AutomatonValidationError when the automaton has no states, not
    exactly one initial state, or no final state. The automaton is never
    modified.
    """
    automaton.validate()
    initial = automaton.initial_state()
    states = automaton.state_names()
    strategy = resolve_elimination_order(elimination_order)

    log = DerivationLog()

    log.section(1, f"{EPSILON}-NFA -> NFA WITHOUT {EPSILON}")
    elimination = eliminate_epsilon_transitions(automaton, log)

    log.section(2, 'SYSTEM OF LANGUAGE EQUATIONS')
    system = build_equation_system(states, elimination, log)

    log.section(3, "RESOLUTION WITH ARDEN'S LEMMA")
    order = list(strategy(states, system, initial))
    regex = solve_equation_system(states, system, initial, order, log)

    log.section(4, 'RESULT')
    log.result(initial, regex)

    logger.info("Converted automaton with %d states and %d transitions: %s",
                len(states), len(automaton.transitions()), regex)

    return SolveResult(regex=regex, trace=list(log), initial_state=initial, elimination_order=order)
