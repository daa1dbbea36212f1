from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .derivation_log import DerivationLog
from .epsilon_elimination import EpsilonEliminationResult
from .regex_algebra import EMPTY, EPS, RegexNode, literal, render_term, union


@dataclass
class LanguageEquation:
    """X = constant ∪ ⋃ terms[v]·v"""
    constant: RegexNode = EMPTY
    terms: Dict[str, RegexNode] = field(default_factory=dict)

    def add_term(self, state: str, coefficient: RegexNode):
        """Merge `coefficient` into the existing coefficient of `state`."""
        self.terms[state] = union(self.terms.get(state), coefficient)

    def to_string(self, name: str) -> str:
        parts = []
        if self.constant != EMPTY:
            parts.append(self.constant.to_string())
        parts.extend(render_term(coefficient, state) for state, coefficient in self.terms.items())
        return f"{name} = {'|'.join(parts) or EMPTY.to_string()}"


def build_equation_system(states: List[str], elimination: EpsilonEliminationResult,
                          log: Optional[DerivationLog] = None) -> Dict[str, LanguageEquation]:
    """One equation per state, built from the ε-free transitions and reclassified finals."""
    log = log if log is not None else DerivationLog()

    finals = set(elimination.reclassified_finals)
    system = {
        state: LanguageEquation(EPS if state in finals else EMPTY)
        for state in states
    }

    for source, target, symbol in elimination.transitions:
        system[source].add_term(target, literal(symbol))

    for state in states:
        log.equation(system[state].to_string(state))

    return system


def format_system(system: Dict[str, LanguageEquation]) -> List[str]:
    return [equation.to_string(state) for state, equation in system.items()]
