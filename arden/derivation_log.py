from typing import Iterable, Iterator, List

from .regex_algebra import EPSILON, RegexNode, render_factor, render_term


def format_state_set(states: Iterable[str]) -> str:
    return '{' + ', '.join(states) + '}'


class DerivationLog:
    """
    Ordered, human-readable trace of a conversion.

    Writing to the log never changes what the converter computes; every
    entry is a plain line of text and `transcript()` joins them.
    """

    def __init__(self):
        self.lines: List[str] = []

    def __iter__(self) -> Iterator[str]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    def add(self, line: str):
        self.lines.append(line)

    def add_indented(self, line: str):
        self.lines.append(f"  {line}")

    def section(self, number: int, title: str):
        if self.lines:
            self.lines.append('')
        self.lines.append(f"=== {number}) {title} ===")

    def transcript(self) -> str:
        return '\n'.join(self.lines)

    # Entries written by the individual stages

    def declaration(self, states: List[str], alphabet: Iterable[str]):
        self.add(f"States: {', '.join(states)}")
        self.add(f"Alphabet: {', '.join(alphabet) or '(empty)'}")

    def closure(self, state: str, closure: Iterable[str]):
        self.add(f"{EPSILON}-closure({state}) = {format_state_set(closure)}")

    def finals(self, original: Iterable[str], reclassified: Iterable[str]):
        self.add(f"Original finals: {format_state_set(original)}")
        self.add(f"Finals after {EPSILON}-closure: {format_state_set(reclassified)}")

    def transition_entry(self, state: str, symbol: str, targets: Iterable[str]):
        self.add(f"δ'({state}, {symbol}) = {format_state_set(targets)}")

    def equation(self, text: str):
        self.add(text)

    def arden(self, state: str, coefficient: RegexNode, factor: RegexNode, equation_text: str):
        self.add(f"Arden on {state}: {state} = {render_term(coefficient, state)} ∪ B  =>  {state} = {render_factor(factor)}B")
        self.add_indented(equation_text)

    def substitution(self, eliminated: str, target: str, coefficient: RegexNode, equation_text: str):
        self.add(f"Substitute {eliminated} into {target} with coefficient {coefficient}:")
        self.add_indented(equation_text)

    def result(self, initial: str, regex: RegexNode):
        self.add(f"Regex({initial}) = {regex}")
