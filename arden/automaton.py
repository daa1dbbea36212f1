import json
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional, Tuple

from .regex_algebra import EPSILON

# Editor shorthand for ε in edge labels
EPSILON_SHORTHAND = 'e'


class AutomatonValidationError(ValueError):
    """Raised when an automaton cannot be converted; `code` identifies the failure."""
    code = 'InvalidAutomaton'


class NoStatesError(AutomatonValidationError):
    code = 'NoStates'

    def __init__(self, message: str = 'The automaton must have at least one state.'):
        super().__init__(message)


class NoInitialStateError(AutomatonValidationError):
    code = 'NoInitialState'

    def __init__(self, message: str = 'Exactly one state must be marked as initial.'):
        super().__init__(message)


class MultipleInitialStatesError(AutomatonValidationError):
    code = 'MultipleInitialStates'

    def __init__(self, states: List[str]):
        self.states = states
        super().__init__(f"Exactly one state must be marked as initial (found {', '.join(states)}).")


class NoFinalStatesError(AutomatonValidationError):
    code = 'NoFinalStates'

    def __init__(self, message: str = 'At least one state must be marked as final.'):
        super().__init__(message)


class UnknownStateError(AutomatonValidationError):
    code = 'UnknownState'

    def __init__(self, state: str):
        self.state = state
        super().__init__(f"Unknown state: {state}")


class Transition(NamedTuple):
    """A unit transition; `symbol` may be ε."""
    source: str
    target: str
    symbol: str


@dataclass(frozen=True)
class State:
    name: str
    is_initial: bool = False
    is_final: bool = False
    position: Optional[Dict[str, float]] = field(default=None, compare=False, hash=False)


def normalise_label_list(raw) -> List[str]:
    """
    Clean a comma-joined edge label into its list of symbols.

    Symbols are trimmed, empty entries dropped, the shorthand 'e' mapped to ε
    and duplicates removed keeping first occurrence.
    """
    symbols = []
    for part in str(raw or '').split(','):
        symbol = part.strip()
        if not symbol:
            continue
        if symbol == EPSILON_SHORTHAND:
            symbol = EPSILON
        if symbol not in symbols:
            symbols.append(symbol)
    return symbols


def parse_alphabet(raw) -> Tuple[str, ...]:
    """Accept a list of symbols or a comma-joined string; ε is never an alphabet member."""
    if raw is None:
        return ()
    parts = raw.split(',') if isinstance(raw, str) else raw

    alphabet = []
    for part in parts:
        symbol = str(part).strip()
        if symbol and symbol != EPSILON and symbol not in alphabet:
            alphabet.append(symbol)
    return tuple(alphabet)


@dataclass(frozen=True)
class Automaton:
    """
    Frozen snapshot of an ε-NFA handed to the converter.

    State order is significant: it fixes the default elimination order.
    """
    state_list: Tuple[State, ...]
    symbols: Tuple[str, ...]
    transition_list: Tuple[Transition, ...]

    def states(self) -> Tuple[State, ...]:
        return self.state_list

    def state_names(self) -> List[str]:
        return [state.name for state in self.state_list]

    def alphabet(self) -> Tuple[str, ...]:
        return self.symbols

    def transitions(self) -> Tuple[Transition, ...]:
        return self.transition_list

    def initial_state(self) -> str:
        initial = [state.name for state in self.state_list if state.is_initial]
        if not initial:
            raise NoInitialStateError()
        if len(initial) > 1:
            raise MultipleInitialStatesError(initial)
        return initial[0]

    def final_states(self) -> List[str]:
        """Final states in declaration order."""
        finals = [state.name for state in self.state_list if state.is_final]
        if not finals:
            raise NoFinalStatesError()
        return finals

    def validate(self) -> None:
        if not self.state_list:
            raise NoStatesError()
        self.initial_state()
        self.final_states()

    def edges(self) -> Dict[Tuple[str, str], List[str]]:
        """Transitions merged into one label list per (source, target), in first-seen order."""
        merged: Dict[Tuple[str, str], List[str]] = {}
        for source, target, symbol in self.transition_list:
            labels = merged.setdefault((source, target), [])
            if symbol not in labels:
                labels.append(symbol)
        return merged

    def to_dict(self) -> Dict:
        """Export to the editor's JSON description."""
        return {
            'alphabet': list(self.symbols),
            'nodes': [
                {
                    'id': state.name,
                    'position': dict(state.position) if state.position else {'x': 0, 'y': 0},
                    'initial': state.is_initial,
                    'final': state.is_final
                }
                for state in self.state_list
            ],
            'edges': [
                {
                    'source': source,
                    'target': target,
                    'label': ','.join(EPSILON_SHORTHAND if symbol == EPSILON else symbol for symbol in labels)
                }
                for (source, target), labels in self.edges().items()
            ]
        }


class AutomatonBuilder:
    """Mutable editing model that produces frozen `Automaton` snapshots."""

    def __init__(self, alphabet=None):
        self.state_counter = 0
        self.states: Dict[str, Dict] = {}
        self.edges: Dict[Tuple[str, str], List[str]] = {}
        self.alphabet = parse_alphabet(alphabet)

    def set_alphabet(self, raw):
        self.alphabet = parse_alphabet(raw)

    def add_state(self, name: Optional[str] = None, position: Optional[Dict[str, float]] = None,
                  initial: bool = False, final: bool = False) -> str:
        """Add a state, generating a `qN` name if none is given. Existing names are left untouched."""
        if name is None:
            name = f"q{self.state_counter}"
            while name in self.states:
                self.state_counter += 1
                name = f"q{self.state_counter}"
            self.state_counter += 1

        if name in self.states:
            return name

        self.states[name] = {
            'initial': bool(initial),
            'final': bool(final),
            'position': dict(position) if position else None
        }

        # Keep generated names clear of imported qN ids
        if name.startswith('q') and name[1:].isdigit():
            self.state_counter = max(self.state_counter, int(name[1:]) + 1)

        return name

    def _require(self, name: str):
        if name not in self.states:
            raise UnknownStateError(name)

    def upsert_edge(self, source: str, target: str, label) -> bool:
        """
        Add the symbols of `label` to the edge source -> target.

        Returns False when the cleaned label is empty, in which case nothing
        is created.
        """
        self._require(source)
        self._require(target)

        symbols = normalise_label_list(label)
        if not symbols:
            return False

        labels = self.edges.setdefault((source, target), [])
        for symbol in symbols:
            if symbol not in labels:
                labels.append(symbol)
        return True

    def remove_edge(self, source: str, target: str):
        self.edges.pop((source, target), None)

    def remove_state(self, name: str):
        self._require(name)
        del self.states[name]
        for key in [key for key in self.edges if name in key]:
            del self.edges[key]

    def set_initial(self, name: str):
        """Mark `name` as the only initial state."""
        self._require(name)
        for attributes in self.states.values():
            attributes['initial'] = False
        self.states[name]['initial'] = True

    def toggle_final(self, name: str):
        self._require(name)
        self.states[name]['final'] = not self.states[name]['final']

    def build(self) -> Automaton:
        states = tuple(
            State(name, attributes['initial'], attributes['final'], attributes['position'])
            for name, attributes in self.states.items()
        )
        transitions = tuple(
            Transition(source, target, symbol)
            for (source, target), labels in self.edges.items()
            for symbol in labels
        )
        return Automaton(states, self.alphabet, transitions)


def validate_automaton_structure(data: Dict) -> Dict:
    """
    Validates that an automaton description has the editor's JSON structure.

    Empty node and edge lists are allowed; missing initial or final states are
    reported later by the converter itself.

    Args:
        data: The automaton dictionary to validate

    Returns:
        Dict: Validation result with 'valid' boolean and optional 'error' message
    """
    if not isinstance(data, dict):
        return {'valid': False, 'error': 'Automaton must be a dictionary'}

    for key in ['nodes', 'edges']:
        if key not in data:
            return {'valid': False, 'error': f'Missing required key: {key}'}
        if not isinstance(data[key], list):
            return {'valid': False, 'error': f'{key} must be a list'}

    alphabet = data.get('alphabet', [])
    if not isinstance(alphabet, (list, str)):
        return {'valid': False, 'error': 'alphabet must be a list or a comma-separated string'}

    node_ids = set()
    for node in data['nodes']:
        if not isinstance(node, dict) or 'id' not in node:
            return {'valid': False, 'error': 'Each node must be a dictionary with an id'}
        node_ids.add(str(node['id']))

    for edge in data['edges']:
        if not isinstance(edge, dict):
            return {'valid': False, 'error': 'Each edge must be a dictionary'}
        for key in ['source', 'target']:
            if key not in edge:
                return {'valid': False, 'error': f'Edge missing required key: {key}'}
            if str(edge[key]) not in node_ids:
                return {'valid': False, 'error': f'Edge {key} {edge[key]} not in nodes list'}

    return {'valid': True}


def automaton_from_dict(data: Dict) -> Automaton:
    """Import the editor's JSON description; duplicate nodes are ignored and duplicate edges merged."""
    builder = AutomatonBuilder(data.get('alphabet'))

    for node in data.get('nodes') or []:
        builder.add_state(
            str(node['id']),
            node.get('position'),
            bool(node.get('initial', False)),
            bool(node.get('final', False))
        )

    for edge in data.get('edges') or []:
        builder.upsert_edge(str(edge['source']), str(edge['target']), edge.get('label'))

    return builder.build()


def loads_automaton(text: str) -> Automaton:
    return automaton_from_dict(json.loads(text))


def dumps_automaton(automaton: Automaton) -> str:
    return json.dumps(automaton.to_dict(), indent=2, ensure_ascii=False)
