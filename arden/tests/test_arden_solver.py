from itertools import product

from django.test import TestCase
from arden.arden_solver import (
    solve, solve_equation_system, reverse_declaration_order, minimum_degree_order,
    resolve_elimination_order, SolveResult
)
from arden.automaton import (
    Automaton, NoStatesError, NoInitialStateError, NoFinalStatesError, MultipleInitialStatesError,
    automaton_from_dict, loads_automaton, dumps_automaton
)
from arden.epsilon_elimination import build_adjacency, epsilon_closure, eliminate_epsilon_transitions
from arden.equations import LanguageEquation, build_equation_system, format_system
from arden.regex_algebra import EMPTY, EPS, CharNode, matches, parse_regex, union


def build_automaton(states, alphabet, edges, initial, finals):
    """Build an automaton from (source, target, label) edges"""
    return automaton_from_dict({
        'alphabet': alphabet,
        'nodes': [{'id': s, 'initial': s in initial, 'final': s in finals} for s in states],
        'edges': [{'source': s, 'target': t, 'label': label} for s, t, label in edges]
    })


def accepts(automaton, word):
    """Direct ε-NFA simulation, used as the reference language"""
    adjacency = build_adjacency(automaton.state_names(), automaton.transitions())
    current = set(epsilon_closure(automaton.initial_state(), adjacency))
    for symbol in word:
        following = set()
        for state in current:
            for target in adjacency[state].get(symbol, {}):
                following.update(epsilon_closure(target, adjacency))
        current = following
    return bool(current & set(automaton.final_states()))


def words(alphabet, max_length):
    for length in range(max_length + 1):
        for letters in product(alphabet, repeat=length):
            yield ''.join(letters)


class ArdenTestCase(TestCase):

    def setUp(self):
        # q0 -a,ε-> q1 -b-> q1
        self.demo = build_automaton(['q0', 'q1'], ['a', 'b'], [('q0', 'q1', 'a,e'), ('q1', 'q1', 'b')],
                                    ['q0'], ['q1'])

        # Words over {a, b} ending in 'a'
        self.ends_in_a = build_automaton(
            ['q0', 'q1'], ['a', 'b'],
            [('q0', 'q1', 'a'), ('q0', 'q0', 'b'), ('q1', 'q1', 'a'), ('q1', 'q0', 'b')],
            ['q0'], ['q1'])

        # Same automaton with the initial state declared last
        self.ends_in_a_reversed = build_automaton(
            ['q1', 'q0'], ['a', 'b'],
            [('q1', 'q1', 'a'), ('q1', 'q0', 'b'), ('q0', 'q1', 'a'), ('q0', 'q0', 'b')],
            ['q0'], ['q1'])

        self.branching = build_automaton(
            ['q0', 'q1', 'q2', 'q3', 'q4'], ['a', 'b', 'c'],
            [('q0', 'q1', 'a'), ('q1', 'q2', 'b'), ('q2', 'q0', 'e'), ('q2', 'q3', 'a'),
             ('q1', 'q3', 'e'), ('q3', 'q4', 'c'), ('q4', 'q4', 'a,b'), ('q4', 'q1', 'c')],
            ['q0'], ['q3', 'q4'])

    def assertSameLanguage(self, automaton, regex, max_length=5):
        for word in words(automaton.alphabet(), max_length):
            self.assertEqual(matches(regex, word), accepts(automaton, word),
                             f"Disagreement on word '{word}' for {regex}")


class TestEquationSystem(ArdenTestCase):

    def test_demonstration_equations(self):
        states = self.demo.state_names()
        system = build_equation_system(states, eliminate_epsilon_transitions(self.demo))

        self.assertEqual(system['q0'].constant, EPS)
        self.assertEqual(system['q0'].terms, {'q1': union('a', 'b')})
        self.assertEqual(system['q1'].constant, EPS)
        self.assertEqual(system['q1'].terms, {'q1': CharNode('b')})
        self.assertEqual(format_system(system), ['q0 = ε|(a|b)q1', 'q1 = ε|bq1'])

    def test_non_final_state_has_empty_constant(self):
        states = self.ends_in_a.state_names()
        system = build_equation_system(states, eliminate_epsilon_transitions(self.ends_in_a))
        self.assertEqual(system['q0'].constant, EMPTY)
        self.assertEqual(format_system(system), ['q0 = aq1|bq0', 'q1 = ε|aq1|bq0'])

    def test_equation_without_terms(self):
        self.assertEqual(LanguageEquation().to_string('q0'), 'q0 = ∅')
        self.assertEqual(LanguageEquation(EPS).to_string('q0'), 'q0 = ε')


class TestSolve(ArdenTestCase):

    def test_demonstration_automaton(self):
        """q0 accepts b*, ab* and ε through its ε edge to q1"""
        result = solve(self.demo)

        self.assertIsInstance(result, SolveResult)
        self.assertEqual(result.expression, 'ε|(a|b)b*')
        self.assertEqual(result.regex, parse_regex('ε|(a|b)b*'))
        self.assertEqual(result.initial_state, 'q0')
        self.assertEqual(result.elimination_order, ['q1', 'q0'])
        self.assertSameLanguage(self.demo, result.regex)

    def test_demonstration_trace(self):
        result = solve(self.demo)

        self.assertEqual(result.trace, [
            '=== 1) ε-NFA -> NFA WITHOUT ε ===',
            'States: q0, q1',
            'Alphabet: a, b',
            'ε-closure(q0) = {q0, q1}',
            'ε-closure(q1) = {q1}',
            'Original finals: {q1}',
            'Finals after ε-closure: {q0, q1}',
            "δ'(q0, a) = {q1}",
            "δ'(q0, b) = {q1}",
            "δ'(q1, b) = {q1}",
            '',
            '=== 2) SYSTEM OF LANGUAGE EQUATIONS ===',
            'q0 = ε|(a|b)q1',
            'q1 = ε|bq1',
            '',
            "=== 3) RESOLUTION WITH ARDEN'S LEMMA ===",
            'Arden on q1: q1 = bq1 ∪ B  =>  q1 = b*B',
            '  q1 = b*',
            'Substitute q1 into q0 with coefficient a|b:',
            '  q0 = ε|(a|b)b*',
            '',
            '=== 4) RESULT ===',
            'Regex(q0) = ε|(a|b)b*',
        ])
        self.assertEqual(result.transcript, '\n'.join(result.trace))

    def test_single_accepting_state(self):
        """A lone initial and final state with nothing else accepts only ε"""
        automaton = build_automaton(['q0'], [], [], ['q0'], ['q0'])
        result = solve(automaton)
        self.assertEqual(result.expression, 'ε')
        self.assertIn('Alphabet: (empty)', result.trace)
        self.assertEqual(result.trace[-1], 'Regex(q0) = ε')

    def test_no_final_state(self):
        automaton = build_automaton(['q0'], [], [], ['q0'], [])
        with self.assertRaises(NoFinalStatesError):
            solve(automaton)

    def test_disconnected_final_state(self):
        """An unreachable final state gives the empty language"""
        automaton = build_automaton(['q0', 'q1'], ['a'], [], ['q0'], ['q1'])
        result = solve(automaton)
        self.assertEqual(result.expression, '∅')
        self.assertIn('q0 = ∅', result.trace)
        self.assertIn('q1 = ε', result.trace)

    def test_validation_errors(self):
        with self.assertRaises(NoStatesError):
            solve(Automaton((), (), ()))
        with self.assertRaises(NoInitialStateError):
            solve(build_automaton(['q0'], [], [], [], ['q0']))
        with self.assertRaises(MultipleInitialStatesError):
            solve(build_automaton(['q0', 'q1'], [], [], ['q0', 'q1'], ['q0']))

    def test_self_loop_and_back_substitution(self):
        result = solve(self.ends_in_a)

        self.assertEqual(result.expression, '(b|aa*b)*aa*')
        self.assertIn('Arden on q1: q1 = aq1 ∪ B  =>  q1 = a*B', result.trace)
        self.assertIn('  q1 = a*|a*bq0', result.trace)
        self.assertIn('  q0 = aa*|(b|aa*b)q0', result.trace)
        self.assertIn('Arden on q0: q0 = (b|aa*b)q0 ∪ B  =>  q0 = (b|aa*b)*B', result.trace)
        self.assertSameLanguage(self.ends_in_a, result.regex)

    def test_initial_state_declared_last(self):
        """The initial state's equation keeps receiving substitutions after its own elimination"""
        result = solve(self.ends_in_a_reversed)

        self.assertEqual(result.elimination_order, ['q0', 'q1'])
        self.assertEqual(result.expression, 'b*a(a|bb*a)*')
        self.assertIn('Substitute q1 into q0 with coefficient b*a:', result.trace)
        self.assertSameLanguage(self.ends_in_a_reversed, result.regex)

    def test_epsilon_rich_automaton(self):
        result = solve(self.branching)
        self.assertSameLanguage(self.branching, result.regex, max_length=6)

    def test_epsilon_cycle(self):
        automaton = build_automaton(
            ['q0', 'q1', 'q2'], ['a', 'b'],
            [('q0', 'q1', 'e'), ('q1', 'q0', 'e'), ('q1', 'q2', 'a'), ('q2', 'q0', 'b')],
            ['q0'], ['q2'])
        result = solve(automaton)
        self.assertSameLanguage(automaton, result.regex)

    def test_result_is_deterministic(self):
        """Repeated runs on the same input give the same text and trace"""
        first = solve(self.branching)
        for _ in range(5):
            again = solve(self.branching)
            self.assertEqual(again.expression, first.expression)
            self.assertEqual(again.trace, first.trace)

    def test_round_trip_through_export(self):
        """Export then import gives an identical result and trace"""
        before = solve(self.branching)
        after = solve(loads_automaton(dumps_automaton(self.branching)))
        self.assertEqual(after.expression, before.expression)
        self.assertEqual(after.trace, before.trace)

    def test_input_is_not_modified(self):
        snapshot = Automaton(self.branching.states(), self.branching.alphabet(), self.branching.transitions())
        solve(self.branching)
        self.assertEqual(self.branching, snapshot)

    def test_result_parses_back(self):
        for automaton in [self.demo, self.ends_in_a, self.ends_in_a_reversed, self.branching]:
            result = solve(automaton)
            self.assertEqual(parse_regex(result.expression), result.regex)


class TestEliminationOrder(ArdenTestCase):

    def test_default_is_reverse_declaration(self):
        self.assertIs(resolve_elimination_order(None), reverse_declaration_order)
        self.assertIs(resolve_elimination_order('reverse'), reverse_declaration_order)
        self.assertIs(resolve_elimination_order('min_degree'), minimum_degree_order)
        self.assertEqual(solve(self.branching).elimination_order, ['q4', 'q3', 'q2', 'q1', 'q0'])

    def test_unknown_order(self):
        with self.assertRaises(ValueError):
            resolve_elimination_order('alphabetical')
        with self.assertRaises(ValueError):
            solve(self.demo, 'alphabetical')

    def test_minimum_degree_keeps_initial_last(self):
        result = solve(self.ends_in_a_reversed, 'min_degree')
        self.assertEqual(result.elimination_order[-1], 'q0')
        self.assertSameLanguage(self.ends_in_a_reversed, result.regex)

    def test_orders_agree_on_language(self):
        """Different orders may render differently but denote the same language"""
        reverse = solve(self.branching, 'reverse')
        minimum = solve(self.branching, 'min_degree')
        self.assertEqual(minimum.elimination_order[-1], 'q0')
        self.assertEqual(sorted(minimum.elimination_order), ['q0', 'q1', 'q2', 'q3', 'q4'])
        for word in words(self.branching.alphabet(), 6):
            self.assertEqual(matches(reverse.regex, word), matches(minimum.regex, word), word)

    def test_custom_order(self):
        result = solve(self.branching, lambda states, system, initial: ['q2', 'q0', 'q4', 'q1', 'q3'])
        self.assertEqual(result.elimination_order, ['q2', 'q0', 'q4', 'q1', 'q3'])
        self.assertSameLanguage(self.branching, result.regex, max_length=6)

    def test_order_must_cover_every_state(self):
        states = self.demo.state_names()
        system = build_equation_system(states, eliminate_epsilon_transitions(self.demo))
        with self.assertRaises(ValueError):
            solve_equation_system(states, system, 'q0', ['q1'])
        with self.assertRaises(ValueError):
            solve(self.demo, lambda states, system, initial: ['q0', 'q0'])
