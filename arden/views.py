import json
import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .arden_solver import solve
from .automaton import AutomatonValidationError, automaton_from_dict, validate_automaton_structure
from .derivation_log import DerivationLog
from .epsilon_elimination import eliminate_epsilon_transitions
from .equations import build_equation_system, format_system

logger = logging.getLogger(__name__)


def _error_response(error: ValueError, status: int = 400) -> JsonResponse:
    body = {'error': str(error)}
    if isinstance(error, AutomatonValidationError):
        body['code'] = error.code
    logger.warning("Rejected automaton request: %s", error)
    return JsonResponse(body, status=status)


def _load_automaton(data):
    """Return (automaton, None) or (None, error response) for a request body."""
    description = data.get('automaton')

    if not description:
        return None, JsonResponse({'error': 'Missing automaton definition'}, status=400)

    validation = validate_automaton_structure(description)
    if not validation['valid']:
        return None, JsonResponse({'error': validation['error']}, status=400)

    return automaton_from_dict(description), None


@csrf_exempt
@require_POST
def solve_automaton(request):
    """
    Django view converting an ε-NFA into a regular expression.

    Expects a POST request with a JSON body containing:
    - automaton: The editor's automaton description (alphabet, nodes, edges)
    - elimination_order: Optional strategy name ('reverse' or 'min_degree')

    Returns a JSON response with the expression and its derivation trace.
    """
    try:
        data = json.loads(request.body)
        automaton, error = _load_automaton(data)
        if error:
            return error

        order = data.get('elimination_order') or getattr(settings, 'ARDEN_ELIMINATION_ORDER', 'reverse')
        result = solve(automaton, order)

        return JsonResponse({
            'success': True,
            'regex': result.expression,
            'initial_state': result.initial_state,
            'eliminated_order': result.elimination_order,
            'trace': result.trace,
            'transcript': result.transcript
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception("Conversion failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def epsilon_free_automaton(request):
    """
    Django view returning the ε-free NFA derived from an ε-NFA.

    Expects a POST request with a JSON body containing:
    - automaton: The editor's automaton description

    Returns closures, original and reclassified final states and the
    ε-free transitions.
    """
    try:
        data = json.loads(request.body)
        automaton, error = _load_automaton(data)
        if error:
            return error

        log = DerivationLog()
        result = eliminate_epsilon_transitions(automaton, log)

        return JsonResponse({
            'success': True,
            'closures': result.closures,
            'original_finals': result.original_finals,
            'reclassified_finals': result.reclassified_finals,
            'transitions': [
                {'source': source, 'target': target, 'symbol': symbol}
                for source, target, symbol in result.transitions
            ],
            'trace': list(log)
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception("Epsilon elimination failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def equation_system(request):
    """
    Django view returning the language equations of an automaton before solving.
    """
    try:
        data = json.loads(request.body)
        automaton, error = _load_automaton(data)
        if error:
            return error

        automaton.validate()
        elimination = eliminate_epsilon_transitions(automaton)
        system = build_equation_system(automaton.state_names(), elimination)

        return JsonResponse({
            'success': True,
            'initial_state': automaton.initial_state(),
            'equations': format_system(system)
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception("Building the equation system failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)


@csrf_exempt
@require_POST
def normalise_automaton(request):
    """
    Django view returning the exported form of an automaton description.

    Labels are cleaned, duplicate nodes dropped and parallel edges merged,
    so the result re-imports to the same automaton.
    """
    try:
        data = json.loads(request.body)
        automaton, error = _load_automaton(data)
        if error:
            return error

        return JsonResponse({
            'success': True,
            'automaton': automaton.to_dict()
        })

    except ValueError as e:
        return _error_response(e)
    except Exception as e:
        logger.exception("Normalisation failed")
        return JsonResponse({'error': f'Server error: {str(e)}'}, status=500)
