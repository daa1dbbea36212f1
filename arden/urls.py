from django.urls import path
from . import views

urlpatterns = [
    # Full conversion: regex plus derivation trace
    path('api/arden/solve/', views.solve_automaton, name='arden_solve'),

    # Intermediate stages
    path('api/arden/epsilon-free/', views.epsilon_free_automaton, name='arden_epsilon_free'),
    path('api/arden/equations/', views.equation_system, name='arden_equations'),

    # Import/export normalisation
    path('api/arden/normalise/', views.normalise_automaton, name='arden_normalise'),
]
