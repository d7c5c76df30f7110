"""Puzzle catalog and the numeric helpers its predicates use."""

from .catalog import GROUPS, PROBLEMS, Problem, get_problem, public_groups

__all__ = ['GROUPS', 'PROBLEMS', 'Problem', 'get_problem', 'public_groups']
