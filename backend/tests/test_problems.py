import math

import pytest

from conftest import SOLUTIONS
from mathbattle.services.problems import PROBLEMS, get_problem, public_groups
from mathbattle.services.problems import utils


@pytest.mark.parametrize('raw,expected', [('42', 42.0), (' 3.5 ', 3.5), (7, 7.0)])
def test_parse_num_accepts_numbers(raw, expected):
    assert utils.parse_num(raw) == expected


@pytest.mark.parametrize('raw', [None, '', '  ', 'abc', True, 'inf', [1]])
def test_parse_num_rejects_garbage(raw):
    assert math.isnan(utils.parse_num(raw))


def test_number_helpers():
    assert utils.is_int(4.0) and not utils.is_int(4.5)
    assert not utils.is_int(float('nan'))
    assert utils.eq_num(0.1 + 0.2, 0.3)
    assert not utils.eq_num(float('nan'), float('nan'))
    assert utils.gcd(84, -36) == 12
    assert [n for n in range(20) if utils.is_prime(n)] == [2, 3, 5, 7, 11, 13, 17, 19]
    assert utils.nth_prime(6) == 13
    assert utils.sum_multiples_below(10, 3, 5) == 23


def test_every_problem_accepts_its_solution():
    for problem in PROBLEMS:
        assert problem.evaluate(SOLUTIONS[problem.id])['ok'] is True, problem.id


def test_predicates_reject_wrong_answers():
    assert get_problem('p2').evaluate({'a': '5', 'b': '5'})['ok'] is False
    assert get_problem('p3').evaluate({'a': '375', 'b': '200', 'c': '425'})['ok'] is False
    assert get_problem('p4').evaluate({})['ok'] is False
    assert get_problem('missing') is None


def test_public_dict_hides_predicate():
    data = get_problem('p1').public_dict()
    assert set(data) == {'id', 'title', 'difficulty', 'statement', 'inputs'}
    full = get_problem('p1').public_dict(include_solution=True)
    assert 'explanation' in full and 'hints' in full


def test_public_groups_expand_include_all():
    groups = public_groups()
    assert all('includeAll' not in g for g in groups)
    assert groups[-1]['problemIds'] == [p.id for p in PROBLEMS]
