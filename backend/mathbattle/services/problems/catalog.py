"""Static puzzle catalog.

Each problem carries a ``check(answers, utils)`` predicate returning
``{'ok': bool, 'message': str}``. The predicate never leaves the server:
``public_dict`` is what clients see.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from . import utils as num_utils


@dataclass(frozen=True)
class Problem:
    id: str
    title: str
    difficulty: str
    statement: str
    check: Callable[[Dict[str, Any], Any], Dict[str, Any]] = field(repr=False)
    inputs: List[Dict[str, str]] = field(default_factory=list)
    explanation: str = ''
    hints: List[str] = field(default_factory=list)

    def evaluate(self, answers: Dict[str, Any]) -> Dict[str, Any]:
        """Run the predicate and normalise its result. Exceptions propagate."""
        result = self.check(answers, num_utils) or {}
        ok = bool(result.get('ok'))
        message = result.get('message')
        if not isinstance(message, str):
            message = 'Correct.' if ok else 'Incorrect.'
        return {'ok': ok, 'message': message}

    def public_dict(self, include_solution: bool = False) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'title': self.title,
            'difficulty': self.difficulty,
            'statement': self.statement,
            'inputs': [dict(i) for i in self.inputs],
        }
        if include_solution:
            data['explanation'] = self.explanation
            data['hints'] = list(self.hints)
        return data


def _check_multiples(answers, utils):
    answer = utils.parse_num(answers.get('ans'))
    ok = utils.eq_num(answer, utils.sum_multiples_below(1000, 3, 5))
    return {
        'ok': ok,
        'message': '正解です！' if ok else '不正解です。包除原理を使って再確認してみましょう。',
    }


def _check_sum_product(answers, utils):
    a = utils.parse_num(answers.get('a'))
    b = utils.parse_num(answers.get('b'))
    ok = utils.is_int(a) and utils.is_int(b) and a + b == 10 and a * b == 21
    return {
        'ok': ok,
        'message': '正解です！ (a, b) = (3, 7) または (7, 3) です。' if ok else '条件をもう一度確認してみましょう。',
    }


def _check_triplet(answers, utils):
    a, b, c = (utils.parse_num(answers.get(k)) for k in ('a', 'b', 'c'))
    ok = (
        all(math.isfinite(v) for v in (a, b, c))
        and a < b < c
        and a + b + c == 1000
        and a * a + b * b == c * c
    )
    return {
        'ok': ok,
        'message': '正解です！ (200, 375, 425) が条件を満たします。' if ok else '三平方の定理と和が 1000 になる条件を再確認してください。',
    }


def _check_nth_prime(answers, utils):
    answer = utils.parse_num(answers.get('ans'))
    ok = utils.eq_num(answer, utils.nth_prime(10001))
    return {
        'ok': ok,
        'message': '正解です！' if ok else '10,001 番目の素数をもう一度計算してみましょう。',
    }


PROBLEMS: List[Problem] = [
    Problem(
        id='p1',
        title='Multiples of 3 or 5 below 1000',
        difficulty='Easy',
        statement=(
            '1000 未満の自然数のうち、<code>3</code> または <code>5</code> の倍数の総和を求めてください。'
            '<br />Enter the total sum (an integer).'
        ),
        explanation=(
            '<p>3 の倍数と 5 の倍数をそれぞれ合計し、重複して数えた 15 の倍数を差し引けば包除原理によって答えが求められます。</p>'
            '<p>等差数列の和は <code>m * n * (n + 1) / 2</code> で計算できます。</p>'
        ),
        inputs=[{'id': 'ans', 'label': 'Answer (整数)', 'type': 'number', 'placeholder': 'e.g. 233168'}],
        check=_check_multiples,
        hints=[
            '包除原理（inclusion-exclusion）で 3 と 5 の倍数の重複を調整しましょう。',
            '1 + 2 + ... + n の総和は n(n+1)/2 です。',
        ],
    ),
    Problem(
        id='p2',
        title='Find integers a, b (a + b = 10, ab = 21)',
        difficulty='Easy',
        statement=(
            '整数 <em>a</em>, <em>b</em> が <code>a + b = 10</code>, <code>ab = 21</code> '
            'を満たすようにしてください。順序は問いません。'
        ),
        explanation=(
            '<p>2 次方程式 <code>x^2 - 10x + 21 = 0</code> を因数分解すると '
            '<code>(x - 3)(x - 7) = 0</code> なので解は 3 と 7 です。</p>'
        ),
        inputs=[
            {'id': 'a', 'label': 'a', 'type': 'number', 'placeholder': 'e.g. 3'},
            {'id': 'b', 'label': 'b', 'type': 'number', 'placeholder': 'e.g. 7'},
        ],
        check=_check_sum_product,
        hints=[
            '和と積が決まっている 2 つの整数は二次方程式で求められます。',
            '方程式 <code>x^2 - 10x + 21 = 0</code> を解きましょう。',
        ],
    ),
    Problem(
        id='p3',
        title='Pythagorean triplet for which a + b + c = 1000',
        difficulty='Hard',
        statement=(
            '<em>a &lt; b &lt; c</em> を満たすピタゴラス数 <code>a^2 + b^2 = c^2</code> で、'
            'さらに <code>a + b + c = 1000</code> となる組 <code>(a, b, c)</code> を求め、'
            '3 つの値を入力してください（整数）。'
        ),
        explanation=(
            '<p>Euclid の公式に代入すると <code>2m(m + n) = 1000</code> となり、'
            '<code>(m, n) = (20, 5)</code> から <code>(a, b, c) = (200, 375, 425)</code> が得られます。</p>'
        ),
        inputs=[
            {'id': 'a', 'label': 'a', 'type': 'number', 'placeholder': 'e.g. 200'},
            {'id': 'b', 'label': 'b', 'type': 'number', 'placeholder': 'e.g. 375'},
            {'id': 'c', 'label': 'c', 'type': 'number', 'placeholder': 'e.g. 425'},
        ],
        check=_check_triplet,
        hints=[
            'Euclid の公式 <code>a = m^2 - n^2</code>, <code>b = 2mn</code>, <code>c = m^2 + n^2</code> を利用しましょう。',
            '<code>2m(m + n) = 1000</code> を満たす <code>m, n</code> を探すと候補が絞れます。',
        ],
    ),
    Problem(
        id='p4',
        title='The 10,001st prime',
        difficulty='Medium',
        statement='10,001 番目の素数を求めてください。',
        explanation=(
            '<p>平方根までの試し割りと 6k ± 1 の候補に絞る探索で、'
            '10,001 個目の素数は <code>104743</code> になります。</p>'
        ),
        inputs=[{'id': 'ans', 'label': 'Answer (整数)', 'type': 'number', 'placeholder': 'e.g. 104743'}],
        check=_check_nth_prime,
        hints=[
            '平方根まで試し割りを行えば十分です。',
            '6k ± 1 の形に絞って候補を列挙すると高速化できます。',
        ],
    ),
]

GROUPS: List[Dict[str, Any]] = [
    {'id': 'warmup', 'title': 'ウォームアップ', 'defaultOpen': True, 'problemIds': ['p1', 'p2']},
    {'id': 'number-theory', 'title': '数論チャレンジ', 'problemIds': ['p1', 'p4']},
    {'id': 'geometry', 'title': '幾何とピタゴラス', 'problemIds': ['p2', 'p3']},
    {'id': 'all-set', 'title': '全問題セット', 'includeAll': True},
]

PROBLEM_MAP: Dict[str, Problem] = {p.id: p for p in PROBLEMS}


def get_problem(problem_id: str) -> Optional[Problem]:
    return PROBLEM_MAP.get(problem_id)


def public_groups(problems: List[Problem] = PROBLEMS) -> List[Dict[str, Any]]:
    """Groups with ``includeAll`` expanded to the concrete id list."""
    known = {p.id for p in problems}
    groups = []
    for group in GROUPS:
        entry = {k: v for k, v in group.items() if k != 'includeAll'}
        if group.get('includeAll'):
            entry['problemIds'] = [p.id for p in problems]
        else:
            entry['problemIds'] = [pid for pid in group.get('problemIds', []) if pid in known]
        groups.append(entry)
    return groups
