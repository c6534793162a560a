import doctest
import logging
import math

import pytest
from hypothesis import given, strategies as st

import eqcalclib
from eqcalclib import (CalcError, CalcSyntaxError, EvalError, LexError,
                       calculate, format_number, to_infix, to_rpn, tokenize)


@pytest.mark.parametrize('expr, result', [
    ('1 + 2',              3),
    ('2 ^ 3 ^ 2',          512),
    ('(2 ^ 3) ^ 2',        64),
    ('-5',                 -5),
    ('-(2 + 3)',           -5),
    ('2 * -3',             -6),
    ('1 - 2 - 3',          -4),
    ('8 / 4 / 2',          1),
    ('1 + 2 * 3',          7),
    ('7 % 4',              3),
    ('sin(0)',             0),
    ('min(3, 5)',          3),
    ('max(3, 5)',          5),
    ('min(-1, -2) * 2',    -4),
    ('sqrt(16) + exp(0)',  5),
    ('2 * (3 + 4) ^ 2',    98),
    ('0.1 + 0.2',          0.1 + 0.2),
])
def test_calculate(expr, result):
    assert calculate(expr) == result


def test_negative_zero():
    assert format_number(calculate('-0')) == '-0'
    assert format_number(calculate('0 * -1')) == '-0'
    # IEEE: -0 + 0 is +0
    assert format_number(calculate('-0 + 0')) == '0'
    assert format_number(calculate('0 - 0')) == '0'
    assert format_number(calculate('-0 - 0')) == '-0'
    assert format_number(calculate('min(-0, 0)')) == '-0'
    assert format_number(calculate('max(0, -0)')) == '0'


@pytest.mark.parametrize('expr, error', [
    ('1 +',      EvalError),
    ('1..2',     LexError),
    ('(1 + 2',   CalcSyntaxError),
    ('1 2',      LexError),
    ('1, 2',     CalcSyntaxError),
    ('',         EvalError),
    ('1 2 +',    LexError),
    ('sin()',    EvalError),
    ('2 sin(0)', EvalError),
    ('foo(1)',   LexError),
])
def test_errors(expr, error):
    with pytest.raises(error):
        calculate(expr)


def test_errors_share_a_base():
    for cls in (LexError, CalcSyntaxError, EvalError):
        assert issubclass(cls, CalcError)
        assert issubclass(cls, ValueError)


@pytest.mark.parametrize('value, text', [
    (0.0, '0'),
    (-0.0, '-0'),
    (3.0, '3'),
    (-512.0, '-512'),
    (0.5, '0.5'),
    (1e21, '1e+21'),
    (1e-7, '1e-7'),
    (1.5e-10, '1.5e-10'),
    (2.5e21, '2.5e+21'),
    (-1e100, '-1e+100'),
    (1e20, '100000000000000000000'),
    (0.000001, '0.000001'),
    (123.456, '123.456'),
    (0.1 + 0.2, '0.30000000000000004'),
    (math.inf, 'Infinity'),
    (-math.inf, '-Infinity'),
    (math.nan, 'NaN'),
])
def test_format_number(value, text):
    assert format_number(value) == text


def test_to_infix():
    assert to_infix(to_rpn(tokenize('1 + 2 * 3'))) == '(1 + (2 * 3))'
    assert to_infix(to_rpn(tokenize('2 ^ 3 ^ 2'))) == '(2 ^ (3 ^ 2))'
    assert to_infix(to_rpn(tokenize('min(1, -2)'))) == 'min(1, -2)'
    assert to_infix(to_rpn(tokenize('-sin(1)'))) == '(0 - sin(1))'
    with pytest.raises(EvalError):
        to_infix(['1', '2'])
    with pytest.raises(EvalError):
        to_infix(['+'])


def expressions():
    literals = st.integers(min_value=-1000, max_value=1000).map(str)

    def combine(children):
        return st.tuples(children, st.sampled_from('+-*/'), children).map(
            lambda t: '(%s) %s (%s)' % t)

    return st.recursive(literals, combine, max_leaves=12)


@given(expressions())
def test_infix_round_trip(expr):
    rebuilt = to_infix(to_rpn(tokenize(expr)))
    assert format_number(calculate(rebuilt)) == format_number(calculate(expr))


def test_debug_logging(caplog):
    with caplog.at_level(logging.DEBUG, logger='eqcalclib'):
        calculate('1 + 2')
    assert "tokens: ['1', '+', '2']" in caplog.text
    assert "rpn: ['1', '2', '+']" in caplog.text


def test_doctests():
    failures, _ = doctest.testmod(eqcalclib)
    assert failures == 0
