"""eqcalclib - the expression engine behind eqcalc"""

# ---------------------------
#  The Process in a Nutshell
# ---------------------------
#
#             +------------+     +----------+     +------------+
# [input] >>> | tokenize() | >>> | to_rpn() | >>> | eval_rpn() | >>> [result]
#          |  +------------+  |  +----------+  |  +------------+  |
#          |                  |                |                  |
#        string         list of tokens   tokens in RPN          float
#
# Tokens are plain strings. Both to_rpn() and eval_rpn() classify them by
# looking them up in the registry below.

import logging
import math
import re
from collections import namedtuple
from decimal import Decimal

import numpy as np

logger = logging.getLogger(__name__)

LEFT, RIGHT = 'left', 'right'

DIGITS = frozenset('0123456789')
BINARY_SYMBOLS = frozenset('+-*/%^')
STRUCTURAL_SYMBOLS = BINARY_SYMBOLS | frozenset('(),')

# A '+' or '-' right after one of these (or at the very start) is a sign
SIGN_CONTEXT = BINARY_SYMBOLS | frozenset('(,')


class CalcError(ValueError):
    pass

class LexError(CalcError):
    pass

class CalcSyntaxError(CalcError):
    pass

class EvalError(CalcError):
    pass


class Operator(namedtuple('Operator', 'name nargs precedence assoc func')):
    """An infix operator. Higher precedence binds tighter."""
    __slots__ = ()

    def __call__(self, *args):
        return self.func(*args)

    def __repr__(self):
        return 'Operator(%r)' % self.name


class Function(namedtuple('Function', 'name nargs func')):
    """A call-style function, e.g. ``min(1, 2)``."""
    __slots__ = ()

    def __call__(self, *args):
        return self.func(*args)

    def __repr__(self):
        return 'Function(%r)' % self.name


def ieee(func):
    """Wrap a numpy routine so that it behaves like plain IEEE-754.

    Python floats raise on things like ``1 / 0`` or ``math.log(0)``; numpy
    returns inf or nan instead and only warns. The warnings are silenced
    here and the result comes back as a Python float.
    """
    def newfunc(*args):
        with np.errstate(all='ignore'):
            return float(func(*args))
    return newfunc


def _negative(x):
    return math.copysign(1.0, x) < 0

def minimum(x, y):
    # numpy picks either operand when comparing -0 with 0
    if x == 0 and y == 0:
        return -0.0 if _negative(x) or _negative(y) else 0.0
    return np.minimum(x, y)

def maximum(x, y):
    if x == 0 and y == 0:
        return -0.0 if _negative(x) and _negative(y) else 0.0
    return np.maximum(x, y)

def power(x, y):
    # C's pow gives 1 for 1^nan and (-1)^inf; those are nan here
    if math.isnan(y) or (abs(x) == 1 and math.isinf(y)):
        return math.nan
    return np.power(x, y)


def _registry(*entries):
    return dict((entry.name, entry) for entry in entries)

registry = _registry(
    Operator('+', 2, 1, LEFT,  ieee(np.add)),
    Operator('-', 2, 1, LEFT,  ieee(np.subtract)),
    Operator('*', 2, 2, LEFT,  ieee(np.multiply)),
    Operator('/', 2, 2, LEFT,  ieee(np.divide)),
    # sign follows the dividend, like C's fmod
    Operator('%', 2, 2, LEFT,  ieee(np.fmod)),
    Operator('^', 2, 3, RIGHT, ieee(power)),
    Function('min',  2, ieee(minimum)),
    Function('max',  2, ieee(maximum)),
    Function('sin',  1, ieee(np.sin)),
    Function('cos',  1, ieee(np.cos)),
    Function('tan',  1, ieee(np.tan)),
    Function('log',  1, ieee(np.log)),
    Function('exp',  1, ieee(np.exp)),
    Function('sqrt', 1, ieee(np.sqrt)),
)

FUNCTION_NAMES = frozenset(name for name, entry in registry.items()
                           if isinstance(entry, Function))

_whitespace_re = re.compile(r'\s+')


def _extends_name(name, c):
    """Is ``name + c`` the start of some function name?"""
    return c != '' and any(fn.startswith(name + c) for fn in FUNCTION_NAMES)

def is_sign_prefix(c, number, last_token, next_c):
    """Helper function for tokenize()."""
    # A '+' or '-' is folded into the number that follows it if:
    # 1. no digits have been read for the current number yet
    # 2. it is the first token, or comes after '(', ',' or a binary operator
    # 3. a digit follows immediately
    return (c in '+-'
            and not number
            and (last_token is None or last_token in SIGN_CONTEXT)
            and next_c in DIGITS)

def tokenize(s):
    """Convert a string into a list of tokens.

    >>> tokenize('2 * -3 + sin(0)')
    ['2', '*', '-3', '+', 'sin', '(', '0', ')']
    """
    s = _whitespace_re.sub(' ', s)
    tokens = []

    number = ''   # digits of the literal being read
    name = ''     # start of a function name
    unknown = ''  # everything we couldn't make sense of

    for i, c in enumerate(s):
        prev_c = s[i-1] if i > 0 else ''
        next_c = s[i+1] if i + 1 < len(s) else ''
        last_token = tokens[-1] if tokens else None

        # A half-read name that can't be continued is garbage
        if name and not _extends_name(name, c):
            unknown += name
            name = ''

        if c in DIGITS or is_sign_prefix(c, number, last_token, next_c):
            number += c

        elif c == '.':
            if '.' in number:
                raise LexError("double decimal point in number: '%s%s'" % (number, c))
            number += c

        elif c == ' ':
            if prev_c in DIGITS and next_c in DIGITS:
                raise LexError("space inside a number: '%s%s%s'" % (number, c, next_c))

        elif c in STRUCTURAL_SYMBOLS:
            if c in BINARY_SYMBOLS and not number and last_token in BINARY_SYMBOLS:
                raise LexError("consecutive operators: '%s%s'" % (last_token, c))
            if number:
                tokens.append(number)
                number = ''
            tokens.append(c)

        elif _extends_name(name, c):
            if number:
                tokens.append(number)
                number = ''
            name += c
            if name in FUNCTION_NAMES and not _extends_name(name, next_c):
                tokens.append(name)
                name = ''

        else:
            unknown += c

    unknown += name
    if unknown:
        raise LexError("invalid characters: '%s'" % unknown)

    if number:
        tokens.append(number)

    # ['-', '(', ...] => ['0', '-', '(', ...]
    if tokens and tokens[0] in ('+', '-'):
        tokens.insert(0, '0')

    return tokens


def _should_pop(top, incoming):
    """Helper function for to_rpn()."""
    # Functions and '(' stay put; they are released by ')'
    if not isinstance(top, Operator):
        return False
    return (top.precedence > incoming.precedence
            or (top.precedence == incoming.precedence and incoming.assoc == LEFT))

def to_rpn(tokens):
    """Convert a list of tokens to reverse Polish notation using the
    shunting yard algorithm.

    See <http://en.wikipedia.org/wiki/Shunting_yard_algorithm>
    """
    # Output, in reverse Polish order
    out = []
    # Operator stack
    stack = []

    for token in tokens:
        entry = registry.get(token)

        # Function name: wait for its closing parenthesis
        if isinstance(entry, Function):
            stack.append(token)

        # Argument separator
        elif token == ',':
            while stack and stack[-1] != '(':
                out.append(stack.pop())
            if not stack:
                raise CalcSyntaxError("misplaced comma")

        # Binary operators
        elif isinstance(entry, Operator):
            while stack and _should_pop(registry.get(stack[-1]), entry):
                out.append(stack.pop())
            stack.append(token)

        # Left bracket
        elif token == '(':
            stack.append(token)

        # Right bracket
        elif token == ')':
            while stack and stack[-1] != '(':
                out.append(stack.pop())
            if not stack:
                raise CalcSyntaxError("parenthesis mismatch: unmatched ')'")
            stack.pop()  # the left parenthesis
            # The bracket may have been an argument list
            if stack and isinstance(registry.get(stack[-1]), Function):
                out.append(stack.pop())

        # Number
        else:
            out.append(token)

    # Finally, pop off anything still on the stack
    while stack:
        token = stack.pop()
        if token == '(':
            raise CalcSyntaxError("parenthesis mismatch: unmatched '('")
        out.append(token)

    return out


def _operand(token):
    try:
        return float(token)
    except ValueError:
        raise EvalError("invalid operand '%s'" % token) from None

def eval_rpn(tokens):
    """Evaluate a list of tokens in reverse Polish order."""
    stack = []

    for token in tokens:
        entry = registry.get(token)
        if entry is None:
            stack.append(_operand(token))
        elif len(stack) < entry.nargs:
            raise EvalError("not enough operands for '%s'" % token)
        else:
            # Replace the arguments with the result
            stack[-entry.nargs:] = [entry(*stack[-entry.nargs:])]

    # At the end of the computation, there should be exactly one value
    # left on the stack
    if not stack:
        raise EvalError("nothing to evaluate")
    if len(stack) > 1:
        raise EvalError("insufficient operators: %d values left over" % len(stack))
    return stack[0]


def calculate(expression):
    """Evaluate an expression such as ``'2 ^ 3 ^ 2'`` to a float."""
    tokens = tokenize(expression)
    logger.debug("tokens: %s", tokens)
    rpn = to_rpn(tokens)
    logger.debug("rpn: %s", rpn)
    return eval_rpn(rpn)


def format_number(value):
    """Turn a result into text, keeping the sign of zero.

    Uses the shortest digits that read back as the same float. Plain
    notation is used from 1e-6 up to 1e21 and exponent notation outside
    that range.

    >>> format_number(-0.0), format_number(3.0), format_number(0.5)
    ('-0', '3', '0.5')
    >>> format_number(1e-7), format_number(2.5e21), format_number(1e20)
    ('1e-7', '2.5e+21', '100000000000000000000')
    """
    if value == 0:
        return '-0' if _negative(value) else '0'
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return 'Infinity' if value > 0 else '-Infinity'

    sign = '-' if value < 0 else ''
    # repr() already gives the shortest round-tripping digits
    exact = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = ''.join(map(str, exact.digits))
    k = len(digits)
    # value == 0.<digits> * 10**n
    n = exact.exponent + k

    if k <= n <= 21:
        text = digits + '0' * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + '.' + digits[n:]
    elif -6 < n <= 0:
        text = '0.' + '0' * -n + digits
    else:
        mantissa = digits[0] + ('.' + digits[1:] if k > 1 else '')
        text = '%se%+d' % (mantissa, n - 1)
    return sign + text


def to_infix(tokens):
    """Rebuild a fully parenthesised infix expression from RPN.

    >>> to_infix(['1', '2', '3', '*', '+'])
    '(1 + (2 * 3))'
    """
    stack = []

    for token in tokens:
        entry = registry.get(token)
        if entry is None:
            stack.append(token)
            continue
        if len(stack) < entry.nargs:
            raise EvalError("not enough operands for '%s'" % token)
        args = stack[-entry.nargs:]
        if isinstance(entry, Function):
            text = '%s(%s)' % (token, ', '.join(args))
        else:
            text = '(%s %s %s)' % (args[0], token, args[1])
        stack[-entry.nargs:] = [text]

    if len(stack) != 1:
        raise EvalError("cannot rebuild an expression from %d values" % len(stack))
    return stack[0]
