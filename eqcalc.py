#!/usr/bin/env python3
"""The eqcalc command-line interface"""

BANNER = r"""
                          ___  __ _  ___ __ _| | ___
                         / _ \/ _` |/ __/ _` | |/ __|
                        |  __/ (_| | (_| (_| | | (__
                         \___|\__, |\___\__,_|_|\___|
                                 |_|
               + - * / % ^  min max  sin cos tan log exp sqrt
"""

import argparse
import logging
import sys

def stderr(*args):
    print(*args, file=sys.stderr)

import eqcalclib

def evaluate(expr):
    """Calculate ``expr`` and return the result as text."""
    return eqcalclib.format_number(eqcalclib.calculate(expr))

def repl():
    try:
        while True:
            try:
                expr = input('calc> ').strip()
                if expr:
                    print(evaluate(expr))
            except ValueError as ex:
                stderr('error:', ex)
    except EOFError:
        stderr('\ncaught EOF')
    except KeyboardInterrupt:
        stderr('\ninterrupted')

def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='eqcalc',
        description='Evaluate arithmetic expressions.',
        epilog="Put '--' before an expression that starts with '-'.")
    parser.add_argument('expression', nargs='*',
                        help='evaluate this expression and exit')
    parser.add_argument('-q', '--quiet', action='store_true',
                        help="don't show the banner")
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='log tokens and RPN of every expression')
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(name)s: %(message)s')

    if args.expression:
        try:
            print(evaluate(' '.join(args.expression)))
        except ValueError as ex:
            stderr('error:', ex)
            return 1
        return 0

    if not args.quiet:
        stderr(BANNER)
    repl()
    return 0

if __name__ == '__main__':
    sys.exit(main())
