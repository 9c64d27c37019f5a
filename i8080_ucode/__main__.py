# Control store generator command line
#
# Copyright (c) 2024 David Hunter
#
# This program is GPL licensed. See COPYING for the full license.

import argparse
import sys

from .errors import UcodeError
from .gen_ucode import NOPCODES, build_table, ucode_options
from .gen_urom import dump_yaml, rom_checksum, write_rom, write_svh


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='i8080-ucode',
        description='Generate the 8080 control store ROM image.')
    parser.add_argument(
        '-o', '--output',
        default=None,
        help='Output file (defaults to stdout).')
    parser.add_argument(
        '-f', '--format',
        choices=['raw', 'yaml', 'svh'],
        default='raw',
        help='raw ROM image, YAML listing or SystemVerilog control word typedefs.')
    parser.add_argument(
        '--soft-carry',
        action='store_true',
        help='Build STC/CMC from ALU operations instead of the carry lines.')
    parser.add_argument(
        '--slow-xchg',
        action='store_true',
        help='Build XCHG as register moves through MA instead of the swap line.')
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Print a checksum summary to stderr.')
    args = parser.parse_args(argv)

    opts = ucode_options(hw_carry=not args.soft_carry,
                         fast_xchg=not args.slow_xchg)

    f = open(args.output, 'w') if args.output else sys.stdout
    try:
        if args.format == 'svh':
            write_svh(f)
            return 0

        table = build_table(opts)
        if args.format == 'yaml':
            dump_yaml(f, table)
        else:
            words = table.words()
            write_rom(f, words)
            if args.verbose:
                print(f'i8080-ucode: {rom_checksum(words):08x} '
                      f'{NOPCODES} opcodes, {len(words)} words',
                      file=sys.stderr)
        return 0
    except UcodeError as exc:
        print(f'i8080-ucode: ERROR: {exc}', file=sys.stderr)
        return 2
    finally:
        if f is not sys.stdout:
            f.close()


if __name__ == '__main__':
    raise SystemExit(main(sys.argv[1:]))
