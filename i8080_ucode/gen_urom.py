# Code generator for microcode ROM
#
# Copyright (c) 2024 David Hunter
#
# This program is GPL licensed. See COPYING for the full license.

import yaml

from .errors import AlignmentError
from .fields import LAYOUT
from .gen_ucode import NBANKS, NSTEPS
from .uops import uw_ld_ir


ROM_HEADER = 'v2.0 raw'
WORDS_PER_LINE = 8
BLOCK = NBANKS * NSTEPS         # words per opcode


def check_alignment(words):
    """Every opcode block must start with the fetch word."""
    if len(words) % BLOCK:
        raise AlignmentError(len(words) // BLOCK)
    for op in range(len(words) // BLOCK):
        if words[op * BLOCK] != uw_ld_ir.value:
            raise AlignmentError(op)


def write_rom(f, words):
    """Write a raw ROM image, checking alignment as it goes.

    Stops before the first bad opcode block; the lines already written
    are left on the stream.
    """
    if len(words) % BLOCK:
        raise AlignmentError(len(words) // BLOCK)
    f.write(ROM_HEADER + '\n')
    for r in range(len(words) // WORDS_PER_LINE):
        line = words[r * WORDS_PER_LINE:(r + 1) * WORDS_PER_LINE]
        if (r * WORDS_PER_LINE) % BLOCK == 0 and line[0] != uw_ld_ir.value:
            raise AlignmentError(r * WORDS_PER_LINE // BLOCK)
        f.write(' '.join(f'{w:08x}' for w in line) + '\n')


def rom_checksum(words):
    # Trivial checksum over the little-endian byte image
    csum = 0
    for w in words:
        for i in range(4):
            csum += (w >> (8 * i)) & 0xff
    return csum


def dump_yaml(f, table):
    rows = []
    for op in range(len(table) // BLOCK):
        row = {'at': f'0x{op:02x}', 'name': table.name(op)}
        if table.is_conditional(op):
            row['cond'] = table.cond(op)
            if table.parity_unimplemented(op):
                row['parity_unimplemented'] = True
            row['banks'] = [
                [dict(w.sigs) for w in table.seq(op, bank)]
                for bank in range(NBANKS)
            ]
        else:
            row['steps'] = [dict(w.sigs) for w in table.seq(op, 0)]
        rows.append(row)
    yaml.safe_dump({'urom': {'rows': rows}}, f, sort_keys=False)


def gen_struct(f, stname, columns, lay):
    f.write("typedef struct packed\n")
    f.write("{\n")
    # packed structs list the MSB first
    for c in reversed(columns):
        if 'type' in c:
            t = lay.get_type(c['type'])['name']
        else:
            t = f"reg [{c['width']-1}:0]"
        f.write(f"    {t} {c['name']};    // {c['desc']}\n")
    f.write(f"}} {stname};\n")
    f.write("\n")


def write_svh(f, lay=None):
    lay = lay or LAYOUT
    for t in lay.types:
        f.write('typedef ')
        name = t['name']
        if t['type'] == 'enum':
            vals = t['values']

            f.write(f"enum reg [{t['width']-1}:0]\n")
            f.write("{\n")
            for i, v in enumerate(vals):
                last = '' if i == len(vals) - 1 else ','
                f.write(f"    {t['prefix']}{v}{last}\n")
            f.write('}')
        elif t['type'] == 'int':
            f.write(f"reg [{t['width']-1}:0]")
        f.write(f" {name};    // {t['desc']}\n")
        f.write("\n")

    gen_struct(f, 's_uword', lay.columns, lay)
