# Control word bitfield encoding
#
# Copyright (c) 2024 David Hunter
#
# This program is GPL licensed. See COPYING for the full license.

from pathlib import Path

import yaml

from .errors import LayoutError


LAYOUT_PATH = Path(__file__).with_name('uword.yaml')
UWORD_WIDTH = 32


class layout():
    """Packed bitfield layout of a control word.

    Built from a document with a 'types' list (enum/int types, as used for
    the SystemVerilog typedefs) and a 'uword' table of columns. Columns are
    packed LSB first in declaration order; each column gets a 'start' bit.
    """

    def __init__(self, doc, source='<layout>'):
        try:
            self.types = doc['types']
            self.columns = doc['uword']['columns']
        except (KeyError, TypeError) as e:
            raise LayoutError(f'{source}: missing table {e}') from e

        self._cols = {}
        stw = 0
        for c in self.columns:
            if 'type' in c:
                w = self.get_type(c['type'])['width']
            else:
                w = c['width']
            c['start'] = stw
            c['width'] = w
            self._cols[c['name']] = c
            stw += w
        if stw != UWORD_WIDTH:
            raise LayoutError(f'{source}: columns span {stw} bits, '
                              f'expected {UWORD_WIDTH}')
        self.width = stw

    def get_type(self, name):
        for t in self.types:
            if t['name'] == name:
                return t
        raise LayoutError(f'unknown type {name!r}')

    def get_column(self, name):
        try:
            return self._cols[name]
        except KeyError:
            raise LayoutError(f'unknown column {name!r}') from None

    def type_to_int(self, te, val):
        base = te['type']
        if base == 'enum':
            for i, v in enumerate(te['values']):
                if val == v:
                    return i
            raise LayoutError(f"{te['name']}: no value {val!r}")
        elif base == 'int':
            return int(val)
        else:
            raise LayoutError(f"{te['name']}: bad base type {base!r}")

    def int_to_type(self, te, val):
        if te['type'] != 'enum':
            return val
        try:
            return te['values'][val]
        except IndexError:
            raise LayoutError(f"{te['name']}: no value at index {val}") from None

    def shift(self, name):
        return self.get_column(name)['start']

    def mask(self, name):
        c = self.get_column(name)
        return ((1 << c['width']) - 1) << c['start']

    def encode(self, sigs):
        word = 0
        for k, v in sigs.items():
            c = self.get_column(k)
            if 'type' in c:
                v = self.type_to_int(self.get_type(c['type']), v)
            else:
                v = int(v)
            if v < 0 or v >> c['width']:
                raise LayoutError(f"{k}: {v} does not fit in {c['width']} bits")
            word |= v << c['start']
        return word

    def decode(self, word):
        sigs = {}
        for c in self.columns:
            v = (word >> c['start']) & ((1 << c['width']) - 1)
            if 'type' in c:
                v = self.int_to_type(self.get_type(c['type']), v)
            sigs[c['name']] = v
        return sigs


def load_layout(path=None):
    path = Path(path) if path else LAYOUT_PATH
    try:
        with open(path) as f:
            doc = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise LayoutError(f'{path}: {e}') from e
    return layout(doc, str(path))


LAYOUT = load_layout()


def encode(sigs):
    return LAYOUT.encode(sigs)

def decode(word):
    return LAYOUT.decode(word)

def field_shift(name):
    return LAYOUT.shift(name)

def field_mask(name):
    return LAYOUT.mask(name)
