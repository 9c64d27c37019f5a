# 8080 control store generator
#
# Copyright (c) 2024 David Hunter
#
# This program is GPL licensed. See COPYING for the full license.

from .errors import AlignmentError, LayoutError, TableError, UcodeError
from .fields import decode, encode, load_layout
from .gen_ucode import build_table, ucode_options, ucode_table
from .gen_urom import check_alignment, dump_yaml, rom_checksum, write_rom, \
    write_svh
from .uops import uw_idle, uw_ld_ir, uword
