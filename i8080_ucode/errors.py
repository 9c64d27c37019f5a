# Control store generator exceptions
#
# Copyright (c) 2024 David Hunter
#
# This program is GPL licensed. See COPYING for the full license.


class UcodeError(Exception):
    pass


class LayoutError(UcodeError):
    pass


class TableError(UcodeError):
    pass


class AlignmentError(UcodeError):
    def __init__(self, opcode):
        self.opcode = opcode
        super().__init__(f'alignment error at instruction {opcode:02x}')
