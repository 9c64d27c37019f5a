# Microcode generator
#
# Copyright (c) 2024 David Hunter
#
# This program is GPL licensed. See COPYING for the full license.

from dataclasses import dataclass

from .errors import TableError
from .uops import *


NOPCODES = 256
NBANKS = 2
NSTEPS = 32

ALUOP = ['ADD', 'ADC', 'SUB', 'SBB', 'AND', 'XOR', 'OR', 'CMP']
ALU_MNEM = ['ADD', 'ADC', 'SUB', 'SBB', 'ANA', 'XRA', 'ORA', 'CMP']
ALU_IMM_MNEM = ['ADI', 'ACI', 'SUI', 'SBI', 'ANI', 'XRI', 'ORI', 'CPI']

# IR[5:3] condition order
COND = ['NZ', 'Z', 'NC', 'C', 'PO', 'PE', 'P', 'M']

# There is no parity flag; the sequencer resolves these as never/always
PARITY_COND = ['PO', 'PE']


@dataclass(frozen=True)
class ucode_options():
    hw_carry: bool = True       # STC/CMC via the carry set/complement lines
    fast_xchg: bool = True      # XCHG via the one cycle swap line


class ucode_seq():
    def __init__(self, name):
        self.name = name
        self.steps = [uw_ld_ir]

    def step(self, *uws):
        for u in uws:
            if isinstance(u, list):
                self.steps.extend(u)
            else:
                self.steps.append(u)
        return self

    def commit(self):
        steps_len = len(self.steps)
        if steps_len > NSTEPS:
            raise TableError(f'{self.name}: {steps_len} steps, '
                             f'bank holds {NSTEPS}')
        if steps_len < 2:
            raise TableError(f'{self.name}: no steps after fetch')
        if self.steps[0] != uw_ld_ir:
            raise TableError(f'{self.name}: does not begin with fetch')
        steps = self.steps[:-1] + [self.steps[-1] | uw_last]
        for s in steps[:-1]:
            if s.last:
                raise TableError(f'{self.name}: early last cycle')
        return tuple(steps + [uw_idle] * (NSTEPS - steps_len))


class ucode_table():
    """The finished control store, indexed by (opcode, bank, step).

    Bank 0 runs when the condition fails, bank 1 when it holds; the two
    are identical for unconditional instructions.
    """

    def __init__(self, banks, names, conds):
        self._banks = tuple(banks)
        self._names = tuple(names)
        self._conds = tuple(conds)

    def __len__(self):
        return NOPCODES * NBANKS * NSTEPS

    def __getitem__(self, key):
        op, bank, step = key
        bank = int(bank)
        if not 0 <= op < NOPCODES or not 0 <= bank < NBANKS \
           or not 0 <= step < NSTEPS:
            raise IndexError(f'no control word at {key}')
        return self._banks[op][bank][step]

    def bank(self, op, bank):
        return self._banks[op][int(bank)]

    def seq(self, op, bank):
        """Words of one bank up to and including the last cycle."""
        ret = []
        for w in self.bank(op, bank):
            ret.append(w)
            if w.last:
                break
        return tuple(ret)

    def name(self, op):
        return self._names[op]

    def cond(self, op):
        return self._conds[op]

    def is_conditional(self, op):
        return self._conds[op] is not None

    def parity_unimplemented(self, op):
        return self._conds[op] in PARITY_COND

    def words(self):
        return tuple(w.value for banks in self._banks
                     for bank in banks for w in bank)


class ucode_builder():
    def __init__(self):
        self.banks = [None] * NOPCODES
        self.names = [None] * NOPCODES
        self.conds = [None] * NOPCODES

    def add(self, ir, ucs, ucs_true=None, cond=None):
        if self.banks[ir] is not None:
            raise TableError(f'opcode {ir:02x} ({ucs.name}) already holds '
                             f'{self.names[ir]}')
        bank0 = ucs.commit()
        bank1 = ucs_true.commit() if ucs_true else bank0
        self.banks[ir] = (bank0, bank1)
        self.names[ir] = ucs.name
        self.conds[ir] = cond

    def freeze(self):
        for ir in range(NOPCODES):
            if self.banks[ir] is None:
                raise TableError(f'opcode {ir:02x} has no microcode')
        return ucode_table(self.banks, self.names, self.conds)


######################################################################
# Instruction base

def ins(tb, ir, name, ncs):
    tb.add(ir, ucode_seq(name).step(*ncs))


######################################################################
# Move / load / store data

def nop(tb, ir, name='NOP'):
    ins(tb, ir, name, seq_inc_pc)

def move(tb, ir, dst, src):
    ins(tb, ir, f'MOV {dst},{src}', [mov(dst, src)] + seq_inc_pc)

def move_imm(tb, ir, dst):
    ucs = ucode_seq(f'MVI {dst}')
    ucs.step(seq_inc_pc)
    if dst == 'M':
        # MAH holds the byte while HL drives the bus
        ucs.step(uw_m2mah, xfer('MAH', 'M', abus='HL'))
    else:
        ucs.step(xfer('M', dst))
    ucs.step(seq_inc_pc)
    tb.add(ir, ucs)

def load_imm16(tb, ir, rp):
    regl, regh = rp_to_reglh(rp)
    ucs = ucode_seq(f'LXI {rp}')
    ucs.step(seq_inc_pc, xfer('M', regl))
    ucs.step(seq_inc_pc, xfer('M', regh))
    ucs.step(seq_inc_pc)
    tb.add(ir, ucs)

def loadx(tb, ir, rp):
    regl, regh = rp_to_reglh(rp)
    ins(tb, ir, f'LDAX {rp}',
        [xfer(regl, 'MAL'), xfer(regh, 'MAH'), uw_lda] + seq_inc_pc)

def storex(tb, ir, rp):
    regl, regh = rp_to_reglh(rp)
    ins(tb, ir, f'STAX {rp}',
        [xfer(regl, 'MAL'), xfer(regh, 'MAH'), uw_sta] + seq_inc_pc)

def load_abs(tb, ir):
    ins(tb, ir, 'LDA', seq_fetch_ma + [uw_lda] + seq_inc_pc)

def store_abs(tb, ir):
    ins(tb, ir, 'STA', seq_fetch_ma + [uw_sta] + seq_inc_pc)

def load_hl(tb, ir):
    ins(tb, ir, 'LHLD', seq_fetch_ma +
        [uw_lhld1, uw_inc_mal, uw_inc_mah, uw_lhld2] + seq_inc_pc)

def store_hl(tb, ir):
    ins(tb, ir, 'SHLD', seq_fetch_ma +
        [uw_shld1, uw_inc_mal, uw_inc_mah, uw_shld2] + seq_inc_pc)

def push_rp(tb, ir, rp):
    ins(tb, ir, f'PUSH {rp}', seq_push_rp(rp) + seq_inc_pc)

def pop_rp(tb, ir, rp):
    ins(tb, ir, f'POP {rp}', seq_pop_rp(rp) + seq_inc_pc)

# XTHL: L <-> (SP), H <-> (SP+1), old HL parked in MA
def xthl(tb, ir):
    ucs = ucode_seq('XTHL')
    ucs.step(uw_xthl1, uw_xthl2)
    ucs.step(pop('L'), seq_inc_sp, pop('H'))
    ucs.step(push('MAH'), seq_dec_sp, push('MAL'))
    ucs.step(seq_inc_pc)
    tb.add(ir, ucs)

def xchg(tb, ir, opts):
    swap = [uw_xchg] if opts.fast_xchg else seq_xchg_soft
    ins(tb, ir, 'XCHG', swap + seq_inc_pc)

def sphl(tb, ir):
    ins(tb, ir, 'SPHL', [uw_sphl1, uw_sphl2] + seq_inc_pc)


######################################################################
# Math / logic

def incdec(tb, ir, op, reg):
    uop = inr(reg) if op == 'INR' else dcr(reg)
    ucs = ucode_seq(f'{op} {reg}')
    ucs.step(uop)
    if reg == 'M':
        ucs.step(xfer('MAH', 'M', abus='HL'))
    ucs.step(seq_inc_pc)
    tb.add(ir, ucs)

def incdecx(tb, ir, op, rp):
    seq = seq_inx(rp) if op == 'INX' else seq_dcx(rp)
    ins(tb, ir, f'{op} {rp}', seq + seq_inc_pc)

def dad(tb, ir, rp):
    ins(tb, ir, f'DAD {rp}', seq_dad(rp) + seq_inc_pc)

def math(tb, ir, i, src):
    ins(tb, ir, f'{ALU_MNEM[i]} {src}', [alu(ALUOP[i], src)] + seq_inc_pc)

def math_imm(tb, ir, i):
    ins(tb, ir, ALU_IMM_MNEM[i],
        seq_inc_pc + [alu_imm(ALUOP[i])] + seq_inc_pc)

def rotate(tb, ir, name):
    seq = {
        'RLC': seq_rlc,
        'RRC': [uw_rrc],
        'RAL': [uw_ral],
        'RAR': [uw_rar],
    }[name]
    ins(tb, ir, name, seq + seq_inc_pc)

def cma(tb, ir):
    ins(tb, ir, 'CMA', seq_cma + seq_inc_pc)

def stc(tb, ir, opts):
    seq = [uw_stc] if opts.hw_carry else seq_stc_soft
    ins(tb, ir, 'STC', seq + seq_inc_pc)

def cmc(tb, ir, opts):
    seq = [uw_cmc] if opts.hw_carry else seq_cmc_soft
    ins(tb, ir, 'CMC', seq + seq_inc_pc)


######################################################################
# Jump / call / return

# Not taken: step PC past the opcode and both operand bytes
seq_skip_word = seq_inc_pc * 3

def jmp(tb, ir, cond=None):
    name = f'J{cond}' if cond else 'JMP'
    taken = ucode_seq(name)
    taken.step(seq_inc_pc, uw_jmp1)
    taken.step(seq_inc_pc, uw_jmp2, uw_jmp3)
    if cond:
        tb.add(ir, ucode_seq(name).step(seq_skip_word), taken, cond)
    else:
        tb.add(ir, taken)

# The return address pushed is PC after both operand bytes
def call(tb, ir, cond=None):
    name = f'C{cond}' if cond else 'CALL'
    taken = ucode_seq(name)
    taken.step(seq_fetch_ma, seq_inc_pc)
    taken.step(seq_dec_sp, push('PCH'), seq_dec_sp, push('PCL'))
    taken.step(uw_call1, uw_call2)
    if cond:
        tb.add(ir, ucode_seq(name).step(seq_skip_word), taken, cond)
    else:
        tb.add(ir, taken)

def ret(tb, ir, cond=None):
    name = f'R{cond}' if cond else 'RET'
    taken = ucode_seq(name)
    taken.step(pop('PCL'), seq_inc_sp, pop('PCH'), seq_inc_sp)
    if cond:
        tb.add(ir, ucode_seq(name).step(seq_inc_pc), taken, cond)
    else:
        tb.add(ir, taken)

def rst(tb, ir, n):
    ucs = ucode_seq(f'RST {n}')
    ucs.step(seq_inc_pc)
    ucs.step(seq_dec_sp, push('PCH'), seq_dec_sp, push('PCL'))
    ucs.step(uw_rst1, uw_rst2)
    tb.add(ir, ucs)

def pchl(tb, ir):
    ins(tb, ir, 'PCHL', [uw_pchl1, uw_pchl2])


######################################################################
# Machine control

def ei_di(tb, ir, name):
    sig = {'EI': 'inton', 'DI': 'intoff'}[name]
    ins(tb, ir, name, [uw_inc_pcl, uw_inc_pch | {sig: 1}])

# No I/O strobe in the control word; only skip the port operand
def io(tb, ir, name):
    ins(tb, ir, name, seq_inc_pc * 2)


######################################################################

def build_table(options=None):
    opts = options or ucode_options()
    tb = ucode_builder()

    nop(tb, 0x00)
    for ir in range(0x08, 0x40, 0x08):
        nop(tb, ir, 'NOP*')                       # undocumented
    nop(tb, 0x27, 'DAA')                          # no decimal adjust
    nop(tb, 0x76, 'HLT')                          # no halt line

    for i, rp in enumerate(RP):
        load_imm16(tb, 0x01 | i << 4, rp)
        incdecx(tb, 0x03 | i << 4, 'INX', rp)
        dad(tb, 0x09 | i << 4, rp)
        incdecx(tb, 0x0b | i << 4, 'DCX', rp)
    for i, rp in enumerate(RP_PSW):
        pop_rp(tb, 0xc1 | i << 4, rp)
        push_rp(tb, 0xc5 | i << 4, rp)
    for i, rp in enumerate(RP[:2]):
        storex(tb, 0x02 | i << 4, rp)
        loadx(tb, 0x0a | i << 4, rp)

    store_hl(tb, 0x22)
    load_hl(tb, 0x2a)
    store_abs(tb, 0x32)
    load_abs(tb, 0x3a)

    for i, reg in enumerate(REG8):
        incdec(tb, 0x04 | i << 3, 'INR', reg)
        incdec(tb, 0x05 | i << 3, 'DCR', reg)
        move_imm(tb, 0x06 | i << 3, reg)

    for i, name in enumerate(['RLC', 'RRC', 'RAL', 'RAR']):
        rotate(tb, 0x07 | i << 3, name)
    cma(tb, 0x2f)
    stc(tb, 0x37, opts)
    cmc(tb, 0x3f, opts)

    for d, dst in enumerate(REG8):
        for s, src in enumerate(REG8):
            if dst == src == 'M':
                continue                          # HLT
            move(tb, 0x40 | d << 3 | s, dst, src)

    for i in range(len(ALUOP)):
        for s, src in enumerate(REG8):
            math(tb, 0x80 | i << 3 | s, i, src)
        math_imm(tb, 0xc6 | i << 3, i)

    for i, cond in enumerate(COND):
        ret(tb, 0xc0 | i << 3, cond)
        jmp(tb, 0xc2 | i << 3, cond)
        call(tb, 0xc4 | i << 3, cond)
        rst(tb, 0xc7 | i << 3, i)

    jmp(tb, 0xc3)
    jmp(tb, 0xcb)                                 # undocumented
    ret(tb, 0xc9)
    ret(tb, 0xd9)                                 # undocumented
    for ir in (0xcd, 0xdd, 0xed, 0xfd):
        call(tb, ir)

    io(tb, 0xd3, 'OUT')
    io(tb, 0xdb, 'IN')
    xthl(tb, 0xe3)
    pchl(tb, 0xe9)
    xchg(tb, 0xeb, opts)
    ei_di(tb, 0xf3, 'DI')
    sphl(tb, 0xf9)
    ei_di(tb, 0xfb, 'EI')

    return tb.freeze()
