# Micro-operation library
#
# Copyright (c) 2024 David Hunter
#
# This program is GPL licensed. See COPYING for the full license.

from dataclasses import dataclass

from .fields import encode


@dataclass(frozen=True, eq=False)
class uword():
    """One control word: an immutable set of asserted signals.

    Words compose with '|' (right side wins), like the signal dicts they
    are built from. Two words are equal when they encode to the same bits,
    except that the idle (padding) word is never equal to a real one.
    """

    sigs: tuple = ()
    idle: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'value', encode(dict(self.sigs)))

    def __or__(self, other):
        if isinstance(other, uword):
            other = dict(other.sigs)
        return uword(tuple((dict(self.sigs) | other).items()))

    def __eq__(self, other):
        if not isinstance(other, uword):
            return NotImplemented
        return (self.value, self.idle) == (other.value, other.idle)

    def __hash__(self):
        return hash((self.value, self.idle))

    def __int__(self):
        return self.value

    def __repr__(self):
        return f'uword({describe(self)})'

    @property
    def signals(self):
        return dict(self.sigs)

    @property
    def last(self):
        return bool(self.signals.get('last'))


def uw(**sigs):
    return uword(tuple(sigs.items()))


FLAG_SIGS = ['carry', 'zs', 'inton', 'intoff', 'stc', 'cmc', 'xchg', 'last']

def describe(w):
    if w.idle:
        return 'IDLE'
    s = w.signals
    ret = f"{s.get('src', 'B')}->{s.get('dst', 'B')} " \
          f"{s.get('abus', 'HL')} {s.get('aluop', 'ADD')}"
    for f in FLAG_SIGS:
        if s.get(f):
            ret += ' ' + f.upper()
    if s.get('cond', 'NONE') != 'NONE':
        ret += ' ' + s['cond']
    return ret


######################################################################
# Register groups

# IR[5:3] / IR[2:0] register field order
REG8 = ['B', 'C', 'D', 'E', 'H', 'L', 'M', 'A']

# IR[5:4] register pair order; PSW replaces SP for PUSH/POP
RP = ['B', 'D', 'H', 'SP']
RP_PSW = ['B', 'D', 'H', 'PSW']

def rp_to_reglh(rp):
    regl, regh = {
        'B': ('C', 'B'),
        'D': ('E', 'D'),
        'H': ('L', 'H'),
        'SP': ('SPL', 'SPH'),
        'PSW': ('FLAG', 'A'),
    }[rp]
    return regl, regh


######################################################################
# Basic words

uw_idle = uword(idle=True)
uw_last = uw(last=1)

def xfer(src, dst, abus='PC', aluop='BYPASS'):
    return uw(src=src, dst=dst, abus=abus, aluop=aluop)

# M[PC] -> IR, first step of every instruction
uw_ld_ir = xfer('M', 'IR')

uw_inc_pcl = xfer('PCL', 'PCL', aluop='INCL')
uw_inc_pch = xfer('PCH', 'PCH', aluop='INCH')
uw_inc_mal = xfer('MAL', 'MAL', aluop='INCL')
uw_inc_mah = xfer('MAH', 'MAH', aluop='INCH')
uw_inc_spl = xfer('SPL', 'SPL', aluop='INCL')
uw_inc_sph = xfer('SPH', 'SPH', aluop='INCH')
uw_dec_spl = xfer('SPL', 'SPL', aluop='DECL')
uw_dec_sph = xfer('SPH', 'SPH', aluop='DECH')

uw_m2mal = xfer('M', 'MAL')
uw_m2mah = xfer('M', 'MAH')

uw_pchl1 = xfer('H', 'PCH')
uw_pchl2 = xfer('L', 'PCL')
uw_sphl1 = xfer('H', 'SPH')
uw_sphl2 = xfer('L', 'SPL')
uw_xthl1 = xfer('H', 'MAH')
uw_xthl2 = xfer('L', 'MAL')

# One cycle DE <-> HL; the transfer fields are don't-care
uw_xchg = xfer('A', 'MAH') | {'xchg': 1}

# Absolute addressing through MA
uw_lda = xfer('M', 'A', abus='MA')
uw_sta = xfer('A', 'M', abus='MA')
uw_shld1 = xfer('L', 'M', abus='MA')
uw_shld2 = xfer('H', 'M', abus='MA')
uw_lhld1 = xfer('M', 'L', abus='MA')
uw_lhld2 = xfer('M', 'H', abus='MA')

# Low byte of the target parks in MAH, high byte goes straight to PCH
uw_jmp1 = uw_m2mah
uw_jmp2 = xfer('M', 'PCH')
uw_jmp3 = xfer('MAH', 'PCL')

uw_call1 = xfer('MAH', 'PCH')
uw_call2 = xfer('MAL', 'PCL')

# PC <- 0000 0000 00nn n000
uw_rst1 = xfer('A', 'PCH', aluop='ZERO')
uw_rst2 = xfer('IR', 'PCL') | {'cond': 'RSTV'}

# Direct carry flip-flop control
uw_stc = xfer('A', 'MAH') | {'stc': 1, 'carry': 1}
uw_cmc = xfer('A', 'MAH') | {'cmc': 1, 'carry': 1}

# Rotates all work on A and capture carry
uw_rlc1 = xfer('A', 'A', aluop='ADD') | {'carry': 1}   # shift into carry
uw_rlc2 = xfer('A', 'A', aluop='INCH')                 # add carry to bit 0
uw_rrc = xfer('A', 'A', aluop='RRC') | {'carry': 1}
uw_ral = xfer('A', 'A', aluop='ADC') | {'carry': 1}
uw_rar = xfer('A', 'A', aluop='RAR') | {'carry': 1}


def push(reg):
    return xfer(reg, 'M', abus='SP')

def pop(reg):
    return xfer('M', reg, abus='SP')

def alu(op, src):
    """A <- A op src, both flag groups captured. CMP discards into MAH."""
    dst = 'MAH' if op == 'CMP' else 'A'
    return xfer(src, dst, abus='HL', aluop=op) | {'carry': 1, 'zs': 1}

def alu_imm(op):
    dst = 'MAH' if op == 'CMP' else 'A'
    return xfer('M', dst, aluop=op) | {'carry': 1, 'zs': 1}

def inr(reg):
    dst = 'MAH' if reg == 'M' else reg
    return xfer(reg, dst, abus='HL', aluop='INCL') | {'zs': 1}

def dcr(reg):
    dst = 'MAH' if reg == 'M' else reg
    return xfer(reg, dst, abus='HL', aluop='DECL') | {'zs': 1}

def mov(dst, src):
    return xfer(src, dst, abus='HL')


######################################################################
# Sequences

seq_inc_pc = [uw_inc_pcl, uw_inc_pch]
seq_inc_sp = [uw_inc_spl, uw_inc_sph]
seq_dec_sp = [uw_dec_spl, uw_dec_sph]

# A DECL/INCL directly followed by DECH/INCH on the same pair carries
# implicitly; nothing may be captured in between.
def seq_inx(rp):
    regl, regh = rp_to_reglh(rp)
    return [xfer(regl, regl, aluop='INCL'), xfer(regh, regh, aluop='INCH')]

def seq_dcx(rp):
    regl, regh = rp_to_reglh(rp)
    return [xfer(regl, regl, aluop='DECL'), xfer(regh, regh, aluop='DECH')]

def seq_push_rp(rp):
    regl, regh = rp_to_reglh(rp)
    return seq_dec_sp + [push(regh)] + seq_dec_sp + [push(regl)]

def seq_pop_rp(rp):
    regl, regh = rp_to_reglh(rp)
    return [pop(regl)] + seq_inc_sp + [pop(regh)] + seq_inc_sp

# Fetch a 16 bit operand into MA, PC left on the last operand byte
seq_fetch_ma = seq_inc_pc + [uw_m2mal] + seq_inc_pc + [uw_m2mah]

# HL <- HL + rp, carry only. The ALU can only add to A, so A is parked in
# MAH while L and H take turns in it.
def seq_dad(rp):
    regl, regh = rp_to_reglh(rp)
    return [
        xfer('A', 'MAH'),
        xfer('L', 'A'),
        xfer(regl, 'L', aluop='ADD') | {'carry': 1},
        xfer('H', 'A'),
        xfer(regh, 'H', aluop='ADC') | {'carry': 1},
        xfer('MAH', 'A'),
    ]

# A <- ~A, flags untouched
seq_cma = [
    xfer('A', 'MAH', aluop='ZERO'),
    xfer('MAH', 'MAH', aluop='DECL'),                  # 0xff
    xfer('MAH', 'A', aluop='XOR'),
]

seq_rlc = [uw_rlc1, uw_rlc2]

# Carry without the set/complement lines
seq_stc_soft = [
    xfer('MAH', 'MAH', aluop='ZERO'),
    xfer('MAH', 'MAH', aluop='DECL'),
    xfer('MAH', 'MAH', aluop='ADD') | {'carry': 1},    # 0xff + 0xff
]

seq_cmc_soft = [
    xfer('A', 'MAH'),
    xfer('FLAG', 'A', aluop='INCL'),                   # flips the carry bit
    xfer('A', 'A', aluop='RAR') | {'carry': 1},
    xfer('MAH', 'A'),
]

seq_xchg_soft = [
    xfer('H', 'MAH'),
    xfer('L', 'MAL'),
    xfer('D', 'H'),
    xfer('E', 'L'),
    xfer('MAH', 'D'),
    xfer('MAL', 'E'),
]
