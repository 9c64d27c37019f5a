import io

import pytest
import yaml

from i8080_ucode import AlignmentError, check_alignment, dump_yaml, \
    rom_checksum, write_rom, write_svh


def test_write_rom(table):
    f = io.StringIO()
    write_rom(f, table.words())
    lines = f.getvalue().splitlines()
    assert len(lines) == 2049
    assert lines[0] == 'v2.0 raw'
    assert lines[1].split()[0] == '00003df6'
    for line in lines[1:]:
        toks = line.split(' ')
        assert len(toks) == 8
        assert all(len(t) == 8 for t in toks)
    # MOV C,B
    assert lines[1 + 0x48 * 8].split()[0] == '00003df6'
    assert f.getvalue().endswith('\n')


def test_write_rom_misaligned(table):
    words = list(table.words())
    words[5 * 64] = 0
    f = io.StringIO()
    with pytest.raises(AlignmentError) as exc:
        write_rom(f, words)
    assert exc.value.opcode == 5
    assert str(exc.value) == 'alignment error at instruction 05'
    assert len(f.getvalue().splitlines()) == 1 + 5 * 8


def test_write_rom_truncated(table):
    words = table.words()[:100]
    f = io.StringIO()
    with pytest.raises(AlignmentError):
        write_rom(f, words)
    assert f.getvalue() == ''


def test_check_alignment(table):
    words = list(table.words())
    check_alignment(words)
    words[0xab * 64] = 0x80002588
    with pytest.raises(AlignmentError) as exc:
        check_alignment(words)
    assert exc.value.opcode == 0xab
    assert 'instruction ab' in str(exc.value)


def test_bank_one_not_checked(table):
    words = list(table.words())
    words[5 * 64 + 32] = 0
    check_alignment(words)
    write_rom(io.StringIO(), words)


def test_rom_checksum(table):
    assert rom_checksum([0x01020304]) == 10
    assert rom_checksum([]) == 0
    assert rom_checksum([0xffffffff, 0xff]) == 5 * 0xff
    assert rom_checksum(table.words()) > 0


def test_dump_yaml(table):
    f = io.StringIO()
    dump_yaml(f, table)
    doc = yaml.safe_load(f.getvalue())
    rows = doc['urom']['rows']
    assert len(rows) == 256
    assert rows[0x48]['at'] == '0x48'
    assert rows[0x48]['name'] == 'MOV C,B'
    assert len(rows[0x48]['steps']) == 4
    assert rows[0x48]['steps'][0] == {
        'src': 'M', 'dst': 'IR', 'abus': 'PC', 'aluop': 'BYPASS'}
    assert rows[0x48]['steps'][-1]['last'] == 1
    assert 'banks' not in rows[0x48]


def test_dump_yaml_conditional(table):
    f = io.StringIO()
    dump_yaml(f, table)
    rows = yaml.safe_load(f.getvalue())['urom']['rows']
    rnz = rows[0xc0]
    assert rnz['cond'] == 'NZ'
    assert 'steps' not in rnz
    assert len(rnz['banks'][0]) == 3
    assert len(rnz['banks'][1]) == 7
    assert 'parity_unimplemented' not in rnz
    assert rows[0xe0]['parity_unimplemented'] is True


def test_write_svh():
    f = io.StringIO()
    write_svh(f)
    text = f.getvalue()
    assert 'typedef enum reg [3:0]' in text
    assert '    REG_IR\n' in text
    assert '    ALU_BYPASS\n' in text
    assert '    COND_RSTV\n' in text
    assert 'typedef struct packed' in text
    assert 'reg [0:0] last;' in text
    assert 'e_reg src;' in text
    assert text.rstrip().endswith('} s_uword;')
    # packed struct lists the MSB first
    assert text.index(' last;') < text.index(' rsvd;') < text.index(' src;')
