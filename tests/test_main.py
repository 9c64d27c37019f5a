import yaml

import i8080_ucode.__main__ as cli
from i8080_ucode import AlignmentError


def test_output_file(tmp_path):
    out = tmp_path / 'urom.hex'
    assert cli.main(['-o', str(out)]) == 0
    lines = out.read_text().splitlines()
    assert len(lines) == 2049
    assert lines[0] == 'v2.0 raw'


def test_stdout(capsys):
    assert cli.main([]) == 0
    captured = capsys.readouterr()
    assert captured.out.startswith('v2.0 raw\n00003df6 ')
    assert captured.err == ''


def test_verbose(capsys):
    assert cli.main(['-v']) == 0
    err = capsys.readouterr().err
    assert err.startswith('i8080-ucode: ')
    assert '256 opcodes, 16384 words' in err


def test_yaml(tmp_path):
    out = tmp_path / 'urom.yaml'
    assert cli.main(['-f', 'yaml', '-o', str(out)]) == 0
    doc = yaml.safe_load(out.read_text())
    assert len(doc['urom']['rows']) == 256


def test_svh(capsys):
    assert cli.main(['-f', 'svh']) == 0
    assert '} s_uword;' in capsys.readouterr().out


def test_build_options(tmp_path):
    default = tmp_path / 'a.hex'
    soft = tmp_path / 'b.hex'
    slow = tmp_path / 'c.hex'
    assert cli.main(['-o', str(default)]) == 0
    assert cli.main(['--soft-carry', '-o', str(soft)]) == 0
    assert cli.main(['--slow-xchg', '-o', str(slow)]) == 0
    assert default.read_text() != soft.read_text()
    assert default.read_text() != slow.read_text()
    assert soft.read_text() != slow.read_text()


def test_error_exit(monkeypatch, capsys):
    def bad_rom(f, words):
        raise AlignmentError(0x12)

    monkeypatch.setattr(cli, 'write_rom', bad_rom)
    assert cli.main([]) == 2
    err = capsys.readouterr().err
    assert err == 'i8080-ucode: ERROR: alignment error at instruction 12\n'
