import importlib
import json
from pathlib import Path
import pytest
from click.testing import CliRunner
from config import settings
from diaryseal.cli.commands import cli, encrypt_cmd
from diaryseal.lib import crypto
from diaryseal.lib.crypto import AuthenticationFailure
from diaryseal.lib.envelope import read_envelope, decrypt_text

def make_diaries(tmp_path):
    d = tmp_path / 'diaries'
    d.mkdir()
    (d / '1980.txt').write_text('Hello 1980')
    (d / '1981.txt').write_text('Hello 1981')
    return d

def test_end_to_end_default_strength(tmp_path):
    d = make_diaries(tmp_path)
    r = CliRunner().invoke(cli, ['encrypt', str(d), '--iterations', '1000000'], input='correct-horse\ncorrect-horse\n')
    assert r.exit_code == 0, r.output
    assert 'Encrypting 1980.txt ... done -> 1980.txt.enc' in r.output
    assert 'correct-horse' not in r.output
    assert json.loads((d / 'manifest.json').read_text()) == {'files': ['1980.txt.enc', '1981.txt.enc']}
    env = read_envelope(d / '1980.txt.enc')
    assert env.kdf_iterations == 1_000_000
    assert decrypt_text(env, 'correct-horse') == 'Hello 1980'
    with pytest.raises(AuthenticationFailure):
        decrypt_text(env, 'wrong-pass')

def test_standalone_batch_command(tmp_path):
    d = make_diaries(tmp_path)
    r = CliRunner().invoke(encrypt_cmd, [str(d), '--iterations', '1000'], input='pw\npw\n')
    assert r.exit_code == 0, r.output
    assert 'Wrote manifest with 2 files' in r.output

def test_iterations_from_environment(tmp_path, monkeypatch):
    d = make_diaries(tmp_path)
    monkeypatch.setenv('DIARY_KDF_ITERATIONS', '1500')
    r = CliRunner().invoke(cli, ['encrypt', str(d)], input='pw\npw\n')
    assert r.exit_code == 0, r.output
    assert read_envelope(d / '1981.txt.enc').kdf_iterations == 1500

def test_mismatch_aborts_without_writes(tmp_path):
    d = make_diaries(tmp_path)
    r = CliRunner().invoke(cli, ['encrypt', str(d), '--iterations', '1000'], input='one\ntwo\n')
    assert r.exit_code == 1
    assert 'Passphrases do not match' in r.output
    assert sorted(p.name for p in d.iterdir()) == ['1980.txt', '1981.txt']

def test_directory_not_found(tmp_path):
    r = CliRunner().invoke(cli, ['encrypt', str(tmp_path / 'nope')])
    assert r.exit_code == 1
    assert 'Directory not found' in r.output

def test_nothing_to_do(tmp_path):
    r = CliRunner().invoke(cli, ['encrypt', str(tmp_path)])
    assert r.exit_code == 0
    assert 'Nothing to do' in r.output
    assert not (tmp_path / 'manifest.json').exists()

def test_bad_iterations_option(tmp_path):
    r = CliRunner().invoke(cli, ['encrypt', str(tmp_path), '--iterations', '0'])
    assert r.exit_code == 2

def test_entropy_failure_is_fatal(tmp_path, monkeypatch):
    d = make_diaries(tmp_path)
    def broken(n):
        raise OSError('getrandom failed')
    monkeypatch.setattr(crypto.secrets, 'token_bytes', broken)
    r = CliRunner().invoke(cli, ['encrypt', str(d), '--iterations', '1000'], input='pw\npw\n')
    assert r.exit_code == 1
    assert 'Secure random source unavailable' in r.output
    assert not (d / 'manifest.json').exists()

def test_unreadable_directory_reports_error(tmp_path, monkeypatch):
    d = make_diaries(tmp_path)
    def denied(self):
        raise PermissionError(13, 'Permission denied')
    monkeypatch.setattr(Path, 'iterdir', denied)
    r = CliRunner().invoke(cli, ['encrypt', str(d), '--iterations', '1000'])
    assert r.exit_code == 1
    assert 'Error: Failed to list diaries: Permission denied' in r.output
    assert r.exception is None or isinstance(r.exception, SystemExit)

def test_bad_iterations_environment(tmp_path, monkeypatch):
    monkeypatch.setenv('DIARY_KDF_ITERATIONS', 'lots')
    importlib.reload(settings)
    assert settings.DEFAULT_ITERATIONS == 1_000_000
    r = CliRunner().invoke(cli, ['encrypt', str(tmp_path)])
    assert r.exit_code == 2

def test_oversized_iterations_option(tmp_path):
    r = CliRunner().invoke(cli, ['encrypt', str(tmp_path), '--iterations', str(2**32)])
    assert r.exit_code == 2

def test_read_plain_manifest_without_prompt(tmp_path):
    (tmp_path / '1979.txt').write_text('Hello 1979')
    (tmp_path / 'manifest.json').write_text(json.dumps({'files': ['1979.txt']}))
    r = CliRunner().invoke(cli, ['read', str(tmp_path)])
    assert r.exit_code == 0, r.output
    assert 'passphrase' not in r.output
    assert 'Hello 1979' in r.output
