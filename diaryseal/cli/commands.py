"""CLI commands implemented with click.

- encrypt: batch-encrypt a diary directory (also installed as `diary-encrypt`)
- decrypt: print the plaintext of one envelope
- read: show every diary listed in the manifest (.enc decrypted, .txt as is)
"""
from __future__ import annotations
import logging, sys, click
from pathlib import Path
from config.settings import DEFAULT_ITERATIONS, MAX_ITERATIONS, DEFAULT_DIARY_DIR, LOG_LEVEL
from diaryseal.lib.crypto import CryptoError, AuthenticationFailure
from diaryseal.lib.envelope import read_envelope, decrypt_text
from diaryseal.lib.session import PassphraseHolder, PassphraseUnavailable
from diaryseal.lib.utils import (
	BatchEncryptor, ClickSecretInput, StorageError, read_diaries, read_manifest, needs_passphrase
)

log = logging.getLogger(__name__)

def configure_logging(level: str = LOG_LEVEL) -> None:
	logging.basicConfig(
		level=getattr(logging, str(level).upper(), logging.WARNING),
		format='[%(asctime)s] %(levelname)s %(name)s: %(message)s',
		datefmt='%H:%M:%S',
		stream=sys.stderr,
	)

def fail(message: str) -> None:
	click.echo(f'Error: {message}', err=True)
	raise SystemExit(1)

def _positive(ctx, param, value):
	if value is not None and not 0 < value <= MAX_ITERATIONS:
		raise click.BadParameter(f'must be between 1 and {MAX_ITERATIONS}')
	return value

@click.group()
def cli():
	"""diaryseal: passphrase-encrypted diaries"""
	configure_logging()

@click.command('encrypt')
@click.argument('directory', type=click.Path(path_type=Path), default=DEFAULT_DIARY_DIR)
@click.option('--iterations', type=int, default=DEFAULT_ITERATIONS, show_default=True,
	envvar='DIARY_KDF_ITERATIONS', callback=_positive, help='PBKDF2 iteration count for new envelopes.')
def encrypt_cmd(directory, iterations):
	"""Encrypt every .txt file in DIRECTORY and write manifest.json."""
	configure_logging()
	enc = BatchEncryptor(ClickSecretInput(), iterations,
		progress=lambda src, out: click.echo(f'Encrypting {src} ... done -> {out}'))
	try:
		target = enc.resolve(directory)
		click.echo(f'Encrypting .txt files in: {target}')
		result = enc.run(target)
	except (StorageError, CryptoError) as e:
		fail(str(e))
	if result.nothing_to_do:
		click.echo('No .txt files found. Nothing to do.')
		return
	click.echo(f'Wrote manifest with {len(result.outputs)} files: {result.manifest_path}')
	click.echo('Encryption complete. Upload the .enc files and manifest.json to your host.')
	click.echo('IMPORTANT: Keep your passphrase safe. Losing it means losing access to your diaries.')

cli.add_command(encrypt_cmd)

@cli.command('decrypt')
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--passphrase', prompt=True, hide_input=True)
def decrypt_cmd(file, passphrase):
	"""Decrypt one .enc FILE and print its text."""
	try:
		env = read_envelope(file)
		click.echo(decrypt_text(env, passphrase), nl=False)
	except AuthenticationFailure as e:
		fail(str(e))
	except CryptoError as e:
		fail(f'{file.name}: {e}')
	except OSError as e:
		fail(f'{file.name}: {e.strerror or e}')

@cli.command('read')
@click.argument('directory', type=click.Path(path_type=Path), default=DEFAULT_DIARY_DIR)
@click.option('--passphrase', default=None, help='Asked for (hidden) when the manifest lists .enc files.')
@click.option('--strict', is_flag=True, help='Stop at the first file that fails to load.')
def read_cmd(directory, passphrase, strict):
	"""Show every diary listed in DIRECTORY/manifest.json."""
	try:
		manifest = read_manifest(directory)
	except StorageError as e:
		fail(str(e))
	if passphrase is None and needs_passphrase(manifest):
		passphrase = click.prompt('Enter your diary passphrase', hide_input=True)
	with PassphraseHolder(passphrase) as holder:
		try:
			diaries = read_diaries(directory, holder if passphrase is not None else None, strict=strict)
		except (StorageError, CryptoError, PassphraseUnavailable) as e:
			fail(str(e))
	if not diaries:
		fail('No diary could be loaded (wrong passphrase?)')
	for d in diaries:
		click.echo(f'=== {d.name} ===')
		click.echo(d.text)
