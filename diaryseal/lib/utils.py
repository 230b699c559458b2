"""Utility layer: manifest building, batch encryption and diary reading.

- ManifestBuilder: sorted listing of encrypted artifacts (``manifest.json``).
- BatchEncryptor: every ``*.txt`` in a directory -> ``*.txt.enc`` under one passphrase.
- read_diaries(): manifest-driven loading for the viewing side (.enc and plain .txt).
"""
from __future__ import annotations
import json, logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional
import click
from config.settings import (
	DEFAULT_ITERATIONS, PLAINTEXT_SUFFIX, ENCRYPTED_SUFFIX, MANIFEST_NAME
)
from .crypto import CryptoError
from .envelope import encrypt, decrypt_text, write_envelope, read_envelope, atomic_write_text
from .session import PassphraseHolder, PassphraseUnavailable

log = logging.getLogger(__name__)

class StorageError(Exception): ...
class DirectoryNotFound(StorageError): ...
class PassphraseMismatch(StorageError): ...
class EmptyPassphrase(StorageError): ...

class ArtifactIOError(StorageError):
	"""Read or write failure on one file of a batch."""

	def __init__(self, path: Path, action: str, cause: OSError):
		self.path = Path(path)
		super().__init__(f"Failed to {action} {self.path.name}: {cause.strerror or cause}")


# --- Manifest ---

@dataclass(frozen=True)
class Manifest:
	files: tuple[str, ...] = ()

	def to_dict(self) -> dict:
		return {'files': list(self.files)}

	def to_json(self) -> str:
		return json.dumps(self.to_dict(), indent=2)


def build_manifest(names: Iterable[str]) -> Manifest:
	"""Sort output names lexicographically. Pure; callers pass the complete set."""
	return Manifest(tuple(sorted(set(names))))


def write_manifest(directory: Path | str, manifest: Manifest) -> Path:
	"""Overwrite ``manifest.json`` in ``directory`` as a whole-file replace."""
	return atomic_write_text(Path(directory) / MANIFEST_NAME, manifest.to_json())


def read_manifest(directory: Path | str) -> Manifest:
	path = Path(directory) / MANIFEST_NAME
	try:
		data = json.loads(path.read_text(encoding='utf-8'))
	except OSError as e:
		raise StorageError(f'Failed to load diary manifest: {e.strerror or e}') from e
	except ValueError as e:
		raise StorageError('Failed to load diary manifest: invalid JSON') from e
	files = data.get('files') if isinstance(data, dict) else None
	if files is None:
		files = []
	if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
		raise StorageError('Failed to load diary manifest: files must be a list of names')
	return Manifest(tuple(files))


# --- Secret input ---

class SecretInput(ABC):
	"""Source of masked secret input; the batch tool asks it for passphrases."""

	@abstractmethod
	def prompt(self, message: str) -> str:
		...


class ClickSecretInput(SecretInput):
	def prompt(self, message: str) -> str:
		return click.prompt(message, hide_input=True, default='', show_default=False)


# --- Batch encryption ---

@dataclass
class BatchResult:
	directory: Path
	outputs: List[str] = field(default_factory=list)
	manifest_path: Optional[Path] = None

	@property
	def nothing_to_do(self) -> bool:
		return not self.outputs and self.manifest_path is None


def find_plaintext_files(directory: Path) -> List[Path]:
	try:
		return sorted(
			p for p in directory.iterdir()
			if p.is_file() and p.name.lower().endswith(PLAINTEXT_SUFFIX)
		)
	except OSError as e:
		raise ArtifactIOError(directory, 'list', e) from e


class BatchEncryptor:
	"""Encrypt every plaintext diary in a directory under one passphrase.

	Files are processed one at a time. The passphrase is asked for twice and
	both entries must match before any file is written. A failure on one file
	aborts the run; envelopes already written stay valid but the manifest is
	only written after the last file.
	"""

	def __init__(self, secret_input: SecretInput, iterations: int = DEFAULT_ITERATIONS,
			progress: Callable[[str, str], None] | None = None):
		self.secret_input = secret_input
		self.iterations = iterations
		self.progress = progress

	def resolve(self, directory: Path | str) -> Path:
		target = Path(directory).expanduser().resolve()
		if not target.is_dir():
			raise DirectoryNotFound(f'Directory not found: {target}')
		return target

	def ask_passphrase(self) -> str:
		first = self.secret_input.prompt('Enter passphrase to encrypt diaries')
		second = self.secret_input.prompt('Confirm passphrase')
		if first != second:
			raise PassphraseMismatch('Passphrases do not match. Aborting.')
		if not first:
			raise EmptyPassphrase('Passphrase must not be empty. Aborting.')
		return first

	def run(self, directory: Path | str) -> BatchResult:
		target = self.resolve(directory)
		result = BatchResult(target)
		sources = find_plaintext_files(target)
		if not sources:
			log.info('No %s files in %s; nothing to do', PLAINTEXT_SUFFIX, target)
			return result

		passphrase = self.ask_passphrase()
		log.info('Encrypting %d file(s) in %s with %d iterations', len(sources), target, self.iterations)
		for src in sources:
			out_name = src.name + ENCRYPTED_SUFFIX
			result.outputs.append(self._encrypt_one(src, target / out_name, passphrase))

		manifest = build_manifest(result.outputs)
		try:
			result.manifest_path = write_manifest(target, manifest)
		except OSError as e:
			raise ArtifactIOError(target / MANIFEST_NAME, 'write', e) from e
		log.info('Wrote manifest with %d file(s): %s', len(manifest.files), result.manifest_path)
		return result

	def _encrypt_one(self, src: Path, dest: Path, passphrase: str) -> str:
		try:
			plain = src.read_bytes()
		except OSError as e:
			raise ArtifactIOError(src, 'read', e) from e
		env = encrypt(plain, passphrase, self.iterations)
		try:
			write_envelope(dest, env)
		except OSError as e:
			raise ArtifactIOError(dest, 'write', e) from e
		log.debug('Encrypted %s -> %s', src.name, dest.name)
		if self.progress is not None:
			self.progress(src.name, dest.name)
		return dest.name


# --- Reading ---

@dataclass
class DiaryText:
	name: str
	text: str
	encrypted: bool = True


def is_encrypted(name: str) -> bool:
	return name.endswith(ENCRYPTED_SUFFIX)


def needs_passphrase(manifest: Manifest) -> bool:
	"""True when at least one listed file is an envelope."""
	return any(is_encrypted(name) for name in manifest.files)


def _load_one(path: Path, holder: PassphraseHolder | None) -> DiaryText:
	if not is_encrypted(path.name):
		return DiaryText(path.name, path.read_text(encoding='utf-8'), encrypted=False)
	if holder is None:
		raise PassphraseUnavailable(f'A passphrase is required to decrypt {path.name}')
	return DiaryText(path.name, decrypt_text(read_envelope(path), holder))


def read_diaries(directory: Path | str, holder: PassphraseHolder | None = None, strict: bool = False) -> List[DiaryText]:
	"""Load every file listed in the manifest, in manifest order.

	``*.enc`` entries are decrypted with the held passphrase; anything else is
	read as plain UTF-8 text. Files that fail to load are logged and skipped
	unless ``strict``.
	"""
	directory = Path(directory)
	if not directory.is_dir():
		raise DirectoryNotFound(f'Directory not found: {directory}')
	manifest = read_manifest(directory)
	if not manifest.files:
		raise StorageError('No diary files listed in manifest')
	if holder is None and needs_passphrase(manifest):
		raise PassphraseUnavailable('Manifest lists encrypted diaries but no passphrase was given')
	out: List[DiaryText] = []
	for name in manifest.files:
		path = directory / name
		try:
			out.append(_load_one(path, holder))
		except OSError as e:
			if strict:
				raise ArtifactIOError(path, 'read', e) from e
			log.error('Failed to read %s: %s', name, e.strerror or e)
		except UnicodeDecodeError as e:
			if strict:
				raise StorageError(f'{name} is not valid UTF-8 text') from e
			log.error('Failed to read %s: not valid UTF-8 text', name)
		except CryptoError as e:
			if strict:
				raise
			log.error('Failed to decrypt %s: %s', name, e)
	return out
