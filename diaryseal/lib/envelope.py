"""Versioned JSON envelope: passphrase -> PBKDF2 -> AES-256-GCM.

Wire format (compact JSON, byte fields in standard base64)::

	{"v":1,"kdf":"PBKDF2","kdf_iter":1000000,"salt":"...","iv":"...","ct":"..."}

``ct`` is the GCM ciphertext with the 16-byte tag appended, which is what the
browser's WebCrypto ``AES-GCM`` produces and expects. Every envelope carries
the iteration count it was derived with; decryption always uses that count.
"""
from __future__ import annotations
import base64, binascii, json, logging, os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping
from config.settings import (
	ENVELOPE_VERSION, KDF_NAME, SALT_LENGTH, IV_LENGTH, AUTH_TAG_LENGTH,
	DEFAULT_ITERATIONS, LEGACY_ITERATIONS, MAX_ITERATIONS
)
from .crypto import (
	DiaryCrypto, CryptoError, MalformedPackage, UnsupportedVersion, InvalidIterationCount,
	random_bytes, derive_key
)
from .session import PassphraseHolder

log = logging.getLogger(__name__)

_FIELDS = ('v', 'kdf', 'kdf_iter', 'salt', 'iv', 'ct')

@dataclass(frozen=True)
class Envelope:
	version: int
	kdf_name: str
	kdf_iterations: int
	salt: bytes
	iv: bytes
	ciphertext: bytes

	def to_dict(self) -> dict[str, Any]:
		return {
			'v': self.version,
			'kdf': self.kdf_name,
			'kdf_iter': self.kdf_iterations,
			'salt': base64.b64encode(self.salt).decode('ascii'),
			'iv': base64.b64encode(self.iv).decode('ascii'),
			'ct': base64.b64encode(self.ciphertext).decode('ascii'),
		}

	def to_json(self) -> str:
		return json.dumps(self.to_dict(), separators=(',', ':'))

	@classmethod
	def from_dict(cls, pkg: Mapping[str, Any]) -> 'Envelope':
		return parse_envelope(pkg)


def _b64_field(pkg: Mapping[str, Any], name: str, length: int | None = None) -> bytes:
	value = pkg.get(name)
	if not value:
		raise MalformedPackage(f'Malformed package: missing {name}')
	if not isinstance(value, str):
		raise MalformedPackage(f'Malformed package: {name} must be base64 text')
	try:
		raw = base64.b64decode(value, validate=True)
	except (binascii.Error, ValueError):
		raise MalformedPackage(f'Malformed package: {name} is not valid base64') from None
	if length is not None and len(raw) != length:
		raise MalformedPackage(f'Malformed package: {name} must be {length} bytes')
	return raw


def parse_envelope(source: Envelope | Mapping[str, Any] | str | bytes) -> Envelope:
	"""Validate serialized text or a parsed mapping and return an :class:`Envelope`.

	The version is checked first; every other field is validated before any
	key derivation can happen.
	"""
	if isinstance(source, Envelope):
		return source
	if isinstance(source, (str, bytes, bytearray)):
		try:
			source = json.loads(source)
		except (ValueError, UnicodeDecodeError):
			raise MalformedPackage('Malformed package: not valid JSON') from None
	if not isinstance(source, Mapping):
		raise MalformedPackage('Malformed package: expected a JSON object')
	pkg = source

	version = pkg.get('v')
	if isinstance(version, bool) or not isinstance(version, int) or version != ENVELOPE_VERSION:
		raise UnsupportedVersion(f'Unsupported package version: {version!r}')

	unknown = sorted(set(pkg) - set(_FIELDS))
	if unknown:
		raise MalformedPackage(f"Malformed package: unknown field(s) {', '.join(map(str, unknown))}")

	salt = _b64_field(pkg, 'salt', SALT_LENGTH)
	iv = _b64_field(pkg, 'iv', IV_LENGTH)
	ct = _b64_field(pkg, 'ct')
	if len(ct) < AUTH_TAG_LENGTH:
		raise MalformedPackage('Malformed package: ciphertext shorter than authentication tag')

	kdf = pkg.get('kdf', KDF_NAME)
	if kdf != KDF_NAME:
		raise MalformedPackage(f'Malformed package: unsupported kdf {kdf!r}')

	iterations = pkg.get('kdf_iter')
	if iterations is None or (iterations == 0 and not isinstance(iterations, bool)):
		# older envelopes did not record the count
		iterations = LEGACY_ITERATIONS
	elif isinstance(iterations, bool) or not isinstance(iterations, int):
		raise MalformedPackage('Malformed package: kdf_iter must be an integer')
	elif iterations < 0:
		raise InvalidIterationCount(f'Iteration count must be a positive integer, got {iterations}')
	elif iterations > MAX_ITERATIONS:
		raise MalformedPackage(f'Malformed package: kdf_iter exceeds {MAX_ITERATIONS}')

	return Envelope(version, kdf, iterations, salt, iv, ct)


def _passphrase(passphrase: str | bytes | PassphraseHolder) -> str | bytes:
	if isinstance(passphrase, PassphraseHolder):
		return passphrase.get()
	return passphrase


def encrypt(plaintext: bytes | str, passphrase: str | bytes | PassphraseHolder, iterations: int = DEFAULT_ITERATIONS) -> Envelope:
	"""Encrypt ``plaintext`` under a fresh salt and IV."""
	if isinstance(plaintext, str):
		plaintext = plaintext.encode('utf-8')
	salt = random_bytes(SALT_LENGTH)
	iv = random_bytes(IV_LENGTH)
	key = derive_key(_passphrase(passphrase), salt, iterations)
	ct = DiaryCrypto().seal(plaintext, key, iv)
	return Envelope(ENVELOPE_VERSION, KDF_NAME, iterations, salt, iv, ct)


def decrypt(source: Envelope | Mapping[str, Any] | str | bytes, passphrase: str | bytes | PassphraseHolder) -> bytes:
	"""Return the plaintext bytes of an envelope.

	Raises UnsupportedVersion / MalformedPackage before any key derivation and
	AuthenticationFailure when the tag does not verify.
	"""
	env = parse_envelope(source)
	key = derive_key(_passphrase(passphrase), env.salt, env.kdf_iterations)
	return DiaryCrypto().open(env.ciphertext, key, env.iv)


def decrypt_text(source: Envelope | Mapping[str, Any] | str | bytes, passphrase: str | bytes | PassphraseHolder) -> str:
	"""Decrypt and decode as UTF-8 (the viewer's contract)."""
	raw = decrypt(source, passphrase)
	try:
		return raw.decode('utf-8')
	except UnicodeDecodeError:
		raise CryptoError('Decrypted data is not valid UTF-8 text') from None


def atomic_write_text(path: Path | str, text: str) -> Path:
	"""Write ``text`` to a sibling temp file, then replace ``path`` with it.

	The temp file is removed again if either step fails.
	"""
	path = Path(path)
	tmp = path.with_name(path.name + '.tmp')
	try:
		tmp.write_text(text, encoding='utf-8')
		os.replace(tmp, path)
	except OSError:
		tmp.unlink(missing_ok=True)
		raise
	return path


def write_envelope(path: Path | str, env: Envelope) -> Path:
	"""Serialize ``env`` to ``path``, replacing any previous file atomically."""
	return atomic_write_text(path, env.to_json())


def read_envelope(path: Path | str) -> Envelope:
	return parse_envelope(Path(path).read_text(encoding='utf-8'))
