"""Cryptographic primitives: CSPRNG, PBKDF2 key derivation and AES-256-GCM."""
from __future__ import annotations
import secrets, logging
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend
from config.settings import KEY_LENGTH, IV_LENGTH, AUTH_TAG_LENGTH, MAX_ITERATIONS

log = logging.getLogger(__name__)

class CryptoError(Exception):
	pass

class UnsupportedVersion(CryptoError): ...
class MalformedPackage(CryptoError): ...
class InvalidIterationCount(CryptoError): ...
class EntropySourceUnavailable(CryptoError): ...

class AuthenticationFailure(CryptoError):
	"""Tag verification failed: wrong passphrase or corrupted data."""

	def __init__(self, message: str = 'Decryption failed (wrong passphrase or corrupted data)'):
		super().__init__(message)


def random_bytes(n: int) -> bytes:
	"""Return ``n`` bytes from the operating system CSPRNG."""
	if n < 0:
		raise ValueError('Byte count must be non-negative')
	try:
		return secrets.token_bytes(n)
	except (NotImplementedError, OSError) as e:
		log.critical('OS entropy source unavailable')
		raise EntropySourceUnavailable(f'Secure random source unavailable: {e}') from e


def _to_bytes(passphrase: str | bytes) -> bytes:
	if isinstance(passphrase, str):
		return passphrase.encode('utf-8')
	if isinstance(passphrase, (bytes, bytearray)):
		return bytes(passphrase)
	raise TypeError('Passphrase must be str or bytes')


def derive_key(passphrase: str | bytes, salt: bytes, iterations: int) -> bytes:
	"""Derive a 256-bit key with PBKDF2-HMAC-SHA-256.

	Same passphrase, salt and iteration count always give the same key.
	"""
	if isinstance(iterations, bool) or not isinstance(iterations, int) or not 0 < iterations <= MAX_ITERATIONS:
		raise InvalidIterationCount(f'Iteration count must be between 1 and {MAX_ITERATIONS}, got {iterations!r}')
	kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LENGTH, salt=salt, iterations=iterations, backend=default_backend())
	return kdf.derive(_to_bytes(passphrase))


class DiaryCrypto:
	"""AES-256-GCM with the tag appended to the ciphertext (WebCrypto layout)."""

	def __init__(self):
		self._backend = default_backend()

	def seal(self, data: bytes, key: bytes, iv: bytes) -> bytes:
		if len(key) != KEY_LENGTH: raise CryptoError('Bad key length')
		if len(iv) != IV_LENGTH: raise CryptoError('Bad IV length')
		cipher = Cipher(algorithms.AES(key), modes.GCM(iv), backend=self._backend)
		enc = cipher.encryptor()
		ct = enc.update(data) + enc.finalize()
		return ct + enc.tag

	def open(self, blob: bytes, key: bytes, iv: bytes) -> bytes:
		if len(key) != KEY_LENGTH: raise CryptoError('Bad key length')
		if len(blob) < AUTH_TAG_LENGTH: raise MalformedPackage('Ciphertext too short')
		ct = blob[:-AUTH_TAG_LENGTH]; tag = blob[-AUTH_TAG_LENGTH:]
		cipher = Cipher(algorithms.AES(key), modes.GCM(iv, tag), backend=self._backend)
		dec = cipher.decryptor()
		try:
			return dec.update(ct) + dec.finalize()
		except InvalidTag:
			raise AuthenticationFailure() from None
