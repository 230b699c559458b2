"""In-memory passphrase holder with explicit clear() and auto-expiry.

Replaces the browser's session storage: the reader receives a holder object
instead of consulting ambient global state. Nothing is written to disk.
"""
from __future__ import annotations
import time
from typing import Optional
from config.settings import SESSION_TTL

class PassphraseUnavailable(Exception): ...

class PassphraseHolder:
	def __init__(self, passphrase: str | bytes | None = None, ttl_seconds: float = SESSION_TTL):
		self._secret: Optional[bytearray] = None
		self._expires_at: Optional[float] = None
		self._ttl = float(ttl_seconds)
		if passphrase is not None:
			self.set(passphrase)

	def set(self, passphrase: str | bytes) -> None:
		"""Hold ``passphrase`` for ``ttl_seconds`` from now."""
		if isinstance(passphrase, str):
			passphrase = passphrase.encode('utf-8')
		self.clear()
		self._secret = bytearray(passphrase)
		self._expires_at = time.monotonic() + self._ttl

	@property
	def is_set(self) -> bool:
		return self._secret is not None and not self._expired()

	def _expired(self) -> bool:
		return self._expires_at is not None and time.monotonic() > self._expires_at

	def get(self) -> bytes:
		"""Return the held passphrase or raise if cleared or expired."""
		if self._secret is None:
			raise PassphraseUnavailable('No passphrase held')
		if self._expired():
			self.clear()
			raise PassphraseUnavailable('Passphrase expired and was cleared')
		return bytes(self._secret)

	def extend(self, extra_seconds: float) -> None:
		if self._secret is None:
			raise PassphraseUnavailable('No passphrase held')
		self._expires_at = (self._expires_at or time.monotonic()) + float(extra_seconds)

	def clear(self) -> None:
		"""Overwrite (best-effort) and drop the held passphrase."""
		if self._secret is not None:
			for i in range(len(self._secret)):
				self._secret[i] = 0
		self._secret = None
		self._expires_at = None

	def __enter__(self) -> 'PassphraseHolder':
		return self

	def __exit__(self, *exc) -> None:
		self.clear()

	def __repr__(self) -> str:
		return f"PassphraseHolder(is_set={self.is_set})"
