"""Configuration settings and constants for diaryseal.

The values live in :mod:`config.settings`; they are re-exported here so that
`from config import DEFAULT_ITERATIONS` keeps working.
"""

from .settings import (
	ENVELOPE_VERSION, KDF_NAME, SALT_LENGTH, IV_LENGTH, KEY_LENGTH, AUTH_TAG_LENGTH,
	DEFAULT_ITERATIONS, LEGACY_ITERATIONS, MAX_ITERATIONS, DEFAULT_DIARY_DIR, PLAINTEXT_SUFFIX,
	ENCRYPTED_SUFFIX, MANIFEST_NAME, SESSION_TTL, LOG_LEVEL
)

__all__ = [
	'ENVELOPE_VERSION', 'KDF_NAME', 'SALT_LENGTH', 'IV_LENGTH', 'KEY_LENGTH', 'AUTH_TAG_LENGTH',
	'DEFAULT_ITERATIONS', 'LEGACY_ITERATIONS', 'MAX_ITERATIONS', 'DEFAULT_DIARY_DIR', 'PLAINTEXT_SUFFIX',
	'ENCRYPTED_SUFFIX', 'MANIFEST_NAME', 'SESSION_TTL', 'LOG_LEVEL'
]
