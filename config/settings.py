"""Project configuration settings.

Envelope format constants are fixed; the tunables honour environment overrides.
"""

from pathlib import Path
import os

# Envelope format
ENVELOPE_VERSION = 1
KDF_NAME = "PBKDF2"
SALT_LENGTH = 16
IV_LENGTH = 12   # GCM nonce
KEY_LENGTH = 32  # AES-256
AUTH_TAG_LENGTH = 16  # GCM tag length

# PBKDF2 iterations for new envelopes (600k is the current recommended floor).
# The batch tool reads DIARY_KDF_ITERATIONS through its --iterations option.
DEFAULT_ITERATIONS = 1_000_000
# Envelopes written before kdf_iter was recorded were derived with this count
LEGACY_ITERATIONS = 200_000
# Upper bound accepted from an envelope (unsigned 32-bit, as WebCrypto takes)
MAX_ITERATIONS = 2**32 - 1

# Diary directory layout
DEFAULT_DIARY_DIR = Path(os.environ.get("DIARY_DIR", "diaries"))
PLAINTEXT_SUFFIX = ".txt"
ENCRYPTED_SUFFIX = ".enc"
MANIFEST_NAME = "manifest.json"

# Passphrase held in memory by the reader (seconds)
SESSION_TTL = 30 * 60

# Logging
LOG_LEVEL = os.environ.get("DIARY_LOG_LEVEL", "WARNING")

__all__ = [
	'ENVELOPE_VERSION','KDF_NAME','SALT_LENGTH','IV_LENGTH','KEY_LENGTH','AUTH_TAG_LENGTH',
	'DEFAULT_ITERATIONS','LEGACY_ITERATIONS','MAX_ITERATIONS','DEFAULT_DIARY_DIR','PLAINTEXT_SUFFIX',
	'ENCRYPTED_SUFFIX','MANIFEST_NAME','SESSION_TTL','LOG_LEVEL'
]
