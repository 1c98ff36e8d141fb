"""
PLINKO FAIR: Hash Utilities

Commitment and combined-seed helpers. Every value is a lowercase hex
SHA-256 digest of a ":"-joined UTF-8 string.
"""

import hashlib


def digest_hex(data: str) -> str:
    """SHA-256 of a UTF-8 string, hex encoded."""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def commitment(server_seed: str, nonce: str) -> str:
    """Hash published before the round: SHA-256(serverSeed:nonce)."""
    return digest_hex(f"{server_seed}:{nonce}")


def combined_seed(server_seed: str, client_seed: str, nonce: str) -> str:
    """Round seed: SHA-256(serverSeed:clientSeed:nonce)."""
    return digest_hex(f"{server_seed}:{client_seed}:{nonce}")
