"""Keypair generation and parsing of base58 key material.

A keypair's text form is the 64-byte ``seed || pubkey`` blob in base58, the
same layout ``solana-keygen`` writes to disk. Parsing re-derives the public key
from the seed so a blob whose halves disagree is rejected instead of being
trusted.
"""
import secrets
from typing import Callable

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from solforge.codec import b58decode, b58encode
from solforge.errors import InvalidKeypair, InvalidLength, InvalidPublicKey, SolforgeError

PUBKEY_LENGTH = 32
SEED_LENGTH = 32
KEYPAIR_LENGTH = 64

RandomBytes = Callable[[int], bytes]


def generate_keypair(random_bytes: RandomBytes = secrets.token_bytes) -> Keypair:
    """Create a fresh Ed25519 keypair from ``random_bytes(32)``.

    ``random_bytes`` must be a cryptographically secure source in production;
    tests pass a deterministic one.
    """
    seed = random_bytes(SEED_LENGTH)
    if len(seed) != SEED_LENGTH:
        raise InvalidLength(f"Random source returned {len(seed)} bytes, expected {SEED_LENGTH}")
    return Keypair.from_seed(bytes(seed))


def keypair_to_base58(keypair: Keypair) -> str:
    return b58encode(bytes(keypair))


def parse_pubkey(text: str) -> Pubkey:
    raw = b58decode(text)
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidLength(f"Public key must be {PUBKEY_LENGTH} bytes, got {len(raw)}")
    return Pubkey.from_bytes(raw)


def parse_keypair(text: str) -> Keypair:
    raw = b58decode(text)
    if len(raw) != KEYPAIR_LENGTH:
        raise InvalidLength(f"Invalid key length: expected {KEYPAIR_LENGTH} bytes, got {len(raw)}")
    keypair = Keypair.from_seed(raw[:SEED_LENGTH])
    if bytes(keypair.pubkey()) != raw[SEED_LENGTH:]:
        raise InvalidKeypair("Public key does not match secret key")
    return keypair


def require_pubkey(text: str, label: str) -> Pubkey:
    try:
        return parse_pubkey(text)
    except SolforgeError as exc:
        raise InvalidPublicKey(f"Invalid {label} address") from exc
