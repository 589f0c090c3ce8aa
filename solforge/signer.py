from solders.keypair import Keypair
from solders.signature import Signature

from solforge.codec import b64decode
from solforge.errors import InvalidLength
from solforge.keys import parse_pubkey

SIGNATURE_LENGTH = 64


def sign_message(message: bytes, keypair: Keypair) -> Signature:
    return keypair.sign_message(bytes(message))


def parse_signature(text: str) -> Signature:
    raw = b64decode(text)
    if len(raw) != SIGNATURE_LENGTH:
        raise InvalidLength(f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
    return Signature.from_bytes(raw)


def verify_message(message: bytes, signature_b64: str, pubkey_b58: str) -> bool:
    """Check ``signature_b64`` over ``message`` for ``pubkey_b58``.

    Malformed encodings raise; a signature that simply does not match returns False.
    """
    pubkey = parse_pubkey(pubkey_b58)
    signature = parse_signature(signature_b64)
    return signature.verify(pubkey, bytes(message))
