import base64
import binascii

import base58

from solforge.errors import InvalidEncoding


def b58encode(data: bytes) -> str:
    return base58.b58encode(bytes(data)).decode("ascii")


def b58decode(text: str) -> bytes:
    if text != text.strip():
        raise InvalidEncoding("Invalid base58 string: surrounding whitespace")
    try:
        return base58.b58decode(text)
    except ValueError as exc:
        # covers unknown alphabet characters and non-ascii input
        raise InvalidEncoding(f"Invalid base58 string: {exc}") from exc


def b64encode(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def b64decode(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidEncoding(f"Invalid base64 string: {exc}") from exc
