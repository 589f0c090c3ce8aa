import hashlib
from typing import List, Sequence, Tuple

from borsh_construct import CStruct, Option, U8, U64
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from solforge.codec import b64encode
from solforge.errors import DerivationExhausted, InstructionBuildFailure, InvalidAmount
from solforge.keys import require_pubkey

SYS_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")
TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
SYSVAR_RENT_PUBKEY = Pubkey.from_string("SysvarRent111111111111111111111111111111111")

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEEDS = 16
MAX_SEED_LEN = 32
U64_MAX = 2**64 - 1

# Protocol discriminants. System program uses a u32 tag, SPL Token a u8 tag.
SYSTEM_TRANSFER = 2
TOKEN_INITIALIZE_MINT = 0
TOKEN_TRANSFER = 3
TOKEN_MINT_TO = 7

InitializeMintLayout = CStruct(
    "instruction" / U8,
    "decimals" / U8,
    "mint_authority" / U8[32],
    "freeze_authority" / Option(U8[32]),
)
AmountLayout = CStruct("instruction" / U8, "amount" / U64)


class OnCurveAddress(Exception):
    """Seeds hashed to a valid ed25519 point; the caller tries the next bump."""


def create_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
    if len(seeds) > MAX_SEEDS:
        raise InstructionBuildFailure(f"Too many seeds: {len(seeds)} > {MAX_SEEDS}")
    hasher = hashlib.sha256()
    for seed in seeds:
        if len(seed) > MAX_SEED_LEN:
            raise InstructionBuildFailure(f"Seed exceeds {MAX_SEED_LEN} bytes")
        hasher.update(bytes(seed))
    hasher.update(bytes(program_id))
    hasher.update(PDA_MARKER)
    address = Pubkey.from_bytes(hasher.digest())
    if address.is_on_curve():
        raise OnCurveAddress(str(address))
    return address


def find_program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Tuple[Pubkey, int]:
    """Search bumps 255..0 and return the first off-curve address with its bump."""
    # the bump is itself a seed, so only MAX_SEEDS - 1 caller seeds fit
    if len(seeds) >= MAX_SEEDS:
        raise InstructionBuildFailure(f"Too many seeds: {len(seeds)} (max {MAX_SEEDS - 1} plus bump)")
    for bump in range(255, -1, -1):
        try:
            return create_program_address([*seeds, bytes([bump])], program_id), bump
        except OnCurveAddress:
            continue
    raise DerivationExhausted(f"Unable to find a viable program address bump seed for {program_id}")


def derive_associated_address(
    owner: Pubkey,
    mint: Pubkey,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
    associated_program_id: Pubkey = ASSOCIATED_TOKEN_PROGRAM_ID,
) -> Tuple[Pubkey, int]:
    return find_program_address(
        [bytes(owner), bytes(token_program_id), bytes(mint)], associated_program_id
    )


def derive_ata(owner: Pubkey, mint: Pubkey) -> Pubkey:
    return derive_associated_address(owner, mint)[0]


def check_amount(value: int, name: str = "Amount", allow_zero: bool = False) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmount(f"{name} must be an integer")
    if value < 0 or value > U64_MAX:
        raise InvalidAmount(f"{name} must fit in an unsigned 64-bit integer")
    if value == 0 and not allow_zero:
        raise InvalidAmount(f"{name} must be greater than 0")
    return value


def check_decimals(decimals: int) -> int:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= 255:
        raise InvalidAmount("Decimals must be between 0 and 255")
    return decimals


def check_signers(name: str, accounts: List[AccountMeta], expected: int) -> None:
    signers = sum(1 for meta in accounts if meta.is_signer)
    if signers != expected:
        raise InstructionBuildFailure(
            f"Failed to create {name} instruction: expected {expected} signer(s), got {signers}"
        )


def encode_system_transfer(lamports: int) -> bytes:
    # SystemProgram transfer: instruction = 2 (u32 LE) + lamports (u64 LE)
    return SYSTEM_TRANSFER.to_bytes(4, "little") + lamports.to_bytes(8, "little")


def encode_initialize_mint(decimals: int, mint_authority: Pubkey) -> bytes:
    return InitializeMintLayout.build(
        {
            "instruction": TOKEN_INITIALIZE_MINT,
            "decimals": decimals,
            "mint_authority": list(bytes(mint_authority)),
            "freeze_authority": None,
        }
    )


def encode_mint_to(amount: int) -> bytes:
    return AmountLayout.build({"instruction": TOKEN_MINT_TO, "amount": amount})


def encode_token_transfer(amount: int) -> bytes:
    return AmountLayout.build({"instruction": TOKEN_TRANSFER, "amount": amount})


def build_system_transfer_ix(sender: str, recipient: str, lamports: int) -> Instruction:
    sender_pk = require_pubkey(sender, "sender")
    recipient_pk = require_pubkey(recipient, "recipient")
    check_amount(lamports, "Lamports")
    accounts = [
        AccountMeta(pubkey=sender_pk, is_signer=True, is_writable=True),
        AccountMeta(pubkey=recipient_pk, is_signer=False, is_writable=True),
    ]
    check_signers("transfer", accounts, 1)
    return Instruction(program_id=SYS_PROGRAM_ID, data=encode_system_transfer(lamports), accounts=accounts)


def build_initialize_mint_ix(mint: str, mint_authority: str, decimals: int) -> Instruction:
    mint_pk = require_pubkey(mint, "mint")
    authority_pk = require_pubkey(mint_authority, "mint authority")
    check_decimals(decimals)
    accounts = [
        AccountMeta(pubkey=mint_pk, is_signer=False, is_writable=True),
        AccountMeta(pubkey=SYSVAR_RENT_PUBKEY, is_signer=False, is_writable=False),
    ]
    return Instruction(
        program_id=TOKEN_PROGRAM_ID,
        data=encode_initialize_mint(decimals, authority_pk),
        accounts=accounts,
    )


def build_mint_to_ix(mint: str, destination: str, authority: str, amount: int) -> Instruction:
    mint_pk = require_pubkey(mint, "mint")
    destination_pk = require_pubkey(destination, "destination")
    authority_pk = require_pubkey(authority, "authority")
    check_amount(amount)
    accounts = [
        AccountMeta(pubkey=mint_pk, is_signer=False, is_writable=True),
        AccountMeta(pubkey=destination_pk, is_signer=False, is_writable=True),
        AccountMeta(pubkey=authority_pk, is_signer=True, is_writable=False),
    ]
    check_signers("mint", accounts, 1)
    return Instruction(program_id=TOKEN_PROGRAM_ID, data=encode_mint_to(amount), accounts=accounts)


def build_token_transfer_ix(destination: str, mint: str, owner: str, amount: int) -> Instruction:
    """Transfer ``amount`` base units between the owners' associated token accounts."""
    destination_pk = require_pubkey(destination, "destination")
    mint_pk = require_pubkey(mint, "mint")
    owner_pk = require_pubkey(owner, "owner")
    check_amount(amount)
    source_ata = derive_ata(owner_pk, mint_pk)
    destination_ata = derive_ata(destination_pk, mint_pk)
    accounts = [
        AccountMeta(pubkey=source_ata, is_signer=False, is_writable=True),
        AccountMeta(pubkey=destination_ata, is_signer=False, is_writable=True),
        AccountMeta(pubkey=owner_pk, is_signer=True, is_writable=False),
    ]
    check_signers("transfer", accounts, 1)
    return Instruction(program_id=TOKEN_PROGRAM_ID, data=encode_token_transfer(amount), accounts=accounts)


def instruction_to_dict(ix: Instruction) -> dict:
    return {
        "programId": str(ix.program_id),
        "accounts": [
            {
                "pubkey": str(k.pubkey),
                "isSigner": k.is_signer,
                "isWritable": k.is_writable,
            }
            for k in ix.accounts
        ],
        "instructionData": b64encode(bytes(ix.data)),
    }
