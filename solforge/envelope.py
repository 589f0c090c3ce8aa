from typing import Any, List, Union

from pydantic import BaseModel


class KeypairData(BaseModel):
    pubkey: str
    secret: str


class SignMessageData(BaseModel):
    signature: str
    publicKey: str
    message: str


class VerifyMessageData(BaseModel):
    valid: bool
    message: str
    pubkey: str


class AccountMetaData(BaseModel):
    pubkey: str
    isSigner: bool
    isWritable: bool


class InstructionData(BaseModel):
    """One shape for every built instruction, whatever the program."""
    programId: str
    accounts: List[AccountMetaData]
    instructionData: str


def success(data: Union[BaseModel, dict, Any]) -> dict:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return {"success": True, "data": data}


def error(message: str) -> dict:
    return {"success": False, "error": message}
