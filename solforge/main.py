from __future__ import annotations

import logging
import secrets

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field, StrictInt
from pydantic_settings import BaseSettings

from solforge.codec import b64encode
from solforge.envelope import (
    InstructionData,
    KeypairData,
    SignMessageData,
    VerifyMessageData,
    error,
    success,
)
from solforge.errors import InvalidEncoding, MissingFields, SolforgeError
from solforge.keys import RandomBytes, generate_keypair, keypair_to_base58, parse_keypair
from solforge.signer import sign_message, verify_message
from solforge.tx_builder import (
    build_initialize_mint_ix,
    build_mint_to_ix,
    build_system_transfer_ix,
    build_token_transfer_ix,
    instruction_to_dict,
)


class Settings(BaseSettings):
    app_name: str = "solforge"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    reload: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger("solforge")

app = FastAPI(title=settings.app_name, version="0.1.0")


class SignMessageRequest(BaseModel):
    message: str
    secret: str


class VerifyMessageRequest(BaseModel):
    message: str
    signature: str
    pubkey: str


class SendSolRequest(BaseModel):
    sender: str = Field(alias="from")
    to: str
    lamports: StrictInt = Field(validation_alias=AliasChoices("lamports", "amount"))


class SendTokenRequest(BaseModel):
    destination: str
    mint: str
    owner: str
    amount: StrictInt


class CreateTokenRequest(BaseModel):
    mintAuthority: str
    mint: str
    decimals: StrictInt


class MintTokenRequest(BaseModel):
    mint: str
    destination: str
    authority: str
    amount: StrictInt


def get_random_bytes() -> RandomBytes:
    return secrets.token_bytes


def message_bytes(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise InvalidEncoding("Message must be valid UTF-8") from exc


def instruction_response(kind: str, ix) -> JSONResponse:
    data = InstructionData(**instruction_to_dict(ix))
    logger.info(
        "instruction_built kind=%s program=%s accounts=%s data_len=%s",
        kind,
        data.programId,
        len(data.accounts),
        len(ix.data),
    )
    return JSONResponse(success(data))


@app.exception_handler(SolforgeError)
def solforge_error_handler(request: Request, exc: SolforgeError):
    logger.warning("request_rejected path=%s kind=%s error=%s", request.url.path, exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error(exc.message))


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = exc.errors()
    if any(p.get("type") == "missing" for p in problems):
        message = "Missing required fields"
    else:
        fields = ", ".join(".".join(str(part) for part in p.get("loc", ())[1:]) for p in problems)
        message = f"Invalid request fields: {fields}" if fields else "Invalid request body"
    logger.warning("request_rejected path=%s kind=RequestValidation error=%s", request.url.path, message)
    return JSONResponse(status_code=400, content=error(message))


@app.exception_handler(Exception)
def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("request_failed path=%s", request.url.path)
    return JSONResponse(status_code=500, content=error("Internal server error"))


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/keypair")
def keypair(random_bytes: RandomBytes = Depends(get_random_bytes)):
    kp = generate_keypair(random_bytes)
    logger.info("keypair_generated pubkey=%s", kp.pubkey())
    return JSONResponse(success(KeypairData(pubkey=str(kp.pubkey()), secret=keypair_to_base58(kp))))


@app.post("/message/sign")
def message_sign(req: SignMessageRequest):
    if not req.message or not req.secret:
        raise MissingFields("Missing required fields")
    kp = parse_keypair(req.secret)
    signature = sign_message(message_bytes(req.message), kp)
    logger.info("message_signed pubkey=%s message_len=%s", kp.pubkey(), len(req.message))
    return JSONResponse(
        success(
            SignMessageData(
                signature=b64encode(bytes(signature)),
                publicKey=str(kp.pubkey()),
                message=req.message,
            )
        )
    )


@app.post("/message/verify")
def message_verify(req: VerifyMessageRequest):
    if not req.message or not req.signature or not req.pubkey:
        raise MissingFields("Missing required fields")
    valid = verify_message(message_bytes(req.message), req.signature, req.pubkey)
    logger.info("message_verified pubkey=%s valid=%s", req.pubkey, valid)
    return JSONResponse(success(VerifyMessageData(valid=valid, message=req.message, pubkey=req.pubkey)))


@app.post("/send/sol")
def send_sol(req: SendSolRequest):
    ix = build_system_transfer_ix(req.sender, req.to, req.lamports)
    return instruction_response("system_transfer", ix)


@app.post("/send/token")
def send_token(req: SendTokenRequest):
    ix = build_token_transfer_ix(req.destination, req.mint, req.owner, req.amount)
    return instruction_response("token_transfer", ix)


@app.post("/token/create")
def create_token(req: CreateTokenRequest):
    ix = build_initialize_mint_ix(req.mint, req.mintAuthority, req.decimals)
    return instruction_response("initialize_mint", ix)


@app.post("/token/mint")
def mint_token(req: MintTokenRequest):
    ix = build_mint_to_ix(req.mint, req.destination, req.authority, req.amount)
    return instruction_response("mint_to", ix)


def run():
    import uvicorn

    logger.info("server_starting host=%s port=%s", settings.host, settings.port)
    uvicorn.run("solforge.main:app", host=settings.host, port=settings.port, reload=settings.reload)


if __name__ == "__main__":
    run()
