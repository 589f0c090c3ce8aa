class SolforgeError(Exception):
    """Base for every user-facing failure raised by the core."""

    kind = "SolforgeError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidEncoding(SolforgeError):
    kind = "InvalidEncoding"


class InvalidLength(SolforgeError):
    kind = "InvalidLength"


class InvalidKeypair(SolforgeError):
    kind = "InvalidKeypair"


class InvalidPublicKey(SolforgeError):
    kind = "InvalidPublicKey"


class InvalidAmount(SolforgeError):
    kind = "InvalidAmount"


class MissingFields(SolforgeError):
    kind = "MissingFields"


class DerivationExhausted(SolforgeError):
    kind = "DerivationExhausted"
    status_code = 500


class InstructionBuildFailure(SolforgeError):
    kind = "InstructionBuildFailure"
    status_code = 500
