from enum import Enum, IntEnum


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "validation_error"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    CONFIGURATION_ERROR = "configuration_error"
    COMPUTATION_FAILURE = "computation_failure"
    INTERNAL_ERROR = "internal_error"


class EncoderMode(str, Enum):
    HASH = "hash"
    COFHE = "cofhe"


class AttestationScheme(str, Enum):
    HMAC = "hmac"
    ENCLAVE = "enclave"


class FheType(IntEnum):
    """Plaintext type tags carried in the ``utype`` field of a ciphertext handle."""

    BOOL = 0
    UINT4 = 1
    UINT8 = 2
    UINT16 = 3
    UINT32 = 4
    UINT64 = 5
    UINT128 = 6
    UINT160 = 7
    UINT256 = 8


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
