"""
SCOOL CAS Client

Central Authentication Service (CAS) 1.0 and 2.0 ticket validation.
"""
from .cas import (
    AsyncCasClient,
    CasClient,
    CasError,
    InvalidArgumentError,
    MissingParameterError,
    UnsupportedVersionError,
)
from .schemas import CasResult, ProtocolVersion, ResultCode

__version__ = '26.10.19'

__all__ = [
    'AsyncCasClient',
    'CasClient',
    'CasError',
    'CasResult',
    'InvalidArgumentError',
    'MissingParameterError',
    'ProtocolVersion',
    'ResultCode',
    'UnsupportedVersionError',
]
