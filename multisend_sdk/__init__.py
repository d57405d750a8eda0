"""
MultiSend SDK - encode transaction inputs and batch them for Safe/Zodiac avatars.
"""
from .abi import ZERO_ADDRESS, ContractAbi, default_value, parse_signature
from .config import DEFAULT_MULTISEND_ADDRESS, NetworkConfig
from .encoding import decode_single, encode_single
from .exceptions import (
    AbiResolutionError,
    EncodingError,
    InvalidAddressError,
    MultiSendError,
    ValueOutOfRangeError,
)
from .models import (
    CallContractInput,
    MetaTransaction,
    ModuleTransaction,
    Operation,
    RawTransactionInput,
    TransactionInput,
    TransactionType,
    TransferCollectibleInput,
    TransferFundsInput,
)
from .multisend import (
    MultiSender,
    decode_multi_send_data,
    encode_batch,
    encode_multi_send,
    encode_packed,
)
from .version import __version__

__all__ = [
    "encode_single",
    "decode_single",
    "encode_batch",
    "encode_multi_send",
    "encode_packed",
    "decode_multi_send_data",
    "MultiSender",
    "NetworkConfig",
    "DEFAULT_MULTISEND_ADDRESS",
    "ContractAbi",
    "parse_signature",
    "default_value",
    "ZERO_ADDRESS",
    "TransactionType",
    "Operation",
    "TransactionInput",
    "TransferFundsInput",
    "TransferCollectibleInput",
    "CallContractInput",
    "RawTransactionInput",
    "MetaTransaction",
    "ModuleTransaction",
    "MultiSendError",
    "EncodingError",
    "InvalidAddressError",
    "ValueOutOfRangeError",
    "AbiResolutionError",
    "__version__",
]
