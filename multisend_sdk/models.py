"""
Data models for the MultiSend SDK.
"""
from enum import Enum, IntEnum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, ValidationError

from .abi import to_byte_string, to_checksum, to_uint
from .exceptions import EncodingError


class TransactionType(str, Enum):
    """Discriminator of the transaction input variants"""
    TRANSFER_FUNDS = "transferFunds"
    TRANSFER_COLLECTIBLE = "transferCollectible"
    CALL_CONTRACT = "callContract"
    RAW = "raw"


class Operation(IntEnum):
    """Call type used by ``execTransactionFromModule`` and MultiSend records"""
    CALL = 0
    DELEGATE_CALL = 1


Address = Annotated[str, BeforeValidator(lambda v: to_checksum(v))]
Uint256 = Annotated[int, BeforeValidator(lambda v: to_uint(v))]
Data = Annotated[bytes, BeforeValidator(lambda v: to_byte_string(v))]


class _Input(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Only honoured by the batch encoder
    operation: Optional[Operation] = None


class TransferFundsInput(_Input):
    """Native currency transfer when ``token`` is None, ERC20 transfer otherwise"""
    type: Literal["transferFunds"] = "transferFunds"
    to: Address
    amount: Uint256
    token: Optional[Address] = None


class TransferCollectibleInput(_Input):
    """ERC721 ``safeTransferFrom``"""
    type: Literal["transferCollectible"] = "transferCollectible"
    from_: Address = Field(..., alias="from")
    to: Address
    address: Address = Field(..., validation_alias=AliasChoices("address", "contractAddress"))
    token_id: Uint256 = Field(..., alias="tokenId")


class CallContractInput(_Input):
    """Call of ``function_signature`` resolved against ``abi``"""
    type: Literal["callContract"] = "callContract"
    to: Address
    value: Uint256 = 0
    abi: List[Union[str, Dict[str, Any]]]
    function_signature: str = Field(..., alias="functionSignature")
    input_values: Dict[str, Any] = Field(default_factory=dict, alias="inputValues")


class RawTransactionInput(_Input):
    """Pre-encoded call"""
    type: Literal["raw"] = "raw"
    to: Address
    value: Uint256 = 0
    data: Data = b""


TransactionInput = Annotated[
    Union[TransferFundsInput, TransferCollectibleInput, CallContractInput, RawTransactionInput],
    Field(discriminator="type"),
]


class MetaTransaction(BaseModel):
    """A normalized call: recipient, value in wei and calldata"""
    model_config = ConfigDict(frozen=True)

    to: Address
    value: Uint256 = 0
    data: Data = b""

    @property
    def data_hex(self) -> str:
        return "0x" + self.data.hex()


class ModuleTransaction(MetaTransaction):
    """Parameters of an avatar's ``execTransactionFromModule``"""
    operation: Operation = Operation.CALL


_transaction_input_adapter = TypeAdapter(TransactionInput)


def _raise_from_validation(exc: ValidationError) -> None:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    error = first.get("ctx", {}).get("error")
    if isinstance(error, EncodingError):
        raise type(error)(error.message, field=field) from exc
    raise EncodingError(first["msg"], field=field) from exc


def parse_transaction_input(data: Union[Mapping[str, Any], BaseModel]) -> BaseModel:
    """
    Validate a mapping (camelCase or snake_case keys) as one of the transaction input variants.

    Raises:
        EncodingError: Naming the first offending field
    """
    if isinstance(data, (TransferFundsInput, TransferCollectibleInput, CallContractInput, RawTransactionInput)):
        return data
    try:
        return _transaction_input_adapter.validate_python(data)
    except ValidationError as e:
        _raise_from_validation(e)


def parse_module_transaction(data: Mapping[str, Any]) -> ModuleTransaction:
    """Validate a ``{to, value, data, operation}`` mapping."""
    try:
        return ModuleTransaction.model_validate(data)
    except ValidationError as e:
        _raise_from_validation(e)
