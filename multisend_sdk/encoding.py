"""
Single transaction encoding.

Collapses every transaction input variant into a ``MetaTransaction``
``(to, value, data)`` ready for direct execution.
"""
import logging
from typing import Any, Dict, List, Mapping, Sequence, Union

from .abi import AbiEntry, AbiFunction, ContractAbi, default_value, encode_call
from .models import (
    CallContractInput,
    MetaTransaction,
    RawTransactionInput,
    TransactionInput,
    TransferCollectibleInput,
    TransferFundsInput,
    parse_transaction_input,
)

logger = logging.getLogger(__name__)

ERC20_ABI = ContractAbi([
    "function transfer(address recipient, uint256 amount) public returns (bool)",
])

ERC721_ABI = ContractAbi([
    "function safeTransferFrom(address _from, address _to, uint256 _tokenId) external payable",
])


def encode_erc20_transfer(tx: TransferFundsInput) -> bytes:
    return ERC20_ABI.encode_function_data("transfer(address,uint256)", [tx.to, tx.amount])


def encode_erc721_transfer(tx: TransferCollectibleInput) -> bytes:
    return ERC721_ABI.encode_function_data(
        "safeTransferFrom(address,address,uint256)",
        [tx.from_, tx.to, tx.token_id],
    )


def resolve_input_values(fn: AbiFunction, input_values: Mapping[str, Any]) -> List[Any]:
    """
    Order ``input_values`` by the declared inputs of ``fn``.

    Inputs without a value (missing or None) get the type's zero value.
    """
    values = []
    for param in fn.inputs:
        value = input_values.get(param.name) if param.name else None
        values.append(default_value(param) if value is None else value)
    return values


def encode_function_call(tx: CallContractInput) -> bytes:
    contract_abi = ContractAbi(tx.abi)
    fn = contract_abi.get_function(tx.function_signature)
    return encode_call(fn, resolve_input_values(fn, tx.input_values))


def encode_single(tx: Union[TransactionInput, Mapping[str, Any]]) -> MetaTransaction:
    """
    Encode one transaction input as a ``MetaTransaction``.

    Args:
        tx: A transaction input model, or a mapping that validates as one

    Returns:
        The normalized ``(to, value, data)`` call

    Raises:
        EncodingError: If the input is invalid or cannot be encoded
    """
    tx = parse_transaction_input(tx)

    if isinstance(tx, TransferFundsInput):
        if tx.token is None:
            # native currency
            meta = MetaTransaction(to=tx.to, value=tx.amount, data=b"")
        else:
            meta = MetaTransaction(to=tx.token, value=0, data=encode_erc20_transfer(tx))
    elif isinstance(tx, TransferCollectibleInput):
        meta = MetaTransaction(to=tx.address, value=0, data=encode_erc721_transfer(tx))
    elif isinstance(tx, CallContractInput):
        meta = MetaTransaction(to=tx.to, value=tx.value, data=encode_function_call(tx))
    elif isinstance(tx, RawTransactionInput):
        meta = MetaTransaction(to=tx.to, value=tx.value, data=tx.data)
    else:
        raise TypeError(f"Unsupported transaction input: {type(tx).__name__}")

    logger.debug(f"Encoded {tx.type} transaction to {meta.to} ({len(meta.data)} bytes of data)")
    return meta


def decode_single(abi: Sequence[AbiEntry], function_signature: str, data: Union[bytes, str]) -> Dict[str, Any]:
    """
    Decode calldata back into its named arguments.

    Raises:
        AbiResolutionError: If the function is not in ``abi`` or the selector differs
    """
    return ContractAbi(abi).decode_function_data(function_signature, data)
