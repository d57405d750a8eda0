"""
MultiSend batching and module dispatch.

A batch is packed into MultiSend's record format and wrapped in a
``multiSend(bytes)`` call that the avatar executes by delegate-call. Each
record is the concatenation of:

- ``operation`` as a ``uint8``, ``0`` for call and ``1`` for delegate-call (1 byte)
- ``to`` as an ``address`` (20 bytes)
- ``value`` as a ``uint256`` (32 bytes)
- length of ``data`` as a ``uint256`` (32 bytes)
- ``data`` as raw bytes
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from eth_abi.packed import encode_packed as abi_encode_packed
from eth_account import Account
from eth_account.signers.base import BaseAccount
from pydantic import BaseModel
from web3 import Web3

from .abi import ContractAbi, to_byte_string, to_checksum
from .config import NetworkConfig
from .encoding import encode_single
from .exceptions import EncodingError
from .models import MetaTransaction, ModuleTransaction, Operation, parse_module_transaction

logger = logging.getLogger(__name__)

MULTISEND_ABI = ContractAbi(["function multiSend(bytes memory transactions)"])

# Fixed-width prefix of a packed record: operation, to, value, data length
_RECORD_HEADER_SIZE = 1 + 20 + 32 + 32

BatchEntry = Union[BaseModel, Mapping[str, Any]]


class Signer(Protocol):
    """Protocol for custom signers"""
    address: str

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...


def coerce_transaction_input(tx: BatchEntry) -> ModuleTransaction:
    """
    Normalize a batch entry to a ``ModuleTransaction``.

    Transaction inputs are encoded with ``encode_single`` and keep their
    declared ``operation``; plain calls default to ``Operation.CALL``.
    """
    if isinstance(tx, ModuleTransaction):
        return tx
    if isinstance(tx, MetaTransaction):
        return ModuleTransaction(to=tx.to, value=tx.value, data=tx.data)
    if isinstance(tx, Mapping) and "type" not in tx:
        return parse_module_transaction(tx)

    meta = encode_single(tx)
    operation = tx.get("operation") if isinstance(tx, Mapping) else tx.operation
    return ModuleTransaction(
        to=meta.to,
        value=meta.value,
        data=meta.data,
        operation=operation if operation is not None else Operation.CALL,
    )


def encode_packed(tx: BatchEntry) -> bytes:
    """Encode one batch entry as a packed MultiSend record."""
    module_tx = coerce_transaction_input(tx)
    return abi_encode_packed(
        ["uint8", "address", "uint256", "uint256", "bytes"],
        [
            int(module_tx.operation),
            module_tx.to,
            module_tx.value,
            len(module_tx.data),
            module_tx.data,
        ],
    )


def encode_multi_send(
    transactions: Sequence[BatchEntry],
    multisend_address: Optional[str] = None,
) -> ModuleTransaction:
    """
    Encode a batch of transactions into a single MultiSend module transaction.

    Args:
        transactions: Entries to execute, in order
        multisend_address: MultiSend contract; empty or None uses the configured default

    Returns:
        A delegate-call of ``multiSend(bytes)`` on the MultiSend contract

    Raises:
        EncodingError: If the batch is empty or any entry fails to encode
    """
    if not transactions:
        raise EncodingError("no transactions to encode", field="transactions")
    to = to_checksum(
        NetworkConfig.get_multisend_address(override=multisend_address), field="multisend_address"
    )

    packed = b"".join(encode_packed(tx) for tx in transactions)
    data = MULTISEND_ABI.encode_function_data("multiSend", [packed])
    logger.debug(f"Encoded {len(transactions)} transactions into {len(packed)} bytes of MultiSend records")

    return ModuleTransaction(
        operation=Operation.DELEGATE_CALL,
        to=to,
        value=0,
        data=data,
    )


def encode_batch(
    transactions: Sequence[BatchEntry],
    multisend_address: Optional[str] = None,
) -> ModuleTransaction:
    """
    Encode a batch as the module transaction to execute.

    A single transaction is passed through with its own operation; anything
    else is wrapped in a MultiSend delegate-call to ``multisend_address``.

    Raises:
        EncodingError: If the batch is empty or any entry fails to encode
    """
    if len(transactions) == 1:
        return coerce_transaction_input(transactions[0])
    return encode_multi_send(transactions, multisend_address)


def decode_multi_send_data(data: Union[bytes, str]) -> List[ModuleTransaction]:
    """
    Split MultiSend data back into its transactions.

    Args:
        data: Either ``multiSend(bytes)`` calldata or the packed records themselves

    Raises:
        EncodingError: If the records are truncated or malformed
    """
    blob = to_byte_string(data, field="data")
    multisend_fn = MULTISEND_ABI.get_function("multiSend")
    if blob[:4] == multisend_fn.selector:
        blob = MULTISEND_ABI.decode_function_data("multiSend", blob)["transactions"]

    transactions = []
    offset = 0
    while offset < len(blob):
        if len(blob) - offset < _RECORD_HEADER_SIZE:
            raise EncodingError(f"truncated record header at byte {offset}", field="data")
        operation = blob[offset]
        if operation not in (Operation.CALL, Operation.DELEGATE_CALL):
            raise EncodingError(f"invalid operation {operation} at byte {offset}", field="data")
        to = blob[offset + 1:offset + 21]
        value = int.from_bytes(blob[offset + 21:offset + 53], "big")
        length = int.from_bytes(blob[offset + 53:offset + 85], "big")
        start = offset + _RECORD_HEADER_SIZE
        if start + length > len(blob):
            raise EncodingError(f"truncated record data at byte {start}", field="data")
        transactions.append(ModuleTransaction(
            operation=Operation(operation),
            to=Web3.to_checksum_address(to),
            value=value,
            data=blob[start:start + length],
        ))
        offset = start + length
    return transactions


class MultiSender:
    """
    Executes batches of transactions through an avatar's module entry point.

    The avatar (e.g. a Gnosis Safe) must have the sending account enabled as a
    module. Encoding happens locally; the only network interaction is a single
    ``execTransactionFromModule`` call.
    """

    AVATAR_ABI = [
        {
            "inputs": [
                {"internalType": "address payable", "name": "to", "type": "address"},
                {"internalType": "uint256", "name": "value", "type": "uint256"},
                {"internalType": "bytes", "name": "data", "type": "bytes"},
                {"internalType": "enum Enum.Operation", "name": "operation", "type": "uint8"}
            ],
            "name": "execTransactionFromModule",
            "outputs": [{"internalType": "bool", "name": "success", "type": "bool"}],
            "stateMutability": "nonpayable",
            "type": "function"
        }
    ]

    def __init__(
        self,
        avatar_address: str,
        multisend_address: Optional[str] = None,
        w3: Optional[Web3] = None,
        priv_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the MultiSender

        Args:
            avatar_address: Address of the avatar that executes the transactions
            multisend_address: MultiSend contract address (falls back to the default when empty)
            w3: Web3 connection used for dispatch (optional for encoding only)
            priv_key: Private key of the module account (optional)
            signer: Custom signer object (optional, used if priv_key is not provided)
            logger: Optional logger instance

        Raises:
            InvalidAddressError: If avatar_address is not a valid address
        """
        self.avatar_address = to_checksum(avatar_address, field="avatar_address")
        self.multisend_address = to_checksum(
            NetworkConfig.get_multisend_address(override=multisend_address), field="multisend_address"
        )
        self.w3 = w3
        self.logger = logger or logging.getLogger(__name__)

        self.account: Optional[BaseAccount] = None
        self.signer = signer
        if priv_key:
            self.account = Account.from_key(priv_key)

        self.contract = None
        if w3 is not None:
            self.contract = w3.eth.contract(address=self.avatar_address, abi=self.AVATAR_ABI)

    @classmethod
    def from_network(
        cls,
        network: str,
        avatar_address: str,
        rpc_url: Optional[str] = None,
        multisend_address: Optional[str] = None,
        priv_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        logger: Optional[logging.Logger] = None
    ) -> "MultiSender":
        """
        Create a MultiSender from a bundled network configuration.

        Raises:
            ValueError: If the network is unknown
        """
        w3 = Web3(Web3.HTTPProvider(NetworkConfig.get_rpc_url(network, override=rpc_url)))
        return cls(
            avatar_address,
            multisend_address=NetworkConfig.get_multisend_address(network, override=multisend_address),
            w3=w3,
            priv_key=priv_key,
            signer=signer,
            logger=logger,
        )

    def build_module_transaction(self, transactions: Sequence[BatchEntry]) -> ModuleTransaction:
        """
        Encode the batch as the module transaction to execute.

        A single transaction is passed through with its own operation; anything
        else is wrapped in a MultiSend delegate-call.

        Raises:
            EncodingError: If the batch is empty or any entry fails to encode
        """
        return encode_batch(transactions, self.multisend_address)

    def multi_send(
        self,
        transactions: Sequence[BatchEntry],
        overrides: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Execute the batch through ``execTransactionFromModule``.

        Args:
            transactions: Entries to execute, in order
            overrides: Transaction parameters (``from``, ``gas``, ``nonce``, fees...) passed as given

        Returns:
            The transaction hash returned by the node

        Raises:
            EncodingError: If encoding fails (nothing is sent)
            ValueError: If no Web3 connection was provided during initialization
            Web3Exception: Errors from the node are not wrapped
        """
        module_tx = self.build_module_transaction(transactions)

        if self.contract is None:
            raise ValueError("Web3 connection not provided during initialization")

        fn = self.contract.functions.execTransactionFromModule(
            module_tx.to,
            module_tx.value,
            module_tx.data,
            int(module_tx.operation),
        )
        tx_params = dict(overrides or {})

        sender = self.account or self.signer
        if sender is None:
            # node-managed account
            tx_hash = fn.transact(tx_params)
        else:
            tx_params.setdefault("from", sender.address)
            if "nonce" not in tx_params:
                tx_params["nonce"] = self.w3.eth.get_transaction_count(tx_params["from"])
            tx = fn.build_transaction(tx_params)
            signed_tx = sender.sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)

        self.logger.info(f"Transaction sent: {tx_hash.hex()}")
        return tx_hash
