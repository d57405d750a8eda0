"""
Tests for single transaction encoding.
"""
import pytest
from pydantic import ValidationError

from multisend_sdk import (
    CallContractInput,
    MetaTransaction,
    RawTransactionInput,
    TransactionType,
    TransferCollectibleInput,
    TransferFundsInput,
    ZERO_ADDRESS,
    decode_single,
    encode_single,
    parse_signature,
)
from multisend_sdk.exceptions import (
    AbiResolutionError,
    EncodingError,
    InvalidAddressError,
    ValueOutOfRangeError,
)
from tests.test_helpers import ALICE, BOB, COLLECTIBLE, TOKEN

ERC20_TRANSFER = ["function transfer(address to, uint256 amount)"]
ERC721_TRANSFER = ["function safeTransferFrom(address from, address to, uint256 tokenId)"]


def test_native_transfer():
    meta = encode_single(TransferFundsInput(to=BOB, amount=10 ** 18))
    assert meta == MetaTransaction(to=BOB, value=10 ** 18, data=b"")
    assert meta.data_hex == "0x"


def test_erc20_transfer():
    meta = encode_single(TransferFundsInput(to=BOB, amount=2500, token=TOKEN))
    assert meta.to == TOKEN
    assert meta.value == 0
    assert meta.data[:4].hex() == "a9059cbb"
    assert decode_single(ERC20_TRANSFER, "transfer(address,uint256)", meta.data) == {
        "to": BOB,
        "amount": 2500,
    }


def test_erc721_transfer():
    meta = encode_single(TransferCollectibleInput(from_=ALICE, to=BOB, address=COLLECTIBLE, token_id=42))
    assert meta.to == COLLECTIBLE
    assert meta.value == 0
    assert meta.data[:4].hex() == "42842e0e"
    assert decode_single(ERC721_TRANSFER, "safeTransferFrom", meta.data) == {
        "from": ALICE,
        "to": BOB,
        "tokenId": 42,
    }


def test_encode_from_camel_case_mapping():
    meta = encode_single({
        "type": "transferCollectible",
        "from": ALICE,
        "to": BOB,
        "contractAddress": COLLECTIBLE,
        "tokenId": "7",
    })
    assert meta.to == COLLECTIBLE
    assert decode_single(ERC721_TRANSFER, "safeTransferFrom", meta.data)["tokenId"] == 7


def test_encode_from_snake_case_mapping():
    meta = encode_single({"type": "transferFunds", "to": BOB.lower(), "amount": "0x10", "token": None})
    assert meta == MetaTransaction(to=BOB, value=16)


def test_call_contract_all_values(config_abi):
    tx = CallContractInput(
        to=TOKEN,
        value=5,
        abi=config_abi,
        function_signature="setConfig(address,uint256,bool,string,bytes,bytes32)",
        input_values={
            "owner": ALICE,
            "limit": "1000",
            "enabled": True,
            "label": "treasury",
            "payload": "0xc0ffee",
            "salt": b"\x01" * 32,
        },
    )
    meta = encode_single(tx)
    assert meta.to == TOKEN
    assert meta.value == 5
    decoded = decode_single(config_abi, "setConfig", meta.data)
    assert list(decoded.values()) == [ALICE, 1000, True, "treasury", b"\xc0\xff\xee", b"\x01" * 32]


def test_call_contract_missing_values_use_defaults(config_abi):
    meta = encode_single(CallContractInput(
        to=TOKEN,
        abi=config_abi,
        function_signature="setConfig",
        input_values={"label": "only-label", "limit": None},
    ))
    assert meta.value == 0
    assert decode_single(config_abi, "setConfig", meta.data) == {
        "owner": ZERO_ADDRESS,
        "limit": 0,
        "enabled": False,
        "label": "only-label",
        "payload": b"",
        "salt": b"\x00" * 32,
    }


def test_call_contract_tuple_argument():
    abi = [{
        "name": "bulkTransfer20",
        "type": "function",
        "inputs": [
            {"name": "token", "type": "address"},
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "to", "type": "address"},
                    {"name": "amountOrTokenId", "type": "uint256"},
                ],
            },
        ],
    }]
    meta = encode_single({
        "type": "callContract",
        "to": COLLECTIBLE,
        "abi": abi,
        "functionSignature": "bulkTransfer20",
        "inputValues": {
            "token": TOKEN,
            "calls": [{"to": ALICE, "amountOrTokenId": 1}, [BOB, "2"]],
        },
    })
    assert decode_single(abi, "bulkTransfer20", meta.data) == {
        "token": TOKEN,
        "calls": [(ALICE, 1), (BOB, 2)],
    }


def test_call_contract_missing_composite_values_use_defaults():
    abi = ["function setRoute((address target, uint256 amount) step, uint256[2] limits, address[] hops, uint8 flag)"]
    meta = encode_single(CallContractInput(
        to=TOKEN,
        abi=abi,
        function_signature="setRoute",
        input_values={"flag": 3},
    ))
    assert meta.data[:4] == parse_signature("setRoute((address,uint256),uint256[2],address[],uint8)").selector
    assert decode_single(abi, "setRoute", meta.data) == {
        "step": (ZERO_ADDRESS, 0),
        "limits": [0, 0],
        "hops": [],
        "flag": 3,
    }


def test_call_contract_unknown_function(erc20_abi):
    tx = CallContractInput(to=TOKEN, abi=erc20_abi, function_signature="approve(address,uint256)")
    with pytest.raises(AbiResolutionError, match="not found in ABI"):
        encode_single(tx)


def test_call_contract_value_out_of_range():
    tx = CallContractInput(
        to=TOKEN,
        abi=["function setFee(uint8 fee)"],
        function_signature="setFee",
        input_values={"fee": 300},
    )
    with pytest.raises(ValueOutOfRangeError) as exc_info:
        encode_single(tx)
    assert exc_info.value.field == "fee"


def test_call_contract_invalid_address_argument(erc20_abi):
    tx = CallContractInput(
        to=TOKEN,
        abi=erc20_abi,
        function_signature="transfer",
        input_values={"recipient": "0x1234", "amount": 1},
    )
    with pytest.raises(EncodingError, match="recipient: invalid address"):
        encode_single(tx)


def test_raw_transaction():
    meta = encode_single(RawTransactionInput(to=ALICE, value=3, data="0x1234"))
    assert meta == MetaTransaction(to=ALICE, value=3, data=b"\x12\x34")


def test_raw_transaction_defaults():
    meta = encode_single({"type": "raw", "to": ALICE})
    assert meta.value == 0
    assert meta.data == b""
    assert meta.data_hex == "0x"


def test_encoding_is_deterministic(config_abi):
    tx = CallContractInput(
        to=TOKEN,
        abi=config_abi,
        function_signature="setConfig",
        input_values={"owner": BOB, "limit": 9},
    )
    assert encode_single(tx) == encode_single(tx)
    assert encode_single(tx).data == encode_single(tx.model_copy()).data


def test_invalid_address_in_model():
    with pytest.raises(ValidationError, match="invalid address"):
        TransferFundsInput(to="0x1234", amount=1)


def test_invalid_address_in_mapping_identifies_field():
    with pytest.raises(InvalidAddressError) as exc_info:
        encode_single({"type": "transferFunds", "to": "0x1234", "amount": 1})
    assert exc_info.value.field == "transferFunds.to"
    assert str(exc_info.value) == "transferFunds.to: invalid address '0x1234'"


def test_bad_checksum_in_mapping_rejected():
    with pytest.raises(InvalidAddressError, match="checksum"):
        encode_single({
            "type": "raw",
            "to": "0xD8da6bf26964af9d7eed9e03e53415d37aa96045",
        })


@pytest.mark.parametrize("amount", [-1, 2 ** 256])
def test_amount_out_of_range_in_mapping(amount):
    with pytest.raises(ValueOutOfRangeError, match="out of range") as exc_info:
        encode_single({"type": "transferFunds", "to": BOB, "amount": amount})
    assert exc_info.value.field == "transferFunds.amount"


def test_odd_length_data_in_mapping_rejected():
    with pytest.raises(EncodingError, match="odd-length") as exc_info:
        encode_single({"type": "raw", "to": BOB, "data": "0x123"})
    assert exc_info.value.field == "raw.data"


def test_amount_too_large_rejected():
    with pytest.raises(ValidationError):
        RawTransactionInput(to=BOB, value=2 ** 256)


def test_unknown_transaction_type():
    with pytest.raises(EncodingError):
        encode_single({"type": "stake", "to": BOB})


def test_inputs_are_immutable():
    tx = TransferFundsInput(to=BOB, amount=1)
    with pytest.raises(ValidationError):
        tx.amount = 2


def test_transaction_type_discriminator():
    assert TransferFundsInput(to=BOB, amount=1).type == TransactionType.TRANSFER_FUNDS
    assert RawTransactionInput(to=BOB).type == TransactionType.RAW
    meta = encode_single({"type": TransactionType.RAW.value, "to": BOB, "value": 1})
    assert meta.value == 1
