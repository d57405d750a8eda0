"""
Pytest fixtures for the MultiSend SDK tests.
"""
import pytest
from unittest.mock import MagicMock
from eth_account import Account
from web3 import Web3

from multisend_sdk.config import MULTISEND_ADDRESS_ENV, NetworkConfig
from tests.test_helpers import TEST_PRIV_KEY, TEST_TX_HASH


@pytest.fixture(autouse=True)
def _clean_config(monkeypatch):
    """Keep environment overrides and the network cache from leaking between tests."""
    monkeypatch.delenv(MULTISEND_ADDRESS_ENV, raising=False)
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def mock_w3():
    """
    Create a mock Web3 instance whose avatar contract records module calls.
    """
    w3 = MagicMock(spec=Web3)
    eth = MagicMock()
    eth.get_transaction_count = MagicMock(return_value=7)
    eth.send_raw_transaction = MagicMock(return_value=TEST_TX_HASH)

    def contract(address, abi):
        contract_mock = MagicMock()
        exec_fn = MagicMock()
        exec_fn.transact = MagicMock(return_value=TEST_TX_HASH)

        def build_tx(tx_params):
            return {
                "to": address,
                "value": 0,
                "data": "0x",
                "gas": 200000,
                "gasPrice": 1000000000,
                "chainId": 1,
                **tx_params,
            }

        exec_fn.build_transaction = MagicMock(side_effect=build_tx)
        contract_mock.functions.execTransactionFromModule = MagicMock(return_value=exec_fn)
        contract_mock.exec_fn = exec_fn
        return contract_mock

    eth.contract = MagicMock(side_effect=contract)
    w3.eth = eth
    return w3


@pytest.fixture
def mock_account():
    """Create a deterministic test account"""
    return Account.from_key(TEST_PRIV_KEY)


@pytest.fixture
def erc20_abi():
    return ["function transfer(address recipient, uint256 amount) public returns (bool)"]


@pytest.fixture
def config_abi():
    """Human-readable ABI with one parameter of each common type"""
    return [
        "function setConfig(address owner, uint256 limit, bool enabled, string label, bytes payload, bytes32 salt)",
        "event ConfigChanged(address indexed owner)",
    ]
