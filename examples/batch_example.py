#!/usr/bin/env python3
"""
Example of batching transactions through a Safe module with MultiSender.
"""
import os

from multisend_sdk import (
    CallContractInput,
    MultiSender,
    NetworkConfig,
    TransferCollectibleInput,
    TransferFundsInput,
    decode_multi_send_data,
)


def main():
    """
    Demonstrate encoding and dispatching a batch.

    This example shows how to:
    1. Describe transfers and a contract call as transaction inputs
    2. Inspect the MultiSend transaction they encode to
    3. Execute the batch through the avatar's module entry point
    """
    PRIVATE_KEY = os.environ.get("PRIVATE_KEY")
    AVATAR_ADDRESS = os.environ.get("AVATAR_ADDRESS", "0x1234567890123456789012345678901234567890")

    print("Available networks:")
    for network_name in NetworkConfig.load_networks().keys():
        print(f"  - {network_name}")
    print()

    sender = MultiSender.from_network(
        network="sepolia",
        avatar_address=AVATAR_ADDRESS,
        priv_key=PRIVATE_KEY,
    )

    transactions = [
        TransferFundsInput(to="0x2222222222222222222222222222222222222222", amount=10 ** 15),
        TransferFundsInput(
            to="0x2222222222222222222222222222222222222222",
            amount=5 * 10 ** 6,
            token="0x3333333333333333333333333333333333333333",
        ),
        TransferCollectibleInput(
            from_=AVATAR_ADDRESS,
            to="0x2222222222222222222222222222222222222222",
            address="0x4444444444444444444444444444444444444444",
            token_id=1,
        ),
        CallContractInput(
            to="0x3333333333333333333333333333333333333333",
            abi=["function approve(address spender, uint256 amount) returns (bool)"],
            function_signature="approve",
            input_values={"spender": "0x2222222222222222222222222222222222222222"},
        ),
    ]

    module_tx = sender.build_module_transaction(transactions)
    print(f"MultiSend call to {module_tx.to} (operation {module_tx.operation.name})")
    for i, tx in enumerate(decode_multi_send_data(module_tx.data)):
        print(f"  {i}: {tx.operation.name} {tx.to} value={tx.value} data={tx.data_hex[:18]}...")

    if not PRIVATE_KEY:
        print("Set PRIVATE_KEY to execute the batch")
        return

    try:
        tx_hash = sender.multi_send(transactions)
        print(f"Transaction hash: {tx_hash.hex()}")
    except Exception as e:
        print(f"Error: {str(e)}")


if __name__ == "__main__":
    main()
