from .sender_creator import (
    create_test_sender,
    TEST_AVATAR,
    TEST_MULTISEND,
    TEST_PRIV_KEY,
    TEST_TX_HASH,
    ALICE,
    BOB,
    TOKEN,
    COLLECTIBLE,
)

__all__ = [
    "create_test_sender",
    "TEST_AVATAR",
    "TEST_MULTISEND",
    "TEST_PRIV_KEY",
    "TEST_TX_HASH",
    "ALICE",
    "BOB",
    "TOKEN",
    "COLLECTIBLE",
]
