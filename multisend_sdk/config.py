"""
Network configuration for the MultiSend SDK.
"""
import importlib.resources
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# MultiSend v1.1.1, deployed at the same address on every supported chain
DEFAULT_MULTISEND_ADDRESS = "0x8D29bE29923b68abfDD21e541b9374737B49cdAD"

MULTISEND_ADDRESS_ENV = "MULTISEND_ADDRESS"


class NetworkConfig:
    """
    Bundled network settings (chain id, RPC endpoint, MultiSend address).

    Values can be overridden per call or through environment variables.
    """

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network definitions from the packaged ``networks.json``.

        Returns:
            Mapping of network name to its settings
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("multisend_sdk").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
            logger.debug(f"Loaded {len(cls._networks_cache)} network definitions")
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get the settings of a network.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{name}'. Available networks: {available}")
        return networks[name]

    @classmethod
    def get_rpc_url(cls, name: str, override: Optional[str] = None) -> str:
        """
        Resolve the RPC URL: explicit override, then ``<NAME>_RPC_URL``, then the bundled value.
        """
        if override:
            return override
        env_key = f"{name.upper().replace('-', '_')}_RPC_URL"
        env_value = os.environ.get(env_key)
        if env_value:
            return env_value
        return cls.get_network(name)["rpc"]

    @classmethod
    def get_chain_id(cls, name: str) -> int:
        return int(cls.get_network(name)["chainId"])

    @classmethod
    def get_multisend_address(cls, name: Optional[str] = None, override: Optional[str] = None) -> str:
        """
        Resolve the MultiSend contract address.

        Order: explicit override, ``MULTISEND_ADDRESS`` env var, the network's
        entry, then ``DEFAULT_MULTISEND_ADDRESS``. Empty strings count as unset.
        """
        if override:
            return override
        env_value = os.environ.get(MULTISEND_ADDRESS_ENV)
        if env_value:
            return env_value
        if name:
            address = cls.get_network(name).get("multiSend")
            if address:
                return address
        return DEFAULT_MULTISEND_ADDRESS
