"""
Contract ABI helpers for the MultiSend SDK.

Parses ABI descriptions given either as human-readable function signatures
(``"function transfer(address to, uint256 amount) returns (bool)"``) or as
JSON ABI fragments, resolves functions by signature or name, and encodes and
decodes calldata with ``eth_abi``.
"""
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from eth_abi import decode as abi_decode, encode as abi_encode
from eth_abi.exceptions import ABITypeError, ParseError
from eth_abi.exceptions import DecodingError as EthAbiDecodingError
from eth_abi.exceptions import EncodingError as EthAbiEncodingError
from eth_abi.grammar import BasicType, normalize, parse
from eth_utils import function_signature_to_4byte_selector, is_checksum_address, to_bytes
from eth_utils.abi import collapse_if_tuple
from web3 import Web3

from .exceptions import AbiResolutionError, EncodingError, InvalidAddressError, ValueOutOfRangeError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2 ** 256 - 1

AbiEntry = Union[str, Mapping[str, Any]]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_TUPLE_SUFFIX_RE = re.compile(r"^((?:\[\d*\])*)(.*)$")

_SUPPORTED_BASES = {"address", "bool", "string", "bytes", "uint", "int", "tuple"}

# Words that may follow a type in a human-readable parameter and are not its name
_PARAM_MODIFIERS = {"indexed", "memory", "calldata", "storage", "payable"}

_NON_FUNCTION_PREFIXES = ("event ", "error ", "constructor", "fallback", "receive")


@dataclass(frozen=True)
class AbiParam:
    """
    A single function input: its name, JSON ABI type and tuple components.

    Tuple parameters keep the JSON form (``tuple[]``) in ``type`` with their
    members in ``components``; ``canonical_type`` collapses them for encoding.
    """
    name: str
    type: str
    components: Tuple["AbiParam", ...] = ()

    @property
    def abi_type(self) -> BasicType:
        return parse(self.type)

    @property
    def base_type(self) -> str:
        return self.abi_type.base

    @property
    def is_array(self) -> bool:
        return self.abi_type.is_array

    @property
    def array_length(self) -> Optional[int]:
        """Length of the outermost dimension, ``None`` for dynamic arrays."""
        dimension = self.abi_type.arrlist[-1]
        return dimension[0] if dimension else None

    def element(self) -> "AbiParam":
        """The parameter describing one element of this array."""
        return AbiParam(self.name, self.abi_type.item_type.to_type_str(), self.components)

    def to_dict(self) -> Dict[str, Any]:
        fragment: Dict[str, Any] = {"name": self.name, "type": self.type}
        if self.components:
            fragment["components"] = [c.to_dict() for c in self.components]
        return fragment

    @property
    def canonical_type(self) -> str:
        """Type string as used in canonical signatures and by ``eth_abi``."""
        return collapse_if_tuple(self.to_dict())


@dataclass(frozen=True)
class AbiFunction:
    """A resolved contract function."""
    name: str
    inputs: Tuple[AbiParam, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(p.canonical_type for p in self.inputs)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    @property
    def input_types(self) -> List[str]:
        return [p.canonical_type for p in self.inputs]


def _check_type(type_str: str) -> None:
    """Raise AbiResolutionError unless ``type_str`` names a supported ABI type."""
    try:
        abi_type = parse(type_str)
        abi_type.validate()
    except (ParseError, ABITypeError) as e:
        raise AbiResolutionError(f"unsupported ABI type '{type_str}'") from e
    if not isinstance(abi_type, BasicType) or abi_type.base not in _SUPPORTED_BASES:
        raise AbiResolutionError(f"unsupported ABI type '{type_str}'")


def _matching_paren(text: str, start: int) -> int:
    depth = 0
    for i in range(start, len(text)):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return i
    raise AbiResolutionError(f"unbalanced parentheses in '{text}'")


def _split_top_level(text: str) -> List[str]:
    parts, depth, current = [], 0, []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _parse_param(text: str) -> AbiParam:
    text = text.strip()
    if text.startswith("tuple("):
        text = text[len("tuple"):]

    components: Tuple[AbiParam, ...] = ()
    if text.startswith("("):
        close = _matching_paren(text, 0)
        components = tuple(_parse_param(p) for p in _split_top_level(text[1:close]))
        suffix, rest = _TUPLE_SUFFIX_RE.match(text[close + 1:].strip()).groups()
        type_str = "tuple" + suffix
        words = rest.split()
    else:
        words = text.split()
        type_str = normalize(words.pop(0))

    words = [w for w in words if w not in _PARAM_MODIFIERS]
    name = words[-1] if words else ""
    if name and not _IDENTIFIER_RE.match(name):
        raise AbiResolutionError(f"invalid parameter name '{name}'")
    _check_type(type_str)
    return AbiParam(name=name, type=type_str, components=components)


@lru_cache(maxsize=512)
def parse_signature(signature: str) -> AbiFunction:
    """
    Parse a human-readable function signature.

    Accepts both canonical (``transfer(address,uint256)``) and descriptive
    (``function transfer(address to, uint256 amount) public returns (bool)``)
    forms.

    Raises:
        AbiResolutionError: If the signature cannot be parsed
    """
    text = signature.strip()
    if text.startswith("function "):
        text = text[len("function "):].strip()
    paren = text.find("(")
    if paren <= 0:
        raise AbiResolutionError(f"invalid function signature '{signature}'")
    name = text[:paren].strip()
    if not _IDENTIFIER_RE.match(name):
        raise AbiResolutionError(f"invalid function name in '{signature}'")
    close = _matching_paren(text, paren)
    inputs = tuple(_parse_param(p) for p in _split_top_level(text[paren + 1:close]))
    return AbiFunction(name=name, inputs=inputs)


def _param_from_json(fragment: Mapping[str, Any]) -> AbiParam:
    type_str = normalize(fragment["type"].strip())
    _check_type(type_str)
    components = tuple(_param_from_json(c) for c in fragment.get("components") or ())
    return AbiParam(name=fragment.get("name") or "", type=type_str, components=components)


def _function_from_json(fragment: Mapping[str, Any]) -> AbiFunction:
    try:
        inputs = tuple(_param_from_json(p) for p in fragment.get("inputs", ()))
        return AbiFunction(name=fragment["name"], inputs=inputs)
    except KeyError as e:
        raise AbiResolutionError(f"ABI fragment missing key {e}")


class ContractAbi:
    """
    A set of contract functions, indexed by canonical signature.

    Non-function entries (events, errors, constructors) are ignored.
    """

    def __init__(self, abi: Sequence[AbiEntry]):
        self.functions: Dict[str, AbiFunction] = {}
        for entry in abi:
            if isinstance(entry, str):
                if entry.strip().startswith(_NON_FUNCTION_PREFIXES):
                    continue
                fn = parse_signature(entry)
            elif isinstance(entry, Mapping):
                if entry.get("type", "function") != "function":
                    continue
                fn = _function_from_json(entry)
            else:
                raise AbiResolutionError(f"unsupported ABI entry of type {type(entry).__name__}")
            self.functions[fn.signature] = fn

    def get_function(self, reference: str) -> AbiFunction:
        """
        Resolve a function by signature or, when unambiguous, by bare name.

        Raises:
            AbiResolutionError: If the function is absent or the name is ambiguous
        """
        reference = reference.strip()
        if "(" in reference:
            signature = parse_signature(reference).signature
            if signature not in self.functions:
                raise AbiResolutionError(
                    f"function '{signature}' not found in ABI", field="function_signature"
                )
            return self.functions[signature]

        matches = [fn for fn in self.functions.values() if fn.name == reference]
        if not matches:
            raise AbiResolutionError(
                f"function '{reference}' not found in ABI", field="function_signature"
            )
        if len(matches) > 1:
            candidates = ", ".join(sorted(fn.signature for fn in matches))
            raise AbiResolutionError(
                f"ambiguous function name '{reference}' (candidates: {candidates})",
                field="function_signature",
            )
        return matches[0]

    def encode_function_data(self, reference: str, values: Sequence[Any]) -> bytes:
        """Encode a call to ``reference`` with positional ``values``."""
        return encode_call(self.get_function(reference), values)

    def decode_function_data(self, reference: str, data: Union[bytes, str]) -> Dict[str, Any]:
        """Decode calldata for ``reference`` into a name -> value mapping."""
        return decode_call(self.get_function(reference), data)


def default_value(param: AbiParam) -> Any:
    """
    Canonical zero value for a parameter type.

    Zero address, ``0``, ``False``, empty bytes/string, zero-filled ``bytesN``,
    empty dynamic arrays, and element-wise defaults for fixed arrays and tuples.
    """
    _check_type(param.type)
    if param.is_array:
        length = param.array_length
        if length is None:
            return []
        return [default_value(param.element()) for _ in range(length)]

    abi_type = param.abi_type
    base = abi_type.base
    if base == "tuple":
        return tuple(default_value(c) for c in param.components)
    if base == "address":
        return ZERO_ADDRESS
    if base == "bool":
        return False
    if base == "string":
        return ""
    if base == "bytes":
        return b"\x00" * abi_type.sub if abi_type.sub else b""
    return 0


def to_checksum(value: Any, field: Optional[str] = None) -> str:
    """
    Validate an address and return it in EIP-55 checksum form.

    Raises:
        InvalidAddressError: If ``value`` is not a valid address
    """
    if isinstance(value, (bytes, bytearray)) and len(value) == 20:
        return Web3.to_checksum_address(value)
    if isinstance(value, str) and Web3.is_address(value):
        body = value[2:] if value.startswith(("0x", "0X")) else value
        # mixed case must be a valid EIP-55 checksum
        if body != body.lower() and body != body.upper() and not is_checksum_address(value):
            raise InvalidAddressError(f"invalid address checksum {value!r}", field=field)
        return Web3.to_checksum_address(value)
    raise InvalidAddressError(f"invalid address {value!r}", field=field)


def to_uint(value: Any, bits: int = 256, field: Optional[str] = None) -> int:
    """Coerce an int or decimal/hex string to an unsigned integer of ``bits`` width."""
    return _to_int(value, signed=False, bits=bits, field=field)


def _to_int(value: Any, signed: bool, bits: int, field: Optional[str]) -> int:
    if isinstance(value, bool):
        raise EncodingError("expected integer, got bool", field=field)
    if isinstance(value, str):
        text = value.strip()
        try:
            value = int(text, 16) if text.lower().startswith(("0x", "-0x")) else int(text, 10)
        except ValueError:
            raise EncodingError(f"invalid integer {text!r}", field=field)
    if not isinstance(value, int):
        raise EncodingError(f"expected integer, got {type(value).__name__}", field=field)

    low, high = (-(2 ** (bits - 1)), 2 ** (bits - 1) - 1) if signed else (0, 2 ** bits - 1)
    if not low <= value <= high:
        kind = "int" if signed else "uint"
        raise ValueOutOfRangeError(f"value {value} out of range for {kind}{bits}", field=field)
    return value


def to_byte_string(value: Any, field: Optional[str] = None) -> bytes:
    """Coerce bytes or a ``0x``-prefixed hex string to bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        text = value.strip()
        if text in ("", "0x"):
            return b""
        if text.startswith("0x"):
            if len(text) % 2:
                raise EncodingError(f"odd-length hex string {value!r}", field=field)
            try:
                return to_bytes(hexstr=text)
            except ValueError:
                pass
    raise EncodingError(f"invalid byte string {value!r}", field=field)


def coerce_value(param: AbiParam, value: Any, field: Optional[str] = None) -> Any:
    """
    Convert a user-supplied value into the Python type ``eth_abi`` expects for ``param``.

    Raises:
        EncodingError: If the value does not match the parameter type
    """
    field = field or param.name or None

    if param.is_array:
        if not isinstance(value, (list, tuple)):
            raise EncodingError(f"expected list for {param.type}", field=field)
        length = param.array_length
        if length is not None and len(value) != length:
            raise EncodingError(f"expected {length} elements, got {len(value)}", field=field)
        element = param.element()
        return [coerce_value(element, v, f"{field}[{i}]") for i, v in enumerate(value)]

    base = param.base_type
    if base == "tuple":
        if isinstance(value, Mapping):
            missing = [c.name for c in param.components if c.name not in value]
            if missing:
                raise EncodingError(f"missing tuple fields: {', '.join(missing)}", field=field)
            value = [value[c.name] for c in param.components]
        if not isinstance(value, (list, tuple)) or len(value) != len(param.components):
            raise EncodingError(f"expected {len(param.components)}-tuple", field=field)
        return tuple(
            coerce_value(c, v, f"{field}.{c.name or i}")
            for i, (c, v) in enumerate(zip(param.components, value))
        )
    if base == "address":
        return to_checksum(value, field=field)
    if base == "bool":
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        if not isinstance(value, bool):
            raise EncodingError(f"expected bool, got {type(value).__name__}", field=field)
        return value
    if base == "string":
        if not isinstance(value, str):
            raise EncodingError(f"expected string, got {type(value).__name__}", field=field)
        return value
    size = param.abi_type.sub
    if base == "bytes":
        data = to_byte_string(value, field=field)
        if size and len(data) != size:
            raise EncodingError(f"expected {size} bytes, got {len(data)}", field=field)
        return data

    return _to_int(value, signed=base == "int", bits=size, field=field)


def encode_call(fn: AbiFunction, values: Sequence[Any]) -> bytes:
    """
    Encode calldata: 4-byte selector followed by the ABI-encoded arguments.

    Raises:
        EncodingError: If the argument count or any argument value is wrong
    """
    if len(values) != len(fn.inputs):
        raise EncodingError(
            f"{fn.signature} expects {len(fn.inputs)} arguments, got {len(values)}"
        )
    args = [coerce_value(p, v, p.name or f"arg{i}") for i, (p, v) in enumerate(zip(fn.inputs, values))]
    try:
        encoded = abi_encode(fn.input_types, args)
    except EthAbiEncodingError as e:
        raise EncodingError(f"failed to encode {fn.signature}: {e}")
    return fn.selector + encoded


def _normalize_decoded(param: AbiParam, value: Any) -> Any:
    if param.is_array:
        element = param.element()
        return [_normalize_decoded(element, v) for v in value]
    base = param.base_type
    if base == "tuple":
        return tuple(_normalize_decoded(c, v) for c, v in zip(param.components, value))
    if base == "address":
        return Web3.to_checksum_address(value)
    return value


def decode_call(fn: AbiFunction, data: Union[bytes, str]) -> Dict[str, Any]:
    """
    Decode calldata produced for ``fn``.

    Unnamed parameters are keyed by position (``"0"``, ``"1"``, ...).

    Raises:
        AbiResolutionError: If the selector does not match ``fn``
        EncodingError: If the argument payload is malformed
    """
    data = to_byte_string(data, field="data")
    if data[:4] != fn.selector:
        raise AbiResolutionError(f"calldata selector does not match {fn.signature}", field="data")
    try:
        values = abi_decode(fn.input_types, data[4:])
    except EthAbiDecodingError as e:
        raise EncodingError(f"failed to decode {fn.signature}: {e}", field="data")
    return {
        (p.name or str(i)): _normalize_decoded(p, v)
        for i, (p, v) in enumerate(zip(fn.inputs, values))
    }
