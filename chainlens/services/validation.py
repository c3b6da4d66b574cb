import re
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from chainlens.core.config import ChainDef, default_chains
from chainlens.models.domain import ErrorKind, PipelineError, error_list

EVM = "evm"
XRPL = "xrpl"

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_XRPL_PREFIX = "r"
_XRPL_MIN_LEN, _XRPL_MAX_LEN = 25, 35


def _chains(chains: Optional[Iterable[ChainDef]]) -> Iterable[ChainDef]:
    return default_chains() if chains is None else chains


def supported_chain_names(chains: Optional[Iterable[ChainDef]] = None) -> List[str]:
    return [c.name for c in _chains(chains)]


def is_supported_chain(name, chains: Optional[Iterable[ChainDef]] = None) -> bool:
    if not isinstance(name, str):
        return False
    return name in supported_chain_names(chains)


def chain_family(name, chains: Optional[Iterable[ChainDef]] = None) -> Optional[str]:
    for c in _chains(chains):
        if c.name == name:
            return c.family
    return None


def is_valid_account_address(address, family: str = EVM) -> bool:
    if not isinstance(address, str):
        return False
    if family == XRPL:
        return _XRPL_MIN_LEN <= len(address) <= _XRPL_MAX_LEN and address.startswith(_XRPL_PREFIX)
    # fullmatch: "$" alone would accept a trailing newline
    return _EVM_ADDRESS_RE.fullmatch(address) is not None


def is_valid_for_any_family(address) -> bool:
    return is_valid_account_address(address, EVM) or is_valid_account_address(address, XRPL)


def check_chain_addresses(chain, addresses: Sequence[Tuple[str, Any]],
                          chains: Optional[Iterable[ChainDef]] = None) -> Optional[PipelineError]:
    """Check an inbound chain and its (field, address) pairs. None means valid.

    An unknown chain short-circuits as unsupported_chain; address problems are
    folded into one validation_error naming every bad field.
    """
    if chain and not is_supported_chain(chain, chains):
        names = ", ".join(supported_chain_names(chains))
        return PipelineError(
            kind=ErrorKind.UNSUPPORTED_CHAIN,
            message=f"Unsupported chain: {chain}. Supported chains: {names}",
            fields=("chain",), chain=chain,
        )
    errors: List[PipelineError] = []
    if not chain:
        errors.append(PipelineError(kind=ErrorKind.VALIDATION_ERROR,
                                    message='"chain" is required', fields=("chain",)))
    family = chain_family(chain, chains) or EVM
    for field, address in addresses:
        if not address:
            message = f'"{field}" is required'
        elif not is_valid_account_address(address, family):
            message = f'"{field}" is not a valid {family} address'
        else:
            continue
        errors.append(PipelineError(kind=ErrorKind.VALIDATION_ERROR, message=message,
                                    fields=(field,), chain=chain or None))
    return error_list(errors)
