# Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, NamedTuple, TypeVar

from eth_utils import keccak

from launchpool.contracts.blueprint import Blueprint
from launchpool.contracts.context import Context
from launchpool.contracts.exception import (
    NCContractAlreadyExists,
    NCContractNotFound,
    NCFail,
    NCMethodNotFound,
    NCReentrancyError,
)
from launchpool.contracts.types import NC_METHOD_TYPE_ATTR, Address, ContractId, NCMethodType, is_valid_address

logger = logging.getLogger(__name__)

T = TypeVar('T')


class _Snapshot(NamedTuple):
    states: dict[ContractId, dict[str, Any]]
    contract_ids: set[ContractId]
    nonces: dict[Address, int]


class ContractStorage:
    """Read-only access to the fields of a contract."""

    def __init__(self, blueprint: Blueprint) -> None:
        self._blueprint = blueprint

    def get(self, key: str, default: Any = ...) -> Any:
        state = self._blueprint.get_state()
        if key not in state:
            if default is ...:
                raise KeyError(key)
            return default
        return copy.deepcopy(state[key])

    def get_blueprint_class(self) -> type[Blueprint]:
        return type(self._blueprint)


class Runner:
    """Hosts contracts and executes calls to them.

    A call made from outside any contract is a top-level call: the state of
    every hosted contract is saved before it runs and restored if it raises,
    so a failed call never leaves partial changes behind. Calls made by
    contracts to other contracts run inside the top-level call.

    A contract that is already executing cannot be called again until it
    returns.
    """

    def __init__(self) -> None:
        self._contracts: dict[ContractId, Blueprint] = {}
        self._nonces: dict[Address, int] = {}
        self._call_stack: list[ContractId] = []

    def has_contract(self, contract_id: ContractId) -> bool:
        return contract_id in self._contracts

    def get_contract(self, contract_id: ContractId) -> Blueprint:
        try:
            return self._contracts[contract_id]
        except KeyError:
            raise NCContractNotFound(f'Contract not found: {contract_id.hex()}')

    def get_storage(self, contract_id: ContractId) -> ContractStorage:
        return ContractStorage(self.get_contract(contract_id))

    def derive_contract_id(self, creator_id: Address) -> ContractId:
        """Derive the id of the next contract created by `creator_id`."""
        nonce = self._nonces.get(creator_id, 0)
        self._nonces[creator_id] = nonce + 1
        return ContractId(Address(keccak(creator_id + nonce.to_bytes(32, 'big'))[12:]))

    def create_contract(self, contract_id: ContractId, blueprint_class: type[Blueprint], ctx: Context,
                        *args: Any, **kwargs: Any) -> None:
        """Register a new contract and call its `initialize` method."""
        def create() -> None:
            if not is_valid_address(contract_id):
                raise NCFail('Invalid contract id')
            if contract_id in self._contracts:
                raise NCContractAlreadyExists(f'Contract already exists: {contract_id.hex()}')
            blueprint = blueprint_class(self, contract_id)
            self._contracts[contract_id] = blueprint
            logger.debug('creating contract %s (%s)', contract_id.hex(), blueprint_class.__name__)
            self._execute(contract_id, 'initialize', ctx, args, kwargs)

        self._run(create)

    def call_public_method(self, contract_id: ContractId, method_name: str, ctx: Context,
                           *args: Any, **kwargs: Any) -> Any:
        return self._run(lambda: self._execute(contract_id, method_name, ctx, args, kwargs))

    def call_view_method(self, contract_id: ContractId, method_name: str, *args: Any, **kwargs: Any) -> Any:
        blueprint = self.get_contract(contract_id)
        method = self._get_method(blueprint, method_name, NCMethodType.VIEW)
        return method(*args, **kwargs)

    def _run(self, fn: Callable[[], T]) -> T:
        if self._call_stack:
            return fn()

        snapshot = self._take_snapshot()
        try:
            return fn()
        except NCFail:
            logger.debug('call failed, rolling back')
            self._restore_snapshot(snapshot)
            raise
        except Exception as e:
            logger.debug('call raised %r, rolling back', e)
            self._restore_snapshot(snapshot)
            raise NCFail(f'Execution failed: {e!r}') from e
        finally:
            self._call_stack.clear()

    def _execute(self, contract_id: ContractId, method_name: str, ctx: Context,
                 args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        blueprint = self.get_contract(contract_id)
        method = self._get_method(blueprint, method_name, NCMethodType.PUBLIC)
        if contract_id in self._call_stack:
            raise NCReentrancyError(f'Reentrant call to {contract_id.hex()}.{method_name}')

        self._call_stack.append(contract_id)
        try:
            return method(ctx, *args, **kwargs)
        finally:
            self._call_stack.pop()

    def _get_method(self, blueprint: Blueprint, method_name: str, method_type: str) -> Callable[..., Any]:
        method = getattr(blueprint, method_name, None)
        if method is None or getattr(method, NC_METHOD_TYPE_ATTR, None) != method_type:
            raise NCMethodNotFound(f'{type(blueprint).__name__}.{method_name} is not a {method_type} method')
        return method

    def _take_snapshot(self) -> _Snapshot:
        return _Snapshot(
            states={cid: copy.deepcopy(bp.get_state()) for cid, bp in self._contracts.items()},
            contract_ids=set(self._contracts),
            nonces=dict(self._nonces),
        )

    def _restore_snapshot(self, snapshot: _Snapshot) -> None:
        for contract_id in list(self._contracts):
            if contract_id not in snapshot.contract_ids:
                del self._contracts[contract_id]
        for contract_id, state in snapshot.states.items():
            self._contracts[contract_id].set_state(state)
        self._nonces = snapshot.nonces
