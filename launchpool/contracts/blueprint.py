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

from typing import TYPE_CHECKING, Any

from launchpool.contracts.context import Context
from launchpool.contracts.types import ContractId

if TYPE_CHECKING:
    from launchpool.contracts.runner import Runner


class Blueprint:
    """Base class of every contract hosted by a `Runner`.

    Contract state is every instance attribute not starting with an
    underscore. The runner snapshots that state before a top-level call and
    restores it if the call fails, so blueprints only keep plain values
    (ints, bytes, str, bools, lists, dicts and tuples) as state.

    Field annotations on subclasses document the storage layout.
    """

    def __init__(self, runner: Runner, contract_id: ContractId) -> None:
        self._runner = runner
        self._contract_id = contract_id

    @property
    def contract_id(self) -> ContractId:
        return self._contract_id

    def get_state(self) -> dict[str, Any]:
        return {key: value for key, value in vars(self).items() if not key.startswith('_')}

    def set_state(self, state: dict[str, Any]) -> None:
        for key in list(self.get_state()):
            delattr(self, key)
        for key, value in state.items():
            setattr(self, key, value)

    def call_public_method(self, ctx: Context, contract_id: ContractId, method_name: str,
                           *args: Any, **kwargs: Any) -> Any:
        """Call a public method of another contract with this contract as the caller."""
        nested_ctx = Context(caller_id=self._contract_id, timestamp=ctx.timestamp)
        return self._runner.call_public_method(contract_id, method_name, nested_ctx, *args, **kwargs)

    def call_view_method(self, contract_id: ContractId, method_name: str, *args: Any, **kwargs: Any) -> Any:
        return self._runner.call_view_method(contract_id, method_name, *args, **kwargs)

    def create_contract(self, ctx: Context, blueprint_class: type[Blueprint], *args: Any, **kwargs: Any) -> ContractId:
        """Create a child contract. Its id is derived from this contract's id and nonce."""
        contract_id = self._runner.derive_contract_id(self._contract_id)
        nested_ctx = Context(caller_id=self._contract_id, timestamp=ctx.timestamp)
        self._runner.create_contract(contract_id, blueprint_class, nested_ctx, *args, **kwargs)
        return contract_id
