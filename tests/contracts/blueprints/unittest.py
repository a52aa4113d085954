import os
import unittest
from typing import Any, Optional

from launchpool.contracts.blueprint import Blueprint
from launchpool.contracts.context import Context
from launchpool.contracts.runner import Runner
from launchpool.contracts.types import ADDRESS_LEN, Address, ContractId, Timestamp

DEFAULT_TIMESTAMP = 1_700_000_000


class BlueprintTestCase(unittest.TestCase):
    """Base test case with a fresh runner per test."""

    def setUp(self) -> None:
        super().setUp()
        self.runner = Runner()

    def gen_random_address(self) -> Address:
        return Address(os.urandom(ADDRESS_LEN))

    def gen_random_contract_id(self) -> ContractId:
        return ContractId(self.gen_random_address())

    def create_context(self, caller_id: Optional[Address] = None, timestamp: Optional[int] = None) -> Context:
        if caller_id is None:
            caller_id = self.gen_random_address()
        if timestamp is None:
            timestamp = DEFAULT_TIMESTAMP
        return Context(caller_id=caller_id, timestamp=Timestamp(timestamp))

    def create_contract(self, blueprint_class: type[Blueprint], *args: Any,
                        caller_id: Optional[Address] = None, timestamp: Optional[int] = None,
                        contract_id: Optional[ContractId] = None) -> ContractId:
        if contract_id is None:
            contract_id = self.gen_random_contract_id()
        ctx = self.create_context(caller_id, timestamp)
        self.runner.create_contract(contract_id, blueprint_class, ctx, *args)
        return contract_id

    def call(self, contract_id: ContractId, method_name: str, *args: Any,
             caller_id: Optional[Address] = None, timestamp: Optional[int] = None) -> Any:
        ctx = self.create_context(caller_id, timestamp)
        return self.runner.call_public_method(contract_id, method_name, ctx, *args)

    def view(self, contract_id: ContractId, method_name: str, *args: Any) -> Any:
        return self.runner.call_view_method(contract_id, method_name, *args)
