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
from launchpool.contracts.types import Address, ContractId, public, view
from tests.contracts.blueprints.unittest import BlueprintTestCase


class Counter(Blueprint):
    """Small blueprint used to exercise the runner."""

    count: int
    children: list[ContractId]
    last_caller: Address

    @public
    def initialize(self, ctx: Context) -> None:
        self.count = 0
        self.children = []
        self.last_caller = ctx.address

    @public
    def inc(self, ctx: Context, amount: int) -> int:
        self.count += amount
        self.last_caller = ctx.address
        return self.count

    @public
    def inc_then_fail(self, ctx: Context, amount: int) -> None:
        self.count += amount
        raise NCFail("boom")

    @public
    def inc_then_crash(self, ctx: Context) -> None:
        self.count += 1
        raise ZeroDivisionError("crash")

    @public
    def inc_other(self, ctx: Context, other: ContractId, amount: int) -> int:
        return self.call_public_method(ctx, other, "inc", amount)

    @public
    def call_self(self, ctx: Context) -> None:
        self.call_public_method(ctx, self.contract_id, "inc", 1)

    @public
    def spawn(self, ctx: Context) -> ContractId:
        child = self.create_contract(ctx, Counter)
        self.children.append(child)
        return child

    @public
    def spawn_then_fail(self, ctx: Context) -> None:
        self.spawn(ctx)
        raise NCFail("boom")

    @view
    def get_count(self) -> int:
        return self.count

    def helper(self) -> int:
        return self.count


class RunnerTestCase(BlueprintTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.counter_id = self.create_contract(Counter)

    def test_call_public_and_view(self):
        caller = self.gen_random_address()
        self.assertEqual(self.call(self.counter_id, "inc", 3, caller_id=caller), 3)
        self.assertEqual(self.view(self.counter_id, "get_count"), 3)
        self.assertEqual(self.runner.get_storage(self.counter_id).get("last_caller"), caller)

    def test_failed_call_is_rolled_back(self):
        self.call(self.counter_id, "inc", 1)
        with self.assertRaises(NCFail):
            self.call(self.counter_id, "inc_then_fail", 5)
        self.assertEqual(self.view(self.counter_id, "get_count"), 1)

    def test_unexpected_exception_is_wrapped(self):
        with self.assertRaises(NCFail) as cm:
            self.call(self.counter_id, "inc_then_crash")
        self.assertIsInstance(cm.exception.__cause__, ZeroDivisionError)
        self.assertEqual(self.view(self.counter_id, "get_count"), 0)

    def test_nested_call_uses_contract_as_caller(self):
        other_id = self.create_contract(Counter)
        self.assertEqual(self.call(self.counter_id, "inc_other", other_id, 2), 2)
        self.assertEqual(self.runner.get_storage(other_id).get("last_caller"), self.counter_id)

    def test_reentrant_call_fails(self):
        with self.assertRaises(NCReentrancyError):
            self.call(self.counter_id, "call_self")
        self.assertEqual(self.view(self.counter_id, "get_count"), 0)

    def test_method_type_is_enforced(self):
        with self.assertRaises(NCMethodNotFound):
            self.call(self.counter_id, "get_count")
        with self.assertRaises(NCMethodNotFound):
            self.view(self.counter_id, "inc", 1)
        with self.assertRaises(NCMethodNotFound):
            self.call(self.counter_id, "helper")
        with self.assertRaises(NCMethodNotFound):
            self.call(self.counter_id, "missing")

    def test_unknown_contract(self):
        with self.assertRaises(NCContractNotFound):
            self.call(self.gen_random_contract_id(), "inc", 1)
        with self.assertRaises(NCContractNotFound):
            self.runner.get_storage(self.gen_random_contract_id())

    def test_create_contract_twice(self):
        with self.assertRaises(NCContractAlreadyExists):
            self.runner.create_contract(self.counter_id, Counter, self.create_context())

    def test_derived_contract_ids(self):
        first = self.call(self.counter_id, "spawn")
        second = self.call(self.counter_id, "spawn")
        self.assertEqual(first, keccak(self.counter_id + (0).to_bytes(32, "big"))[12:])
        self.assertEqual(second, keccak(self.counter_id + (1).to_bytes(32, "big"))[12:])
        self.assertTrue(self.runner.has_contract(first))
        self.assertEqual(self.runner.get_storage(first).get("last_caller"), self.counter_id)

    def test_failed_creation_is_rolled_back(self):
        with self.assertRaises(NCFail):
            self.call(self.counter_id, "spawn_then_fail")
        child = keccak(self.counter_id + (0).to_bytes(32, "big"))[12:]
        self.assertFalse(self.runner.has_contract(child))
        # The nonce is restored too
        self.assertEqual(self.call(self.counter_id, "spawn"), child)

    def test_storage_returns_copies(self):
        self.call(self.counter_id, "spawn")
        storage = self.runner.get_storage(self.counter_id)
        children = storage.get("children")
        children.clear()
        self.assertEqual(len(storage.get("children")), 1)
        self.assertIsNone(storage.get("missing", None))
        with self.assertRaises(KeyError):
            storage.get("missing")
