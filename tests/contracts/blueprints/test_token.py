from launchpool.contracts.blueprints.token import InsufficientBalance, InvalidAmount, Token, Unauthorized
from launchpool.contracts.exception import NCFail
from tests.contracts.blueprints.unittest import BlueprintTestCase


class TokenTestCase(BlueprintTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.minter = self.gen_random_address()
        self.alice = self.gen_random_address()
        self.bob = self.gen_random_address()
        self.token_id = self.create_contract(Token, "Test Token", "TST", self.minter)

    def test_initialize_requires_name_and_symbol(self):
        with self.assertRaises(NCFail):
            self.create_contract(Token, "", "TST", self.minter)
        with self.assertRaises(NCFail):
            self.create_contract(Token, "Test Token", "", self.minter)

    def test_mint(self):
        self.call(self.token_id, "mint", self.alice, 100, caller_id=self.minter)
        self.assertEqual(self.view(self.token_id, "balance_of", self.alice), 100)
        self.assertEqual(self.view(self.token_id, "get_total_supply"), 100)

        with self.assertRaises(Unauthorized):
            self.call(self.token_id, "mint", self.alice, 100, caller_id=self.alice)
        with self.assertRaises(InvalidAmount):
            self.call(self.token_id, "mint", self.alice, -1, caller_id=self.minter)
        self.assertEqual(self.view(self.token_id, "get_total_supply"), 100)

    def test_transfer(self):
        self.call(self.token_id, "mint", self.alice, 100, caller_id=self.minter)
        self.call(self.token_id, "transfer", self.bob, 40, caller_id=self.alice)
        self.assertEqual(self.view(self.token_id, "balance_of", self.alice), 60)
        self.assertEqual(self.view(self.token_id, "balance_of", self.bob), 40)

        with self.assertRaises(InsufficientBalance):
            self.call(self.token_id, "transfer", self.bob, 61, caller_id=self.alice)
        self.assertEqual(self.view(self.token_id, "balance_of", self.alice), 60)

    def test_transfer_from(self):
        spender = self.gen_random_address()
        self.call(self.token_id, "mint", self.alice, 100, caller_id=self.minter)
        self.call(self.token_id, "approve", spender, 70, caller_id=self.alice)
        self.assertEqual(self.view(self.token_id, "allowance", self.alice, spender), 70)

        ok = self.call(self.token_id, "transfer_from", self.alice, self.bob, 50, caller_id=spender)
        self.assertTrue(ok)
        self.assertEqual(self.view(self.token_id, "allowance", self.alice, spender), 20)
        self.assertEqual(self.view(self.token_id, "balance_of", self.bob), 50)

    def test_transfer_from_reports_failure(self):
        spender = self.gen_random_address()
        self.call(self.token_id, "mint", self.alice, 10, caller_id=self.minter)

        # No allowance
        self.assertFalse(self.call(self.token_id, "transfer_from", self.alice, self.bob, 5, caller_id=spender))

        # Allowance above balance
        self.call(self.token_id, "approve", spender, 20, caller_id=self.alice)
        self.assertFalse(self.call(self.token_id, "transfer_from", self.alice, self.bob, 15, caller_id=spender))
        self.assertFalse(self.call(self.token_id, "transfer_from", self.alice, self.bob, -1, caller_id=spender))

        self.assertEqual(self.view(self.token_id, "balance_of", self.alice), 10)
        self.assertEqual(self.view(self.token_id, "allowance", self.alice, spender), 20)
