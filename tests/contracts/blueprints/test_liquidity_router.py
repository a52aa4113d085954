from launchpool.contracts.blueprints.liquidity_router import (
    LOCKED_LIQUIDITY_HOLDER,
    Expired,
    InsufficientAmount,
    InsufficientLiquidityMinted,
    InvalidTokens,
    LiquidityRouter,
    TransferFailed,
)
from launchpool.contracts.blueprints.token import Token
from tests.contracts.blueprints.unittest import DEFAULT_TIMESTAMP, BlueprintTestCase


class LiquidityRouterTestCase(BlueprintTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.minter = self.gen_random_address()
        self.provider = self.gen_random_address()
        self.token_a = self.create_contract(Token, "Token A", "TKA", self.minter)
        self.token_b = self.create_contract(Token, "Token B", "TKB", self.minter)
        self.router = self.create_contract(LiquidityRouter)
        for token in (self.token_a, self.token_b):
            self.call(token, "mint", self.provider, 1_000_000, caller_id=self.minter)
            self.call(token, "approve", self.router, 1_000_000, caller_id=self.provider)

    def _add_liquidity(self, amount_a, amount_b, min_a=0, min_b=0, stable=False, deadline=DEFAULT_TIMESTAMP):
        return self.call(
            self.router, "add_liquidity", self.token_a, self.token_b, stable,
            amount_a, amount_b, min_a, min_b, self.provider, deadline,
            caller_id=self.provider,
        )

    def test_first_deposit(self):
        result = self._add_liquidity(4_000, 9_000)
        self.assertEqual(result.amount_a, 4_000)
        self.assertEqual(result.amount_b, 9_000)
        self.assertEqual(result.liquidity, 6_000 - 1_000)

        self.assertEqual(self.view(self.router, "get_reserves", self.token_a, self.token_b, False), (4_000, 9_000))
        self.assertEqual(self.view(self.router, "get_reserves", self.token_b, self.token_a, False), (9_000, 4_000))
        self.assertEqual(self.view(self.router, "get_total_liquidity", self.token_a, self.token_b, False), 6_000)
        self.assertEqual(
            self.view(self.router, "liquidity_of", self.token_a, self.token_b, False, LOCKED_LIQUIDITY_HOLDER), 1_000
        )
        self.assertEqual(self.view(self.token_a, "balance_of", self.router), 4_000)

    def test_later_deposit_follows_reserve_ratio(self):
        self._add_liquidity(4_000, 9_000)
        result = self._add_liquidity(400, 2_000)
        self.assertEqual((result.amount_a, result.amount_b), (400, 900))
        self.assertEqual(result.liquidity, 600)
        self.assertEqual(
            self.view(self.router, "liquidity_of", self.token_a, self.token_b, False, self.provider), 5_600
        )

    def test_minimums_are_enforced(self):
        self._add_liquidity(4_000, 9_000)
        with self.assertRaises(InsufficientAmount):
            self._add_liquidity(400, 2_000, min_b=901)
        with self.assertRaises(InsufficientAmount):
            self._add_liquidity(4_000, 900, min_a=401)
        self.assertEqual(self.view(self.router, "get_reserves", self.token_a, self.token_b, False), (4_000, 9_000))

    def test_stable_flag_selects_another_pool(self):
        self._add_liquidity(4_000, 9_000)
        self._add_liquidity(2_000, 2_000, stable=True)
        self.assertEqual(self.view(self.router, "get_reserves", self.token_a, self.token_b, True), (2_000, 2_000))
        self.assertEqual(len(self.view(self.router, "get_all_pools")), 2)

    def test_invalid_deposits(self):
        with self.assertRaises(Expired):
            self._add_liquidity(4_000, 9_000, deadline=DEFAULT_TIMESTAMP - 1)
        with self.assertRaises(InsufficientLiquidityMinted):
            self._add_liquidity(1_000, 1_000)
        with self.assertRaises(TransferFailed):
            self._add_liquidity(2_000_000, 2_000_000)
        with self.assertRaises(InvalidTokens):
            self.call(
                self.router, "add_liquidity", self.token_a, self.token_a, False,
                100, 100, 0, 0, self.provider, DEFAULT_TIMESTAMP, caller_id=self.provider,
            )
        self.assertEqual(self.view(self.router, "get_all_pools"), [])
