import logging
import math
from typing import NamedTuple

from launchpool.conf import get_settings
from launchpool.contracts.blueprint import Blueprint
from launchpool.contracts.context import Context
from launchpool.contracts.exception import NCFail
from launchpool.contracts.types import Address, Amount, ContractId, public, view

logger = logging.getLogger(__name__)

settings = get_settings()
MINIMUM_LIQUIDITY = settings.MINIMUM_LIQUIDITY
# Holder of the liquidity locked by the first deposit into each pool.
LOCKED_LIQUIDITY_HOLDER = Address(b"\x00" * 20)


class InvalidTokens(NCFail):
    """Raised when both tokens of a pair are the same."""

    pass


class Expired(NCFail):
    """Raised when the call happens after its deadline."""

    pass


class InsufficientAmount(NCFail):
    """Raised when the optimal deposit is below the caller's minimum."""

    pass


class InsufficientLiquidityMinted(NCFail):
    """Raised when a deposit is too small to mint any liquidity."""

    pass


class TransferFailed(NCFail):
    """Raised when a deposit cannot be pulled from the caller."""

    pass


class AddLiquidityResult(NamedTuple):
    amount_a: Amount
    amount_b: Amount
    liquidity: Amount


class LiquidityRouter(Blueprint):
    """Liquidity venue holding constant product pools.

    Each pool is identified by its sorted token pair and the stable flag,
    `token_a/token_b/stable`. The first deposit fixes the price; later
    deposits are adjusted to the current reserve ratio.
    """

    all_pools: list[str]
    pool_token_a: dict[str, ContractId]
    pool_token_b: dict[str, ContractId]
    pool_reserve_a: dict[str, Amount]
    pool_reserve_b: dict[str, Amount]
    pool_total_liquidity: dict[str, Amount]
    pool_user_liquidity: dict[str, dict[Address, Amount]]

    @public
    def initialize(self, ctx: Context) -> None:
        self.all_pools = []
        self.pool_token_a = {}
        self.pool_token_b = {}
        self.pool_reserve_a = {}
        self.pool_reserve_b = {}
        self.pool_total_liquidity = {}
        self.pool_user_liquidity = {}

    def _get_pool_key(self, token_a: ContractId, token_b: ContractId, stable: bool) -> str:
        if token_a > token_b:
            token_a, token_b = token_b, token_a
        return f"{token_a.hex()}/{token_b.hex()}/{'stable' if stable else 'volatile'}"

    def _get_or_create_pool(self, token_a: ContractId, token_b: ContractId, stable: bool) -> str:
        pool_key = self._get_pool_key(token_a, token_b, stable)
        if pool_key not in self.pool_total_liquidity:
            if token_a > token_b:
                token_a, token_b = token_b, token_a
            self.all_pools.append(pool_key)
            self.pool_token_a[pool_key] = token_a
            self.pool_token_b[pool_key] = token_b
            self.pool_reserve_a[pool_key] = Amount(0)
            self.pool_reserve_b[pool_key] = Amount(0)
            self.pool_total_liquidity[pool_key] = Amount(0)
            self.pool_user_liquidity[pool_key] = {}
            logger.info('pool created: %s', pool_key)
        return pool_key

    def _get_reserves(self, pool_key: str, token_a: ContractId) -> tuple[Amount, Amount]:
        """Return the reserves ordered as `(token_a, other token)`."""
        if self.pool_token_a[pool_key] == token_a:
            return self.pool_reserve_a[pool_key], self.pool_reserve_b[pool_key]
        return self.pool_reserve_b[pool_key], self.pool_reserve_a[pool_key]

    @staticmethod
    def quote(amount_a: Amount, reserve_a: Amount, reserve_b: Amount) -> Amount:
        return Amount(amount_a * reserve_b // reserve_a)

    def _pull(self, ctx: Context, token: ContractId, amount: Amount) -> None:
        if not self.call_public_method(ctx, token, "transfer_from", ctx.address, self.contract_id, amount):
            raise TransferFailed(f"Could not pull {amount} of {token.hex()}")

    @public
    def add_liquidity(
        self,
        ctx: Context,
        token_a: ContractId,
        token_b: ContractId,
        stable: bool,
        amount_a_desired: Amount,
        amount_b_desired: Amount,
        amount_a_min: Amount,
        amount_b_min: Amount,
        to: Address,
        deadline: int,
    ) -> AddLiquidityResult:
        """Deposit a pair of tokens and credit the minted liquidity to `to`."""
        if ctx.timestamp > deadline:
            raise Expired("Deadline passed")
        if token_a == token_b:
            raise InvalidTokens("Identical tokens")

        pool_key = self._get_or_create_pool(token_a, token_b, stable)
        reserve_a, reserve_b = self._get_reserves(pool_key, token_a)

        if reserve_a == 0 and reserve_b == 0:
            amount_a, amount_b = amount_a_desired, amount_b_desired
        else:
            optimal_b = self.quote(amount_a_desired, reserve_a, reserve_b)
            if optimal_b <= amount_b_desired:
                if optimal_b < amount_b_min:
                    raise InsufficientAmount("Insufficient B amount")
                amount_a, amount_b = amount_a_desired, optimal_b
            else:
                optimal_a = self.quote(amount_b_desired, reserve_b, reserve_a)
                if optimal_a > amount_a_desired or optimal_a < amount_a_min:
                    raise InsufficientAmount("Insufficient A amount")
                amount_a, amount_b = optimal_a, amount_b_desired

        total_liquidity = self.pool_total_liquidity[pool_key]
        if total_liquidity == 0:
            liquidity = math.isqrt(amount_a * amount_b) - MINIMUM_LIQUIDITY
        else:
            liquidity = min(amount_a * total_liquidity // reserve_a, amount_b * total_liquidity // reserve_b)
        if liquidity <= 0:
            raise InsufficientLiquidityMinted("Insufficient liquidity minted")

        self._pull(ctx, token_a, amount_a)
        self._pull(ctx, token_b, amount_b)

        user_liquidity = self.pool_user_liquidity[pool_key]
        if total_liquidity == 0:
            user_liquidity[LOCKED_LIQUIDITY_HOLDER] = Amount(MINIMUM_LIQUIDITY)
            self.pool_total_liquidity[pool_key] += MINIMUM_LIQUIDITY
        user_liquidity[to] = user_liquidity.get(to, 0) + liquidity
        self.pool_total_liquidity[pool_key] += liquidity

        if self.pool_token_a[pool_key] == token_a:
            self.pool_reserve_a[pool_key] += amount_a
            self.pool_reserve_b[pool_key] += amount_b
        else:
            self.pool_reserve_a[pool_key] += amount_b
            self.pool_reserve_b[pool_key] += amount_a

        return AddLiquidityResult(Amount(amount_a), Amount(amount_b), Amount(liquidity))

    @view
    def get_reserves(self, token_a: ContractId, token_b: ContractId, stable: bool) -> tuple[Amount, Amount]:
        pool_key = self._get_pool_key(token_a, token_b, stable)
        if pool_key not in self.pool_total_liquidity:
            return Amount(0), Amount(0)
        return self._get_reserves(pool_key, token_a)

    @view
    def liquidity_of(self, token_a: ContractId, token_b: ContractId, stable: bool, account: Address) -> Amount:
        pool_key = self._get_pool_key(token_a, token_b, stable)
        return Amount(self.pool_user_liquidity.get(pool_key, {}).get(account, 0))

    @view
    def get_total_liquidity(self, token_a: ContractId, token_b: ContractId, stable: bool) -> Amount:
        return Amount(self.pool_total_liquidity.get(self._get_pool_key(token_a, token_b, stable), 0))

    @view
    def get_all_pools(self) -> list[str]:
        return list(self.all_pools)
