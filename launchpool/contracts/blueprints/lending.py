"""Collateral venue used by launch pools during settlement.

A `Comptroller` lists one `MarketToken` per underlying asset and prices
everything in units of a reference asset. Accounts supply underlying to a
market with `mint`, which counts as collateral weighted by the market's
collateral factor, and `borrow` from any market against that collateral.

Market calls report failures with status codes instead of raising, like the
Compound markets they mirror. Supplied and borrowed amounts map 1:1 to
underlying; there is no interest accrual.
"""

import logging

from launchpool.conf import get_settings
from launchpool.contracts.blueprint import Blueprint
from launchpool.contracts.context import Context
from launchpool.contracts.exception import NCFail
from launchpool.contracts.types import Address, Amount, ContractId, public, view

logger = logging.getLogger(__name__)

settings = get_settings()
PRICE_PRECISION = settings.PRICE_PRECISION
BASIS_POINTS = settings.BASIS_POINTS


class VenueStatus:
    """Status codes returned by market calls."""

    NO_ERROR = 0
    COMPTROLLER_REJECTION = 1
    TOKEN_TRANSFER_FAILED = 2
    INSUFFICIENT_CASH = 3
    INSUFFICIENT_LIQUIDITY = 4
    INVALID_AMOUNT = 5


class Unauthorized(NCFail):
    """Raised when an address other than the admin changes the comptroller."""

    pass


class MarketNotListed(NCFail):
    """Raised when configuring a market that is not listed."""

    pass


class InvalidCollateralFactor(NCFail):
    """Raised when a collateral factor is above 100%."""

    pass


class Comptroller(Blueprint):
    """Risk manager of the lending venue."""

    admin: Address
    all_markets: list[ContractId]
    markets: dict[ContractId, bool]
    collateral_factor: dict[ContractId, int]  # basis points
    prices: dict[ContractId, int]  # reference units per underlying unit, scaled by PRICE_PRECISION

    @public
    def initialize(self, ctx: Context) -> None:
        self.admin = ctx.address
        self.all_markets = []
        self.markets = {}
        self.collateral_factor = {}
        self.prices = {}

    @public
    def support_market(self, ctx: Context, market: ContractId, collateral_factor: int, price: int) -> None:
        self._only_admin(ctx)
        if self.markets.get(market, False):
            raise NCFail("Market already listed")
        self.markets[market] = True
        self.all_markets.append(market)
        self._set_collateral_factor(market, collateral_factor)
        self._set_price(market, price)
        logger.info('market listed: %s cf=%s price=%s', market.hex(), collateral_factor, price)

    @public
    def set_collateral_factor(self, ctx: Context, market: ContractId, collateral_factor: int) -> None:
        self._only_admin(ctx)
        self._validate_listed(market)
        self._set_collateral_factor(market, collateral_factor)

    @public
    def set_price(self, ctx: Context, market: ContractId, price: int) -> None:
        self._only_admin(ctx)
        self._validate_listed(market)
        self._set_price(market, price)

    def _only_admin(self, ctx: Context) -> None:
        if ctx.address != self.admin:
            raise Unauthorized("Only the admin can configure the comptroller")

    def _validate_listed(self, market: ContractId) -> None:
        if not self.markets.get(market, False):
            raise MarketNotListed(f"Market not listed: {market.hex()}")

    def _set_collateral_factor(self, market: ContractId, collateral_factor: int) -> None:
        if not 0 <= collateral_factor <= BASIS_POINTS:
            raise InvalidCollateralFactor("Collateral factor must be between 0 and 100%")
        self.collateral_factor[market] = collateral_factor

    def _set_price(self, market: ContractId, price: int) -> None:
        if price < 0:
            raise NCFail("Price must not be negative")
        self.prices[market] = price

    def _hypothetical_liquidity(self, account: Address, borrow_market: ContractId | None,
                                borrow_amount: Amount) -> tuple[int, int]:
        """Return `(liquidity, shortfall)` after borrowing `borrow_amount` more."""
        collateral_value = 0
        borrow_value = 0
        for market in self.all_markets:
            price = self.prices[market]
            supplied = self.call_view_method(market, 'balance_of_underlying', account)
            borrowed = self.call_view_method(market, 'borrow_balance', account)
            if market == borrow_market:
                borrowed += borrow_amount
            collateral_value += supplied * price * self.collateral_factor[market] // BASIS_POINTS // PRICE_PRECISION
            borrow_value += borrowed * price // PRICE_PRECISION
        if collateral_value >= borrow_value:
            return collateral_value - borrow_value, 0
        return 0, borrow_value - collateral_value

    @view
    def is_listed(self, market: ContractId) -> bool:
        return self.markets.get(market, False)

    @view
    def get_account_liquidity(self, account: Address) -> tuple[int, int, int]:
        """Return `(error, liquidity, shortfall)` in reference asset units."""
        liquidity, shortfall = self._hypothetical_liquidity(account, None, Amount(0))
        return VenueStatus.NO_ERROR, liquidity, shortfall

    @view
    def borrow_allowed(self, market: ContractId, account: Address, amount: Amount) -> int:
        if not self.markets.get(market, False):
            return VenueStatus.COMPTROLLER_REJECTION
        _, shortfall = self._hypothetical_liquidity(account, market, amount)
        if shortfall > 0:
            return VenueStatus.INSUFFICIENT_LIQUIDITY
        return VenueStatus.NO_ERROR


class MarketToken(Blueprint):
    """Lending market for a single underlying token."""

    underlying: ContractId
    comptroller: ContractId
    supplied: dict[Address, Amount]
    borrows: dict[Address, Amount]
    total_supplied: Amount
    total_borrows: Amount

    @public
    def initialize(self, ctx: Context, underlying: ContractId, comptroller: ContractId) -> None:
        self.underlying = underlying
        self.comptroller = comptroller
        self.supplied = {}
        self.borrows = {}
        self.total_supplied = Amount(0)
        self.total_borrows = Amount(0)

    @public
    def mint(self, ctx: Context, amount: Amount) -> int:
        """Supply `amount` of underlying, pulled from the caller."""
        if amount <= 0:
            return VenueStatus.INVALID_AMOUNT
        if not self.call_view_method(self.comptroller, 'is_listed', self.contract_id):
            return VenueStatus.COMPTROLLER_REJECTION
        if not self.call_public_method(ctx, self.underlying, 'transfer_from', ctx.address, self.contract_id, amount):
            return VenueStatus.TOKEN_TRANSFER_FAILED

        self.supplied[ctx.address] = self.supplied.get(ctx.address, 0) + amount
        self.total_supplied += amount
        return VenueStatus.NO_ERROR

    @public
    def borrow(self, ctx: Context, amount: Amount) -> int:
        """Borrow `amount` of underlying against the caller's collateral."""
        if amount < 0:
            return VenueStatus.INVALID_AMOUNT
        if self._get_cash() < amount:
            return VenueStatus.INSUFFICIENT_CASH
        status = self.call_view_method(self.comptroller, 'borrow_allowed', self.contract_id, ctx.address, amount)
        if status != VenueStatus.NO_ERROR:
            return status

        self.borrows[ctx.address] = self.borrows.get(ctx.address, 0) + amount
        self.total_borrows += amount
        self.call_public_method(ctx, self.underlying, 'transfer', ctx.address, amount)
        return VenueStatus.NO_ERROR

    def _get_cash(self) -> Amount:
        return self.call_view_method(self.underlying, 'balance_of', self.contract_id)

    @view
    def get_underlying(self) -> ContractId:
        return self.underlying

    @view
    def get_cash(self) -> Amount:
        return self._get_cash()

    @view
    def balance_of_underlying(self, account: Address) -> Amount:
        return Amount(self.supplied.get(account, 0))

    @view
    def borrow_balance(self, account: Address) -> Amount:
        return Amount(self.borrows.get(account, 0))
