import logging

from launchpool.conf import get_settings
from launchpool.contracts.blueprint import Blueprint
from launchpool.contracts.blueprints.launch_pool import LaunchPool
from launchpool.contracts.context import Context
from launchpool.contracts.exception import NCFail
from launchpool.contracts.types import Address, Amount, ContractId, Timestamp, public, view

logger = logging.getLogger(__name__)

settings = get_settings()
BASIS_POINTS = settings.BASIS_POINTS


class FactoryErrors:
    """Common error messages"""

    SUPPLY_TOO_LOW = "Max supply below minimum"
    CREATOR_SUPPLY_TOO_LOW = "Creator supply below minimum"
    ALLOCATION_TOO_HIGH = "Creator and allocated supply above maximum"
    INVALID_DURATION = "Sale duration out of bounds"
    START_IN_PAST = "Sale cannot start in the past"
    INVALID_RATIOS = "One positive ratio per accepted asset is required"
    UNAUTHORIZED = "Unauthorized action"


class InvalidParameters(NCFail):
    """Raised when launch pool parameters are out of bounds."""

    pass


class Unauthorized(NCFail):
    pass


class LaunchPoolFactory(Blueprint):
    """Creates launch pools that share one venue configuration.

    Each accepted asset comes with the lending market it is supplied to during
    settlement. The caller of `create_launch_pool` becomes the pool creator.
    """

    owner: Address
    assets: list[ContractId]
    markets: list[ContractId]
    comptroller: ContractId
    borrow_market: ContractId
    router: ContractId

    launch_pools: list[ContractId]
    pools_by_creator: dict[Address, list[ContractId]]

    @public
    def initialize(
        self,
        ctx: Context,
        assets: list[ContractId],
        markets: list[ContractId],
        comptroller: ContractId,
        borrow_market: ContractId,
        router: ContractId,
    ) -> None:
        if not 0 < len(assets) <= settings.MAX_ACCEPTED_ASSETS:
            raise InvalidParameters(f"Between 1 and {settings.MAX_ACCEPTED_ASSETS} assets are accepted")
        if len(markets) != len(assets):
            raise InvalidParameters("One market is required per asset")
        for asset, market in zip(assets, markets):
            if self.call_view_method(market, "get_underlying") != asset:
                raise InvalidParameters(f"Market {market.hex()} does not lend {asset.hex()}")

        self.owner = ctx.address
        self.assets = list(assets)
        self.markets = list(markets)
        self.comptroller = comptroller
        self.borrow_market = borrow_market
        self.router = router
        self.launch_pools = []
        self.pools_by_creator = {}

    @public
    def set_venues(self, ctx: Context, comptroller: ContractId, borrow_market: ContractId,
                   router: ContractId) -> None:
        """Point future launch pools to other venues (owner only)."""
        if ctx.address != self.owner:
            raise Unauthorized(FactoryErrors.UNAUTHORIZED)
        self.comptroller = comptroller
        self.borrow_market = borrow_market
        self.router = router

    def _validate_parameters(
        self,
        ctx: Context,
        max_supply: Amount,
        creator_supply: Amount,
        allocated_supply: Amount,
        sale_start_time: Timestamp,
        sale_duration: int,
        ratios: list[int],
    ) -> None:
        if max_supply < settings.MIN_TOTAL_SUPPLY:
            raise InvalidParameters(FactoryErrors.SUPPLY_TOO_LOW)
        if creator_supply * BASIS_POINTS < max_supply * settings.MIN_CREATOR_SUPPLY_BP:
            raise InvalidParameters(FactoryErrors.CREATOR_SUPPLY_TOO_LOW)
        if allocated_supply < 0:
            raise InvalidParameters(FactoryErrors.ALLOCATION_TOO_HIGH)
        if (creator_supply + allocated_supply) * BASIS_POINTS > max_supply * settings.MAX_CREATOR_ALLOCATED_BP:
            raise InvalidParameters(FactoryErrors.ALLOCATION_TOO_HIGH)
        if not settings.MIN_SALE_DURATION <= sale_duration <= settings.MAX_SALE_DURATION:
            raise InvalidParameters(FactoryErrors.INVALID_DURATION)
        if sale_start_time < ctx.timestamp:
            raise InvalidParameters(FactoryErrors.START_IN_PAST)
        if len(ratios) != len(self.assets) or any(ratio <= 0 for ratio in ratios):
            raise InvalidParameters(FactoryErrors.INVALID_RATIOS)

    @public
    def create_launch_pool(
        self,
        ctx: Context,
        name: str,
        symbol: str,
        max_supply: Amount,
        creator_supply: Amount,
        allocated_supply: Amount,
        sale_start_time: Timestamp,
        sale_duration: int,
        merkle_root: bytes,
        ratios: list[int],
    ) -> ContractId:
        """Validate the parameters and create a launch pool for the caller."""
        self._validate_parameters(
            ctx, max_supply, creator_supply, allocated_supply, sale_start_time, sale_duration, ratios
        )

        pool_id = self.create_contract(
            ctx,
            LaunchPool,
            name,
            symbol,
            ctx.address,
            max_supply,
            creator_supply,
            allocated_supply,
            sale_start_time,
            sale_duration,
            merkle_root,
            ratios,
            self.assets,
            self.markets,
            self.comptroller,
            self.borrow_market,
            self.router,
        )

        self.launch_pools.append(pool_id)
        creator_pools = self.pools_by_creator.get(ctx.address, [])
        creator_pools.append(pool_id)
        self.pools_by_creator[ctx.address] = creator_pools
        logger.info('launch pool created: %s (%s) by %s', pool_id.hex(), symbol, ctx.address.hex())
        return pool_id

    @view
    def get_launch_pools(self) -> list[ContractId]:
        return list(self.launch_pools)

    @view
    def get_pools_by_creator(self, creator: Address) -> list[ContractId]:
        return list(self.pools_by_creator.get(creator, []))

    @view
    def get_assets(self) -> list[ContractId]:
        return list(self.assets)
