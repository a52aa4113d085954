import logging
from typing import NamedTuple

from launchpool import merkle
from launchpool.conf import get_settings
from launchpool.contracts.blueprint import Blueprint
from launchpool.contracts.blueprints.token import Token
from launchpool.contracts.context import Context
from launchpool.contracts.exception import NCFail
from launchpool.contracts.types import Address, Amount, ContractId, Timestamp, public, view

logger = logging.getLogger(__name__)

settings = get_settings()
CREATOR_DROP_DELAY = settings.CREATOR_DROP_DELAY
MAX_ACCEPTED_ASSETS = settings.MAX_ACCEPTED_ASSETS
LIQUIDITY_STABLE = settings.LIQUIDITY_STABLE
MERKLE_ROOT_LEN = 32
VENUE_NO_ERROR = 0


class Phase:
    """Time gates of a launch pool. Several can hold at once."""

    PENDING = "pending"  # Before the sale starts
    OPEN = "open"  # Accepting contributions
    CLOSED = "closed"  # Sale over, before any post-close action
    AIRDROP_ELIGIBLE = "airdrop_eligible"  # Airdrop and allowlist claims available
    CREATOR_ELIGIBLE = "creator_eligible"  # Creator allocation available


class SettlementStage:
    """Progress of the settlement procedure run by the airdrop."""

    NONE = 0
    COLLATERAL_SUPPLIED = 1
    BORROWED = 2
    LIQUIDITY_ADDED = 3


class InvalidAmount(NCFail):
    """Raised when a contribution is not positive."""

    pass


class InvalidAsset(NCFail):
    """Raised when the asset slot is out of range."""

    pass


class SaleMaxedOut(NCFail):
    """Raised when a contribution would exceed the sale cap."""

    pass


class TransferFailed(NCFail):
    """Raised when the payment cannot be collected from the buyer."""

    pass


class SaleEnded(NCFail):
    """Raised when contributing outside the sale window."""

    pass


class SaleNotStarted(SaleEnded):
    """Raised when contributing before the sale window opens."""

    pass


class AirdropAlreadyDone(NCFail):
    pass


class AirdropNotAvailable(NCFail):
    pass


class CreatorDropAlreadyDone(NCFail):
    pass


class CreatorDropNotAvailable(NCFail):
    pass


class ClaimNotAvailable(NCFail):
    pass


class TokensAlreadyClaimed(NCFail):
    pass


class InvalidProof(NCFail):
    pass


class SettlementError(NCFail):
    """Base class of the failures that abort settlement."""

    pass


class VenueError(SettlementError):
    """Raised when a venue call reports an error."""

    pass


class NegativeLiquidity(SettlementError):
    """Raised when the lending venue reports a shortfall for the pool."""

    pass


class InsufficientCollateral(SettlementError):
    """Raised when the pool has no borrowing capacity."""

    pass


class LiquidityAddMismatch(SettlementError):
    """Raised when the liquidity venue did not take the exact amounts."""

    pass


class LaunchPoolSaleInfo(NamedTuple):
    """General sale information."""

    token: str
    creator: str
    max_supply: int
    creator_supply: int
    allocated_supply: int
    reserved_supply: int
    sale_start_time: int
    sale_end_time: int
    ratios: list[int]
    assets: list[str]
    buyers: int
    airdropped: bool
    creator_dropped: bool
    total_paid: dict[str, int]  # per asset, keyed by asset id hex
    total_claimed: int


class LaunchPoolBuyerInfo(NamedTuple):
    """Buyer-specific information."""

    amount: int
    is_buyer: bool
    whitelist_claimed: bool


class LaunchPoolSettlementInfo(NamedTuple):
    """Outcome of the settlement procedure."""

    stage: int
    borrowed_amount: int
    liquidity_minted: int
    router: str
    reference_asset: str


class LaunchPool(Blueprint):
    """Blueprint for a multi-asset token sale that bootstraps its own market.

    Buyers commit to sale tokens during the sale window, paying each accepted
    asset at its fixed ratio. Once the window closes, the airdrop settles the
    pool, supplying every collected asset to the lending venue, borrowing the
    reference asset against it and pairing it with the reserved supply in the
    liquidity venue, and then mints the committed tokens to every buyer.
    Allowlisted addresses claim with a Merkle proof after the sale, and the
    creator allocation unlocks `CREATOR_DROP_DELAY` after it.
    """

    # Sale configuration
    token: ContractId  # Sale token, minted only by this contract
    creator: Address
    max_supply: Amount
    creator_supply: Amount
    reserved_supply: Amount  # Paired with borrowed capital during settlement
    sale_start_time: Timestamp
    sale_duration: int
    merkle_root: bytes  # Allowlist commitment

    # Accepted assets, one ratio and one lending market per slot
    assets: list[ContractId]
    ratios: list[int]  # Asset units paid per sale token
    asset_to_market: dict[ContractId, ContractId]

    # Venues
    comptroller: ContractId
    borrow_market: ContractId
    reference_asset: ContractId  # Underlying of borrow_market
    router: ContractId

    # Contribution ledger
    allocated_supply: Amount
    buyers: list[Address]
    buyer_exists: dict[Address, bool]
    buyer_amount: dict[Address, Amount]
    total_paid: dict[ContractId, Amount]

    # Latches
    airdropped: bool
    creator_dropped: bool
    whitelist_claimed: dict[Address, bool]
    total_claimed: Amount

    # Settlement
    settlement_stage: int
    borrowed_amount: Amount
    liquidity_minted: Amount

    @public
    def initialize(
        self,
        ctx: Context,
        name: str,
        symbol: str,
        creator: Address,
        max_supply: Amount,
        creator_supply: Amount,
        allocated_supply: Amount,
        sale_start_time: Timestamp,
        sale_duration: int,
        merkle_root: bytes,
        ratios: list[int],
        assets: list[ContractId],
        markets: list[ContractId],
        comptroller: ContractId,
        borrow_market: ContractId,
        router: ContractId,
    ) -> None:
        """Initialize the pool and create its sale token."""
        if max_supply <= 0 or creator_supply < 0:
            raise NCFail("Invalid supply")
        if allocated_supply < 0 or allocated_supply >= max_supply:
            raise NCFail("Allocated supply must be below max supply")
        if sale_duration <= 0:
            raise NCFail("Invalid sale duration")
        if len(merkle_root) != MERKLE_ROOT_LEN:
            raise NCFail("Merkle root must have 32 bytes")
        if not 0 < len(assets) <= MAX_ACCEPTED_ASSETS:
            raise NCFail(f"Between 1 and {MAX_ACCEPTED_ASSETS} assets are accepted")
        if len(ratios) != len(assets) or len(markets) != len(assets):
            raise NCFail("One ratio and one market are required per asset")
        if len(set(assets)) != len(assets):
            raise NCFail("Duplicate asset")
        if any(ratio <= 0 for ratio in ratios):
            raise NCFail("Ratios must be positive")

        self.creator = creator
        self.max_supply = max_supply
        self.creator_supply = creator_supply
        self.allocated_supply = allocated_supply
        self.reserved_supply = Amount((max_supply - allocated_supply) // 2)
        self.sale_start_time = sale_start_time
        self.sale_duration = sale_duration
        self.merkle_root = merkle_root

        self.assets = list(assets)
        self.ratios = list(ratios)
        self.asset_to_market = dict(zip(assets, markets))
        self.comptroller = comptroller
        self.borrow_market = borrow_market
        self.reference_asset = self.call_view_method(borrow_market, "get_underlying")
        self.router = router

        self.buyers = []
        self.buyer_exists = {}
        self.buyer_amount = {}
        self.total_paid = {}

        self.airdropped = False
        self.creator_dropped = False
        self.whitelist_claimed = {}
        self.total_claimed = Amount(0)

        self.settlement_stage = SettlementStage.NONE
        self.borrowed_amount = Amount(0)
        self.liquidity_minted = Amount(0)

        self.token = self.create_contract(ctx, Token, name, symbol, self.contract_id)

    def _sale_end(self) -> int:
        return self.sale_start_time + self.sale_duration

    def _validate_sale_open(self, ctx: Context) -> None:
        if ctx.timestamp < self.sale_start_time:
            raise SaleNotStarted("Sale has not started")
        if ctx.timestamp > self._sale_end():
            raise SaleEnded("Sale has ended")

    @public
    def buy(self, ctx: Context, slot: int, amount: Amount) -> None:
        """Commit to `amount` sale tokens, paying with the asset in `slot`."""
        self._validate_sale_open(ctx)
        if amount <= 0:
            raise InvalidAmount("Amount must be positive")
        if not 0 <= slot < len(self.assets):
            raise InvalidAsset(f"Invalid asset slot {slot}")
        if self.allocated_supply + amount > self.max_supply - self.reserved_supply:
            raise SaleMaxedOut("Sale cap reached")

        asset = self.assets[slot]
        payment = amount * self.ratios[slot]
        self._collect_payment(ctx, asset, payment)

        if not self.buyer_exists.get(ctx.address, False):
            self.buyers.append(ctx.address)
            self.buyer_exists[ctx.address] = True
            self.buyer_amount[ctx.address] = amount
        else:
            self.buyer_amount[ctx.address] += amount
        self.allocated_supply += amount
        self.total_paid[asset] = self.total_paid.get(asset, 0) + payment
        logger.debug('buy: %s committed %s paying %s of %s', ctx.address.hex(), amount, payment, asset.hex())

    def _collect_payment(self, ctx: Context, asset: ContractId, payment: Amount) -> None:
        try:
            collected = self.call_public_method(ctx, asset, "transfer_from", ctx.address, self.contract_id, payment)
        except NCFail as e:
            raise TransferFailed(f"Payment of {payment} failed") from e
        if not collected:
            raise TransferFailed(f"Payment of {payment} failed")

    @public
    def airdrop(self, ctx: Context) -> None:
        """Settle the pool and mint every buyer's committed tokens. Runs once."""
        if self.airdropped:
            raise AirdropAlreadyDone("Airdrop already done")
        if ctx.timestamp <= self._sale_end():
            raise AirdropNotAvailable("Sale has not ended")

        self.airdropped = True
        self._settle(ctx)

        distributed = 0
        for buyer in self.buyers:
            amount = self.buyer_amount[buyer]
            if amount == 0:
                continue
            self.buyer_amount[buyer] = Amount(0)
            self._mint(ctx, buyer, amount)
            distributed += amount
        logger.info('airdrop done: %s tokens to %s buyers', distributed, len(self.buyers))

    @public
    def creator_drop(self, ctx: Context) -> None:
        """Mint the creator allocation once the post-sale delay has passed."""
        if self.creator_dropped:
            raise CreatorDropAlreadyDone("Creator drop already done")
        if ctx.timestamp < self._sale_end() + CREATOR_DROP_DELAY:
            raise CreatorDropNotAvailable("Creator drop not available yet")

        self.creator_dropped = True
        self._mint(ctx, self.creator, self.creator_supply)
        logger.info('creator drop: %s tokens to %s', self.creator_supply, self.creator.hex())

    @public
    def claim(self, ctx: Context, address: Address, amount: Amount, proof: list[bytes]) -> None:
        """Mint an allowlist allocation to `address`, proven against the merkle root."""
        if ctx.timestamp <= self._sale_end():
            raise ClaimNotAvailable("Sale has not ended")
        if self.whitelist_claimed.get(address, False):
            raise TokensAlreadyClaimed("Tokens already claimed")
        if not merkle.verify_claim(address, amount, proof, self.merkle_root):
            raise InvalidProof("Invalid proof")

        self.whitelist_claimed[address] = True
        self.total_claimed += amount
        self._mint(ctx, address, amount)

    def _mint(self, ctx: Context, to: Address, amount: Amount) -> None:
        self.call_public_method(ctx, self.token, "mint", to, amount)

    def _approve(self, ctx: Context, token: ContractId, spender: ContractId, amount: Amount) -> None:
        self.call_public_method(ctx, token, "approve", spender, amount)

    def _settle(self, ctx: Context) -> None:
        """Deploy the collected assets and seed the sale token's market.

        Every stage is a precondition of the next one and is skipped when
        already reached. Any failure raises and rolls back the whole airdrop.
        """
        if self.settlement_stage < SettlementStage.COLLATERAL_SUPPLIED:
            self._supply_collateral(ctx)
            self.settlement_stage = SettlementStage.COLLATERAL_SUPPLIED

        if self.settlement_stage < SettlementStage.BORROWED:
            liquidity = self._get_borrow_capacity()
            self._borrow(ctx, Amount(liquidity - 1))
            self.settlement_stage = SettlementStage.BORROWED

        if self.settlement_stage < SettlementStage.LIQUIDITY_ADDED:
            self._add_liquidity(ctx)
            self.settlement_stage = SettlementStage.LIQUIDITY_ADDED

    def _supply_collateral(self, ctx: Context) -> None:
        for asset in self.assets:
            balance = self.call_view_method(asset, "balance_of", self.contract_id)
            if balance == 0:
                continue
            market = self.asset_to_market[asset]
            self._approve(ctx, asset, market, balance)
            try:
                status = self.call_public_method(ctx, market, "mint", balance)
            except NCFail as e:
                raise VenueError(f"Supplying {asset.hex()} failed") from e
            if status != VENUE_NO_ERROR:
                raise VenueError(f"Supplying {asset.hex()} failed with status {status}")
            logger.info('settlement: supplied %s of %s', balance, asset.hex())

    def _get_borrow_capacity(self) -> int:
        error, liquidity, shortfall = self.call_view_method(
            self.comptroller, "get_account_liquidity", self.contract_id
        )
        if error != VENUE_NO_ERROR:
            raise VenueError(f"Liquidity query failed with status {error}")
        if shortfall > 0:
            raise NegativeLiquidity(f"Account has a shortfall of {shortfall}")
        if liquidity <= 0:
            raise InsufficientCollateral("Not enough collateral")
        return liquidity

    def _borrow(self, ctx: Context, amount: Amount) -> None:
        try:
            status = self.call_public_method(ctx, self.borrow_market, "borrow", amount)
        except NCFail as e:
            raise VenueError("Borrow failed") from e
        if status != VENUE_NO_ERROR:
            raise VenueError(f"Borrow failed with status {status}")
        self.borrowed_amount = amount
        logger.info('settlement: borrowed %s of %s', amount, self.reference_asset.hex())

    def _add_liquidity(self, ctx: Context) -> None:
        reserved = self.reserved_supply
        borrowed = self.borrowed_amount
        self._mint(ctx, self.contract_id, reserved)
        self._approve(ctx, self.token, self.router, reserved)
        self._approve(ctx, self.reference_asset, self.router, borrowed)
        try:
            amount_a, amount_b, liquidity = self.call_public_method(
                ctx,
                self.router,
                "add_liquidity",
                self.token,
                self.reference_asset,
                LIQUIDITY_STABLE,
                reserved,
                borrowed,
                reserved,
                borrowed,
                self.contract_id,
                ctx.timestamp,
            )
        except NCFail as e:
            raise LiquidityAddMismatch("Couldn't add liquidity") from e
        if amount_a != reserved or amount_b != borrowed:
            raise LiquidityAddMismatch("Couldn't add liquidity")
        self.liquidity_minted = liquidity
        logger.info('settlement: added %s/%s liquidity, minted %s', reserved, borrowed, liquidity)

    @view
    def get_phase(self, timestamp: Timestamp) -> list[str]:
        """Return every phase that holds at `timestamp`."""
        end = self._sale_end()
        if timestamp < self.sale_start_time:
            return [Phase.PENDING]
        if timestamp <= end:
            return [Phase.OPEN]
        phases = [Phase.AIRDROP_ELIGIBLE]
        if not (self.airdropped or self.creator_dropped or self.whitelist_claimed):
            phases.insert(0, Phase.CLOSED)
        if timestamp >= end + CREATOR_DROP_DELAY:
            phases.append(Phase.CREATOR_ELIGIBLE)
        return phases

    @view
    def get_sale_info(self) -> LaunchPoolSaleInfo:
        return LaunchPoolSaleInfo(
            token=self.token.hex(),
            creator=self.creator.hex(),
            max_supply=self.max_supply,
            creator_supply=self.creator_supply,
            allocated_supply=self.allocated_supply,
            reserved_supply=self.reserved_supply,
            sale_start_time=self.sale_start_time,
            sale_end_time=self._sale_end(),
            ratios=list(self.ratios),
            assets=[asset.hex() for asset in self.assets],
            buyers=len(self.buyers),
            airdropped=self.airdropped,
            creator_dropped=self.creator_dropped,
            total_paid={asset.hex(): amount for asset, amount in self.total_paid.items()},
            total_claimed=self.total_claimed,
        )

    @view
    def get_buyer_info(self, address: Address) -> LaunchPoolBuyerInfo:
        return LaunchPoolBuyerInfo(
            amount=self.buyer_amount.get(address, 0),
            is_buyer=self.buyer_exists.get(address, False),
            whitelist_claimed=self.whitelist_claimed.get(address, False),
        )

    @view
    def get_settlement_info(self) -> LaunchPoolSettlementInfo:
        return LaunchPoolSettlementInfo(
            stage=self.settlement_stage,
            borrowed_amount=self.borrowed_amount,
            liquidity_minted=self.liquidity_minted,
            router=self.router.hex(),
            reference_asset=self.reference_asset.hex(),
        )

    @view
    def get_buyers(self) -> list[Address]:
        return list(self.buyers)

    @view
    def is_claimed(self, address: Address) -> bool:
        return self.whitelist_claimed.get(address, False)
