from launchpool.contracts.blueprint import Blueprint
from launchpool.contracts.context import Context
from launchpool.contracts.exception import NCFail
from launchpool.contracts.types import Address, Amount, public, view


class Unauthorized(NCFail):
    """Raised when an address other than the minter tries to mint."""

    pass


class InvalidAmount(NCFail):
    """Raised when a negative amount is given."""

    pass


class InsufficientBalance(NCFail):
    """Raised when a transfer exceeds the sender's balance."""

    pass


class Token(Blueprint):
    """Fungible token with a single minter.

    `transfer_from` reports failure by returning False instead of raising,
    callers decide whether a failed pull is fatal.
    """

    name: str
    symbol: str
    minter: Address
    total_supply: Amount
    balances: dict[Address, Amount]
    allowances: dict[Address, dict[Address, Amount]]  # owner -> spender -> amount

    @public
    def initialize(self, ctx: Context, name: str, symbol: str, minter: Address) -> None:
        if not name or not symbol:
            raise NCFail("Name and symbol are required")
        self.name = name
        self.symbol = symbol
        self.minter = minter
        self.total_supply = Amount(0)
        self.balances = {}
        self.allowances = {}

    @public
    def mint(self, ctx: Context, to: Address, amount: Amount) -> None:
        if ctx.address != self.minter:
            raise Unauthorized("Only the minter can mint")
        if amount < 0:
            raise InvalidAmount("Mint amount must not be negative")
        self.balances[to] = self.balances.get(to, 0) + amount
        self.total_supply += amount

    @public
    def transfer(self, ctx: Context, to: Address, amount: Amount) -> None:
        if amount < 0:
            raise InvalidAmount("Transfer amount must not be negative")
        if self.balances.get(ctx.address, 0) < amount:
            raise InsufficientBalance("Insufficient balance")
        self._move(ctx.address, to, amount)

    @public
    def approve(self, ctx: Context, spender: Address, amount: Amount) -> None:
        if amount < 0:
            raise InvalidAmount("Allowance must not be negative")
        spender_allowances = self.allowances.get(ctx.address, {})
        spender_allowances[spender] = amount
        self.allowances[ctx.address] = spender_allowances

    @public
    def transfer_from(self, ctx: Context, owner: Address, to: Address, amount: Amount) -> bool:
        """Move `amount` from `owner` to `to` using the caller's allowance."""
        if amount < 0:
            return False
        allowed = self.allowances.get(owner, {}).get(ctx.address, 0)
        if allowed < amount or self.balances.get(owner, 0) < amount:
            return False
        self.allowances.setdefault(owner, {})[ctx.address] = allowed - amount
        self._move(owner, to, amount)
        return True

    def _move(self, sender: Address, to: Address, amount: Amount) -> None:
        self.balances[sender] = self.balances.get(sender, 0) - amount
        self.balances[to] = self.balances.get(to, 0) + amount

    @view
    def balance_of(self, address: Address) -> Amount:
        return Amount(self.balances.get(address, 0))

    @view
    def allowance(self, owner: Address, spender: Address) -> Amount:
        return Amount(self.allowances.get(owner, {}).get(spender, 0))

    @view
    def get_total_supply(self) -> Amount:
        return self.total_supply
