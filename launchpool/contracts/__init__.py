from launchpool.contracts.blueprint import Blueprint
from launchpool.contracts.context import Context
from launchpool.contracts.exception import NCFail
from launchpool.contracts.runner import Runner
from launchpool.contracts.types import Address, Amount, ContractId, Timestamp, public, view

__all__ = [
    'Address',
    'Amount',
    'Blueprint',
    'Context',
    'ContractId',
    'NCFail',
    'Runner',
    'Timestamp',
    'public',
    'view',
]
