"""Allowlist commitments.

An allowlist is a set of `(address, amount)` pairs committed to a single
32-byte Merkle root. Leaves are double hashed:

    leaf = keccak(keccak(abi.encode(address, uint256 amount)))

and parents combine their children in sorted order, so a proof is just the
list of sibling hashes from the leaf up to the root, without positions.
"""

import csv
from itertools import zip_longest
from typing import Iterable, Optional

from eth_abi import encode
from eth_utils import keccak, to_canonical_address, to_checksum_address

from launchpool.conf import get_settings
from launchpool.contracts.types import is_valid_address

MAX_UINT256 = 2**256 - 1


def leaf_hash(address: bytes, amount: int) -> bytes:
    return keccak(keccak(encode(['address', 'uint256'], [to_checksum_address(address), amount])))


def combined_hash(a: bytes, b: Optional[bytes]) -> bytes:
    if b is None:
        return a
    return keccak(b''.join(sorted([a, b])))


def process_proof(leaf: bytes, proof: Iterable[bytes]) -> bytes:
    computed = leaf
    for sibling in proof:
        computed = combined_hash(computed, sibling)
    return computed


def verify_claim(address: bytes, amount: int, proof: Iterable[bytes], root: bytes) -> bool:
    """Check that `(address, amount)` is a member of the set committed to by `root`."""
    if not is_valid_address(address):
        return False
    if not 0 <= amount <= MAX_UINT256:
        return False
    proof = list(proof)
    if any(not isinstance(node, bytes) or len(node) != 32 for node in proof):
        return False
    return process_proof(leaf_hash(address, amount), proof) == root


class MerkleTree:
    """Tree over an allowlist, used to publish its root and hand out proofs."""

    def __init__(self, allocations: dict[bytes, int]) -> None:
        if not allocations:
            raise ValueError('allowlist is empty')
        self.allocations = dict(allocations)
        self.elements = sorted(set(leaf_hash(address, amount) for address, amount in allocations.items()))
        self.layers = MerkleTree.get_layers(self.elements)

    @property
    def root(self) -> bytes:
        return self.layers[-1][0]

    def get_proof(self, address: bytes) -> list[bytes]:
        if address not in self.allocations:
            raise KeyError(f'address not in allowlist: {address.hex()}')
        idx = self.elements.index(leaf_hash(address, self.allocations[address]))
        proof = []
        for layer in self.layers:
            pair_idx = idx + 1 if idx % 2 == 0 else idx - 1
            if pair_idx < len(layer):
                proof.append(layer[pair_idx])
            idx //= 2
        return proof

    @staticmethod
    def get_layers(elements: list[bytes]) -> list[list[bytes]]:
        layers = [elements]
        while len(layers[-1]) > 1:
            layers.append(MerkleTree.get_next_layer(layers[-1]))
        return layers

    @staticmethod
    def get_next_layer(elements: list[bytes]) -> list[bytes]:
        return [combined_hash(a, b) for a, b in zip_longest(elements[::2], elements[1::2])]


def load_allowlist(path: str, skip_header: bool = True) -> dict[bytes, int]:
    """Read an `address,amount` CSV. Amounts of repeated addresses are added up."""
    delimiter = get_settings().ALLOWLIST_CSV_DELIMITER
    allocations: dict[bytes, int] = {}
    with open(path, newline='') as csv_file:
        for i, row in enumerate(csv.reader(csv_file, delimiter=delimiter)):
            if skip_header and i == 0:
                continue
            if not row:
                continue
            address_hex, amount_str = (field.strip() for field in row[:2])
            address = to_canonical_address(address_hex)
            amount = int(amount_str)
            if amount <= 0:
                raise ValueError(f'line {i + 1}: amount must be positive')
            allocations[address] = allocations.get(address, 0) + amount
    return allocations
