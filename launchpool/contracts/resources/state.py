# Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from twisted.web.resource import Resource

from launchpool.contracts.blueprints.launch_pool import LaunchPool
from launchpool.contracts.exception import NCContractNotFound
from launchpool.contracts.types import ADDRESS_LEN, Address, ContractId

if TYPE_CHECKING:
    from twisted.web.http import Request

    from launchpool.contracts.runner import Runner


def _parse_address(value: str) -> bytes:
    raw = bytes.fromhex(value.removeprefix('0x'))
    if len(raw) != ADDRESS_LEN:
        raise ValueError(f'address must have {ADDRESS_LEN} bytes')
    return raw


class ErrorResponse(BaseModel):
    success: bool = False
    error: str

    def json_dumpb(self) -> bytes:
        return self.model_dump_json().encode('utf-8')


class LaunchPoolStateParams(BaseModel):
    id: str
    timestamp: Optional[int] = None
    buyers: list[str] = Field(default_factory=list)

    @field_validator('id')
    @classmethod
    def _validate_id(cls, value: str) -> str:
        _parse_address(value)
        return value

    @field_validator('buyers')
    @classmethod
    def _validate_buyers(cls, values: list[str]) -> list[str]:
        for value in values:
            _parse_address(value)
        return values

    @classmethod
    def from_request(cls, request: 'Request') -> 'LaunchPoolStateParams | ErrorResponse':
        args: dict[bytes, list[bytes]] = request.args or {}
        raw: dict[str, Any] = {}
        if b'id' in args:
            raw['id'] = args[b'id'][0].decode('utf-8')
        if b'timestamp' in args:
            raw['timestamp'] = args[b'timestamp'][0].decode('utf-8')
        raw['buyers'] = [value.decode('utf-8') for value in args.get(b'buyers[]', [])]
        try:
            return cls(**raw)
        except ValidationError as e:
            return ErrorResponse(error=str(e))


class BuyerStateResponse(BaseModel):
    amount: int
    is_buyer: bool
    whitelist_claimed: bool


class LaunchPoolStateResponse(BaseModel):
    success: bool
    id: str
    timestamp: int
    phases: list[str]
    sale: dict[str, Any]
    settlement: dict[str, Any]
    buyers: dict[str, BuyerStateResponse]

    def json_dumpb(self) -> bytes:
        return self.model_dump_json().encode('utf-8')


class LaunchPoolStateResource(Resource):
    """ Implements a web server GET API to get the state of a launch pool.

    Query parameters: `id` (hex contract id), optional `timestamp` used to
    compute the phases (defaults to now) and any number of `buyers[]`.
    """
    isLeaf = True

    def __init__(self, runner: 'Runner') -> None:
        super().__init__()
        self.runner = runner

    def render_GET(self, request: 'Request') -> bytes:
        request.setHeader(b'content-type', b'application/json; charset=utf-8')
        request.setHeader(b'access-control-allow-origin', b'*')

        params = LaunchPoolStateParams.from_request(request)
        if isinstance(params, ErrorResponse):
            request.setResponseCode(400)
            return params.json_dumpb()

        pool_id = ContractId(Address(_parse_address(params.id)))
        try:
            blueprint = self.runner.get_contract(pool_id)
        except NCContractNotFound:
            request.setResponseCode(404)
            return ErrorResponse(error=f'Launch pool not found: {params.id}').json_dumpb()
        if not isinstance(blueprint, LaunchPool):
            request.setResponseCode(400)
            return ErrorResponse(error=f'Contract is not a launch pool: {params.id}').json_dumpb()

        timestamp = params.timestamp if params.timestamp is not None else int(time.time())
        buyers: dict[str, BuyerStateResponse] = {}
        for buyer_hex in params.buyers:
            info = self.runner.call_view_method(pool_id, 'get_buyer_info', Address(_parse_address(buyer_hex)))
            buyers[buyer_hex] = BuyerStateResponse(**info._asdict())

        response = LaunchPoolStateResponse(
            success=True,
            id=params.id,
            timestamp=timestamp,
            phases=self.runner.call_view_method(pool_id, 'get_phase', timestamp),
            sale=self.runner.call_view_method(pool_id, 'get_sale_info')._asdict(),
            settlement=self.runner.call_view_method(pool_id, 'get_settlement_info')._asdict(),
            buyers=buyers,
        )
        return response.json_dumpb()
