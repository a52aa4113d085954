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

from pydantic import BaseModel, ConfigDict, model_validator

DAY_IN_SECONDS = 24 * 60 * 60


class LaunchPoolSettings(BaseModel):
    """Deployment-wide parameters of the launch pool blueprints."""

    model_config = ConfigDict(frozen=True)

    # Name of the deployment, used only for display.
    NETWORK_NAME: str

    # Delay after the sale ends before the creator allocation can be minted.
    CREATOR_DROP_DELAY: int = 180 * DAY_IN_SECONDS

    # Maximum number of accepted asset slots per launch pool.
    MAX_ACCEPTED_ASSETS: int = 5

    # Factory bounds, checked before a launch pool is created.
    MIN_TOTAL_SUPPLY: int = 1_000
    MIN_CREATOR_SUPPLY_BP: int = 100  # 1% of max supply
    MAX_CREATOR_ALLOCATED_BP: int = 5_000  # 50% of max supply
    MIN_SALE_DURATION: int = DAY_IN_SECONDS
    MAX_SALE_DURATION: int = 30 * DAY_IN_SECONDS

    # Pool type requested from the liquidity router during settlement.
    LIQUIDITY_STABLE: bool = False

    # Liquidity locked forever on the first deposit into a router pool.
    MINIMUM_LIQUIDITY: int = 1_000

    # Fixed point precision of lending venue prices.
    PRICE_PRECISION: int = 10**18

    BASIS_POINTS: int = 10_000

    ALLOWLIST_CSV_DELIMITER: str = ','

    @model_validator(mode='after')
    def _check_bounds(self) -> 'LaunchPoolSettings':
        if self.MIN_SALE_DURATION > self.MAX_SALE_DURATION:
            raise ValueError('MIN_SALE_DURATION must not exceed MAX_SALE_DURATION')
        if not 0 <= self.MIN_CREATOR_SUPPLY_BP <= self.MAX_CREATOR_ALLOCATED_BP <= self.BASIS_POINTS:
            raise ValueError('creator supply bounds must be within [0, BASIS_POINTS]')
        if self.MAX_ACCEPTED_ASSETS < 1:
            raise ValueError('MAX_ACCEPTED_ASSETS must be positive')
        return self
