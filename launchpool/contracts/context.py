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

from dataclasses import dataclass

from launchpool.contracts.types import Address, Timestamp


@dataclass(frozen=True)
class Context:
    """Caller and block time of a contract call.

    Nested calls made by a contract receive a new context with the calling
    contract as `caller_id` and the same timestamp as the outer call.
    """

    caller_id: Address
    timestamp: Timestamp

    @property
    def address(self) -> Address:
        return self.caller_id
