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


class NCFail(Exception):
    """Raised when a contract call fails. The whole call is rolled back."""
    pass


class NCMethodNotFound(NCFail):
    """Raised when the method does not exist or has the wrong type."""
    pass


class NCContractNotFound(NCFail):
    """Raised when the contract id is not registered in the runner."""
    pass


class NCContractAlreadyExists(NCFail):
    """Raised when creating a contract with an id that is already taken."""
    pass


class NCReentrancyError(NCFail):
    """Raised when a contract is called while it is already executing."""
    pass
