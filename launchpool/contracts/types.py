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

from typing import Any, Callable, NewType, TypeVar

ADDRESS_LEN = 20

Address = NewType('Address', bytes)
ContractId = NewType('ContractId', Address)
Amount = NewType('Amount', int)
Timestamp = NewType('Timestamp', int)

NC_METHOD_TYPE_ATTR = '_nc_method_type'

T = TypeVar('T', bound=Callable[..., Any])


class NCMethodType:
    PUBLIC = 'public'
    VIEW = 'view'


def public(fn: T) -> T:
    """Mark a blueprint method as callable through `Runner.call_public_method`."""
    setattr(fn, NC_METHOD_TYPE_ATTR, NCMethodType.PUBLIC)
    return fn


def view(fn: T) -> T:
    """Mark a blueprint method as a read-only view."""
    setattr(fn, NC_METHOD_TYPE_ATTR, NCMethodType.VIEW)
    return fn


def is_valid_address(value: Any) -> bool:
    return isinstance(value, bytes) and len(value) == ADDRESS_LEN
