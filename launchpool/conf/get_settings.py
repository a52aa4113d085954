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

import importlib
import os
from typing import Optional

from launchpool.conf.settings import LaunchPoolSettings

CONFIG_FILE_ENV = 'LAUNCHPOOL_CONFIG_FILE'
DEFAULT_CONFIG_FILE = 'launchpool.conf.testnet'

_settings: Optional[LaunchPoolSettings] = None
_config_file: Optional[str] = None


def get_settings() -> LaunchPoolSettings:
    """Return the settings of the module named by `LAUNCHPOOL_CONFIG_FILE`.

    The module must define a `SETTINGS` attribute. The result is cached; the
    environment variable cannot change once settings were loaded.
    """
    global _settings, _config_file
    config_file = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
    if _settings is not None:
        if config_file != _config_file:
            raise RuntimeError(f'settings already loaded from {_config_file}, cannot switch to {config_file}')
        return _settings

    module = importlib.import_module(config_file)
    settings = getattr(module, 'SETTINGS', None)
    if not isinstance(settings, LaunchPoolSettings):
        raise TypeError(f'{config_file}.SETTINGS must be a LaunchPoolSettings instance')
    _settings, _config_file = settings, config_file
    return settings
