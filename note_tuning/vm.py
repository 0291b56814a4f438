#
# Copyright (c) 2019 Matthias Tafelmeier.
#
# This file is part of godon
#
# godon is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as
# published by the Free Software Foundation, either version 3 of the
# License, or (at your option) any later version.
#
# godon is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this godon. If not, see <http://www.gnu.org/licenses/>.
#

import logging
from typing import Mapping

from note_tuning.optimizer import Optimizer
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import PARAMETER_REGISTRY

logger = logging.getLogger(__name__)


def reconcile_vm(name: str, recommended: str) -> str:
    """Accept whitelisted switch values, fall back otherwise. Unknown switches pass through."""
    metadata = PARAMETER_REGISTRY.get(name, {})
    if metadata.get('kind') != 'vm':
        return recommended
    if recommended in metadata['available_values']:
        return recommended
    logger.warning(f"{name}: '{recommended}' not one of {metadata['available_values']}, "
                   f"using '{metadata['fallback']}'")
    return metadata['fallback']


class VMOptimizer(Optimizer):
    kind = 'vm'

    def inspect(self, name: str) -> Parameter:
        value = self.inspector.read(PARAMETER_REGISTRY[name]['path'])
        if value is not None and '[' in value:
            # always [madvise] never
            value = next(token.strip('[]') for token in value.split() if token.startswith('['))
        return self.parameter(name, value)

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        return param.evolve(resolved=reconcile_vm(param.name, param.recommended))

    def write(self, name, value, revert):
        self.write_entry(PARAMETER_REGISTRY[name]['path'], value, revert)
