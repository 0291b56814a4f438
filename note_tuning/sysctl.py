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
import os
from typing import Mapping

from note_tuning.operators import Operator, is_na
from note_tuning.optimizer import Optimizer
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import SYSCTL_KIND

logger = logging.getLogger(__name__)


def sysctl_path(name: str) -> str:
    return os.path.join('proc/sys', name.replace('.', '/'))


def reconcile_sysctl(operator: Operator, name: str, current, recommended) -> str:
    """
    Reconcile a kernel setting holding a number or a tuple of numbers.

    Returns the recommended values joined with tabs, or '' if the current
    value is unknown or the tuples differ in length ('' must not be written).
    Each operator adopts the recommendation when a single note decides.
    """
    current_values = [] if is_na(current) or current is None else str(current).split()
    recommended_values = str(recommended).split()

    if not current_values:
        logger.warning(f"{name}: current value unknown, skipping reconciliation")
        return ''
    if len(current_values) != len(recommended_values):
        logger.warning(f"{name}: recommended '{recommended}' has {len(recommended_values)} fields, "
                       f"system reports {len(current_values)}")
        return ''

    logger.debug(f"{name}: operator '{operator.value}' adopts '{recommended}'")
    return '\t'.join(recommended_values)


class SysctlOptimizer(Optimizer):
    kind = SYSCTL_KIND

    def inspect(self, name: str) -> Parameter:
        return self.parameter(name, self.inspector.read_sysctl(name))

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        resolved = reconcile_sysctl(param.operator, param.name, param.current, param.recommended)
        return param.evolve(resolved=resolved)

    def write(self, name, value, revert):
        self.write_entry(sysctl_path(name), value, revert)
