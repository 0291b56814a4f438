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
from note_tuning.parameter_registry import scoped_suffix

logger = logging.getLogger(__name__)


class BootParameterOptimizer(Optimizer):
    """Kernel command line parameters need a boot loader update and a reboot"""

    kind = 'grub'

    def inspect(self, name: str) -> Parameter:
        return self.parameter(name, self.inspector.kernel_cmdline().get(scoped_suffix(name)))

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        return param.evolve(resolved=param.recommended)

    def write(self, name, value, revert):
        logger.info(f"{name}: add '{scoped_suffix(name)}={value}' to the boot loader "
                    f"configuration, effective after reboot")
