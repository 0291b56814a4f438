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

from note_tuning.operators import NA, is_na
from note_tuning.optimizer import Optimizer
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import PREFIX_REGISTRY, scoped_suffix

logger = logging.getLogger(__name__)

SERVICE_PREFIX = 'systemd:'
SERVICE_STATES = tuple(PREFIX_REGISTRY[SERVICE_PREFIX]['available_values'])


# required by other services, a note may not stop it
KEEP_RUNNING = ('uuidd.socket',)


def reconcile_service(name: str, current, recommended: str):
    """Accept 'start' or 'stop'; anything else keeps the current state. Unknown units stay NA."""
    if is_na(current):
        return NA
    unit = scoped_suffix(name) or name
    if unit in KEEP_RUNNING:
        if recommended != 'start':
            logger.warning(f"{name}: {unit} must keep running, ignoring '{recommended}'")
        return 'start'
    if recommended in SERVICE_STATES:
        return recommended
    logger.warning(f"{name}: '{recommended}' is neither start nor stop, keeping '{current}'")
    return current


class ServiceOptimizer(Optimizer):
    kind = 'service'

    def inspect(self, name: str) -> Parameter:
        unit = self.inspector.unit_name(scoped_suffix(name))
        if unit is None:
            logger.debug(f"{name}: unit unknown to systemd")
            return self.parameter(name, None)
        state = 'start' if self.inspector.unit_active(unit) else 'stop'
        return self.parameter(name, state, facts={'unit': unit})

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        return param.evolve(resolved=reconcile_service(param.name, param.current, param.recommended))

    def write(self, name, value, revert):
        unit = self.inspector.unit_name(scoped_suffix(name))
        if unit is None:
            logger.info(f"{name}: unit no longer known to systemd, nothing to {'revert' if revert else 'apply'}")
            return

        running = self.inspector.system_running()
        if value == 'start':
            self.mutator.systemctl('enable', unit)
            if running:
                self.mutator.systemctl('start', unit)
        elif value == 'stop':
            self.mutator.systemctl('disable', unit)
            if running:
                self.mutator.systemctl('stop', unit)
        else:
            logger.warning(f"{name}: unknown service state '{value}', not applied")
            return
        if not running:
            logger.info(f"{name}: system not running, '{value}' of {unit} takes effect at next boot")
