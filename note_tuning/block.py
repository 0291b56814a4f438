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
from typing import Iterable, Mapping, Tuple

from note_tuning.operators import NA, is_na
from note_tuning.optimizer import Optimizer
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import PREFIX_REGISTRY, scoped_suffix

logger = logging.getLogger(__name__)

SCHEDULER_PREFIX = 'IO_SCHEDULER_'
NRREQ_PREFIX = 'NRREQ_'
DEFAULT_NR_REQUESTS = PREFIX_REGISTRY[NRREQ_PREFIX]['default']


def parse_scheduler_line(line: str) -> Tuple[str, Tuple[str, ...]]:
    """Split 'none [mq-deadline] kyber' into the active and the available schedulers"""
    tokens = line.split()
    available = tuple(token.strip('[]') for token in tokens)
    current = next((token.strip('[]') for token in tokens if token.startswith('[')), '')
    if not current and available:
        current = available[0]
    return current, available


def select_scheduler(recommended: str, available: Iterable[str]) -> Tuple[str, bool]:
    """
    Pick the first scheduler of a comma separated preference list the device offers.

    Returns:
        (scheduler, supported). Without a match the first candidate is returned
        with supported False.
    """
    candidates = [candidate.strip() for candidate in str(recommended).split(',') if candidate.strip()]
    offered = {scheduler.strip().lower() for scheduler in available}

    for candidate in candidates:
        if candidate.lower() in offered:
            return candidate, True

    first = candidates[0] if candidates else str(recommended).strip()
    return first, False


def reconcile_nr_requests(recommended: str) -> str:
    value = str(recommended).strip()
    return DEFAULT_NR_REQUESTS if value == '0' else value


def queue_path(device: str, attribute: str) -> str:
    return f"sys/block/{device}/queue/{attribute}"


class BlockDeviceOptimizer(Optimizer):
    kind = 'block'

    def inspect(self, name: str) -> Parameter:
        device = scoped_suffix(name)
        if name.startswith(SCHEDULER_PREFIX):
            line = self.inspector.read(queue_path(device, 'scheduler'))
            if line is None:
                return self.parameter(name, None)
            current, available = parse_scheduler_line(line)
            return self.parameter(name, current, choices=available)
        return self.parameter(name, self.inspector.read(queue_path(device, 'nr_requests')))

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        if is_na(param.current):
            logger.debug(f"{param.name}: device not present")
            return param.evolve(resolved=NA)
        if param.name.startswith(SCHEDULER_PREFIX):
            scheduler, supported = select_scheduler(param.recommended, param.choices)
            if not supported:
                logger.warning(f"{param.name}: scheduler '{scheduler}' not supported by the device "
                               f"(available: {', '.join(param.choices) or 'none'})")
            return param.evolve(resolved=scheduler, supported=supported)
        return param.evolve(resolved=reconcile_nr_requests(param.recommended))

    def write(self, name, value, revert):
        device = scoped_suffix(name)
        attribute = 'scheduler' if name.startswith(SCHEDULER_PREFIX) else 'nr_requests'
        self.write_entry(queue_path(device, attribute), value, revert)
