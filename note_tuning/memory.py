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

from note_tuning.operators import is_na
from note_tuning.optimizer import Optimizer, require_int
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import PARAMETER_REGISTRY

logger = logging.getLogger(__name__)

TMPFS_PERCENT = 'VSZ_TMPFS_PERCENT'
SHM_SIZE = 'ShmFileSystemSizeMB'
# /dev/shm is not mounted
ABSENT = '-1'
DEFAULT_TMPFS_PERCENT = int(PARAMETER_REGISTRY[TMPFS_PERCENT]['default'])


def reconcile_memory(name: str, current: str, override: str, percent: str, total_mem_mb: int) -> str:
    """
    Reconcile the /dev/shm sizing parameters.

    Args:
        name: VSZ_TMPFS_PERCENT or ShmFileSystemSizeMB
        current: Current value, '-1' if /dev/shm is absent
        override: Recommended value; for the size '0' means unset
        percent: Percentage of total memory to size /dev/shm with, '0' for the default
        total_mem_mb: Total system memory in MB

    Returns:
        The value to write, '' for unknown names
    """
    if name == TMPFS_PERCENT:
        return override
    if name != SHM_SIZE:
        return ''

    if current == ABSENT:
        return ABSENT
    if str(override).strip() not in ('', '0'):
        return str(override).strip()

    percent = str(percent).strip()
    if percent in ('', '0'):
        share = DEFAULT_TMPFS_PERCENT
    elif percent.isdigit():
        share = int(percent)
    else:
        logger.warning(f"{TMPFS_PERCENT}: '{percent}' is not a number, using {DEFAULT_TMPFS_PERCENT}")
        share = DEFAULT_TMPFS_PERCENT
    return str(total_mem_mb * share // 100)


class MemoryOptimizer(Optimizer):
    kind = 'memory'

    def inspect(self, name: str) -> Parameter:
        total = self.inspector.total_memory_mb()
        size = self.inspector.shm_size_mb()
        if size is None:
            current = ABSENT
        elif name == TMPFS_PERCENT:
            current = str(size * 100 // total) if total else ABSENT
        else:
            current = str(size)
        return self.parameter(name, current, facts={'total_mem_mb': total})

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        resolved = reconcile_memory(param.name,
                                    param.current,
                                    param.recommended,
                                    note.get(TMPFS_PERCENT, '0'),
                                    param.facts.get('total_mem_mb', 0))
        return param.evolve(resolved=resolved)

    def write(self, name, value, revert):
        if name == TMPFS_PERCENT:
            logger.debug(f"{TMPFS_PERCENT} only sizes {SHM_SIZE}, nothing to write")
            return
        if is_na(value) or str(value) in (ABSENT, ''):
            logger.info(f"{name}: /dev/shm not available, nothing to write")
            return
        if revert and self.inspector.shm_size_mb() is None:
            logger.info(f"{name}: /dev/shm no longer mounted, nothing to revert")
            return
        self.mutator.remount_shm(require_int(name, value))
