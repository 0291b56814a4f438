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
from typing import Mapping, Tuple

from note_tuning.errors import UnknownParameterError
from note_tuning.operators import NA_MARKER, is_na
from note_tuning.optimizer import Optimizer, dropin_prefix
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import PREFIX_REGISTRY, scoped_suffix

logger = logging.getLogger(__name__)

LIMITS_PREFIX = 'LIMIT_'
LIMITS_DIR = PREFIX_REGISTRY[LIMITS_PREFIX]['path']


def split_limit_name(name: str) -> Tuple[str, str, str]:
    """'LIMIT_@sdba_soft_nofile' -> ('@sdba', 'soft', 'nofile')"""
    fields = scoped_suffix(name).rsplit('_', 2)
    if len(fields) != 3 or not all(fields):
        raise UnknownParameterError(f"{name}: expected LIMIT_<domain>_<type>_<item>", parameter=name)
    return fields[0], fields[1], fields[2]


def limits_dropin(name: str) -> str:
    domain, limit_type, item = split_limit_name(name)
    return f"{LIMITS_DIR}/{dropin_prefix()}-{domain}-{limit_type}-{item}.conf"


def reconcile_limits(current, recommended: str):
    """Adopt the recommended limits line unless its value is the NA marker"""
    fields = str(recommended).split()
    if fields and fields[-1] == NA_MARKER:
        return current
    return ' '.join(fields)


class LimitsOptimizer(Optimizer):
    kind = 'limits'
    restores_absence = True

    def inspect(self, name: str) -> Parameter:
        try:
            domain, limit_type, item = split_limit_name(name)
        except UnknownParameterError as e:
            logger.warning(f"{e}, reporting it as undeterminable")
            return self.parameter(name, None, supported=False)
        content = self.inspector.read(limits_dropin(name)) or ''
        for line in content.splitlines():
            fields = line.split()
            if len(fields) == 4 and fields[:3] == [domain, limit_type, item]:
                return self.parameter(name, ' '.join(fields))
        return self.parameter(name, None)

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        return param.evolve(resolved=reconcile_limits(param.current, param.recommended))

    def write(self, name, value, revert):
        dropin = limits_dropin(name)
        if revert and is_na(value):
            # no override existed before the note
            self.mutator.remove(dropin)
            return
        content = f"# created by godon note tuning, do not edit\n{value}\n"
        self.mutator.write_file(dropin, content)
