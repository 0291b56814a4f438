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
from note_tuning.optimizer import Optimizer, dropin_prefix
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import PARAMETER_REGISTRY

logger = logging.getLogger(__name__)

USER_TASKS_MAX = 'UserTasksMax'


def login_dropin() -> str:
    return f"{PARAMETER_REGISTRY[USER_TASKS_MAX]['path']}/{dropin_prefix()}-{USER_TASKS_MAX}.conf"


class LoginOptimizer(Optimizer):
    kind = 'login'
    restores_absence = True

    def inspect(self, name: str) -> Parameter:
        content = self.inspector.read(login_dropin())
        if content is None:
            return self.parameter(name, None)
        for line in content.splitlines():
            key, _, value = line.partition('=')
            if key.strip() == USER_TASKS_MAX:
                return self.parameter(name, value.strip())
        return self.parameter(name, None)

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        return param.evolve(resolved=str(param.recommended).strip())

    def write(self, name, value, revert):
        if revert and is_na(value):
            self.mutator.remove(login_dropin())
            return
        self.mutator.write_file(login_dropin(), f"[Login]\n{USER_TASKS_MAX}={value}\n")
        logger.info(f"{USER_TASKS_MAX}={value} takes effect for new logins")
