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
from typing import Mapping, Optional

from note_tuning.instance_map import ALL, collapse_instances, fill_instances, format_instances, parse_instances
from note_tuning.operators import NA, is_na
from note_tuning.optimizer import Optimizer, require_int
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import PARAMETER_REGISTRY
from note_tuning.values import max_value
from reconnaissance.host import CPU_DIR

logger = logging.getLogger(__name__)

ENERGY_PERF_BIAS = 'energy_perf_bias'
GOVERNOR = 'governor'
FORCE_LATENCY = 'force_latency'


def _bias_code(policy: str) -> str:
    metadata = PARAMETER_REGISTRY[ENERGY_PERF_BIAS]
    return metadata['value_codes'].get(policy, metadata['fallback'])


def reconcile_cpu(name: str, current, recommended: str):
    """
    Reconcile a per-CPU power setting.

    energy_perf_bias maps the policy name to its numeric code and governor
    takes the recommendation literally, both written into every instance of
    the current map. force_latency adopts the recommendation as is.

    A per-CPU recommendation ('cpu0:performance cpu1:normal') is mapped
    entry by entry when the host reports per-CPU bias values, otherwise
    it is adopted verbatim.
    """
    if name == FORCE_LATENCY:
        return recommended
    if is_na(current) or not current:
        return NA

    if ':' in str(recommended):
        if name == ENERGY_PERF_BIAS and not str(current).startswith(f"{ALL}:"):
            return format_instances([(cpu, _bias_code(policy)) for cpu, policy in parse_instances(recommended)])
        return recommended

    if name == ENERGY_PERF_BIAS:
        return fill_instances(current, _bias_code(recommended))
    if name == GOVERNOR:
        return fill_instances(current, recommended)
    return recommended


class CPUOptimizer(Optimizer):
    kind = 'cpu'

    def idle_states(self, cpu: str):
        base = os.path.join(CPU_DIR, cpu, 'cpuidle')
        return [os.path.join(base, state) for state in self.inspector.listdir(base) if state.startswith('state')]

    def _force_latency(self) -> Optional[str]:
        latencies = []
        found = False
        for cpu in self.inspector.cpus():
            for state in self.idle_states(cpu):
                found = True
                if self.inspector.read(os.path.join(state, 'disable')) == '1':
                    continue
                latency = self.inspector.read(os.path.join(state, 'latency'))
                if latency is not None:
                    latencies.append(int(latency))
        return str(max_value(*latencies)) if found else None

    def inspect(self, name: str) -> Parameter:
        if name == FORCE_LATENCY:
            return self.parameter(name, self._force_latency())

        path = PARAMETER_REGISTRY[name]['path']
        values = {}
        for cpu in self.inspector.cpus():
            value = self.inspector.read_cpu(cpu, path)
            if value is not None:
                values[cpu] = value
        return self.parameter(name, collapse_instances(values) or None)

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        return param.evolve(resolved=reconcile_cpu(param.name, param.current, param.recommended))

    def write(self, name, value, revert):
        if name == FORCE_LATENCY:
            self._write_force_latency(require_int(name, value), revert)
            return

        path = PARAMETER_REGISTRY[name]['path']
        # a bare value applies to every cpu
        entries = parse_instances(value) if ':' in str(value) else [(ALL, str(value))]
        for key, setting in entries:
            cpus = self.inspector.cpus() if key == ALL else [key]
            for cpu in cpus:
                self.write_entry(os.path.join(CPU_DIR, cpu, path), setting, revert)

    def _write_force_latency(self, limit: int, revert: bool):
        for cpu in self.inspector.cpus():
            for state in self.idle_states(cpu):
                latency = self.inspector.read(os.path.join(state, 'latency'))
                if latency is None:
                    continue
                disable = '1' if int(latency) > limit else '0'
                self.write_entry(os.path.join(state, 'disable'), disable, revert)
