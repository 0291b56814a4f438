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

"""
Unit tests for the per-CPU power kind

Reconciliation is tested on plain strings, inspect and apply against a
fake sysfs tree below tmp_path.
"""

import pytest

from note_tuning.cpu import reconcile_cpu
from note_tuning.operators import NA

CPU = 'sys/devices/system/cpu'


class TestEnergyPerfBias:
    """Test symbolic policy to code mapping"""

    def test_performance_fills_every_instance(self):
        assert reconcile_cpu('energy_perf_bias', 'all:15', 'performance') == 'all:0'
        assert reconcile_cpu('energy_perf_bias', 'cpu0:15 cpu1:6 cpu2:0', 'performance') == 'cpu0:0 cpu1:0 cpu2:0'

    @pytest.mark.parametrize("policy,code", [
        ('normal', '6'),
        ('powersave', '15'),
        ('unknown', '0'),
    ])
    def test_policy_codes(self, policy, code):
        assert reconcile_cpu('energy_perf_bias', 'all:15', policy) == f'all:{code}'

    def test_per_cpu_recommendation_on_per_cpu_host(self):
        result = reconcile_cpu('energy_perf_bias', 'cpu0:6 cpu1:6 cpu2:6', 'cpu0:performance cpu1:normal cpu2:powersave')
        assert result == 'cpu0:0 cpu1:6 cpu2:15'

    def test_per_cpu_recommendation_on_uniform_host(self):
        result = reconcile_cpu('energy_perf_bias', 'all:6', 'cpu0:performance cpu1:normal cpu2:powersave')
        assert result == 'cpu0:performance cpu1:normal cpu2:powersave'

    def test_undeterminable_current(self):
        assert reconcile_cpu('energy_perf_bias', NA, 'performance') is NA
        assert reconcile_cpu('governor', '', 'performance') is NA


class TestGovernorAndLatency:
    """Test governor passthrough and latency hint"""

    def test_governor_fills_every_instance(self):
        assert reconcile_cpu('governor', 'all:powersave', 'performance') == 'all:performance'
        result = reconcile_cpu('governor', 'cpu0:powersave cpu1:performance cpu2:powersave', 'performance')
        assert result == 'cpu0:performance cpu1:performance cpu2:performance'

    def test_force_latency_adopts_recommendation(self):
        assert reconcile_cpu('force_latency', '1000', '70') == '70'
        assert reconcile_cpu('force_latency', NA, '70') == '70'


def _cpu_tree(system_root, biases, latencies=()):
    for index, bias in enumerate(biases):
        system_root.write(f'{CPU}/cpu{index}/power/energy_perf_bias', f'{bias}\n')
        for state, latency in enumerate(latencies):
            system_root.write(f'{CPU}/cpu{index}/cpuidle/state{state}/latency', f'{latency}\n')
            system_root.write(f'{CPU}/cpu{index}/cpuidle/state{state}/disable', '0\n')


class TestCPUInspectApply:
    """Test the CPU kind against a fake sysfs"""

    def test_inspect_collapses_identical_values(self, engine, system_root):
        _cpu_tree(system_root, ['6', '6'])
        system_root.write(f'{CPU}/cpufreq/boost', '1')

        param = engine.inspect('energy_perf_bias')

        assert param.kind == 'cpu'
        assert param.current == 'all:6'

    def test_inspect_lists_cpus_in_numeric_order(self, engine, system_root):
        _cpu_tree(system_root, ['0'] * 10 + ['15'])

        param = engine.inspect('energy_perf_bias')

        assert param.current.startswith('cpu0:0 cpu1:0 cpu2:0')
        assert param.current.endswith('cpu9:0 cpu10:15')

    def test_inspect_without_cpufreq_is_undeterminable(self, engine, system_root):
        _cpu_tree(system_root, ['6'])

        param = engine.inspect('governor')

        assert param.current is NA
        assert engine.optimise(param, 'performance').applicable is False

    def test_apply_all_writes_every_cpu(self, engine, system_root):
        _cpu_tree(system_root, ['6', '15'])

        param = engine.tune('energy_perf_bias', 'performance', write=True)

        assert param.resolved == 'cpu0:0 cpu1:0'
        assert system_root.read(f'{CPU}/cpu0/power/energy_perf_bias') == '0'
        assert system_root.read(f'{CPU}/cpu1/power/energy_perf_bias') == '0'

    def test_revert_restores_per_cpu_values(self, engine, system_root):
        _cpu_tree(system_root, ['6', '15'])

        engine.apply('energy_perf_bias', 'all:0')
        engine.apply('energy_perf_bias', 'cpu0:6 cpu1:15', revert=True)

        assert system_root.read(f'{CPU}/cpu0/power/energy_perf_bias') == '6'
        assert system_root.read(f'{CPU}/cpu1/power/energy_perf_bias') == '15'

    def test_force_latency_inspect_uses_highest_enabled_state(self, engine, system_root):
        _cpu_tree(system_root, ['6', '6'], latencies=[0, 2, 70])

        assert engine.inspect('force_latency').current == '70'

    def test_force_latency_without_idle_states(self, engine, system_root):
        _cpu_tree(system_root, ['6'])

        assert engine.inspect('force_latency').current is NA

    def test_force_latency_apply_disables_deeper_states(self, engine, system_root):
        _cpu_tree(system_root, ['6'], latencies=[0, 2, 70])

        engine.apply('force_latency', '10')

        assert system_root.read(f'{CPU}/cpu0/cpuidle/state0/disable') == '0'
        assert system_root.read(f'{CPU}/cpu0/cpuidle/state1/disable') == '0'
        assert system_root.read(f'{CPU}/cpu0/cpuidle/state2/disable') == '1'
        assert engine.inspect('force_latency').current == '2'
