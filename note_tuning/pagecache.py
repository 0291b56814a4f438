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
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Tuple

from note_tuning.optimizer import Optimizer
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import PARAMETER_REGISTRY
from note_tuning.sysctl import sysctl_path

logger = logging.getLogger(__name__)

ENABLE = 'ENABLE_PAGECACHE_LIMIT'
IGNORE_DIRTY = 'vm.pagecache_limit_ignore_dirty'
OVERRIDE = 'OVERRIDE_PAGECACHE_LIMIT_MB'
LIMIT_SYSCTL = 'vm.pagecache_limit_mb'
AUTO_PERCENT = PARAMETER_REGISTRY[OVERRIDE]['auto_percent']


def read_settings_file(path: str) -> Dict[str, str]:
    """Read KEY=value lines, ignoring comments and section headers"""
    values = {}
    with open(path) as handle:
        for line in handle:
            line = line.strip()
            if not line or line.startswith(('#', '[')) or '=' not in line:
                continue
            key, _, value = line.partition('=')
            values[key.strip()] = value.strip().strip('"')
    return values


@dataclass(frozen=True)
class PagecacheSettings:
    """
    Pagecache limit configuration, loaded once per run.

    Reconciliation returns an updated copy instead of changing it in place.
    No limit is set unless enabled, either by the settings file or by the
    note's ENABLE_PAGECACHE_LIMIT.
    """

    limit_mb: int = 0
    ignore_dirty: int = 1
    use_algorithm: bool = False
    enabled: bool = False

    @classmethod
    def load(cls, path: str, use_algorithm: bool = True) -> 'PagecacheSettings':
        try:
            values = read_settings_file(path)
        except FileNotFoundError:
            logger.warning(f"Pagecache settings {path} not found, pagecache limit disabled")
            return cls(use_algorithm=use_algorithm)

        if values.get(ENABLE, 'no').lower() != 'yes':
            logger.info("Pagecache limit disabled by settings")
            return cls(use_algorithm=use_algorithm)

        ignore_dirty = values.get('PAGECACHE_LIMIT_IGNORE_DIRTY', '1')
        override = values.get(OVERRIDE, '')
        return cls(limit_mb=int(override) if override.isdigit() else 0,
                   ignore_dirty=int(ignore_dirty) if ignore_dirty in ('0', '1', '2') else 1,
                   use_algorithm=use_algorithm,
                   enabled=True)


def _whitelisted(name: str, recommended: str) -> str:
    metadata = PARAMETER_REGISTRY[name]
    value = recommended if recommended in metadata['available_values'] else metadata['fallback']
    if value != recommended:
        logger.warning(f"{name}: '{recommended}' not accepted, using '{value}'")
    return value


def reconcile_pagecache(name: str, recommended: str, settings: PagecacheSettings,
                        total_mem_mb: int) -> Tuple[str, PagecacheSettings]:
    if name == ENABLE:
        value = _whitelisted(name, recommended)
        return value, replace(settings, enabled=value == 'yes')

    if name == IGNORE_DIRTY:
        value = _whitelisted(name, recommended)
        return value, replace(settings, ignore_dirty=int(value))

    if name == OVERRIDE:
        if not settings.enabled:
            logger.debug(f"{name}: pagecache limit disabled, no limit")
            return '', settings
        if settings.limit_mb > 0:
            return str(settings.limit_mb), settings
        if settings.use_algorithm:
            limit = total_mem_mb * AUTO_PERCENT // 100
            logger.info(f"{name}: sizing pagecache limit to {AUTO_PERCENT}% of memory, {limit} MB")
            return str(limit), replace(settings, limit_mb=limit)
        return '', settings

    return recommended, settings


def note_switch(settings: PagecacheSettings, note: Mapping[str, str]) -> PagecacheSettings:
    """Apply the note's ENABLE_PAGECACHE_LIMIT, wherever it sits in the note"""
    if ENABLE not in note:
        return settings
    return replace(settings, enabled=_whitelisted(ENABLE, note[ENABLE]) == 'yes')


class PagecacheOptimizer(Optimizer):
    kind = 'pagecache'

    def inspect(self, name: str) -> Parameter:
        facts = {'total_mem_mb': self.inspector.total_memory_mb()}
        limit = self.inspector.read_sysctl(LIMIT_SYSCTL)
        if limit is None:
            # kernel without pagecache limit support
            return self.parameter(name, None, facts=facts)
        facts['limit_mb'] = limit

        if name == ENABLE:
            current = 'yes' if int(limit) > 0 else 'no'
        elif name == IGNORE_DIRTY:
            current = self.inspector.read_sysctl(IGNORE_DIRTY)
        else:
            current = limit if int(limit) > 0 else ''
        return self.parameter(name, current, facts=facts)

    def optimise(self, param: Parameter, note: Mapping[str, str]) -> Parameter:
        value, settings = reconcile_pagecache(param.name,
                                              param.recommended,
                                              note_switch(param.settings or PagecacheSettings(), note),
                                              param.facts.get('total_mem_mb', 0))
        return param.evolve(resolved=value, settings=settings)

    def previous_value(self, param: Parameter):
        # the switch alone cannot bring back the limit it replaced
        if param.name == ENABLE and 'limit_mb' in param.facts:
            return param.facts['limit_mb']
        return param.current

    def write(self, name, value, revert):
        if name == ENABLE:
            if str(value).isdigit():
                # limit captured before the note was applied
                limit = str(value)
            elif value == 'no':
                limit = '0'
            else:
                return
            self.write_entry(sysctl_path(LIMIT_SYSCTL), limit, revert)
            return
        if name == IGNORE_DIRTY:
            self.write_entry(sysctl_path(IGNORE_DIRTY), value, revert)
            return
        self.write_entry(sysctl_path(LIMIT_SYSCTL), value or '0', revert)
