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
import socket
import time
from typing import Any, Dict, Optional

from effectuation.state_store import NoteStateStore
from note_tuning.engine import TuningEngine
from note_tuning.note_entries import note_values, split_entry
from note_tuning.operators import is_na
from note_tuning.pagecache import PagecacheSettings
from note_tuning.parameter import Parameter
from note_tuning.parameter_registry import parameter_kind
from note_tuning.tuning_metrics_client import TuningMetricsClient

logger = logging.getLogger(__name__)


def _display(value: Any) -> Optional[str]:
    return None if value is None or is_na(value) else str(value)


def _parameter_result(param: Parameter, status: str) -> Dict[str, Any]:
    return {
        'parameter': param.name,
        'kind': param.kind or 'unknown',
        'success': True,
        'status': status,
        'previous': _display(param.current),
        'value': _display(param.resolved),
    }


def apply_note(engine: TuningEngine, note_id: str, parameters: Dict[str, Any],
               settings: PagecacheSettings, dry_run: bool = False):
    """
    Inspect, optimise and apply every parameter of a note.

    Returns:
        (results, previous) where previous maps applied parameters to the
        value they had before
    """
    note = note_values(parameters)
    results = []
    previous = {}

    for name, entry in parameters.items():
        try:
            recommended, operator = split_entry(entry)
            param = engine.optimise(engine.inspect(name), recommended,
                                    operator=operator, note=note, settings=settings)
            if param.kind == 'pagecache':
                settings = param.settings

            if not param.kind:
                status = 'unsupported'
            elif not param.applicable:
                status = 'not_applicable'
            elif not param.supported:
                status = 'unsupported'
            elif dry_run:
                status = 'planned'
            else:
                engine.apply(name, param.resolved)
                previous[name] = engine.previous_value(param)
                status = 'applied'

            logger.info(f"Note {note_id}: {name} {status} ('{param.current}' -> '{param.resolved}')")
            results.append(_parameter_result(param, status))

        except Exception as e:
            logger.error(f"Note {note_id}: failed to tune {name}: {e}", exc_info=True)
            results.append({
                'parameter': name,
                'kind': parameter_kind(name) or 'unknown',
                'success': False,
                'status': 'failed',
                'error': f"Parameter tuning failed: {str(e)}"
            })

    return results, previous


def revert_note(engine: TuningEngine, note_id: str, previous: Dict[str, Any]):
    """
    Restore the values captured before the note was applied, in reverse order.

    Returns:
        (results, remaining) where remaining holds the values that could not
        be restored
    """
    results = []
    remaining = {}

    for name, value in reversed(list(previous.items())):
        try:
            engine.apply(name, value, revert=True)
            results.append({
                'parameter': name,
                'success': True,
                'status': 'reverted',
                'value': _display(value),
            })
        except Exception as e:
            logger.error(f"Note {note_id}: failed to revert {name}: {e}", exc_info=True)
            remaining[name] = value
            results.append({
                'parameter': name,
                'success': False,
                'status': 'failed',
                'error': f"Parameter revert failed: {str(e)}"
            })

    return results, remaining


def main(note_id: str, parameters: Dict[str, Any] = None, revert: bool = False, dry_run: bool = False,
         pagecache_settings_path: str = None, use_pagecache_algorithm: bool = True) -> Dict[str, Any]:
    """
    Apply or revert a note on this host

    Args:
        note_id: Identifier of the note
        parameters: Note parameters, name -> value or {'value': ..., 'operator': ...}.
                    Not needed for revert.
        revert: Restore the values recorded when the note was applied
        dry_run: Compute the values without writing them
        pagecache_settings_path: KEY=value file configuring the pagecache limit
        use_pagecache_algorithm: Size the pagecache limit automatically if none is configured

    Returns:
        Dictionary with per parameter results and aggregated success status
    """
    action = 'revert' if revert else 'apply'
    logger.info(f"Starting {action} of note {note_id}{' (dry run)' if dry_run else ''}")

    engine = TuningEngine()
    store = NoteStateStore()
    metrics = TuningMetricsClient(note_id=note_id, hostname=socket.gethostname())
    started = time.monotonic()

    if revert:
        previous = store.load(note_id)
        if not previous:
            logger.warning(f"Note {note_id} has no recorded values, nothing to revert")
        results, remaining = revert_note(engine, note_id, previous)
        store.forget(note_id)
        if remaining:
            store.save(note_id, remaining)
        for result in results:
            metrics.inc_revert(result['status'])
        if not remaining:
            metrics.mark_reverted()
    else:
        parameters = parameters or {}
        if pagecache_settings_path:
            settings = PagecacheSettings.load(pagecache_settings_path, use_algorithm=use_pagecache_algorithm)
        else:
            settings = PagecacheSettings(use_algorithm=use_pagecache_algorithm)
        results, previous = apply_note(engine, note_id, parameters, settings, dry_run=dry_run)
        if previous:
            store.save(note_id, previous)
        for result in results:
            metrics.inc_parameter(result['kind'], result['status'])
        if not dry_run:
            metrics.mark_applied()

    metrics.observe_run_duration(action, time.monotonic() - started)
    metrics.push()

    success_count = sum(1 for r in results if r.get('success', False))
    total_count = len(results)

    summary = {
        'status': 'completed',
        'note_id': note_id,
        'action': action,
        'parameters_count': total_count,
        'successful_changes': success_count,
        'failed_changes': total_count - success_count,
        'results': results
    }

    logger.info(f"Note {note_id} {action} completed: {success_count}/{total_count} successful")

    return summary
