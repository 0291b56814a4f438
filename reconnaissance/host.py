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
import re
import subprocess
from typing import Callable, Dict, List, Optional

from note_tuning.errors import InspectError

logger = logging.getLogger(__name__)

CPU_DIR = 'sys/devices/system/cpu'
RUNNING_STATES = ('starting', 'running', 'degraded')


def parse_size_mb(text: str, total_mb: int = 0) -> int:
    """Convert a tmpfs size option ('16384000k', '8g', '50%') into MB"""
    text = text.strip().lower()
    if text.endswith('%'):
        return total_mb * int(text[:-1]) // 100
    units = {'k': 1024, 'm': 1024 ** 2, 'g': 1024 ** 3, 't': 1024 ** 4}
    if text and text[-1] in units:
        return int(text[:-1]) * units[text[-1]] // 1024 ** 2
    return int(text) // 1024 ** 2


class SystemInspector:
    """
    Read-only access to the live system.

    All paths are relative to a system root, '/' unless NOTETUNE_SYSTEM_ROOT
    says otherwise. Missing resources are reported as None, only I/O level
    failures raise InspectError.
    """

    def __init__(self, root: Optional[str] = None, run: Optional[Callable] = None):
        self.root = root or os.environ.get('NOTETUNE_SYSTEM_ROOT', '/')
        self.run = run or subprocess.run

    def path(self, relpath: str) -> str:
        return os.path.join(self.root, relpath.lstrip('/'))

    def read(self, relpath: str) -> Optional[str]:
        path = self.path(relpath)
        try:
            with open(path) as handle:
                return handle.read().strip()
        except (FileNotFoundError, NotADirectoryError):
            logger.debug(f"{path} not present")
            return None
        except OSError as e:
            raise InspectError(f"Failed to read {path}: {e}")

    def exists(self, relpath: str) -> bool:
        return os.path.exists(self.path(relpath))

    def listdir(self, relpath: str) -> List[str]:
        try:
            return sorted(os.listdir(self.path(relpath)))
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            raise InspectError(f"Failed to list {self.path(relpath)}: {e}")

    def command(self, args: List[str]) -> Optional[subprocess.CompletedProcess]:
        """Run a read-only command, None if the command is not installed"""
        try:
            return self.run(args, capture_output=True, text=True, check=False)
        except FileNotFoundError:
            logger.debug(f"Command '{args[0]}' not available")
            return None

    # Kernel

    def read_sysctl(self, name: str) -> Optional[str]:
        value = self.read(os.path.join('proc/sys', name.replace('.', '/')))
        if value is None:
            return None
        return '\t'.join(value.split())

    def kernel_cmdline(self) -> Dict[str, str]:
        parameters = {}
        for token in (self.read('proc/cmdline') or '').split():
            key, sep, value = token.partition('=')
            parameters[key] = value if sep else key
        return parameters

    # Memory

    def total_memory_mb(self) -> int:
        for line in (self.read('proc/meminfo') or '').splitlines():
            if line.startswith('MemTotal:'):
                return int(line.split()[1]) // 1024
        return 0

    def shm_size_mb(self) -> Optional[int]:
        """Size of the /dev/shm tmpfs in MB, None if it is not mounted"""
        for line in (self.read('proc/mounts') or '').splitlines():
            fields = line.split()
            if len(fields) < 4 or fields[1] != '/dev/shm':
                continue
            total = self.total_memory_mb()
            for option in fields[3].split(','):
                if option.startswith('size='):
                    return parse_size_mb(option[len('size='):], total)
            # tmpfs default
            return total // 2
        return None

    # CPU

    def cpus(self) -> List[str]:
        cpus = [entry for entry in self.listdir(CPU_DIR) if re.fullmatch(r'cpu\d+', entry)]
        return sorted(cpus, key=lambda cpu: int(cpu[3:]))

    def read_cpu(self, cpu: str, relpath: str) -> Optional[str]:
        return self.read(os.path.join(CPU_DIR, cpu, relpath))

    # systemd

    def unit_name(self, service: str) -> Optional[str]:
        """Full unit name of a service, None if systemd does not know it"""
        unit = service if '.' in service else f"{service}.service"
        result = self.command(['systemctl', 'show', '--property=LoadState', '--value', unit])
        if result is None or result.returncode != 0:
            return None
        if result.stdout.strip() in ('', 'not-found'):
            return None
        return unit

    def unit_active(self, unit: str) -> bool:
        result = self.command(['systemctl', 'is-active', unit])
        return result is not None and result.returncode == 0

    def system_running(self) -> bool:
        result = self.command(['systemctl', 'is-system-running'])
        if result is None:
            return False
        logger.debug(f"systemctl is-system-running: '{result.stdout.strip()}'")
        return result.stdout.strip() in RUNNING_STATES

    # Packages

    def package_version(self, package: str) -> Optional[str]:
        result = self.command(['rpm', '-q', '--queryformat', '%{VERSION}-%{RELEASE}', package])
        if result is None or result.returncode != 0:
            return None
        return result.stdout.strip() or None
