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
import subprocess
from typing import Callable, List, Optional

from note_tuning.errors import ApplyError

logger = logging.getLogger(__name__)


class SystemMutator:
    """
    Writes to the live system on behalf of the parameter kinds.

    Every write is idempotent, writing the same value twice leaves the
    system as writing it once. Failures raise ApplyError.
    """

    def __init__(self, root: Optional[str] = None, run: Optional[Callable] = None):
        self.root = root or os.environ.get('NOTETUNE_SYSTEM_ROOT', '/')
        self.run = run or subprocess.run

    def path(self, relpath: str) -> str:
        return os.path.join(self.root, relpath.lstrip('/'))

    def write(self, relpath: str, value: str) -> None:
        """Write a value into an existing sysfs/procfs entry"""
        path = self.path(relpath)
        try:
            with open(path, 'w') as handle:
                handle.write(str(value))
        except OSError as e:
            raise ApplyError(f"Failed to write '{value}' to {path}: {e}")
        logger.debug(f"Wrote '{value}' to {path}")

    def write_file(self, relpath: str, content: str) -> None:
        """Create or replace a configuration drop-in"""
        path = self.path(relpath)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, 'w') as handle:
                handle.write(content)
        except OSError as e:
            raise ApplyError(f"Failed to write drop-in {path}: {e}")
        logger.info(f"Wrote drop-in {path}")

    def remove(self, relpath: str) -> bool:
        """Remove a drop-in. An already absent file is not an error."""
        path = self.path(relpath)
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.debug(f"{path} already absent")
            return False
        except OSError as e:
            raise ApplyError(f"Failed to remove {path}: {e}")
        logger.info(f"Removed drop-in {path}")
        return True

    def execute(self, args: List[str]) -> str:
        try:
            result = self.run(args, capture_output=True, text=True, check=False)
        except FileNotFoundError as e:
            raise ApplyError(f"Command '{args[0]}' not available: {e}")
        output = f"{result.stdout or ''}{result.stderr or ''}".strip()
        if result.returncode != 0:
            raise ApplyError(f"Failed to call {' '.join(args)} (exit {result.returncode}) - {output}")
        return output

    def systemctl(self, action: str, unit: str) -> None:
        self.execute(['systemctl', action, unit])

    def remount_shm(self, size_mb: int) -> None:
        self.execute(['mount', '-o', f"remount,size={size_mb}M", '/dev/shm'])
