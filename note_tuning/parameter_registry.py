"""
Parameter Registry for note tuning.

Maps note parameter names to the kind that knows how to inspect, optimise
and apply them, together with the metadata preflight and the optimizers
share (accepted values, fallbacks, sysfs locations).

Names are resolved in three steps:
  - exact literal names (PARAMETER_REGISTRY)
  - prefixes with a scoped suffix, e.g. a block device (PREFIX_REGISTRY)
  - any remaining dotted name is a kernel sysctl
"""

from typing import Any, Dict, Optional, Tuple

SYSCTL_KIND = 'sysctl'

PARAMETER_REGISTRY = {
    # =========================================================================
    # VIRTUAL MEMORY SWITCHES
    # =========================================================================
    "THP": {
        "kind": "vm",
        "description": "Transparent huge pages mode",
        "path": "sys/kernel/mm/transparent_hugepage/enabled",
        "available_values": ["always", "madvise", "never"],
        "fallback": "never",
    },
    "KSM": {
        "kind": "vm",
        "description": "Kernel same-page merging",
        "path": "sys/kernel/mm/ksm/run",
        "available_values": ["0", "1"],
        "fallback": "0",
    },

    # =========================================================================
    # CPU POWER SETTINGS (per core)
    # =========================================================================
    "energy_perf_bias": {
        "kind": "cpu",
        "description": "Energy/performance bias hint",
        "path": "power/energy_perf_bias",
        "value_codes": {
            "performance": "0",
            "normal": "6",
            "powersave": "15",
        },
        "fallback": "0",
    },
    "governor": {
        "kind": "cpu",
        "description": "CPU frequency scaling governor",
        "path": "cpufreq/scaling_governor",
    },
    "force_latency": {
        "kind": "cpu",
        "description": "Highest tolerated idle state exit latency (us)",
        "path": "cpuidle",
    },

    # =========================================================================
    # MEMORY SIZES
    # =========================================================================
    "VSZ_TMPFS_PERCENT": {
        "kind": "memory",
        "description": "Size of /dev/shm in percent of total memory",
        "default": "75",
    },
    "ShmFileSystemSizeMB": {
        "kind": "memory",
        "description": "Size of /dev/shm in MB (0 derives it from VSZ_TMPFS_PERCENT)",
    },

    # =========================================================================
    # PAGECACHE LIMIT
    # =========================================================================
    "ENABLE_PAGECACHE_LIMIT": {
        "kind": "pagecache",
        "description": "Enable the pagecache limit",
        "available_values": ["yes", "no"],
        "fallback": "no",
    },
    "vm.pagecache_limit_ignore_dirty": {
        "kind": "pagecache",
        "description": "How dirty pages count against the pagecache limit",
        "available_values": ["0", "1", "2"],
        "fallback": "1",
    },
    "OVERRIDE_PAGECACHE_LIMIT_MB": {
        "kind": "pagecache",
        "description": "Pagecache limit in MB (empty lets the sizing algorithm decide)",
        "auto_percent": 2,
    },

    # =========================================================================
    # LOGIN
    # =========================================================================
    "UserTasksMax": {
        "kind": "login",
        "description": "Maximum number of tasks per user (logind)",
        "path": "etc/systemd/logind.conf.d",
    },
}

PREFIX_REGISTRY = {
    "IO_SCHEDULER_": {
        "kind": "block",
        "description": "IO scheduler of a block device (comma separated preference list)",
        "path": "queue/scheduler",
    },
    "NRREQ_": {
        "kind": "block",
        "description": "Request queue depth of a block device",
        "path": "queue/nr_requests",
        "default": "1024",
    },
    "systemd:": {
        "kind": "service",
        "description": "Run state of a systemd unit",
        "available_values": ["start", "stop"],
    },
    "LIMIT_": {
        "kind": "limits",
        "description": "Resource limit line '<domain> <type> <item> <value>'",
        "path": "etc/security/limits.d",
    },
    "rpm:": {
        "kind": "rpm",
        "description": "Minimum installed package version",
    },
    "grub:": {
        "kind": "grub",
        "description": "Kernel boot command line parameter",
    },
}


def lookup(name: str) -> Optional[Tuple[str, Dict[str, Any]]]:
    """
    Resolve a parameter name to its kind and registry metadata.

    Returns:
        (kind, metadata) or None if no kind handles the name
    """
    if name in PARAMETER_REGISTRY:
        metadata = PARAMETER_REGISTRY[name]
        return metadata['kind'], metadata

    for prefix, metadata in PREFIX_REGISTRY.items():
        if name.startswith(prefix) and len(name) > len(prefix):
            return metadata['kind'], metadata

    if '.' in name and ' ' not in name:
        return SYSCTL_KIND, {"kind": SYSCTL_KIND, "description": "Kernel sysctl"}

    return None


def parameter_kind(name: str) -> Optional[str]:
    resolved = lookup(name)
    return resolved[0] if resolved else None


def scoped_suffix(name: str) -> str:
    """Return the part after a registered prefix, e.g. the device of 'NRREQ_sda'"""
    for prefix in PREFIX_REGISTRY:
        if name.startswith(prefix):
            return name[len(prefix):]
    return ''


def prefix_of(name: str) -> str:
    for prefix in PREFIX_REGISTRY:
        if name.startswith(prefix):
            return prefix
    return ''
