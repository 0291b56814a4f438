"""
Tuning Metrics Client

Thin wrapper around prometheus_client for note tuning runs.
Counts parameter outcomes per kind and pushes them to a Prometheus
Push Gateway once a note was applied or reverted.

Usage:
    from note_tuning.tuning_metrics_client import TuningMetricsClient

    metrics = TuningMetricsClient(note_id='1656250', hostname='hana01')
    metrics.inc_parameter('sysctl', 'applied')
    metrics.mark_applied()
    metrics.push()
"""

import os
import logging
from typing import Optional
from prometheus_client import CollectorRegistry, Gauge, Counter, Histogram, push_to_gateway

logger = logging.getLogger(__name__)


class TuningMetricsClient:
    """
    Prometheus metrics client for note tuning.

    Pushing is best effort: a failing Push Gateway is logged and never
    fails the tuning run.
    """

    def __init__(self, note_id: str, hostname: str, pushgateway_url: Optional[str] = None):
        """
        Initialize metrics client for one note run.

        Args:
            note_id: Identifier of the note being applied or reverted
            hostname: Host the note is tuned on
            pushgateway_url: Push Gateway URL (default from env or http://pushgateway:9091)
        """
        self.note_id = note_id
        self.hostname = hostname

        self.enabled = os.getenv("PUSH_METRICS_ENABLED", "true").lower() == "true"
        self.pushgateway_url = pushgateway_url or os.getenv("PUSH_GATEWAY_URL", "http://pushgateway:9091")

        if not self.enabled:
            logger.info("Prometheus metrics pushing disabled via PUSH_METRICS_ENABLED=false")
            return

        self.registry = CollectorRegistry()
        self._init_metrics()

        logger.debug(f"Initialized {self.__class__.__name__} for {note_id}/{hostname}")

    def _init_metrics(self):
        # Note state: 1=applied, 0=reverted
        self._note_active = Gauge(
            'godon_note_active',
            'Note currently applied on the host',
            ['note_id', 'hostname'],
            registry=self.registry
        )

        self._parameter_count = Counter(
            'godon_note_parameters_total',
            'Parameters processed per kind and outcome',
            ['note_id', 'hostname', 'kind', 'status'],
            registry=self.registry
        )

        self._revert_count = Counter(
            'godon_note_reverts_total',
            'Parameters reverted',
            ['note_id', 'hostname', 'status'],
            registry=self.registry
        )

        self._run_duration = Histogram(
            'godon_note_run_duration_seconds',
            'Duration of applying or reverting a note',
            ['note_id', 'hostname', 'action'],
            buckets=[0.1, 0.5, 1, 5, 10, 30, 60, 300],
            registry=self.registry
        )

    def push(self) -> bool:
        """
        Push all metrics to Push Gateway.

        Returns:
            True if push succeeded, False otherwise
        """
        if not self.enabled:
            return False

        try:
            push_to_gateway(
                self.pushgateway_url,
                job=f'note_{self.note_id}_{self.hostname}',
                registry=self.registry
            )
            logger.debug(f"Pushed metrics to {self.pushgateway_url}")
            return True
        except Exception as e:
            logger.warning(f"Failed to push metrics to {self.pushgateway_url}: {e}")
            return False

    def mark_applied(self):
        if not self.enabled:
            return
        self._note_active.labels(note_id=self.note_id, hostname=self.hostname).set(1)

    def mark_reverted(self):
        if not self.enabled:
            return
        self._note_active.labels(note_id=self.note_id, hostname=self.hostname).set(0)

    def inc_parameter(self, kind: str, status: str):
        """
        Increment parameter outcome counter.

        Args:
            kind: Parameter kind ('sysctl', 'block', ...), 'unknown' if unresolved
            status: 'applied', 'planned', 'not_applicable', 'unsupported' or 'failed'
        """
        if not self.enabled:
            return
        self._parameter_count.labels(
            note_id=self.note_id,
            hostname=self.hostname,
            kind=kind or 'unknown',
            status=status
        ).inc()

    def inc_revert(self, status: str):
        """Increment revert counter ('reverted' or 'failed')"""
        if not self.enabled:
            return
        self._revert_count.labels(
            note_id=self.note_id,
            hostname=self.hostname,
            status=status
        ).inc()

    def observe_run_duration(self, action: str, duration_seconds: float):
        if not self.enabled:
            return
        self._run_duration.labels(
            note_id=self.note_id,
            hostname=self.hostname,
            action=action
        ).observe(duration_seconds)
