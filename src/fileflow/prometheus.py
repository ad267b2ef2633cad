# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Prometheus metrics for the FileFlow relay.

All metrics use the ``ff_`` prefix and are labelled by transfer kind
(``files`` or ``text``) where it applies.

Metrics exposed:
    - ``ff_sent_total``: Emails relayed successfully.
    - ``ff_errors_total``: Relay attempts that failed.
    - ``ff_recipients_total``: Recipients addressed by successful relays.
    - ``ff_compression_saved_bytes_total``: Bytes saved by client compression.
"""

from prometheus_client import CollectorRegistry, Counter, generate_latest


class FileFlowMetrics:
    """Prometheus metrics collector for the relay endpoints.

    Attributes:
        registry: The Prometheus CollectorRegistry holding all metrics.
        sent: Counter of successful relays.
        errors: Counter of failed relays.
        recipients: Counter of recipients reached.
        saved_bytes: Counter of bytes saved by compression.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.sent = Counter(
            "ff_sent_total",
            "Total emails relayed",
            ["kind"],
            registry=self.registry,
        )
        self.errors = Counter(
            "ff_errors_total",
            "Total relay errors",
            ["kind"],
            registry=self.registry,
        )
        self.recipients = Counter(
            "ff_recipients_total",
            "Total recipients addressed",
            registry=self.registry,
        )
        self.saved_bytes = Counter(
            "ff_compression_saved_bytes_total",
            "Bytes saved by client-side compression",
            registry=self.registry,
        )

    def inc_sent(self, kind: str, recipients: int) -> None:
        self.sent.labels(kind=kind).inc()
        self.recipients.inc(recipients)

    def inc_error(self, kind: str) -> None:
        self.errors.labels(kind=kind).inc()

    def add_saved_bytes(self, original_size: int, compressed_size: int) -> None:
        """Record the saving of one compressed item; growth is ignored."""
        saved = original_size - compressed_size
        if saved > 0:
            self.saved_bytes.inc(saved)

    def generate_latest(self) -> bytes:
        """Export all metrics in Prometheus text exposition format."""
        return generate_latest(self.registry)
