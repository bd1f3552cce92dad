"""
Health check module for auto53.

This module provides health check endpoints for monitoring the application.
"""

import json
import logging
from http.server import BaseHTTPRequestHandler, HTTPServer
from threading import Thread
from typing import Optional

from auto53.utils.status import ReconciliationStatus


class HealthCheckHandler(BaseHTTPRequestHandler):
    """
    HTTP request handler for health check endpoints.
    """

    def __init__(self, *args, **kwargs):
        self.logger = logging.getLogger("auto53.health")
        super().__init__(*args, **kwargs)

    def do_GET(self):
        """
        Handle GET requests.
        """
        if self.path == "/health":
            self._handle_health_check()
        elif self.path == "/metrics":
            self._handle_metrics()
        else:
            self.send_response(404)
            self.end_headers()
            self.wfile.write(b"Not Found")

    def _handle_health_check(self):
        """
        Report the outcome of the last reconciliation pass.
        """
        status: ReconciliationStatus = self.server.status
        snapshot = status.snapshot()

        # A failed last pass makes the service unhealthy until a pass succeeds
        self.send_response(200 if status.healthy else 503)
        self.send_header("Content-type", "application/json")
        self.end_headers()
        self.wfile.write(json.dumps(snapshot).encode())

    def _handle_metrics(self):
        """
        Handle metrics requests.
        """
        snapshot = self.server.status.snapshot()

        self.send_response(200)
        self.send_header("Content-type", "text/plain")
        self.end_headers()

        metrics = [
            "# HELP auto53_up Whether the auto53 service is up",
            "# TYPE auto53_up gauge",
            "auto53_up 1",
            "# HELP auto53_reconciliations_total Reconciliation passes run",
            "# TYPE auto53_reconciliations_total counter",
            f"auto53_reconciliations_total {snapshot['passes']}",
            "# HELP auto53_reconciliation_errors_total Reconciliation passes that failed",
            "# TYPE auto53_reconciliation_errors_total counter",
            f"auto53_reconciliation_errors_total {snapshot['errors']}",
            "# HELP auto53_last_evaluations Evaluations computed by the last successful pass",
            "# TYPE auto53_last_evaluations gauge",
            f"auto53_last_evaluations {snapshot['last_evaluations']}",
        ]

        self.wfile.write("\n".join(metrics).encode())

    def log_message(self, format, *args):
        """
        Override log_message to use the application logger.
        """
        self.logger.debug(format % args)


class HealthCheckServer:
    """
    HTTP server for health check endpoints.
    """

    def __init__(
        self,
        status: ReconciliationStatus,
        host: str = "0.0.0.0",
        port: int = 8080,
    ):
        """
        Initialize a HealthCheckServer.

        Args:
            status: Reconciliation status to report
            host: Host to bind to
            port: Port to bind to, 0 picks a free port
        """
        self.status = status
        self.host = host
        self.port = port
        self.server: Optional[HTTPServer] = None
        self.thread: Optional[Thread] = None
        self.logger = logging.getLogger("auto53.health")

    def start(self):
        """
        Start the health check server.
        """
        self.server = HTTPServer((self.host, self.port), HealthCheckHandler)
        self.server.status = self.status
        self.port = self.server.server_address[1]
        self.thread = Thread(target=self.server.serve_forever)
        self.thread.daemon = True
        self.thread.start()
        self.logger.info(f"Health check: {self.host}:{self.port}/health")

    def stop(self):
        """
        Stop the health check server.
        """
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            self.logger.info("Health check server stopped")
