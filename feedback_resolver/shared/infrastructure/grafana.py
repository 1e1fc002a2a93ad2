"""
Grafana OTLP Metrics Exporter
==============================

Pushes pipeline metrics to Grafana Cloud via OTLP.

Metrics exported:
- inference_latency_ms: latency of classification / embedding calls
- inference_failures_total: failed inference calls (1 per failure)
- complaints_resolved_total: one data point per resolved complaint,
  tagged with answer type and resolution tier
"""

import base64
import time
from typing import Optional, Dict, List, Any

import httpx

from feedback_resolver.config import settings
from feedback_resolver.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _attributes(values: Dict[str, Any]) -> List[dict]:
    return [
        {"key": key, "value": {"stringValue": str(value)}}
        for key, value in values.items()
    ]


def _gauge(name: str, unit: str, description: str, value: int, attributes: List[dict]) -> dict:
    return {
        "name": name,
        "unit": unit,
        "description": description,
        "gauge": {
            "dataPoints": [
                {
                    "asInt": value,
                    "timeUnixNano": int(time.time() * 1_000_000_000),
                    "attributes": attributes
                }
            ]
        }
    }


class GrafanaOTLPExporter:
    """
    Export pipeline metrics to Grafana Cloud via OTLP HTTP endpoint.

    Uses OpenTelemetry Protocol (OTLP) format for metrics. Export is
    best-effort: failures are logged and reported as False.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        api_key: Optional[str] = None,
        instance_id: Optional[str] = None,
        timeout_seconds: float = 10.0
    ):
        self._host = host or settings.grafana_host
        self._api_key = api_key or settings.grafana_api_key
        self._instance_id = instance_id or settings.grafana_instance_id
        self._timeout = timeout_seconds
        self._enabled = bool(self._host and self._api_key and self._instance_id)

        if self._enabled:
            auth_pair = f"{self._instance_id}:{self._api_key}"
            self._auth_encoded = base64.b64encode(auth_pair.encode()).decode()
            if "/otlp/v1/metrics" not in self._host:
                self._url = f"{self._host.rstrip('/')}/otlp/v1/metrics"
            else:
                self._url = self._host
            logger.info(
                "Grafana OTLP exporter initialized",
                extra={"host": self._host, "instance_id": self._instance_id}
            )
        else:
            logger.debug("Grafana OTLP exporter not configured")

    def is_enabled(self) -> bool:
        """Check if exporter is properly configured."""
        return self._enabled

    async def export_inference_metrics(
        self,
        model: str,
        operation: str,
        latency_ms: int,
        success: bool = True
    ) -> bool:
        """
        Export latency (and failure) of one inference call.

        Args:
            model: Model name
            operation: "classification" or "embedding"
            latency_ms: Call latency in milliseconds
            success: Whether the call produced a usable result

        Returns:
            True if export succeeded, False otherwise
        """
        if not self._enabled:
            return False

        attributes = _attributes({
            "model": model,
            "operation": operation,
            "service": settings.app_name,
        })
        metrics = [
            _gauge("inference_latency_ms", "ms", "Inference call latency", latency_ms, attributes)
        ]
        if not success:
            metrics.append(
                _gauge("inference_failures_total", "1", "Failed inference calls", 1, attributes)
            )
        return await self._send(metrics, context={"operation": operation, "model": model})

    async def export_resolution_metrics(
        self,
        answer_type: str,
        resolution_tier: str,
        normalized_key: str
    ) -> bool:
        """
        Export one resolved complaint.

        Args:
            answer_type: KNOWN_SOLUTION or STOCK
            resolution_tier: Tier of the resolution policy that answered
            normalized_key: Complaint category

        Returns:
            True if export succeeded, False otherwise
        """
        if not self._enabled:
            return False

        attributes = _attributes({
            "answer_type": answer_type,
            "resolution_tier": resolution_tier,
            "normalized_key": normalized_key,
            "service": settings.app_name,
        })
        metrics = [
            _gauge("complaints_resolved_total", "1", "Resolved complaints", 1, attributes)
        ]
        return await self._send(metrics, context={"answer_type": answer_type})

    async def _send(self, metrics: List[dict], context: Dict[str, Any]) -> bool:
        payload = {
            "resourceMetrics": [
                {
                    "resource": {
                        "attributes": _attributes({
                            "service.name": settings.app_name,
                            "service.version": settings.app_version,
                            "deployment.environment": settings.environment,
                        })
                    },
                    "scopeMetrics": [{"metrics": metrics}]
                }
            ]
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Basic {self._auth_encoded}",
            "X-Grafana-Org-Id": str(self._instance_id)
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self._url, headers=headers, json=payload)

            if response.status_code in (200, 202):
                logger.debug("Metrics exported to Grafana", extra=context)
                return True

            logger.warning(
                "Failed to export metrics to Grafana",
                extra={
                    "status_code": response.status_code,
                    "response": response.text[:500],
                    **context
                }
            )
            return False

        except httpx.HTTPError as e:
            logger.error(
                "Error exporting metrics to Grafana",
                extra={"error": str(e), **context}
            )
            return False


# Global exporter instance
_grafana_exporter: Optional[GrafanaOTLPExporter] = None


def get_grafana_exporter() -> Optional[GrafanaOTLPExporter]:
    """Get or create global Grafana exporter instance."""
    global _grafana_exporter
    if _grafana_exporter is None:
        _grafana_exporter = GrafanaOTLPExporter()
    return _grafana_exporter


def init_grafana_exporter(
    host: str,
    api_key: str,
    instance_id: str
) -> GrafanaOTLPExporter:
    """Initialize Grafana exporter with credentials."""
    global _grafana_exporter
    _grafana_exporter = GrafanaOTLPExporter(
        host=host,
        api_key=api_key,
        instance_id=instance_id
    )
    return _grafana_exporter
