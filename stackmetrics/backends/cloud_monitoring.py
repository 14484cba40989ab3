"""Google Cloud Monitoring backend using the async Metric Service client"""
from typing import List
from google.api import label_pb2 as ga_label
from google.api import metric_pb2 as ga_metric
from google.api_core import exceptions as google_exceptions
from google.cloud import monitoring_v3
from stackmetrics.config import Config
from stackmetrics.logging_config import get_logger, log_error
from stackmetrics.models import MetricDescriptor, TimeSeries, ValueType
from .base import MetricBackend


logger = get_logger(__name__)


class CloudMonitoringBackend(MetricBackend):
    """Custom metrics in Cloud Monitoring via MetricServiceAsyncClient"""
    
    def __init__(self, config: Config, client=None):
        super().__init__(config)
        self.client = client
        self._healthy = client is not None
    
    async def start(self) -> None:
        """Create the API client from the configured credentials"""
        if self.client is not None:
            self._healthy = True
            return
        try:
            if self.config.key_filename:
                self.client = monitoring_v3.MetricServiceAsyncClient.from_service_account_file(
                    str(self.config.key_filename)
                )
            else:
                self.client = monitoring_v3.MetricServiceAsyncClient()
            self._healthy = True
            logger.info(
                "Cloud Monitoring backend started",
                project_id=self.config.project_id,
                key_filename=str(self.config.key_filename) if self.config.key_filename else None
            )
        except Exception as e:
            log_error(logger, e, {"project_id": self.config.project_id},
                      message="Failed to start Cloud Monitoring backend", event_type="backend_start_error")
            self._healthy = False
            raise
    
    async def shutdown(self) -> None:
        """Close the client transport"""
        if self.client is not None and hasattr(self.client, "transport"):
            await self.client.transport.close()
        self._healthy = False
        logger.info("Cloud Monitoring backend shutdown")
    
    def is_healthy(self) -> bool:
        return self._healthy
    
    def project_path(self, project_id: str) -> str:
        return f"projects/{project_id}"
    
    async def register_descriptor(self, descriptor: MetricDescriptor) -> MetricDescriptor:
        """Create the metric descriptor"""
        await self._ensure_client()
        request_descriptor = self._build_metric_descriptor(descriptor)
        try:
            response = await self.client.create_metric_descriptor(
                name=self.project_path(self.config.project_id),
                metric_descriptor=request_descriptor
            )
        except google_exceptions.GoogleAPICallError as e:
            logger.error(
                "API error during createMetricDescriptor",
                metric_type=descriptor.type,
                api_code=getattr(e, "code", None),
                api_message=e.message,
                event_type="descriptor_api_error"
            )
            self._healthy = False
            raise
        
        self._healthy = True
        logger.debug("Sent createMetricDescriptor", metric_type=getattr(response, "type", descriptor.type))
        return descriptor
    
    async def submit_time_series(self, project_id: str, time_series: List[TimeSeries]) -> None:
        """Write the batch with a single createTimeSeries call"""
        await self._ensure_client()
        request_series = [self._build_time_series(series) for series in time_series]
        try:
            await self.client.create_time_series(
                name=self.project_path(project_id),
                time_series=request_series
            )
        except google_exceptions.GoogleAPICallError as e:
            logger.error(
                "API error during createTimeSeries",
                series_count=len(request_series),
                api_code=getattr(e, "code", None),
                api_message=e.message,
                event_type="time_series_api_error"
            )
            self._healthy = False
            raise
        
        self._healthy = True
        logger.debug("Sent time series data", series_count=len(request_series))
    
    async def _ensure_client(self) -> None:
        if self.client is None:
            await self.start()
    
    def _build_metric_descriptor(self, descriptor: MetricDescriptor) -> ga_metric.MetricDescriptor:
        """Convert a MetricDescriptor to the API message"""
        request = ga_metric.MetricDescriptor()
        request.type = descriptor.type
        request.display_name = descriptor.display_name
        request.description = descriptor.description
        request.metric_kind = getattr(ga_metric.MetricDescriptor.MetricKind, descriptor.metric_kind)
        request.value_type = getattr(ga_metric.MetricDescriptor.ValueType, descriptor.value_type.value)
        for label in descriptor.labels:
            label_descriptor = ga_label.LabelDescriptor()
            label_descriptor.key = label.key
            label_descriptor.value_type = getattr(ga_label.LabelDescriptor.ValueType, label.value_type)
            label_descriptor.description = label.description
            request.labels.append(label_descriptor)
        return request
    
    def _build_time_series(self, series: TimeSeries) -> monitoring_v3.TimeSeries:
        """Convert a TimeSeries to the API message"""
        request = monitoring_v3.TimeSeries()
        request.metric.type = series.metric_type
        for key, value in series.labels.items():
            request.metric.labels[key] = value
        request.resource.type = series.resource_type
        request.resource.labels["project_id"] = series.project_id
        
        points = []
        for point in series.points:
            seconds = int(point.end_time // 1000)
            nanos = int((point.end_time % 1000) * 1_000_000)
            interval = monitoring_v3.TimeInterval(
                {"end_time": {"seconds": seconds, "nanos": nanos}}
            )
            points.append(monitoring_v3.Point({"interval": interval, "value": self._typed_value(point.value_type, point.value)}))
        request.points = points
        return request
    
    @staticmethod
    def _typed_value(value_type: ValueType, value) -> dict:
        if value_type == ValueType.INT64:
            return {"int64_value": int(value)}
        if value_type == ValueType.BOOL:
            return {"bool_value": bool(value)}
        return {"double_value": float(value)}
