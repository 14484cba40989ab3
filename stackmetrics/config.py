"""Configuration for the metrics buffer"""
from pathlib import Path
from typing import Optional, Literal
from pydantic import Field, validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Buffer configuration with Pydantic validation and environment-based settings"""
    
    # Backend destination
    project_id: str = Field(..., description="Destination project id (required)")
    key_filename: Optional[Path] = Field(default=None, description="Service account key file")
    backend: Literal["cloud_monitoring", "memory"] = Field(default="cloud_monitoring", description="Backend implementation")
    backend_timeout: float = Field(default=10.0, gt=0, description="Timeout for each backend call in seconds")
    
    # Metric identification
    app_name: str = Field(..., description="Application name (required)")
    env_name: str = Field(default="production", description="Environment name (dev, stage, production)")
    metric_group_name: Optional[str] = Field(default=None, description="Metric group name, defaults to app name")
    metric_namespace: str = Field(default="custom.googleapis.com", description="Metric type namespace")
    
    # Flush settings
    send_interval: int = Field(default=5000, ge=0, description="Flush interval in milliseconds, 0 for manual flush only")
    
    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file path")
    
    class Config:
        env_prefix = ""
        case_sensitive = False
    
    @validator('project_id', 'app_name')
    def validate_required_names(cls, v):
        """Reject blank identifiers"""
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()
    
    @validator('metric_group_name', always=True)
    def default_metric_group_name(cls, v, values):
        """Fall back to the application name"""
        if v:
            return v
        return values.get('app_name')
    
    @validator('log_level', pre=True)
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v
    
    @validator('log_file')
    def ensure_log_directory(cls, v):
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v
    
    def metric_type_prefix(self) -> str:
        """Get the type identifier prefix shared by all metrics of this group"""
        return f"{self.metric_namespace}/{self.metric_group_name}"
    
    def common_labels(self) -> dict:
        """Get the labels attached to every time series"""
        return {
            "appName": self.app_name,
            "envName": self.env_name,
        }
