# Configuration management

from pydantic_settings import BaseSettings  # type: ignore
from functools import lru_cache
from typing import List, Optional

from storage_navigator.config.browser import BrowserConfig, DEFAULT_DATE_FORMAT


class Settings(BaseSettings):
    # Storage
    storage_backend: str = "local"  # local, ftp, sftp, s3, vfs, archive, null
    root_path: str = ""
    local_base_path: str = "./storage"
    enforce_root_confinement: bool = True

    # FTP
    ftp_host: str = "localhost"
    ftp_port: int = 21
    ftp_username: str = "anonymous"
    ftp_password: str = ""
    ftp_root_dir: str = "/"
    ftp_passive: bool = True
    ftp_timeout: float = 30.0

    # SFTP
    sftp_host: str = "localhost"
    sftp_port: int = 22
    sftp_username: str = ""
    sftp_password: str = ""
    sftp_root_dir: str = "/"

    # Object storage (S3, MinIO, GCS interoperability)
    s3_bucket: str = ""
    s3_endpoint_url: Optional[str] = None
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"

    # Virtual filesystem (any fsspec protocol)
    vfs_protocol: str = "file"
    vfs_root: str = ""

    # Archive container
    archive_path: str = ""

    # Null backend
    null_exists_default: bool = False

    # Display
    date_format: str = DEFAULT_DATE_FORMAT
    ignore_filenames: List[str] = []
    ignore_extensions: List[str] = []

    # Application
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    # Observability
    metrics_enabled: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = False

    def browser_config(self) -> BrowserConfig:
        """Validated display configuration built from these settings."""
        return BrowserConfig.from_mapping({
            "date_format": self.date_format,
            "ignore_filenames": self.ignore_filenames,
            "ignore_extensions": self.ignore_extensions,
        })


@lru_cache()
def get_settings() -> Settings:
    return Settings()
