"""
oss_uploader — content-addressed image uploads to Aliyun OSS.

Public surface:
    Uploader / upload_bytes   orchestrate hash, dedup check, compress and PUT
    UploaderConfig            immutable settings (see load_uploader_config)
    errors                    ConfigError, TransformError, AuthError, ...
"""
from .config import UploaderConfig, load_uploader_config
from .errors import (
    AuthError,
    ConfigError,
    ExhaustedRetriesError,
    ExistenceCheckError,
    NetworkError,
    OssUploaderError,
    TransformError,
)
from .uploader import UploadResult, Uploader, upload_bytes

__version__ = "0.1.0"

__all__ = [
    "UploaderConfig",
    "load_uploader_config",
    "UploadResult",
    "Uploader",
    "upload_bytes",
    "OssUploaderError",
    "ConfigError",
    "TransformError",
    "AuthError",
    "NetworkError",
    "ExistenceCheckError",
    "ExhaustedRetriesError",
]
