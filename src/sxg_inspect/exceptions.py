"""
Exception classes for sxg-inspect
"""

from typing import Optional, Dict, Any


class SXGInspectError(Exception):
    """Base exception for all sxg-inspect errors"""
    
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class LoadError(SXGInspectError):
    """Exception raised when the input cannot be opened or decoded as a signed exchange"""
    
    def __init__(self, message: str, error_code: str = "LOAD_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)


class CertificateResolutionError(SXGInspectError):
    """Exception raised when certificate bytes cannot be resolved"""
    pass


class FileError(CertificateResolutionError):
    """Exception raised when a local certificate override file cannot be read"""
    
    def __init__(self, message: str, error_code: str = "FILE_ERROR",
                 path: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.path = path


class FetchError(CertificateResolutionError):
    """Exception raised for remote certificate fetch errors"""
    
    def __init__(self, message: str, error_code: str = "FETCH_ERROR",
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status


class StructuredHeaderError(SXGInspectError):
    """Exception raised for malformed structured header values"""
    pass


class CertChainError(SXGInspectError):
    """Exception raised for malformed certificate chains"""
    pass


class IntegrityError(SXGInspectError):
    """Exception raised when payload integrity cannot be established"""
    pass


class ConfigError(SXGInspectError):
    """Exception raised for invalid configuration"""
    pass
