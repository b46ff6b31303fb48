"""Execution backend: configuration file updates, certsuite runs and logs."""

from certweb.backend.config_writer import merge_config, write_certsuite_config
from certweb.backend.log_buffer import LogBuffer, LogBufferHandler, strip_ansi
from certweb.backend.runner import CertsuiteRunner

__all__ = [
    "CertsuiteRunner",
    "LogBuffer",
    "LogBufferHandler",
    "merge_config",
    "strip_ansi",
    "write_certsuite_config",
]
