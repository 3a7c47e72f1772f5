"""
httpdconf - read Apache httpd-style configuration files.

    from httpdconf import read
    ac = read("/etc/httpd/conf/httpd.conf", ignore_case=True)
    vh = ac.context().context("VirtualHost", "10.1.1.2")
    print(vh.first("DocumentRoot"))
"""

from httpdconf.core.exceptions import (
    ConfigFileError,
    ConfigIOError,
    ConfigParseError,
    MalformedLineError,
    MismatchedCloseError,
    UnclosedBlockError,
    UnsupportedQueryError,
)
from httpdconf.core.models import ConfigNode, ConfigOptions, Diagnostic
from httpdconf.core.navigator import ContextHandle
from httpdconf.core.normalizer import mangle_name
from httpdconf.core.parser_engine import ConfigFile, read

__version__ = "1.0.0"

__all__ = [
    "ConfigFile",
    "ConfigFileError",
    "ConfigIOError",
    "ConfigNode",
    "ConfigOptions",
    "ConfigParseError",
    "ContextHandle",
    "Diagnostic",
    "MalformedLineError",
    "MismatchedCloseError",
    "UnclosedBlockError",
    "UnsupportedQueryError",
    "mangle_name",
    "read",
]
