"""
Multinet client

Async, typed Python client for the Multinet graph/table data-management API.
"""
from multinet.client import MultinetClient, multinet_api
from multinet.exceptions import (
    MultinetException,
    APIException,
    InvalidArgumentError,
    ConfigurationException,
)

__version__ = "0.1.0"
__all__ = [
    'MultinetClient',
    'multinet_api',
    'MultinetException',
    'APIException',
    'InvalidArgumentError',
    'ConfigurationException',
]
