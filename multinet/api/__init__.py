"""
API layer for the Multinet client

HTTP transport and the presigned-upload helper.
"""
from .client import APIClient
from .uploads import S3FileFieldClient

__all__ = ['APIClient', 'S3FileFieldClient']
