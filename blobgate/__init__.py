"""
Blobgate - a file storage gateway for Azure Blob Storage.

This package contains the complete application:
- core: Naming and access policy, framework-agnostic
- infrastructure: Azure Blob Storage integration
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
