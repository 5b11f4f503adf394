"""
Infrastructure layer - external service integrations.

- storage: Azure Blob Storage (credentials, clients, upload/delete)

These wrappers translate between the Azure SDK and our domain models.
"""
