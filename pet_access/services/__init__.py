"""External collaborator adapters used by the grant core."""
