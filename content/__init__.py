"""content

Collaborator contracts and default structural providers."""
