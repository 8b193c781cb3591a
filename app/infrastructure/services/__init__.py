"""Infrastructure services implementing application collaborator ports."""

from app.infrastructure.services.subscription_provisioner import SqlSubscriptionProvisioner

__all__ = ["SqlSubscriptionProvisioner"]
