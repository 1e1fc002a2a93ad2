"""
Resolution Interfaces Layer
============================

Interface adapters (HTTP controllers, queue consumer) for the resolution module.
"""

from feedback_resolver.resolution.interfaces.controllers import router
from feedback_resolver.resolution.interfaces.consumer import ComplaintBatchConsumer, IDeliveryMessage

__all__ = ["router", "ComplaintBatchConsumer", "IDeliveryMessage"]
