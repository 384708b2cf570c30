from .provision_agent import provision_agent, ProvisioningWorkflow
from .create_web_call import create_web_call
from .receive_lead import receive_lead

__all__ = [
    "provision_agent",
    "ProvisioningWorkflow",
    "create_web_call",
    "receive_lead",
]
