from call_agent.services.llm_client import OpenRouterClient, ProviderResult, ProviderStatus
from call_agent.services.throttle import RequestThrottle, ThrottleClosedError

__all__ = [
    "OpenRouterClient", "ProviderResult", "ProviderStatus",
    "RequestThrottle", "ThrottleClosedError",
]
