"""Offline agent: request interception and versioned cache orchestration."""

from offline_agent.agent import Agent
from offline_agent.config import AgentSettings, CacheGenerations, load_settings
from offline_agent.lifecycle import LifecycleState
from offline_agent.messages import AgentRequest

__version__ = "1.0.0"
__all__ = [
    "Agent",
    "AgentRequest",
    "AgentSettings",
    "CacheGenerations",
    "LifecycleState",
    "load_settings",
]
