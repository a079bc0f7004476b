"""
PropertyScrape Structured Extraction Package
"""

from strategies.agent_client import AgentClient
from strategies.site_registry import SiteProfile, SiteRegistry

__all__ = ['AgentClient', 'SiteProfile', 'SiteRegistry']
