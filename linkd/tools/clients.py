"""Client factories shared by the agent tools (patched in tests)."""
from linkd.core.client import LinkdClient
from linkd.core.invites import UnipileClient


def get_linkd_client() -> LinkdClient:
    return LinkdClient()


def get_unipile_client() -> UnipileClient:
    return UnipileClient()
