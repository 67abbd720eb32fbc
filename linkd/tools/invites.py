"""LinkedIn invite tool for LangChain agents."""
from langchain_core.tools import tool

from linkd.tools import clients


@tool
async def send_linkedin_invite(linkedin_url: str, message: str | None = None) -> dict:
    """Send a LinkedIn connection request for a profile URL (via Unipile).

    Args:
        linkedin_url: LinkedIn profile URL of the person to connect with
        message: Optional note to include with the request

    Returns:
        Dict with success flag and an outcome message
    """
    result = await clients.get_unipile_client().send_invite(linkedin_url, message)
    return {"success": result.success, "message": result.message}
