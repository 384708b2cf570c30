from typing import Optional
from src.models import CreateWebCallRequest, CreateWebCallResponse
from src.integrations.retell import RetellClient
from src.config import settings
from src.utils.errors import RetellAPIError, ValidationError
from src.utils.logging import logger


async def create_web_call(
    request: CreateWebCallRequest,
    retell: Optional[RetellClient] = None
) -> CreateWebCallResponse:
    """
    Create a browser call for an agent.
    Uses the agent in the request (per-client mode) or RETELL_AGENT_ID (demo mode).
    """
    agent_id = request.agent_id or settings.retell_agent_id
    if not agent_id:
        raise ValidationError("Missing agent_id (send in body or set RETELL_AGENT_ID).")

    retell = retell or RetellClient()
    logger.info(f"🌐 Creating web call for agent {agent_id}")
    result = await retell.create_web_call(agent_id, metadata=request.metadata)

    access_token = result.get("access_token")
    if not access_token:
        raise RetellAPIError(
            "Retell API did not return an access_token.",
            status_code=502,
            details={"response": result}
        )

    logger.info(f"✅ Web call created: {result.get('call_id')}")
    return CreateWebCallResponse(
        access_token=access_token,
        call_id=result.get("call_id"),
        agent_id=agent_id
    )
