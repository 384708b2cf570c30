"""
Agent provisioning workflow.

For each staff role in the package:
    create LLM -> create agent -> [dry-run gate] -> buy number -> bind number
then optionally place an outbound call from the receptionist line.

LLM and agent creation are fatal on failure. Buying and binding a number is
best effort unless the request explicitly requires a number: a failed purchase
leaves the agent in place with a placeholder number, and a failed bind still
reports the number that was bought. When a later staff role fails, the error
details list the roles already provisioned. Nothing billable is created in
dry-run mode.
"""
import json
from typing import Any, Dict, List, Mapping, Optional, Tuple

from src.config import settings
from src.integrations.retell import RetellClient
from src.integrations.website import WebsiteContextFetcher
from src.intake import IntakeRecord, build_business_profile, build_protocol_blocks
from src.models import (
    AgentSpec,
    BusinessProfile,
    ProtocolKind,
    ProvisioningResult,
    ProvisionResponse,
    StaffRole,
)
from src.prompts import compose, extract_facts, roles_for_package, RECEPTIONIST
from src.utils.errors import APIError, PhoneBindingError, RetellAPIError
from src.utils.logging import logger
from src.utils.phone_normalize import infer_area_code, to_e164
from src.utils.sanitize import NOT_PROVIDED

DRY_RUN_PHONE_PLACEHOLDER = "Test mode - no number purchased"
PHONE_PENDING = "Provisioning..."
PHONE_ASSIGNED = "(number assigned)"


def _optional(value: str) -> Optional[str]:
    return None if value == NOT_PROVIDED else value


def _as_version(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _supplied_facts(record: IntakeRecord) -> Optional[str]:
    """Facts the intake platform already structured, as prompt text."""
    value = record.get("supplied_facts")
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False) if value else None
    return _optional(record.text("supplied_facts"))


def _phone_identifiers(phone_data: Mapping[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    number = phone_data.get("phone_number") or phone_data.get("e164") or phone_data.get("number")
    number_id = phone_data.get("phone_number_id") or phone_data.get("id")
    return number, number_id


def is_outbound_mode(call_mode: Optional[str]) -> bool:
    return bool(call_mode) and "outbound" in call_mode.lower()


def build_dynamic_variables(profile: BusinessProfile, agent_name: str, record: IntakeRecord) -> Dict[str, str]:
    """Variables passed to calls and echoed back to the intake platform."""
    return {
        "business_name": profile.business_name,
        "agent_name": agent_name,
        "business_hours": profile.business_hours,
        "services": profile.services,
        "service_area": profile.service_area,
        "website": profile.website,
        "contact_name": profile.contact_name,
        "customer_name": record.text("contact_name"),
    }


class ProvisioningWorkflow:
    def __init__(
        self,
        retell: RetellClient,
        fetcher: Optional[WebsiteContextFetcher] = None
    ):
        self.retell = retell
        self.fetcher = fetcher

    # --- Remote steps ---

    async def create_llm(self, spec: AgentSpec, model: Optional[str] = None) -> str:
        try:
            response = await self.retell.create_retell_llm(
                general_prompt=spec.prompt_text,
                begin_message=spec.greeting_text,
                model=model
            )
        except RetellAPIError as e:
            raise RetellAPIError(
                f"LLM creation failed: {e.message}",
                status_code=502,
                details={"upstream_status": e.status_code, **e.details}
            ) from e

        llm_id = response.get("llm_id") or response.get("id")
        if not llm_id:
            raise RetellAPIError(
                "LLM creation failed (no llm_id returned)",
                status_code=502,
                details={"response": response}
            )
        logger.info(f"🧠 LLM created for {spec.agent_name}: {llm_id}")
        return llm_id

    async def create_agent(self, spec: AgentSpec, llm_id: str, role: StaffRole) -> Tuple[str, Optional[int]]:
        agent_label = f"{spec.metadata.get('business_name', '')} - {spec.agent_name} ({role.role_display})"
        try:
            response = await self.retell.create_agent(
                agent_name=agent_label,
                voice_id=spec.voice_id,
                llm_id=llm_id,
                metadata=spec.metadata
            )
        except RetellAPIError as e:
            raise RetellAPIError(
                f"Agent creation failed: {e.message}",
                status_code=502,
                details={"upstream_status": e.status_code, "llm_id": llm_id, **e.details}
            ) from e

        agent_id = response.get("agent_id") or response.get("id")
        if not agent_id:
            raise RetellAPIError(
                "Agent creation failed (no agent_id returned)",
                status_code=502,
                details={"response": response, "llm_id": llm_id}
            )
        version = _as_version(response.get("version"))
        logger.info(f"🤖 Agent created: {agent_label} -> {agent_id} (version {version})")
        return agent_id, version

    async def bind_phone_number_to_agent(
        self,
        phone_data: Mapping[str, Any],
        agent_id: str
    ) -> Tuple[str, Optional[str]]:
        """
        Bind by E.164 number first, then by internal id.
        Returns (phone_number, phone_number_id).
        """
        number, number_id = _phone_identifiers(phone_data)

        if not number and not number_id:
            raise PhoneBindingError(
                "Could not bind phone number: response has neither phone_number nor phone_number_id",
                details={"phone_data": dict(phone_data)}
            )

        if number:
            try:
                await self.retell.update_phone_number(number, inbound_agent_id=agent_id, outbound_agent_id=agent_id)
                logger.info(f"📞 Bound {number} to agent {agent_id}")
                return number, number_id
            except RetellAPIError as e:
                if not number_id:
                    raise
                logger.warning(f"⚠️  Binding by number failed ({e.message}), retrying by id {number_id}")

        await self.retell.update_phone_number(number_id, inbound_agent_id=agent_id, outbound_agent_id=agent_id)
        logger.info(f"📞 Bound phone id {number_id} to agent {agent_id}")
        return number or PHONE_ASSIGNED, number_id

    async def attach_phone_number(
        self,
        result: ProvisioningResult,
        business_name: str,
        area_code: str,
        require_phone: bool = False
    ):
        try:
            phone_data = await self.retell.create_phone_number(
                area_code=area_code,
                nickname=f"{business_name} - {result.agent_name} ({result.role_display})",
                inbound_agent_id=result.agent_id
            )
        except RetellAPIError as e:
            if require_phone:
                raise RetellAPIError(
                    f"Phone number provisioning failed: {e.message}",
                    status_code=502,
                    details={"upstream_status": e.status_code, "agent_id": result.agent_id, **e.details}
                ) from e
            logger.warning(f"⚠️  Phone purchase failed for agent {result.agent_id}: {e.message} {e.details}")
            result.phone_number = PHONE_PENDING
            result.warnings.append(f"Phone number not provisioned: {e.message}")
            return

        try:
            number, number_id = await self.bind_phone_number_to_agent(phone_data, result.agent_id)
        except RetellAPIError as e:
            # The number is bought either way; report it so it is not lost
            number, number_id = _phone_identifiers(phone_data)
            if require_phone:
                raise RetellAPIError(
                    f"Phone number binding failed: {e.message}",
                    status_code=502,
                    details={
                        "upstream_status": e.status_code,
                        "agent_id": result.agent_id,
                        "phone_number": number,
                        "phone_number_id": number_id,
                        **e.details
                    }
                ) from e
            logger.warning(f"⚠️  Bought {number or number_id} but could not bind it to agent {result.agent_id}: {e.message}")
            result.warnings.append(
                f"Phone number {number or number_id} purchased but not bound to agent {result.agent_id}: {e.message}"
            )

        result.phone_number = number or PHONE_ASSIGNED
        result.phone_number_id = number_id

    async def place_outbound_call(
        self,
        result: ProvisioningResult,
        destination: str,
        dynamic_variables: Dict[str, str],
        metadata: Optional[Dict[str, str]] = None
    ):
        """
        Outbound call failures are reported on the result, never raised.

        The metadata rides on the call so the post-call webhook can find the
        notification targets.
        """
        to_number = to_e164(destination)
        if not to_number:
            result.outbound_call_error = f"Invalid destination number: {destination}"
            logger.warning(f"⚠️  {result.outbound_call_error}")
            return

        from_number = result.phone_number if (result.phone_number or "").startswith("+") else settings.retell_from_number
        if not from_number:
            result.outbound_call_error = "No caller ID available: number not provisioned and RETELL_FROM_NUMBER not set"
            logger.warning(f"⚠️  {result.outbound_call_error}")
            return

        try:
            response = await self.retell.create_phone_call(
                from_number=from_number,
                to_number=to_number,
                agent_id=result.agent_id,
                dynamic_variables=dynamic_variables,
                metadata=metadata
            )
        except RetellAPIError as e:
            result.outbound_call_error = e.message
            logger.warning(f"⚠️  Outbound call to {to_number} failed: {e.message}")
            return

        result.outbound_call_id = response.get("call_id") or response.get("id")
        logger.info(f"📲 Outbound call placed to {to_number}: {result.outbound_call_id}")

    # --- Orchestration ---

    async def provision_role(
        self,
        spec: AgentSpec,
        role: StaffRole,
        business_name: str,
        area_code: str,
        dry_run: bool,
        require_phone: bool = False,
        model: Optional[str] = None
    ) -> ProvisioningResult:
        llm_id = await self.create_llm(spec, model=model)
        agent_id, version = await self.create_agent(spec, llm_id, role)

        result = ProvisioningResult(
            role_id=role.role_id,
            role_display=role.role_display,
            agent_name=spec.agent_name,
            llm_id=llm_id,
            agent_id=agent_id,
            agent_version=version,
            dry_run=dry_run
        )

        if dry_run:
            logger.info(f"🧪 Dry run: skipping phone purchase for agent {agent_id}")
            result.phone_number = DRY_RUN_PHONE_PLACEHOLDER
            return result

        await self.attach_phone_number(result, business_name, area_code, require_phone=require_phone)
        return result

    async def run(self, body: Optional[Mapping[str, Any]]) -> ProvisionResponse:
        record = IntakeRecord(body)
        dry_run = record.flag("dry_run")
        require_phone = record.flag("require_phone_number")

        profile = build_business_profile(record)
        protocols = build_protocol_blocks(record)
        logger.info(
            f"🚀 Provisioning {profile.package_type.value} package for '{profile.business_name}' "
            f"(dry_run={dry_run})"
        )

        excerpt = await self.fetcher.fetch(profile.website) if self.fetcher else None
        supplied_facts = _supplied_facts(record)
        facts = extract_facts(excerpt, _optional(record.text("business_type")))

        area_code = infer_area_code(
            record.get("preferred_area_code"),
            record.get("contact_phone"),
            settings.default_area_code
        )
        model = _optional(record.text("llm_model"))
        custom_agent_name = _optional(record.text("agent_name")) or settings.default_agent_name
        greeting = _optional(record.text("greeting"))

        metadata = {
            "client_email": profile.contact_email if profile.contact_email != NOT_PROVIDED else "",
            "notify_phone": _optional(record.text("notify_phone")) or "",
        }

        results: List[ProvisioningResult] = []
        for role in roles_for_package(profile.package_type):
            is_receptionist = role.role_id == RECEPTIONIST.role_id
            spec = compose(
                profile,
                facts,
                excerpt,
                protocols,
                role=role,
                agent_name=custom_agent_name if is_receptionist else role.name,
                greeting=greeting if is_receptionist else None,
                metadata=metadata,
                supplied_facts=supplied_facts,
            )
            try:
                results.append(await self.provision_role(
                    spec,
                    role,
                    business_name=profile.business_name,
                    area_code=area_code,
                    dry_run=dry_run,
                    require_phone=require_phone,
                    model=model,
                ))
            except APIError as e:
                if results:
                    # Earlier roles already exist upstream; the caller needs them to clean up
                    e.details["provisioned"] = [result.model_dump() for result in results]
                    logger.warning(
                        f"⚠️  {role.name} failed after provisioning "
                        f"{[(result.agent_id, result.phone_number) for result in results]}"
                    )
                raise

        primary = results[0]
        variables = build_dynamic_variables(profile, primary.agent_name, record)

        destination = _optional(record.text("destination_number"))
        if destination and is_outbound_mode(_optional(record.text("call_mode"))):
            if dry_run:
                primary.warnings.append("Dry run: outbound call not placed")
            else:
                call_metadata = {"business_name": profile.business_name, **metadata}
                await self.place_outbound_call(primary, destination, variables, metadata=call_metadata)

        warnings = [warning for result in results for warning in result.warnings]
        return ProvisionResponse(
            package=profile.package_type,
            dry_run=dry_run,
            agent_id=primary.agent_id,
            llm_id=primary.llm_id,
            agent_version=primary.agent_version,
            phone_number=primary.phone_number,
            outbound_call_id=primary.outbound_call_id,
            outbound_call_error=primary.outbound_call_error,
            scheduling_enabled=protocols[ProtocolKind.SCHEDULING].enabled,
            agents=results,
            warnings=warnings,
            variables=variables,
        )


async def provision_agent(
    body: Optional[Mapping[str, Any]],
    retell: Optional[RetellClient] = None,
    fetcher: Optional[WebsiteContextFetcher] = None
) -> ProvisionResponse:
    """Provision agents (and numbers, outside dry run) for an intake submission."""
    workflow = ProvisioningWorkflow(
        retell=retell or RetellClient(),
        fetcher=fetcher or WebsiteContextFetcher()
    )
    return await workflow.run(body)
