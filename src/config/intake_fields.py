"""
Alias table for intake submissions.

Intake platforms (form builders, Zapier steps, CRM automations) send the same
logical field under different keys. Each logical field maps to the keys we
accept for it, tried in order.
"""
from typing import Dict, Tuple


FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    # Business profile
    "business_name": ("business_name", "biz_name", "company", "company_name"),
    "website": ("website", "website_url", "business_website", "site_url", "url"),
    "business_hours": ("business_hours", "hours", "hours_of_operation"),
    "services": ("services", "services_offered", "main_services"),
    "service_area": ("service_area", "service_areas", "areas_served"),
    "time_zone": ("time_zone", "timezone", "tz"),
    "contact_name": ("contact_name", "owner_name", "full_name", "name"),
    "contact_email": ("email_for_call_summaries", "client_email", "contact_email", "email"),
    "contact_phone": ("business_phone", "company_phone", "phone"),
    "notify_phone": ("notify_phone", "cell_phone", "owner_phone", "mobile_phone"),
    "extra_notes": ("extra_notes", "notes", "additional_info", "anything_else"),
    "package_type": ("package_type", "product_name", "plan"),
    "voice_id": ("voice_id", "voice"),
    "business_type": ("business_type", "industry", "trade"),
    "supplied_facts": ("structured_facts", "website_facts", "facts"),

    # Protocol blocks
    "scheduling_details": ("scheduling_details", "calendar_link", "booking_link", "scheduling_link"),
    "emergency_details": ("emergency_details", "emergency_protocol", "after_hours_emergency"),
    "intake_details": ("intake_details", "intake_questions", "job_intake"),
    "lead_revival_details": ("lead_revival_details", "lead_revival", "reactivation_details"),

    # Agent configuration
    "agent_name": ("agent_name", "receptionist_name"),
    "greeting": ("begin_message", "greeting", "greeting_text"),
    "llm_model": ("llm_model", "model"),
    "preferred_area_code": ("preferred_area_code", "area_code"),

    # Request flags
    "dry_run": ("is_test_mode", "Is_Test_mode", "Is_Test_Mode", "is_test", "test_mode", "dry_run", "dryRun"),
    "require_phone_number": ("require_phone_number", "phone_required"),

    # Outbound call
    "destination_number": ("to_number", "destination_number", "customer_phone", "lead_phone"),
    "call_mode": ("call_mode", "mode", "demo_type"),
}
