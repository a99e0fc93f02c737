"""
AI helpers with canned fallbacks.

Every public function here returns something usable when the provider is
unconfigured, times out, or replies with garbage. Callers never see an
AI failure as an error response.
"""

import json
import logging
import re
from datetime import date, timedelta
from uuid import UUID

import httpx
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinicops.core.async_utils import run_async
from clinicops.core.config import settings
from clinicops.db.base import utcnow
from clinicops.db.enums import TeamEventPriority, WorkloadLevel
from clinicops.db.models import DailyQuote, User
from clinicops.schemas.ai import DailyQuoteResponse, GenerateDescriptionRequest
from clinicops.schemas.leave import LeaveRecommendation
from clinicops.schemas.workflow import GenerateEmailRequest, GenerateEmailResponse
from clinicops.services import leave_service, task_service
from clinicops.services.ai_provider import AIUnavailableError, ChatMessage, get_configured_provider
from clinicops.services.template_service import sanitize_html

logger = logging.getLogger(__name__)

QUOTE_FALLBACK = "Every accomplishment starts with the decision to try. Make today count!"
QUOTE_EMPTY_DEFAULT = (
    "Every day is a fresh opportunity to create meaningful impact. "
    "Start strong, stay focused, and finish proud."
)
RECOMMENDATION_FALLBACK = (
    "Your workload appears manageable. "
    "Consider scheduling leave during quieter periods for maximum relaxation."
)
EMAIL_FALLBACK_SUBJECT = "Clinic update"
EMAIL_FALLBACK_HTML = "<p>Thank you for your message.</p>"
DEFAULT_EMAIL_TONE = "professional and reassuring"

UPCOMING_EVENT_WINDOW_DAYS = 14

QUOTE_SYSTEM_PROMPT = (
    "You are a motivational coach for a busy clinic team. Write one short, original "
    "motivational quote of 15-40 words for today. Do not attribute it to anyone and "
    "do not wrap it in quotation marks."
)

RECOMMENDATION_SYSTEM_PROMPT = (
    "You are an HR assistant helping an employee decide when to take leave. "
    "Given their workload and leave balance as JSON, reply in 2-3 sentences with a "
    "practical recommendation. Be specific and supportive."
)

DESCRIPTION_SYSTEM_PROMPT = (
    "You are a professional writer of invoices and quotes. Write a concise, clear line-item "
    "description (1-3 sentences) for the work described. Reply with the description only."
)

EMAIL_SYSTEM_PROMPT = (
    "You write patient-facing emails for a medical clinic. Reply with a JSON object "
    'of the form {"subject": "...", "html": "..."}. The html must be simple paragraphs. '
    "Use only the template variables you are given, written as {{ variable.path }}."
)

# Failures that mean "use the fallback"
AI_FAILURES = (
    AIUnavailableError,
    httpx.HTTPError,
    TimeoutError,
    KeyError,
    IndexError,
    ValueError,
)


def _strip_code_fences(text: str) -> str:
    content = text.strip()
    if content.startswith("```"):
        content = re.sub(r"^```[a-zA-Z]*\s*", "", content)
        content = re.sub(r"\s*```$", "", content)
    return content.strip()


def parse_json_object(text: str) -> dict | None:
    content = _strip_code_fences(text)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        match = re.search(r"\{[\s\S]*\}", content)
        if not match:
            logger.warning(f"Failed to parse JSON object: {exc}")
            return None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as inner_exc:
            logger.warning(f"Failed to parse JSON object: {inner_exc}")
            return None
    return data if isinstance(data, dict) else None


def _complete(
    system_prompt: str,
    user_prompt: str,
    *,
    temperature: float = 0.7,
    max_tokens: int = 800,
) -> str:
    """
    One system+user round trip through the configured provider.

    Raises:
        AIUnavailableError and the errors in AI_FAILURES
    """
    provider = get_configured_provider()
    messages = [
        ChatMessage(role="system", content=system_prompt),
        ChatMessage(role="user", content=user_prompt),
    ]
    response = run_async(
        provider.chat(messages, temperature=temperature, max_tokens=max_tokens),
        timeout=settings.AI_TIMEOUT_SECONDS,
    )
    return (response.content or "").strip()


# =============================================================================
# Daily quote
# =============================================================================

def get_daily_quote(db: Session, user_id: UUID, today: date | None = None) -> DailyQuoteResponse:
    """Return today's quote for the user, generating and caching it on first call."""
    today = today or utcnow().date()

    cached = (
        db.query(DailyQuote)
        .filter(DailyQuote.user_id == user_id, DailyQuote.quote_date == today)
        .first()
    )
    if cached:
        return DailyQuoteResponse(quote=cached.quote, cached=True)

    try:
        text = _complete(
            QUOTE_SYSTEM_PROMPT,
            f"Today is {today.strftime('%A, %d %B %Y')}.",
            temperature=0.9,
            max_tokens=100,
        )
    except AI_FAILURES as exc:
        logger.info("Daily quote fallback", extra={"error_type": type(exc).__name__})
        return DailyQuoteResponse(quote=QUOTE_FALLBACK)

    quote = text.strip().strip('"').strip() or QUOTE_EMPTY_DEFAULT
    db.add(DailyQuote(user_id=user_id, quote_date=today, quote=quote))
    try:
        db.commit()
    except IntegrityError:
        # Another request cached today's quote first
        db.rollback()
        existing = (
            db.query(DailyQuote)
            .filter(DailyQuote.user_id == user_id, DailyQuote.quote_date == today)
            .first()
        )
        if existing:
            return DailyQuoteResponse(quote=existing.quote, cached=True)
    return DailyQuoteResponse(quote=quote)


# =============================================================================
# Leave recommendation
# =============================================================================

def workload_level(pending_tasks: int, events: list) -> WorkloadLevel:
    if pending_tasks > 10 or any(e.priority == TeamEventPriority.CRITICAL.value for e in events):
        return WorkloadLevel.HIGH
    if pending_tasks <= 3 and not events:
        return WorkloadLevel.LOW
    return WorkloadLevel.MEDIUM


def get_leave_recommendation(
    db: Session, org_id: UUID, user: User, today: date | None = None
) -> LeaveRecommendation:
    today = today or utcnow().date()
    pending = task_service.count_open_tasks(db, org_id, user.id)
    events = leave_service.list_team_events(
        db, org_id, start=today, end=today + timedelta(days=UPCOMING_EVENT_WINDOW_DAYS)
    )
    balance = leave_service.get_balance(user)
    level = workload_level(pending, events)

    payload = {
        "pending_tasks": pending,
        "workload_level": level.value,
        "annual_leave_remaining": balance.annual.remaining,
        "sick_leave_remaining": balance.sick.remaining,
        "upcoming_events": [
            {
                "title": event.title,
                "type": event.event_type,
                "date": event.event_date.isoformat(),
                "priority": event.priority,
            }
            for event in events
        ],
    }

    try:
        text = _complete(
            RECOMMENDATION_SYSTEM_PROMPT,
            json.dumps(payload),
            temperature=0.6,
            max_tokens=200,
        )
    except AI_FAILURES as exc:
        logger.info("Leave recommendation fallback", extra={"error_type": type(exc).__name__})
        text = ""

    return LeaveRecommendation(
        recommendation=text or RECOMMENDATION_FALLBACK,
        workload_level=level,
        pending_tasks=pending,
        upcoming_events=len(events),
        annual_remaining=balance.annual.remaining,
        sick_remaining=balance.sick.remaining,
    )


# =============================================================================
# Content generation
# =============================================================================

def generate_email(data: GenerateEmailRequest) -> GenerateEmailResponse:
    """
    Draft a workflow email from a short description.

    Raises:
        HTTPException 400: Blank description
    """
    description = data.description.strip()
    if not description:
        raise HTTPException(status_code=400, detail="Description is required")

    tone = (data.tone or "").strip() or DEFAULT_EMAIL_TONE
    variables = ", ".join(f"{{{{ {v} }}}}" for v in data.variables) or "none"
    prompt = f"Description: {description}\nTone: {tone}\nAvailable variables: {variables}"

    try:
        text = _complete(EMAIL_SYSTEM_PROMPT, prompt, temperature=0.5)
    except AI_FAILURES as exc:
        logger.info("Email generation fallback", extra={"error_type": type(exc).__name__})
        return GenerateEmailResponse(subject=EMAIL_FALLBACK_SUBJECT, html=EMAIL_FALLBACK_HTML)

    parsed = parse_json_object(text)
    if parsed is None:
        html = f"<p>{text}</p>" if text else EMAIL_FALLBACK_HTML
        return GenerateEmailResponse(subject=EMAIL_FALLBACK_SUBJECT, html=sanitize_html(html))

    subject = str(parsed.get("subject") or "").strip() or EMAIL_FALLBACK_SUBJECT
    html = str(parsed.get("html") or "").strip() or EMAIL_FALLBACK_HTML
    return GenerateEmailResponse(subject=subject, html=sanitize_html(html))


def generate_invoice_description(data: GenerateDescriptionRequest) -> str:
    """
    Raises:
        HTTPException 400: Blank context
    """
    context = data.context.strip()
    if not context:
        raise HTTPException(status_code=400, detail="Context is required")

    label = "Quote" if data.type == "quote" else "Invoice"
    project_name = (data.project_name or "").strip() or "this project"
    fallback = f"{label} for {project_name}: {context}"

    try:
        text = _complete(
            DESCRIPTION_SYSTEM_PROMPT,
            f"Document type: {data.type}\nProject: {project_name}\nWork: {context}",
            temperature=0.4,
            max_tokens=200,
        )
    except AI_FAILURES as exc:
        logger.info("Description fallback", extra={"error_type": type(exc).__name__})
        return fallback
    return text or fallback
