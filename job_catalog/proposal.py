"""Proposal drafting for a single job record"""
import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound

from .ai_engine import AIEngine, GenerationError
from .config import AIConfig, get_project_root
from .models import JobRecord, ProposalOutcome, ProposalState
from .normalize import normalize_skills
from .logger import get_logger

logger = get_logger()

MISSING = "N/A"

DEFAULT_PROMPT_TEMPLATE = """You are an expert freelancer writing a compelling proposal for an Upwork job. Based on the following job details, write a professional, personalized proposal that:

1. Addresses the client's specific needs
2. Highlights relevant skills and experience
3. Shows understanding of the project
4. Is concise but comprehensive (2-3 paragraphs)
5. Includes a clear call to action

Job Details:
Title: {{ title }}
Description: {{ description }}
Budget: {{ budget }}
Experience Level Required: {{ experience_level }}
Skills Required: {{ skills }}
Location: {{ location }}
Client Location: {{ client_location }}

Write a compelling proposal that stands out:"""


def _or_missing(value: Any) -> str:
    if value is None:
        return MISSING
    text = str(value).strip()
    return text or MISSING


def prompt_context(record: JobRecord) -> dict[str, str]:
    """Every field is present; absent values become N/A so prompts keep one shape"""
    skills = normalize_skills(record.skills)
    budget = _or_missing(record.budget_amount)
    if record.budget_type:
        budget = f"{budget} {record.budget_type}"
    return {
        "title": _or_missing(record.title),
        "description": _or_missing(record.description),
        "budget": budget,
        "experience_level": _or_missing(record.experience_level),
        "skills": ", ".join(skills) if skills else MISSING,
        "location": _or_missing(record.location),
        "client_location": _or_missing(record.client_location),
    }


class ProposalOrchestrator:
    """
    Drives one proposal request at a time: idle -> pending -> success | error.

    Starting a new request cancels any request still in flight and throws
    away its result. Failures are reported, never retried.
    """

    def __init__(self, engine: Optional[AIEngine] = None, ai_config: Optional[AIConfig] = None):
        self.engine = engine or AIEngine()
        self.ai_config = ai_config or self.engine.ai_config
        self.outcome = ProposalOutcome()
        self._task: Optional[asyncio.Task] = None

        # Set up Jinja2 environment
        templates_dir = get_project_root() / "templates"
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            keep_trailing_newline=False,
        )

    @property
    def state(self) -> ProposalState:
        return self.outcome.state

    def _get_template(self) -> Template:
        template_name = Path(self.ai_config.prompt_template).name
        try:
            return self.jinja_env.get_template(template_name)
        except TemplateNotFound:
            logger.warning(f"Could not load template {template_name}, using default")
            return Template(DEFAULT_PROMPT_TEMPLATE)

    def build_prompt(self, record: JobRecord) -> str:
        return self._get_template().render(**prompt_context(record)).strip()

    def reset(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.outcome = ProposalOutcome()

    async def request(self, record: JobRecord) -> ProposalOutcome:
        """Generate a proposal for `record`, superseding any earlier request"""
        if self._task is not None and not self._task.done():
            logger.info(f"Cancelling in-flight proposal for job {self.outcome.job_id}")
            self._task.cancel()

        prompt = self.build_prompt(record)
        self.outcome = ProposalOutcome(state=ProposalState.PENDING, job_id=record.id)
        logger.info(f"Generating proposal for: {record.title or record.id}")

        task = asyncio.create_task(self.engine.generate(self.ai_config.system_prompt, prompt))
        self._task = task
        try:
            text = await task
        except asyncio.CancelledError:
            if self._task is task:
                # The caller itself was cancelled, not superseded
                self.outcome = ProposalOutcome()
                self._task = None
                raise
            logger.debug(f"Proposal request for job {record.id} was superseded")
            return self.outcome.model_copy()
        except GenerationError as e:
            if self._task is not task:
                return self.outcome.model_copy()
            logger.error(f"Proposal generation failed for job {record.id}: {e.message}")
            self.outcome = ProposalOutcome(
                state=ProposalState.ERROR,
                job_id=record.id,
                error=e.message,
                status_code=e.status_code,
            )
            return self.outcome.model_copy()

        if self._task is not task:
            return self.outcome.model_copy()

        self.outcome = ProposalOutcome(
            state=ProposalState.SUCCESS,
            job_id=record.id,
            text=text,
            generated_at=datetime.now(),
        )
        logger.info(f"Generated proposal for job {record.id} ({len(text)} chars)")
        return self.outcome.model_copy()
