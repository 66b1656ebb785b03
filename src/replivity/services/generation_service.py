"""
Generation Service - reply generation pipeline and generation statistics

Pipeline: active plan check -> usage check -> analyze -> generate -> enhance ->
persist -> usage increment.
"""
import calendar
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..db.models import Generation, User
from ..exceptions import NoActiveSubscription, UsageLimitExceeded
from . import prompts
from .billing_service import BillingService
from .llm_provider import LLMClient, resolve_provider_config
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

TRACKED_SOURCES = ("facebook", "twitter", "linkedin")
HASHTAG_GENERATOR_AUTHOR = "AI Hashtag Generator"
TWEET_GENERATOR_AUTHOR = "Tweet Generator"

ANALYSIS_TEMPERATURE = 0.3
GENERATION_TEMPERATURE = 0.7
ENHANCEMENT_TEMPERATURE = 0.4


@dataclass
class EnhancedResponse:
    text: str
    confidence: float
    context_analysis: Dict[str, Any]
    improvements: List[str] = field(default_factory=list)


def shift_months(value: datetime, months: int) -> datetime:
    """Move a datetime by whole calendar months, clamping the day to the target month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def percentage_change(total: int, previous_total: int) -> float:
    if total == 0 and previous_total == 0:
        return 0
    if previous_total == 0:
        return 100
    return (total - previous_total) / previous_total * 100


def is_web_tweet_generation(request) -> bool:
    """Tweets written from the dashboard tweet generator are not counted against the plan"""
    return (
        request.source == "twitter"
        and request.type == "status"
        and request.author == TWEET_GENERATOR_AUTHOR
    )


def generate_enhanced_response(client: LLMClient, request, custom_prompt: str = "") -> EnhancedResponse:
    """Run the analyze -> generate -> enhance chain against the model"""
    analysis_text = client.complete(
        prompts.build_analysis_prompt(request),
        temperature=ANALYSIS_TEMPERATURE,
    )
    context_analysis = prompts.parse_context_analysis(analysis_text)

    draft = client.complete(
        prompts.build_user_prompt(request),
        temperature=GENERATION_TEMPERATURE,
        system=prompts.build_system_prompt(request, context_analysis, custom_prompt),
    )

    enhancement_text = client.complete(
        prompts.build_enhancement_prompt(request, draft, context_analysis),
        temperature=ENHANCEMENT_TEMPERATURE,
    )
    enhanced = prompts.parse_enhancement(enhancement_text, draft)

    return EnhancedResponse(
        text=enhanced["text"],
        confidence=enhanced["confidence"],
        context_analysis=context_analysis,
        improvements=enhanced["improvements"],
    )


class GenerationService:
    """Generates replies for a user and reports on past generations"""

    def __init__(self, db: Session):
        self.db = db
        self.billing = BillingService(db)

    def generate(self, user: User, request) -> Dict[str, Any]:
        """
        Generate a reply or status for `user`

        Raises:
            NoActiveSubscription: the user has no active billing record
            UsageLimitExceeded: a non-admin user has used up the plan
            AIProviderError: no model configured or the model call failed
        """
        billing = self.billing.get_active_billing(user.id)
        if billing is None or billing.product is None:
            raise NoActiveSubscription()

        product = billing.product
        usage = self.billing.get_usage(user.id, product.id)
        used = usage.used if usage else 0
        limit = product.limit or 0

        if not user.is_admin and used >= limit:
            logger.info(f"User {user.id} hit the usage limit ({used}/{limit}) on product {product.id}")
            raise UsageLimitExceeded(used=used, limit=limit, plan=product.name)

        ai_settings = SettingsService(self.db).get_ai_settings()
        provider_config = resolve_provider_config(ai_settings)
        client = LLMClient(provider_config)

        logger.info(
            f"Generating {request.type} for user {user.id} on {request.source} "
            f"with {provider_config.model}"
        )
        response = generate_enhanced_response(client, request, provider_config.system_prompt)

        generation = Generation(
            user_id=user.id,
            product_id=product.id,
            source=request.source,
            link=request.link,
            post=request.post,
            reply=response.text,
            author=request.author,
        )
        self.db.add(generation)

        if not is_web_tweet_generation(request):
            self.billing.increment_usage(user.id, product.id)

        self.db.commit()

        return {
            "id": generation.id,
            "text": response.text,
            "remaining_usage": limit - (used + 1),
            "confidence": response.confidence,
            "context_analysis": response.context_analysis,
        }

    # Statistics

    def _scoped(self, query, user_id: Optional[int]):
        if user_id is not None:
            query = query.filter(Generation.user_id == user_id)
        return query

    def get_stats(
        self,
        user_id: Optional[int],
        source: Optional[str] = None,
        author: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Total generations and change against the rows older than one month

        `user_id=None` means site-wide. The date range only applies when both ends
        are given.
        """
        query = self._scoped(self.db.query(func.count(Generation.id)), user_id)
        if source is not None:
            query = query.filter(Generation.source == source)
        if author is not None:
            query = query.filter(Generation.author == author)
        if date_from is not None and date_to is not None:
            query = query.filter(Generation.created_at >= date_from, Generation.created_at <= date_to)

        one_month_ago = shift_months(datetime.utcnow(), -1)
        total = query.scalar() or 0
        previous_total = query.filter(Generation.created_at < one_month_ago).scalar() or 0

        return {
            "total": total,
            "percentage_change": percentage_change(total, previous_total),
        }

    def get_sources_overview(self, user_id: int) -> List[Dict[str, Any]]:
        """Per-month counts for the current calendar year"""
        now = datetime.utcnow()
        start_of_year = datetime(now.year, 1, 1)

        rows = self.db.query(Generation.source, Generation.created_at).filter(
            Generation.user_id == user_id,
            Generation.created_at >= start_of_year,
        ).all()

        monthly = [
            {"name": calendar.month_abbr[month], "facebook": 0, "twitter": 0, "linkedin": 0, "total": 0}
            for month in range(1, 13)
        ]
        for source, created_at in rows:
            if created_at is None:
                continue
            bucket = monthly[created_at.month - 1]
            if source in TRACKED_SOURCES:
                bucket[source] += 1
            bucket["total"] += 1

        return monthly

    def get_daily_stats(self, user_id: Optional[int], days: int = 30) -> List[Dict[str, Any]]:
        """Per-day counts for the last `days` days, oldest first"""
        now = datetime.utcnow()
        start_date = now - timedelta(days=days)

        rows = self._scoped(
            self.db.query(Generation.source, Generation.created_at),
            user_id,
        ).filter(Generation.created_at >= start_date).all()

        by_date = OrderedDict()
        for offset in range(days):
            day = (now - timedelta(days=offset)).date().isoformat()
            by_date[day] = {"date": day, "facebook": 0, "twitter": 0, "linkedin": 0, "total": 0}

        for source, created_at in rows:
            if created_at is None:
                continue
            bucket = by_date.get(created_at.date().isoformat())
            if bucket is None:
                continue
            if source in TRACKED_SOURCES:
                bucket[source] += 1
            bucket["total"] += 1

        return list(reversed(by_date.values()))

    def get_source_totals(self, user_id: Optional[int]) -> Dict[str, Any]:
        """All-time totals per source, the plan limit and this month's total"""
        now = datetime.utcnow()
        start_of_month = datetime(now.year, now.month, 1)
        end_of_month = shift_months(start_of_month, 1)

        plan_limit = 0
        if user_id is not None:
            billing = self.billing.get_active_billing(user_id)
            if billing is not None and billing.product is not None:
                plan_limit = billing.product.limit or 0

        current_month_total = self._scoped(
            self.db.query(func.count(Generation.id)), user_id
        ).filter(
            Generation.created_at >= start_of_month,
            Generation.created_at < end_of_month,
        ).scalar() or 0

        grouped = self._scoped(
            self.db.query(Generation.source, func.count(Generation.id)), user_id
        ).group_by(Generation.source).all()

        return {
            "sources": [{"source": source, "total": total} for source, total in grouped],
            "plan_limit": plan_limit,
            "current_month_total": current_month_total,
            "current_month": calendar.month_name[now.month],
        }

    def get_history(self, user_id: int, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        query = self.db.query(Generation).filter(Generation.user_id == user_id)
        total_count = query.count()
        rows = query.order_by(Generation.created_at.desc(), Generation.id.desc()).offset(offset).limit(limit).all()

        return {
            "generations": [
                {
                    "id": g.id,
                    "source": g.source,
                    "link": g.link,
                    "post": g.post,
                    "reply": g.reply,
                    "author": g.author,
                    "created_at": g.created_at.isoformat() if g.created_at else None,
                }
                for g in rows
            ],
            "total_count": total_count,
            "has_more": offset + limit < total_count,
        }
