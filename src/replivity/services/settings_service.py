"""
Settings Service - the installation-wide settings row
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..db.models import Settings
from .llm_provider import AI_MODEL_LIST

logger = logging.getLogger(__name__)


class SettingsService:
    """Reads and updates the single settings row, creating it on first access"""

    def __init__(self, db: Session):
        self.db = db

    def get_settings(self) -> Settings:
        settings = self.db.query(Settings).order_by(Settings.id.asc()).first()
        if settings is None:
            settings = Settings(general={})
            self.db.add(settings)
            self.db.flush()
        return settings

    def get_ai_settings(self) -> Dict[str, Any]:
        """Raw `general.ai` section (includes the API key)"""
        general = self.get_settings().general or {}
        return dict(general.get("ai") or {})

    def get_public_ai_settings(self) -> Dict[str, Any]:
        """AI section safe to return to a client: the key is reported, never shown"""
        ai = self.get_ai_settings()
        return {
            "enabled_models": ai.get("enabledModels") or [],
            "system_prompt": ai.get("systemPrompt") or "",
            "api_base": ai.get("apiBase") or None,
            "api_key_set": bool(ai.get("apiKey")),
            "available_models": [
                {"key": m.key, "provider": m.provider, "name": m.name} for m in AI_MODEL_LIST
            ],
        }

    def update_ai_settings(
        self,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        enabled_models: Optional[list] = None,
        system_prompt: Optional[str] = None,
    ) -> Dict[str, Any]:
        settings = self.get_settings()
        ai = self.get_ai_settings()

        if api_key is not None:
            ai["apiKey"] = api_key
        if api_base is not None:
            ai["apiBase"] = api_base
        if enabled_models is not None:
            ai["enabledModels"] = list(enabled_models)
        if system_prompt is not None:
            ai["systemPrompt"] = system_prompt

        # Reassign so the JSON column is flagged dirty
        settings.general = {**(settings.general or {}), "ai": ai}
        self.db.commit()
        logger.info(f"AI settings updated (models={ai.get('enabledModels') or []})")
        return self.get_public_ai_settings()
