"""Localization pipeline: fill localized names and descriptions with an LLM.

Localized fields are searched by both retrieval paths, so translating
English-only skills lets Chinese queries reach them.

How to use:
    pipeline = LocalizationPipeline(config, llm_provider, store)
    report = await pipeline.localize_missing(limit=20)
"""

from typing import Optional

from pydantic import BaseModel, Field

from skillsearch.config.schema import AppConfig
from skillsearch.core.text import english_ratio
from skillsearch.entities import ActiveFilter, CandidateQuery, Skill
from skillsearch.observability.logging import get_logger
from skillsearch.providers.base import LLMProvider, ProviderError
from skillsearch.storage.base import SkillStore

logger = get_logger(__name__)

# Below this share of ASCII letters the text is treated as already localized
MIN_ENGLISH_RATIO = 0.3
NAME_MAX_TOKENS = 100

NAME_PROMPT = """Translate the following skill name into Simplified Chinese.
Requirements:
1. Keep the name short and professional
2. Keep brand and product names in their original English form
3. If it is already Chinese, return it unchanged

Skill name: {name}

Return only the translated name, without any explanation."""

DESCRIPTION_PROMPT = """Translate the following text into Simplified Chinese.
Requirements:
1. Keep technical terms accurate
2. Keep the style of technical documentation
3. Leave code, commands and links unchanged
4. If it is already Chinese, return it unchanged{context}

Text:
{text}

Return only the translation, without any explanation."""


class LocalizationReport(BaseModel):
    examined: int = 0
    updated: int = 0
    skill_ids: list[str] = Field(default_factory=list)


class LocalizationPipeline:
    """Translates missing localized fields and writes them back to the store."""

    def __init__(self, config: AppConfig, llm_provider: LLMProvider, store: SkillStore):
        self.config = config
        self.llm_provider = llm_provider
        self.store = store

    async def translate_name(self, name: str) -> Optional[str]:
        if not name or not name.strip():
            return None
        return await self._complete(NAME_PROMPT.format(name=name), name, NAME_MAX_TOKENS)

    async def translate_description(self, description: str, skill_name: Optional[str] = None) -> Optional[str]:
        if not description or not description.strip():
            return None
        if english_ratio(description) < MIN_ENGLISH_RATIO:
            return None

        context = f"\n\nContext: skill name is {skill_name}" if skill_name else ""
        prompt = DESCRIPTION_PROMPT.format(text=description, context=context)
        return await self._complete(prompt, description, self.config.llm.max_tokens)

    async def _complete(self, prompt: str, source: str, max_tokens: int) -> Optional[str]:
        """Run one completion; failures and no-op translations yield None."""
        try:
            translated = await self.llm_provider.generate(
                prompt,
                max_tokens=max_tokens,
                temperature=self.config.llm.temperature,
            )
        except ProviderError as e:
            logger.warning("translation_failed", provider=e.provider, error=e.message)
            return None

        translated = translated.strip()
        if not translated or translated == source:
            return None
        return translated

    async def localize_skill(self, skill: Skill) -> Skill:
        """Return a copy of the skill with missing localized fields filled."""
        updates: dict[str, str] = {}

        if not skill.name_localized:
            name = await self.translate_name(skill.name)
            if name:
                updates["name_localized"] = name

        if not skill.description_localized:
            description = await self.translate_description(skill.description, skill.name)
            if description:
                updates["description_localized"] = description

        return skill.model_copy(update=updates) if updates else skill

    async def localize_missing(self, limit: int = 10) -> LocalizationReport:
        """Localize up to ``limit`` active skills lacking a localized field.

        Skills whose translation yields nothing count as examined but not
        toward ``limit``.
        """
        report = LocalizationReport()
        skills = await self.store.fetch_candidates(CandidateQuery(filters=[ActiveFilter()]))

        for skill in skills:
            if report.updated >= limit:
                break
            if skill.name_localized and skill.description_localized:
                continue

            report.examined += 1
            localized = await self.localize_skill(skill)
            if localized is not skill:
                await self.store.upsert_skill(localized)
                report.updated += 1
                report.skill_ids.append(skill.id)

        logger.info("localization_completed", examined=report.examined, updated=report.updated)
        return report
