"""Unit tests for LocalizationPipeline."""

from unittest.mock import AsyncMock

import pytest

from skillsearch.config.schema import AppConfig
from skillsearch.entities import Skill
from skillsearch.pipelines.localization import LocalizationPipeline
from skillsearch.providers import ProviderError
from skillsearch.providers.base import LLMProvider


@pytest.fixture
def llm():
    return AsyncMock(spec=LLMProvider)


@pytest.fixture
def pipeline(memory_store, llm):
    return LocalizationPipeline(AppConfig(), llm, memory_store)


@pytest.mark.asyncio
class TestLocalizationPipeline:
    """Test LocalizationPipeline."""

    async def test_translate_name(self, pipeline, llm):
        llm.generate.return_value = " Vue 指南 \n"

        assert await pipeline.translate_name("Vue Guide") == "Vue 指南"
        prompt = llm.generate.await_args.args[0]
        assert "Vue Guide" in prompt

    async def test_identical_translation_discarded(self, pipeline, llm):
        llm.generate.return_value = "Vue Guide"
        assert await pipeline.translate_name("Vue Guide") is None

    async def test_blank_name_not_sent(self, pipeline, llm):
        assert await pipeline.translate_name("  ") is None
        llm.generate.assert_not_awaited()

    async def test_mostly_non_english_description_skipped(self, pipeline, llm):
        assert await pipeline.translate_description("这是一个关于前端开发的技能") is None
        llm.generate.assert_not_awaited()

    async def test_description_prompt_includes_skill_name(self, pipeline, llm):
        llm.generate.return_value = "组件模式"

        assert await pipeline.translate_description("Component patterns", "Vue Guide") == "组件模式"
        prompt = llm.generate.await_args.args[0]
        assert "Component patterns" in prompt
        assert "Vue Guide" in prompt

    async def test_provider_failure_returns_none(self, pipeline, llm):
        llm.generate.side_effect = ProviderError("rate limited", provider="zhipu")
        assert await pipeline.translate_name("Vue Guide") is None

    async def test_localize_skill_keeps_existing_fields(self, pipeline, llm):
        llm.generate.return_value = "新描述"
        skill = Skill(name="React", name_localized="React 已有", description="A UI library")

        localized = await pipeline.localize_skill(skill)

        assert localized.name_localized == "React 已有"
        assert localized.description_localized == "新描述"
        assert llm.generate.await_count == 1

    async def test_localize_missing(self, pipeline, llm, memory_store):
        llm.generate.side_effect = lambda prompt, **kwargs: "译文" if "Hooks" in prompt else "翻译"

        report = await pipeline.localize_missing(limit=10)

        # react already has a localized name but lacks a localized description
        assert report.examined == 3
        assert report.updated == 3

        hooks = await memory_store.get_skill("hooks")
        assert hooks.name_localized == "译文"
        assert hooks.description_localized == "译文"
        assert (await memory_store.get_skill("react")).name_localized == "React 最佳实践"
        assert (await memory_store.get_skill("legacy")).name_localized is None

    async def test_localize_missing_respects_limit(self, pipeline, llm):
        llm.generate.return_value = "翻译"

        report = await pipeline.localize_missing(limit=1)

        assert report.examined == 1
        assert report.skill_ids == ["react"]

    async def test_untranslatable_skill_does_not_use_up_limit(self, pipeline, llm, memory_store):
        # react only lacks a localized description and the model returns nothing for it
        llm.generate.side_effect = lambda prompt, **kwargs: "" if "Patterns for building" in prompt else "翻译"

        report = await pipeline.localize_missing(limit=1)

        assert report.examined == 2
        assert report.updated == 1
        assert report.skill_ids == ["vue"]
        assert (await memory_store.get_skill("react")).description_localized is None

    async def test_failed_skill_not_written(self, pipeline, llm, memory_store):
        llm.generate.side_effect = ProviderError("down", provider="zhipu")

        report = await pipeline.localize_missing(limit=10)

        assert report.updated == 0
        assert (await memory_store.get_skill("vue")).name_localized is None
