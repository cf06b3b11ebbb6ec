"""
Audience classification: ask a text-generation model which species (or people)
a product is meant for, and coerce the answer into a closed tag set.
"""

import json
import re
from abc import ABC, abstractmethod
from typing import List, Optional

from google import genai
from google.genai import types as genai_types

from catalog_etl.core.config import settings
from catalog_etl.core.logging import log
from catalog_etl.core.taxonomy import AudienceVocabulary
from catalog_etl.schemas.batch import StepResult
from catalog_etl.schemas.product import CanonicalProduct
from catalog_etl.utils.normalization import truncate

DESCRIPTION_LIMIT = 300

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class TextGenerator(ABC):
    """Anything that turns a prompt into text"""

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        pass


class GeminiTextGenerator(TextGenerator):
    """Text generation backed by the Google Gen AI SDK"""

    def __init__(self, api_key: Optional[str] = None, model_id: Optional[str] = None, temperature: Optional[float] = None):
        self.client = genai.Client(api_key=api_key or settings.google_api_key)
        self.model_id = model_id or settings.gemini_model
        self.config = genai_types.GenerateContentConfig(
            temperature=settings.gemini_temperature if temperature is None else temperature,
            candidate_count=1,
        )

    async def generate(self, prompt: str) -> str:
        response = await self.client.aio.models.generate_content(
            model=self.model_id,
            contents=prompt,
            config=self.config,
        )

        # Combine all text parts of the first candidate
        if response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                return "".join(part.text for part in candidate.content.parts if getattr(part, "text", None))
        return ""


ENGLISH_PROMPT = """You are a catalog data specialist.
Decide who the following product is intended for.

Product name: {name}
Category: {category}
Description: {description}

Answer with a JSON array only. Allowed values: "{dog}", "{cat}", "{humans}", "{other}".

Rules:
1. Grooming, spa, bath and coat-care products: decide by the species the description mentions. If it mentions dogs, answer ["{dog}"]; cats, ["{cat}"]; both, ["{dog}", "{cat}"]. If it is meant for people, answer ["{humans}"].
2. Bags, keychains, apparel and other accessories for owners are ["{humans}"].
3. Names mentioning puppies, small breeds or "for Dog" are ["{dog}"].
4. Names mentioning kittens, cat cans or "for Cat" are ["{cat}"].
5. If the description explicitly says the product suits both dogs and cats, answer ["{dog}", "{cat}"].
6. If none of the above can be decided, answer ["{other}"].

Examples:
- "Chew Stick XS (mini breeds)": ["{dog}"]
- "Shrimp Pate Cat Can": ["{cat}"]
- "Mineral Spa Bath", description "keeps your dog's coat soft...": ["{dog}"]
- "Pet Keychain": ["{humans}"]
"""

LOCALIZED_PROMPT = """你是一個資料庫ETL專家。
請根據以下商品資料，判斷其主要適用物種。

產品名稱: {name}
類別: {category}
商品介紹: {description}

你的回答必須是一個 JSON 陣列，只能包含 "{dog}", "{cat}", "{humans}", "{other}" 這幾個值。

重要規則:
1. "SPA礦泉浴", "香薰浴鹽", "深海泥洗護" 這類美容/SPA產品，請根據商品介紹判斷是給寵物還是人類使用。介紹中提到狗狗請分類為 ["{dog}"]，提到貓咪請分類為 ["{cat}"]，貓狗通用請分類為 ["{dog}", "{cat}"]。
2. "包包", "鑰匙圈", "配件" 這類商品應分類為 ["{humans}"]。
3. "迷你犬", "狗狗", "for Dog" = ["{dog}"]
4. "貓咪", "貓罐", "for Cat" = ["{cat}"]
5. 如果商品介紹明顯提到貓狗通用 = ["{dog}", "{cat}"]
6. 如果都無法判斷 = ["{other}"]

範例:
- 產品名稱 "耐咬史迪克-XS（迷你犬）": ["{dog}"]
- 產品名稱 "毛孩快跑-橘鮮蝦貓罐": ["{cat}"]
- 產品名稱 "SPA礦泉浴", 介紹 "讓狗狗的毛髮...": ["{dog}"]
- 產品名稱 "寵物造型鑰匙圈": ["{humans}"]
"""


def build_audience_prompt(product: CanonicalProduct, vocabulary: AudienceVocabulary) -> str:
    """Fill the vocabulary's prompt template; the description is capped to bound prompt cost"""
    template = ENGLISH_PROMPT if vocabulary.language == "en" else LOCALIZED_PROMPT
    return template.format(
        name=product.name,
        category=product.category or "",
        description=truncate(product.description, DESCRIPTION_LIMIT),
        dog=vocabulary.dog,
        cat=vocabulary.cat,
        humans=vocabulary.humans,
        other=vocabulary.fallback,
    )


def parse_audience_response(text: str, vocabulary: AudienceVocabulary) -> List[str]:
    """
    Parse a model answer into vocabulary tags.

    Raises ValueError when the answer is not a JSON array or holds no
    recognised tag; callers substitute the fallback tag.
    """
    cleaned = _CODE_FENCE.sub("", text or "").strip()
    parsed = json.loads(cleaned)

    if not isinstance(parsed, list):
        raise ValueError(f"expected a JSON array, got {type(parsed).__name__}")

    tags: List[str] = []
    for item in parsed:
        if not item:
            continue
        tag = vocabulary.canonical(item)
        if tag and tag not in tags:
            tags.append(tag)

    if not tags:
        raise ValueError(f"no recognised audience tags in {cleaned[:80]!r}")
    return tags


class AudienceClassifier:
    """Single-attempt classifier; every failure resolves to the fallback tag"""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def classify(self, product: CanonicalProduct, vocabulary: AudienceVocabulary) -> StepResult[List[str]]:
        prompt = build_audience_prompt(product, vocabulary)
        try:
            response = await self.generator.generate(prompt)
            tags = parse_audience_response(response, vocabulary)
        except Exception as e:
            log.warning("Audience classification failed", sku=product.sku, error=str(e))
            return StepResult.failure(str(e) or e.__class__.__name__, value=[vocabulary.fallback])

        return StepResult.success(tags)
