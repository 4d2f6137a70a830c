# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
import openai

logger = logging.getLogger(__name__)

DEFAULT_SERVINGS = 2
SYSTEM_PROMPT = "You are a helpful culinary assistant."


class RecipeRequestError(ValueError):
    pass


class CompletionError(RuntimeError):
    """The completion API did not give us a usable recipe."""


@dataclass(frozen=True)
class RecipeRequest:
    ingredients: List[str]
    preferences: str = ""
    servings: int = DEFAULT_SERVINGS


def parse_recipe_request(payload: Any) -> RecipeRequest:
    if not isinstance(payload, dict):
        raise RecipeRequestError("Invalid request payload.")
    raw = payload.get("ingredients")
    ingredients = [str(i).strip() for i in raw if str(i).strip()] if isinstance(raw, list) else []
    if not ingredients:
        raise RecipeRequestError("Please provide at least one ingredient.")

    preferences = str(payload.get("preferences") or "").strip()

    servings = payload.get("servings")
    if isinstance(servings, bool) or not isinstance(servings, (int, float)) or servings <= 0:
        servings = DEFAULT_SERVINGS
    return RecipeRequest(ingredients=ingredients, preferences=preferences, servings=int(servings))


def build_prompt(req: RecipeRequest) -> str:
    return (
        "Create a concise recipe as JSON only. "
        f"Use these ingredients: {', '.join(req.ingredients)}. "
        f"Preferences: {req.preferences or 'none'}. Servings: {req.servings}. \n\n"
        "Return strictly JSON with keys: title (string), timeMinutes (number), "
        "caloriesEstimate (number), servings (number), ingredients (array of {item, amount}), "
        "instructions (array of strings), notes (string). Do not include any extra text."
    )


def _number(value: Any, default: Optional[float]) -> Optional[float]:
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    except OverflowError as exc:
        raise CompletionError(f"Number out of range: {str(value)[:20]}") from exc
    if not math.isfinite(n):
        raise CompletionError(f"Non-finite number: {value!r}")
    return int(n) if n.is_integer() else n


def coerce_recipe(parsed: Dict[str, Any], req: RecipeRequest) -> Dict[str, Any]:
    """Shape an arbitrary model answer into the recipe the client expects."""
    raw_ingredients = parsed.get("ingredients")
    if isinstance(raw_ingredients, list):
        ingredients = []
        for i in raw_ingredients:
            if isinstance(i, dict):
                item = {"item": str(i.get("item") or "")}
                if i.get("amount"):
                    item["amount"] = str(i["amount"])
            else:
                item = {"item": str(i)}
            ingredients.append(item)
    else:
        ingredients = [{"item": i} for i in req.ingredients]

    raw_steps = parsed.get("instructions")
    if isinstance(raw_steps, list):
        instructions = [str(s) for s in raw_steps]
    else:
        instructions = ["Mix ingredients", "Cook until done", "Serve and enjoy"]

    out: Dict[str, Any] = {
        "title": str(parsed.get("title") or "Generated Recipe"),
        "timeMinutes": _number(parsed.get("timeMinutes"), 25),
        "servings": _number(parsed.get("servings"), req.servings),
        "ingredients": ingredients,
        "instructions": instructions,
        "source": "openai",
    }
    calories = _number(parsed.get("caloriesEstimate"), None) if parsed.get("caloriesEstimate") else None
    if calories is not None:
        out["caloriesEstimate"] = calories
    if parsed.get("notes"):
        out["notes"] = str(parsed["notes"])
    return out


def mock_recipe(req: RecipeRequest) -> Dict[str, Any]:
    if req.preferences:
        notes = f"Tailored for: {req.preferences}. Adjust seasoning accordingly."
    else:
        notes = "Adjust seasoning to preference. Add herbs or citrus for brightness."
    return {
        "title": f"{req.ingredients[0]}-Forward Quick Bowl",
        "timeMinutes": 20,
        "caloriesEstimate": 450,
        "servings": req.servings,
        "ingredients": [{"item": i, "amount": "to taste"} for i in req.ingredients],
        "instructions": [
            "Prep all ingredients and wash/trim as needed.",
            f"Sauté aromatics, then add {', '.join(req.ingredients)}.",
            "Season, adjust texture with stock or water.",
            "Plate, garnish, and serve warm.",
        ],
        "notes": notes,
        "source": "mock",
    }


class RecipeService:
    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.model = model
        # One attempt only; a failure goes straight to the mock recipe.
        self.openai_client = (
            openai.OpenAI(
                api_key=api_key,
                base_url=base_url.rstrip("/"),
                http_client=http_client,
                timeout=timeout,
                max_retries=0,
            )
            if api_key
            else None
        )

    def _complete(self, req: RecipeRequest) -> Dict[str, Any]:
        assert self.openai_client is not None
        resp = self.openai_client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(req)},
            ],
            temperature=0.7,
        )
        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise CompletionError("Malformed completion response") from exc
        if not content:
            raise CompletionError("No content from completion API")
        try:
            parsed = json.loads(content)
        except ValueError as exc:
            raise CompletionError("Completion content is not JSON") from exc
        if not isinstance(parsed, dict):
            raise CompletionError("Completion content is not a JSON object")
        return coerce_recipe(parsed, req)

    def generate(self, req: RecipeRequest) -> Dict[str, Any]:
        if self.openai_client is not None:
            try:
                return self._complete(req)
            except (openai.OpenAIError, CompletionError) as exc:
                logger.warning("Recipe generation failed, falling back to mock: %s", exc)
        return mock_recipe(req)

    def close(self) -> None:
        if self.openai_client is not None:
            self.openai_client.close()
