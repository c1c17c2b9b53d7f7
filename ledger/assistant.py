"""Bridge to the hosted language model that reads expenses out of chat text.

The model does the categorisation; this module only builds the prompt,
declares the JSON reply schema, and validates what comes back. Every
failure turns into ``fallback_reply()`` so callers never see an exception.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Literal, Optional, Sequence

from google import genai
from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ledger import config
from ledger.domain import Budget, ChatMessage, IncomeStream, Transaction

logger = logging.getLogger(__name__)

ACTION_TYPES = (
    "LOG_EXPENSE",
    "CREATE_BUDGET",
    "REQUEST_BUDGET_CREATION",
    "TRANSFER_BUDGET",
    "GIVE_ADVICE",
    "NONE",
)
ActionType = Literal[
    "LOG_EXPENSE",
    "CREATE_BUDGET",
    "REQUEST_BUDGET_CREATION",
    "TRANSFER_BUDGET",
    "GIVE_ADVICE",
    "NONE",
]

FALLBACK_MESSAGE = "I couldn't process that. Please try again."


class ActionData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Optional[float] = None
    category: Optional[str] = None
    item: Optional[str] = None
    limit: Optional[float] = None
    from_category: Optional[str] = Field(None, alias="fromCategory")
    to_category: Optional[str] = Field(None, alias="toCategory")
    advice: Optional[str] = None


class AssistantAction(BaseModel):
    type: ActionType
    data: Optional[ActionData] = None


class AssistantReply(BaseModel):
    message: str
    actions: List[AssistantAction]


def fallback_reply() -> AssistantReply:
    return AssistantReply(message=FALLBACK_MESSAGE, actions=[AssistantAction(type="NONE")])


RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "message": types.Schema(
            type=types.Type.STRING,
            description="Freddy's response. Concise, clear, and slightly refined.",
        ),
        "actions": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "type": types.Schema(type=types.Type.STRING, enum=list(ACTION_TYPES)),
                    "data": types.Schema(
                        type=types.Type.OBJECT,
                        nullable=True,
                        properties={
                            "amount": types.Schema(type=types.Type.NUMBER),
                            "limit": types.Schema(type=types.Type.NUMBER),
                            "category": types.Schema(type=types.Type.STRING),
                            "item": types.Schema(type=types.Type.STRING),
                            "fromCategory": types.Schema(type=types.Type.STRING),
                            "toCategory": types.Schema(type=types.Type.STRING),
                            "advice": types.Schema(type=types.Type.STRING),
                        },
                    ),
                },
                required=["type"],
            ),
        ),
    },
    required=["message", "actions"],
)

INSTRUCTIONS = """
Instructions:
1. Parse ALL expenses mentioned in the user's message, even if there are multiple.
2. For each expense, pick the category. Prefer an existing budget whose name matches
   exactly or closely over inventing a new one. Otherwise use these rules:

   FOOD ITEMS (use "Food" category):
   - Fruits: tangerine, orange, apple, banana, etc.
   - Snacks: chocolate, candy, chips, etc.
   - Restaurants: Chowdeck, McDonald's, KFC, etc.
   - Groceries: supermarket, grocery, etc.

   TRANSPORT (use "Transport" category):
   - Uber, Lyft, taxi, bus, train, gas, fuel

   PERSONAL/FAMILY (use "Personal" category):
   - Payments to people: "my sister", "John", "mom", "friend"
   - Gifts, loans to individuals

   LIFESTYLE (use "Lifestyle" category):
   - Entertainment: movies, concerts, games
   - Shopping: clothes, accessories, electronics
   - Subscriptions: Netflix, Spotify, gym

3. If the category exists in the budgets, use LOG_EXPENSE with amount, category and item.
4. If it does not exist, use REQUEST_BUDGET_CREATION and ask the user whether to create it.
5. When the user confirms ("yes", "ok", "sure", ...), use CREATE_BUDGET with the category,
   a suggested limit, and the pending amount and item.
6. When the user asks to move money between budgets, use TRANSFER_BUDGET with
   fromCategory, toCategory and amount.
7. When the user asks for guidance, use GIVE_ADVICE with the advice text.
8. Return multiple actions if there are multiple expenses. Use NONE when nothing applies.

Examples:
- "I spent 4500 on tangerine, 2k on chocolate, 5k on my sister" gives 3 actions:
  * LOG_EXPENSE: 4500 to Food (tangerine is a fruit)
  * LOG_EXPENSE: 2000 to Food (chocolate is food)
  * REQUEST_BUDGET_CREATION: ask to create "Personal" for 5000 (my sister is a person)
- "yes" after being asked to create a budget:
  * CREATE_BUDGET: the budget with a suggested limit, logging the pending amount

Personality:
- Use fewer words.
- Be helpful but not chatty.
"""


def _budget_context(budgets: Sequence[Budget]) -> str:
    lines = [f"{b.category}: Limit {b.limit:g}, Current {b.spent:g}" for b in budgets]
    return "\n".join(lines) or "None."


def _history_context(history: Sequence[ChatMessage]) -> str:
    window = list(history)[-config.HISTORY_WINDOW:]
    return "\n".join(
        f"{'User' if m.role == 'user' else 'Freddy'}: {m.text}" for m in window
    )


def _recent_context(transactions: Sequence[Transaction]) -> str:
    recent = list(transactions)[:config.RECENT_TRANSACTIONS]
    lines = [f"{t.date} {t.category}: {t.amount:g} ({t.description})" for t in recent]
    return "\n".join(lines) or "None."


def build_prompt(user_text: str, history: Sequence[ChatMessage], budgets: Sequence[Budget],
                 incomes: Sequence[IncomeStream], transactions: Sequence[Transaction]) -> str:
    income = sum(i.amount for i in incomes)
    return (
        "You are Freddy. You represent clarity in finance. You are concise and deliberate.\n\n"
        "Context:\n"
        f"Budgets: {_budget_context(budgets)}\n"
        f"Monthly income: {income:g}\n"
        f"Recent transactions: {_recent_context(transactions)}\n"
        f"History: {_history_context(history)}\n\n"
        f'Current User Input: "{user_text}"\n'
        f"{INSTRUCTIONS}"
    )


def make_client(api_key: Optional[str] = None) -> genai.Client:
    key = api_key or config.get_api_key()
    if not key:
        raise ValueError("no API key configured (set GEMINI_API_KEY)")
    return genai.Client(
        api_key=key,
        http_options=types.HttpOptions(timeout=int(config.ASSISTANT_TIMEOUT * 1000)),
    )


def parse_reply(text: Optional[str]) -> AssistantReply:
    if not text:
        raise ValueError("empty model response")
    return AssistantReply.model_validate_json(text)


async def process_user_message(user_text: str, history: Sequence[ChatMessage],
                               budgets: Sequence[Budget], incomes: Sequence[IncomeStream],
                               transactions: Sequence[Transaction],
                               client: Any = None) -> AssistantReply:
    prompt = build_prompt(user_text, history, budgets, incomes, transactions)
    try:
        client = client or make_client()
        response = await asyncio.wait_for(
            client.aio.models.generate_content(
                model=config.MODEL_NAME,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=RESPONSE_SCHEMA,
                ),
            ),
            timeout=config.ASSISTANT_TIMEOUT,
        )
        reply = parse_reply(response.text)
    except ValidationError as e:
        logger.error("assistant reply failed schema validation: %s", e)
        return fallback_reply()
    except Exception:
        logger.exception("assistant request failed")
        return fallback_reply()

    logger.info("assistant replied with %d action(s)", len(reply.actions))
    return reply
