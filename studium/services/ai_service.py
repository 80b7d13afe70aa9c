# studium/services/ai_service.py
import logging
from typing import Iterable, List, Optional

from openai import OpenAI

from .. import config
from ..models import Message, MessageRole, Source
from .text_extraction import extract_text

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful AI assistant that answers questions based on the provided source documents."

# ----- Prompt Template -----
ANSWER_TEMPLATE = """SOURCE DOCUMENTS:
{context}

{history}USER QUESTION: {question}

Instructions:
- Answer the question based ONLY on the information in the source documents
- If the answer cannot be found in the sources, say so clearly
- Be concise but thorough
- Reference which source document contains the relevant information when possible

YOUR ANSWER:"""


def build_context(sources: Iterable[Source]) -> str:
    """Concatenate the extracted text of every source, one block per file."""
    blocks = []
    for source in sources:
        try:
            text = extract_text(source.file_path, source.file_type)
        except Exception as e:
            logger.warning("Error processing source %s: %s", source.file_name, e)
            text = "[Error reading file]"
        blocks.append(f"--- {source.file_name} ---\n{text}\n")
    return "\n\n".join(blocks)


def build_history(messages: Iterable[Message]) -> str:
    lines = []
    for msg in messages:
        speaker = "User" if msg.role == MessageRole.USER else "Assistant"
        lines.append(f"{speaker}: {msg.content}")
    return "\n\n".join(lines)


def build_prompt(question: str, sources: Iterable[Source], history: Iterable[Message] = ()) -> str:
    """Injects sources + history + question into the answer template."""
    history_text = build_history(history)
    return ANSWER_TEMPLATE.format(
        context=build_context(sources),
        history=f"CONVERSATION HISTORY:\n{history_text}\n\n" if history_text else "",
        question=question,
    )


class AIService:
    """Answers questions grounded in a notebook's sources."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self._api_key = api_key
        self.model = model or config.OPENAI_MODEL
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        # Created on first use so the app can boot without an API key
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key or config.OPENAI_API_KEY)
        return self._client

    def generate_answer(
        self,
        question: str,
        sources: List[Source],
        history: Iterable[Message] = (),
    ) -> str:
        """Run one chat completion over the sources and prior history."""
        prompt = build_prompt(question, sources, history)
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        )
        return response.choices[0].message.content or ""


ai_service = AIService()
