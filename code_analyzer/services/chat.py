"""
Chat Prompt Builder - Turns a chat request into completion messages.

The system prompt embeds the repository identity, the owner profile (when
supplied) and the assembled code context. Prior turns are replayed after
it, limited to the most recent `chat_history_messages`, followed by the
new question.
"""

from typing import Dict, List

from code_analyzer.models.requests import ChatRequest
from code_analyzer.models.schemas import ChatMessage


CHAT_SYSTEM_PROMPT = """You are a helpful AI assistant that analyzes GitHub repositories. You have access to the following repository context:

**Repository**: {repository}

{owner_line}

**Code Context**:
{context}

Guidelines:
- Answer questions about the code structure, architecture, and implementation
- When showing code flows or architecture, use Mermaid diagrams with ```mermaid code blocks
- Be concise but thorough
- Reference specific files when relevant using the format [filename](#preview-path/to/file)
- For tables, use standard markdown table syntax
- If asked about security, analyze patterns carefully
- When showing developer info, use the developer-card format:
  :::developer-card
  username: username
  name: Full Name
  bio: Bio text
  location: Location
  :::
- When showing repo info, use the repo-card format:
  :::repo-card
  owner: owner
  name: repo
  description: Description
  stars: 1234
  forks: 567
  language: JavaScript
  :::"""


def build_system_prompt(request: ChatRequest) -> str:
    repo_info = request.repo_info
    repository = f"{repo_info.owner}/{repo_info.repo}" if repo_info else "unknown"

    owner_line = ""
    profile = request.owner_profile
    if profile is not None:
        owner_line = f"**Owner**: {profile.name or profile.login or ''} - {profile.bio or ''}"

    return CHAT_SYSTEM_PROMPT.format(
        repository=repository,
        owner_line=owner_line,
        context=request.context,
    )


def _history_role(message: ChatMessage) -> str:
    # The web client labels its own turns "model"
    return "assistant" if message.role in ("model", "assistant") else "user"


def build_chat_messages(request: ChatRequest, history_limit: int = 10) -> List[Dict[str, str]]:
    """System prompt, the last `history_limit` turns, then the question."""
    recent = request.history[-history_limit:] if history_limit > 0 else []
    messages = [{"role": "system", "content": build_system_prompt(request)}]
    messages.extend(
        {"role": _history_role(m), "content": m.content}
        for m in recent
    )
    messages.append({"role": "user", "content": request.question})
    return messages
