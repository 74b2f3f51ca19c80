# velura/core/prompts.py
"""
Prompts used by the generation pipeline.

Goals:
- Force a single JSON object mapping file paths to file contents.
- When editing, hand the model the whole current project so it can return a complete updated set.
"""

import json
from typing import Dict, Optional


SYSTEM_PROMPT = """You are an expert Frontend Engineer. Generate React + TypeScript landing pages.

LANGUAGE RULE:
- Detect the language of the user prompt and write all UI text in that language.
- Code, comments and identifiers stay in English.

RESPONSE RULES:
1. OUTPUT FORMAT: Return ONLY raw JSON. Start with { and end with }.
2. NO MARKDOWN: Never wrap the answer in code fences.
3. NO EXPLANATIONS: No text before or after the JSON.
4. Every key is a relative file path, every value is the full file content as a string.

MANDATORY FILES:
1. index.html - loads Tailwind from https://cdn.tailwindcss.com and mounts /src/main.tsx into #root
2. src/main.tsx - React entry point rendering <App /> with ReactDOM.createRoot
3. src/App.tsx - main component that imports the other components
4. src/components/*.tsx - one default-exported function component per section

STYLING:
- Tailwind is loaded from the CDN; use utility classes only.
- Do NOT create or import src/index.css or any other stylesheet.

Now generate the project based on the user's prompt."""


def serialize_file_map(files: Dict[str, str]) -> str:
    """
    Serialize a FileMap for embedding in a prompt. json.dumps escapes quotes,
    backslashes and newlines inside contents, so braces in code cannot be
    confused with the surrounding object.
    """
    return json.dumps(files, indent=2, ensure_ascii=False)


def build_contextual_prompt(user_prompt: str, current_files: Optional[Dict[str, str]] = None) -> str:
    """
    Build the user-turn message. Without existing files the prompt is passed through untouched;
    with them, the model is asked to edit the project and return every file.
    """
    if not current_files:
        return user_prompt

    return (
        "CONTEXT: The user wants to modify an EXISTING project.\n\n"
        "CURRENT FILES JSON:\n"
        f"{serialize_file_map(current_files)}\n\n"
        "USER REQUEST:\n"
        f"{json.dumps(user_prompt, ensure_ascii=False)}\n\n"
        "INSTRUCTIONS:\n"
        "1. Analyze the CURRENT FILES carefully.\n"
        "2. Apply the user's request to these files.\n"
        "3. Return the COMPLETE updated JSON object (all files, updated or unchanged).\n"
        "4. Maintain the same file structure.\n"
        "5. Do not remove existing files unless explicitly requested.\n"
        "6. Follow all the original response format rules (raw JSON, no markdown, etc.)."
    )
