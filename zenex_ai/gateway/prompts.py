"""Prompt templates for the two generation roles."""

from __future__ import annotations

from zenex_ai.gateway.types import AIRequest, Role

ARCHITECT_TEMPLATE = """You are a website architecture expert. Design a complete website structure.

User Request: {prompt}

{context_block}

Provide:
1. Site structure (pages, navigation)
2. Design system (colors, typography, spacing)
3. Content sections for each page
4. Admin panel requirements

Output as JSON with this structure:
{{
  "structure": {{...}},
  "design": {{...}},
  "pages": [...],
  "adminSchema": {{...}}
}}"""

ENGINEER_TEMPLATE = """You are an expert frontend engineer. Generate production-ready HTML/CSS code.

Architecture: {architecture}

User Request: {prompt}

Requirements:
- Modern, responsive design
- Semantic HTML5
- Tailwind utility classes, loaded as a stylesheet:
  <link href="{stylesheet_url}" rel="stylesheet">
- Mobile-first approach
- Optimized for performance
- Static markup only: no <script> tags, no inline event handlers, no JavaScript

Generate one complete HTML document. Put any extra CSS in a <style> block."""

TAILWIND_STYLESHEET_URL = "https://cdn.jsdelivr.net/npm/tailwindcss@2.2.19/dist/tailwind.min.css"


def build_architect_prompt(request: AIRequest) -> str:
    context_block = f"Context: {request.context}" if request.context else ""
    return ARCHITECT_TEMPLATE.format(prompt=request.prompt, context_block=context_block)


def build_engineer_prompt(request: AIRequest) -> str:
    return ENGINEER_TEMPLATE.format(
        prompt=request.prompt,
        architecture=request.context or "N/A",
        stylesheet_url=TAILWIND_STYLESHEET_URL,
    )


PROMPT_BUILDERS = {
    Role.ARCHITECT: build_architect_prompt,
    Role.ENGINEER: build_engineer_prompt,
}
