from typing import Any, Dict

REQUIRED_SECTIONS = [
    "### Concise Technical Explanation",
    "### Fixed HTML Snippet",
    "### Implementation Steps",
    "### WCAG Reference",
]

VIOLATION_TEMPLATES = {
    "color-contrast": "Fix color contrast ratio of at least 4.5:1 for normal text. Current element: {html}",
    "image-alt": "Add descriptive alt text to this image: {html}",
    "empty-heading": "Remove or add content to this empty heading: {html}",
}

GENERIC_TEMPLATE = """As a senior accessibility engineer, provide:
1. Explanation of this {violation_id} violation ({impact} impact)
2. Fixed HTML code
3. Implementation steps

Context: {help_url}
Element: {element}"""

SYSTEM_PROMPT = """You are an expert web accessibility consultant. Provide your response in the following EXACT format:

### Concise Technical Explanation
[2-3 sentence explanation of the issue]

### Fixed HTML Snippet
[Fixed HTML code snippet ONLY - no explanations]

### Implementation Steps
1. [Step 1]
2. [Step 2]
3. [Step 3]

### WCAG Reference
[Specific WCAG guideline reference]

Context: {help_url}
Element: {element}"""


def first_node_html(violation: Dict[str, Any]) -> str:
    nodes = violation.get("nodes") or []
    if not nodes:
        return ""
    return nodes[0].get("html") or ""


def build_prompts(violation: Dict[str, Any]) -> tuple[str, str]:
    """Return (system_prompt, user_prompt) for a violation."""
    html = first_node_html(violation)
    help_url = violation.get("helpUrl") or "n/a"
    element = html[:300]

    template = VIOLATION_TEMPLATES.get(violation.get("id"))
    if template:
        prompt = template.format(html=html)
    else:
        prompt = GENERIC_TEMPLATE.format(
            violation_id=violation.get("id"),
            impact=violation.get("impact") or "unknown",
            help_url=help_url,
            element=element,
        )

    return SYSTEM_PROMPT.format(help_url=help_url, element=element), prompt
