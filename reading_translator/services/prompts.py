"""
Prompt templates. Wording is configuration; the pipeline only relies on
the JSON keys asked for here.
"""

from reading_translator.models.annotated_result import AnnotatedResult
from reading_translator.models.language_profile import LanguageProfile
from reading_translator.models.validation_report import ValidationReport
from reading_translator.services.llm_provider import ProviderRequest
from reading_translator.settings import settings

SYSTEM_PROMPT = (
    "You are a careful translator and pronunciation annotator. "
    "Reply with ONLY one JSON object, no preamble and no explanation. "
    'Escape quotes inside strings as \\", newlines as \\n. No trailing commas.'
)

_annotated_tmpl = """
Translate the {source} text below into {target}. Translate naturally; do not put readings in the translation.

Also return the original text with its {reading} added: {guidance}

Respond with JSON:
{{
    "readingsText": "original {source} text with {reading} in parentheses",
    "translatedText": "{target} translation"
}}

Text:
{text}
"""

_plain_tmpl = """
Translate the {source} text below into {target}. Translate naturally and keep the meaning and tone.

Respond with JSON:
{{
    "translatedText": "{target} translation"
}}

Text:
{text}
"""

_correction_tmpl = """
Your previous {reading} for this {source} text had problems.

Original text:
{text}

Previous annotation:
{previous}

Problems found:
{issues}

How to fix them:
{suggestions}

Return the corrected annotation (every other part unchanged) and the {target} translation.
{guidance}

Respond with JSON:
{{
    "readingsText": "corrected annotation",
    "translatedText": "{target} translation"
}}
"""

_repair_tmpl = """
Your previous answer could not be read as JSON. Answer again for the same text, translated into {target}, as ONE valid JSON object with the keys {keys}.

Text:
{text}

Previous answer (for reference, do not repeat its formatting):
{previous}
"""


def _request(prompt: str) -> ProviderRequest:
    return ProviderRequest(
        prompt_text=prompt.strip(),
        system_prompt=SYSTEM_PROMPT,
        max_output_tokens=settings.max_output_tokens,
        temperature=settings.temperature,
    )


def translation_request(text: str, source: LanguageProfile, target: LanguageProfile) -> ProviderRequest:
    if source.has_script:
        prompt = _annotated_tmpl.format(
            source=source.name,
            target=target.name,
            reading=source.reading_name,
            guidance=source.prompt_guidance,
            text=text,
        )
    else:
        prompt = _plain_tmpl.format(source=source.name, target=target.name, text=text)
    return _request(prompt)


def correction_request(
    text: str,
    source: LanguageProfile,
    target: LanguageProfile,
    previous: AnnotatedResult,
    report: ValidationReport,
) -> ProviderRequest:
    """The follow-up names the concrete issues instead of simply asking again."""
    issues = "\n".join(f"- [{i.kind.value}] {i.description}" for i in report.issues) or "- none listed"
    suggestions = "\n".join(f"- {s}" for s in report.suggestions) or "- follow the format rules"
    prompt = _correction_tmpl.format(
        reading=source.reading_name,
        source=source.name,
        target=target.name,
        text=text,
        previous=previous.annotated_text,
        issues=issues,
        suggestions=suggestions,
        guidance=source.prompt_guidance,
    )
    return _request(prompt)


def format_repair_request(
    text: str, source: LanguageProfile, target: LanguageProfile, raw: str
) -> ProviderRequest:
    keys = '"readingsText" and "translatedText"' if source.has_script else '"translatedText"'
    return _request(
        _repair_tmpl.format(target=target.name, keys=keys, text=text, previous=raw[:2000])
    )
